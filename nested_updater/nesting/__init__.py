"""
Nested relation resolution and recursive updates.
"""

from .config import NestingConfig, to_attribute_name
from .descriptor import RelationDescriptor, RelationHandle, RelationKind, RelationPolicy
from .engine import NestedUpdateEngine
from .policy import resolve_policy
from .records import ActionKind, RecordResolver, ResolvedAction
from .registry import UpdaterRegistry
from .validation import NestedValidator

__all__ = [
    "ActionKind",
    "NestedUpdateEngine",
    "NestedValidator",
    "NestingConfig",
    "RecordResolver",
    "RelationDescriptor",
    "RelationHandle",
    "RelationKind",
    "RelationPolicy",
    "ResolvedAction",
    "UpdaterRegistry",
    "resolve_policy",
    "to_attribute_name",
]
