"""
Relation metadata containers.

A ``RelationHandle`` is what the persistence backend reports after reflecting
on a model's relation accessor. A ``RelationDescriptor`` combines that handle
with the effective nesting policy for one (parent model, payload key) pair.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class RelationKind(str, Enum):
    TO_ONE_PARENT_OWNS_KEY = "to_one_parent_owns_key"
    TO_ONE_CHILD_OWNS_KEY = "to_one_child_owns_key"
    TO_MANY_CHILD_OWNS_KEY = "to_many_child_owns_key"
    TO_MANY_JOIN_TABLE = "to_many_join_table"
    TO_MANY_POLYMORPHIC = "to_many_polymorphic"

    @property
    def singular(self) -> bool:
        return self in (
            RelationKind.TO_ONE_PARENT_OWNS_KEY,
            RelationKind.TO_ONE_CHILD_OWNS_KEY,
        )

    @property
    def parent_owns_foreign_key(self) -> bool:
        return self is RelationKind.TO_ONE_PARENT_OWNS_KEY


@dataclass(frozen=True)
class RelationHandle:
    """Introspected facts about a relation accessor on a model."""

    relation_class: str
    related_model: Any
    related_key_field: str
    accessor_name: str
    remote_field: Optional[str] = None
    nullable: bool = True
    relation: Any = None


@dataclass(frozen=True)
class RelationPolicy:
    """Effective behaviour flags for one nested relation."""

    update_allowed: bool = True
    create_allowed: bool = True
    detach_missing: bool = False
    delete_detached: bool = False
    updater: Optional[str] = None
    validator: Optional[str] = None
    rules_class: Optional[str] = None
    rules_method: Optional[str] = None
    accessor_name: Optional[str] = None

    @property
    def link_only(self) -> bool:
        return not (self.update_allowed or self.create_allowed)


@dataclass(frozen=True)
class RelationDescriptor:
    """Resolved, immutable metadata for a nested relation of a parent model."""

    relation_key: str
    accessor_name: str
    kind: RelationKind
    handle: RelationHandle
    policy: RelationPolicy

    @property
    def related_model(self) -> Any:
        return self.handle.related_model

    @property
    def related_key_field(self) -> str:
        return self.handle.related_key_field

    @property
    def singular(self) -> bool:
        return self.kind.singular

    @property
    def parent_owns_foreign_key(self) -> bool:
        return self.kind.parent_owns_foreign_key

    @property
    def is_join_table(self) -> bool:
        return self.kind is RelationKind.TO_MANY_JOIN_TABLE

    @property
    def is_polymorphic(self) -> bool:
        return self.kind is RelationKind.TO_MANY_POLYMORPHIC

    @property
    def child_owns_foreign_key(self) -> bool:
        return self.kind in (
            RelationKind.TO_ONE_CHILD_OWNS_KEY,
            RelationKind.TO_MANY_CHILD_OWNS_KEY,
            RelationKind.TO_MANY_POLYMORPHIC,
        )

    @property
    def update_allowed(self) -> bool:
        return self.policy.update_allowed

    @property
    def create_allowed(self) -> bool:
        return self.policy.create_allowed

    @property
    def detach_missing(self) -> bool:
        return self.policy.detach_missing

    @property
    def delete_detached(self) -> bool:
        return self.policy.delete_detached

    @property
    def updater(self) -> Optional[str]:
        return self.policy.updater

    @property
    def validator(self) -> Optional[str]:
        return self.policy.validator
