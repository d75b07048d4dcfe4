"""
Nested Update Engine Package

The engine is split into mixins for maintainability:
- NestedUpdateEngineBase: entry points and per-record ordering
- ParentOwnedRelationsMixin: belongs-to relations resolved before save
- ChildRelationsMixin: child-owned, polymorphic and join-table relations
- ReconciliationMixin: detaching and deleting omitted records

Usage:
    from nested_updater.nesting.engine import NestedUpdateEngine

    engine = NestedUpdateEngine()
    post = engine.create(Post, {"title": "t", "comments": [{"body": "b"}]})
"""

from .handler import NestedUpdateEngine
from .handler import NestedUpdateEngineBase
from .parent import ParentOwnedRelationsMixin
from .children import ChildRelationsMixin
from .reconcile import ReconciliationMixin

__all__ = [
    "NestedUpdateEngine",
    "NestedUpdateEngineBase",
    "ParentOwnedRelationsMixin",
    "ChildRelationsMixin",
    "ReconciliationMixin",
]
