"""
Nested Update Engine Base Module

This module provides the base class for the nested update engine with the
entry points and the per-record ordering: parent-owned relations first, then
the record itself, then child-owned and join-table relations.
"""

import logging
from contextlib import contextmanager
from typing import Any, Mapping, Optional

from ...exceptions import InvalidNestedPayload, NestedDepthError, NestedUpdaterError
from ..config import NestingConfig
from ..descriptor import RelationDescriptor
from ..records import RecordResolver
from ..registry import UpdaterRegistry
from ..validation import NestedValidator

logger = logging.getLogger(__name__)


class NestedUpdateEngineBase:
    """Base class for the nested update engine providing core traversal methods."""

    def __init__(
        self,
        config: Optional[NestingConfig] = None,
        registry: Optional[UpdaterRegistry] = None,
        validator: Optional[NestedValidator] = None,
        settings=None,
    ):
        """Initialize the engine."""
        self.config = config or NestingConfig(settings=settings)
        self.backend = self.config.backend
        self.resolver = RecordResolver(self.backend)
        self.registry = registry or UpdaterRegistry(default=self)
        self.validator = validator or NestedValidator()
        self.max_depth = self.config.settings.max_nested_depth

    # --- Entry points ---

    def create(
        self,
        model: Any,
        data: Mapping[str, Any],
        *,
        parent: Any = None,
        descriptor: Optional[RelationDescriptor] = None,
        depth: int = 0,
    ) -> Any:
        """
        Create a record of ``model`` with all nested relations in ``data``.

        Args:
            model: model class to create
            data: attribute values and nested relation payloads
            parent: parent record, when created through a child-owned relation
            descriptor: relation through which this record is nested
            depth: current nesting depth

        Returns:
            The saved record
        """
        model = self.backend.check_model(model)
        return self._persist(model, data, None, parent=parent, descriptor=descriptor, depth=depth)

    def update(
        self,
        data: Mapping[str, Any],
        instance: Any,
        *,
        parent: Any = None,
        descriptor: Optional[RelationDescriptor] = None,
        depth: int = 0,
    ) -> Any:
        """Update an existing record and its nested relations with ``data``."""
        model = self.backend.check_model(instance)
        return self._persist(
            model, data, instance, parent=parent, descriptor=descriptor, depth=depth
        )

    # --- Traversal ---

    @contextmanager
    def _nesting(self, segment: Any):
        """Prefix errors raised inside the block with a nested key segment."""
        try:
            yield
        except NestedUpdaterError as e:
            e.prefix_nested_key(segment)
            raise

    def _check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise NestedDepthError(self.max_depth, depth)

    def _partition(
        self, model: Any, data: Mapping[str, Any], creating: bool
    ) -> tuple[dict, dict, dict]:
        """Split payload keys into attributes, pre-save and post-save relations."""
        attributes, before_save, after_save = {}, {}, {}
        key_field = self.backend.key_field(model)

        for key, value in data.items():
            if self.config.is_nested_relation(model, key):
                with self._nesting(key):
                    descriptor = self.config.get_relation_info(model, key)
                if descriptor.parent_owns_foreign_key:
                    before_save[key] = descriptor
                else:
                    after_save[key] = descriptor
                continue
            if key == key_field and not creating:
                continue
            attributes[key] = value

        return attributes, before_save, after_save

    def _persist(
        self,
        model: Any,
        data: Mapping[str, Any],
        instance: Any,
        *,
        parent: Any,
        descriptor: Optional[RelationDescriptor],
        depth: int,
    ) -> Any:
        self._check_depth(depth)
        if not isinstance(data, Mapping):
            raise InvalidNestedPayload(
                f"Expected a mapping of data for {self.backend.model_name(model)}, "
                f"got {type(data).__name__}."
            )

        creating = instance is None
        attributes, before_save, after_save = self._partition(model, data, creating)
        if creating:
            instance = self.backend.new_instance(model)

        released: list[tuple[RelationDescriptor, Any]] = []
        for key, relation in before_save.items():
            with self._nesting(key):
                self._apply_parent_owned(instance, relation, data[key], released, depth)

        self.backend.assign(instance, attributes)
        if parent is not None and descriptor is not None and descriptor.child_owns_foreign_key:
            self.backend.associate(instance, descriptor.handle, parent)

        self.validator.validate(model, attributes, descriptor, creating=creating)
        self.backend.save(instance)
        logger.debug(
            f"{'Created' if creating else 'Updated'} {self.backend.model_name(model)} "
            f"{self.backend.get_key(instance)!r}"
        )

        self._delete_released(released)

        for key, relation in after_save.items():
            with self._nesting(key):
                self._apply_child_relation(instance, relation, data[key], creating, depth)

        return instance


from .parent import ParentOwnedRelationsMixin
from .children import ChildRelationsMixin
from .reconcile import ReconciliationMixin


class NestedUpdateEngine(
    ParentOwnedRelationsMixin, ChildRelationsMixin, ReconciliationMixin, NestedUpdateEngineBase
):
    """
    Creates and updates records together with their nested related records,
    following the configured nesting policy for every relation.
    """
    pass
