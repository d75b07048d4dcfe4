"""
Child Relations Mixin

Handles relations processed after the parent is saved: child-owned foreign
keys (has-one, has-many), polymorphic has-many and join-table relations.
"""

import logging
from typing import Any

from ...exceptions import InvalidNestedPayload, ReconciliationFailed
from ..descriptor import RelationDescriptor
from ..records import ActionKind, ResolvedAction

logger = logging.getLogger(__name__)


class ChildRelationsMixin:
    """
    Mixin class providing post-save relation handling.

    This mixin handles:
    - Creating and updating children with the parent link set before save
    - Associating existing children without touching their fields
    - Attaching join-table rows once the related record exists
    - Replacing the record held by a singular child-owned relation
    """

    def _apply_child_relation(
        self,
        instance: Any,
        descriptor: RelationDescriptor,
        value: Any,
        creating: bool,
        depth: int,
    ) -> None:
        if descriptor.singular:
            self._apply_singular_child(instance, descriptor, value, creating, depth)
        else:
            self._apply_plural_children(instance, descriptor, value, creating, depth)

    def _current_keys(self, instance: Any, descriptor: RelationDescriptor, creating: bool) -> list:
        if creating:
            return []
        return self.backend.current_related_keys(instance, descriptor.handle)

    def _apply_singular_child(
        self,
        instance: Any,
        descriptor: RelationDescriptor,
        value: Any,
        creating: bool,
        depth: int,
    ) -> None:
        previous = self._current_keys(instance, descriptor, creating)
        action = self.resolver.resolve(value, descriptor)

        replaced = [
            key for key in previous
            if action.releases or action.action is ActionKind.CREATE or key != action.key
        ]
        release_kind = ActionKind.DELETE if descriptor.delete_detached else ActionKind.UNLINK
        failures = []
        for key in replaced:
            failures.extend(
                self._release_related(instance, descriptor, ResolvedAction(release_kind, key=key))
            )
        if failures:
            raise ReconciliationFailed(descriptor.relation_key, failures)

        if not action.releases:
            self._apply_child_action(instance, descriptor, action, depth, previous)

    def _apply_plural_children(
        self,
        instance: Any,
        descriptor: RelationDescriptor,
        value: Any,
        creating: bool,
        depth: int,
    ) -> None:
        if value is None:
            value = []
        if not isinstance(value, (list, tuple)):
            raise InvalidNestedPayload(
                f"Expected a list for plural relation '{descriptor.relation_key}', "
                f"got {type(value).__name__}."
            )

        previous = self._current_keys(instance, descriptor, creating)
        referenced = []
        for index, item in enumerate(value):
            with self._nesting(index):
                action = self.resolver.resolve(item, descriptor)
                referenced.append(
                    self._apply_child_action(instance, descriptor, action, depth, previous)
                )

        self._reconcile(instance, descriptor, previous, referenced)

    def _apply_child_action(
        self,
        instance: Any,
        descriptor: RelationDescriptor,
        action: ResolvedAction,
        depth: int,
        previous: list,
    ) -> Any:
        """Execute a create, update or link action and return the related key."""
        handle = descriptor.handle
        link_parent = instance if descriptor.child_owns_foreign_key else None

        if action.action is ActionKind.CREATE:
            engine = self.registry.for_descriptor(descriptor)
            record = engine.create(
                descriptor.related_model,
                action.data,
                parent=link_parent,
                descriptor=descriptor,
                depth=depth + 1,
            )
            key = self.backend.get_key(record, descriptor.related_key_field)
        elif action.action is ActionKind.UPDATE:
            engine = self.registry.for_descriptor(descriptor)
            record = engine.update(
                action.data,
                action.record,
                parent=link_parent,
                descriptor=descriptor,
                depth=depth + 1,
            )
            key = self.backend.get_key(record, descriptor.related_key_field)
        else:
            record, key = action.record, action.key
            if link_parent is not None and not self.backend.is_associated(
                record, handle, instance
            ):
                self.backend.associate(record, handle, instance)
                self.backend.save(record)

        if descriptor.is_join_table and key not in previous:
            self.backend.attach(instance, handle, key)
        return key
