"""
Parent-Owned Relations Mixin

Handles relations whose foreign key lives on the record being saved
(belongs-to style). These are resolved before the record is persisted so
that the foreign key value is known at save time.
"""

import logging
from typing import Any

from ..descriptor import RelationDescriptor
from ..records import ActionKind

logger = logging.getLogger(__name__)


class ParentOwnedRelationsMixin:
    """
    Mixin class resolving parent-owned foreign keys before save.

    This mixin handles:
    - Creating or updating the related record through its delegate engine
    - Linking an existing related record by key
    - Clearing the foreign key on null
    - Queueing the previously linked record for deletion when configured
    """

    def _apply_parent_owned(
        self,
        instance: Any,
        descriptor: RelationDescriptor,
        value: Any,
        released: list[tuple[RelationDescriptor, Any]],
        depth: int,
    ) -> None:
        handle = descriptor.handle
        previous = self.backend.get_foreign_key(instance, handle)
        action = self.resolver.resolve(value, descriptor)

        if action.action is ActionKind.CREATE:
            engine = self.registry.for_descriptor(descriptor)
            record = engine.create(
                descriptor.related_model, action.data, descriptor=descriptor, depth=depth + 1
            )
            key = self.backend.get_key(record, descriptor.related_key_field)
        elif action.action is ActionKind.UPDATE:
            engine = self.registry.for_descriptor(descriptor)
            record = engine.update(
                action.data, action.record, descriptor=descriptor, depth=depth + 1
            )
            key = self.backend.get_key(record, descriptor.related_key_field)
        elif action.action is ActionKind.LINK:
            key = action.key
        else:
            key = None

        self.backend.set_foreign_key(instance, handle, key)

        if previous is not None and previous != key and descriptor.delete_detached:
            released.append((descriptor, previous))

    def _delete_released(self, released: list[tuple[RelationDescriptor, Any]]) -> None:
        """Delete records that were unlinked from the saved parent."""
        for descriptor, key in released:
            with self._nesting(descriptor.relation_key):
                record = self.backend.find(
                    descriptor.related_model, descriptor.related_key_field, key
                )
                if record is None:
                    continue
                logger.info(
                    f"Deleting detached {self.backend.model_name(descriptor.related_model)} "
                    f"{key!r} ({descriptor.relation_key})"
                )
                self.backend.delete(record)
