"""
Reconciliation Mixin

Detaches and optionally deletes related records that were linked before an
update but are no longer referenced by the payload.
"""

import logging
from typing import Any, Iterable

from ...exceptions import NestedUpdaterError, ReconciliationFailed
from ..descriptor import RelationDescriptor
from ..records import ActionKind, ResolvedAction

logger = logging.getLogger(__name__)


class ReconciliationMixin:
    """
    Mixin class reconciling omitted related records.

    Each omitted record is handled in its own savepoint. Failures are
    collected and raised together once every record has been attempted.
    """

    def _reconcile(
        self,
        instance: Any,
        descriptor: RelationDescriptor,
        previous: Iterable[Any],
        referenced: Iterable[Any],
    ) -> None:
        referenced_keys = set(referenced)
        failures: list[tuple[Any, NestedUpdaterError]] = []

        for key in previous:
            if key in referenced_keys:
                continue
            action = self.resolver.resolve_omitted(key, descriptor)
            if action is None:
                continue
            failures.extend(self._release_related(instance, descriptor, action))

        if failures:
            raise ReconciliationFailed(descriptor.relation_key, failures)

    def _release_related(
        self, instance: Any, descriptor: RelationDescriptor, action: ResolvedAction
    ) -> list[tuple[Any, NestedUpdaterError]]:
        """Unlink (and delete, if escalated) one related record, collecting failures."""
        failures = []
        key = action.key
        model_name = self.backend.model_name(descriptor.related_model)

        # deleting a child that owns the key removes the association with it
        if descriptor.is_join_table or action.action is ActionKind.UNLINK:
            try:
                with self.backend.savepoint():
                    if descriptor.is_join_table:
                        self.backend.detach(instance, descriptor.handle, key)
                    else:
                        self.backend.dissociate(instance, descriptor.handle, key)
                logger.info(f"Detached {model_name} {key!r} ({descriptor.relation_key})")
            except NestedUpdaterError as e:
                logger.warning(f"Could not detach {model_name} {key!r}: {e}")
                failures.append((key, e))

        if action.action is ActionKind.DELETE:
            try:
                with self.backend.savepoint():
                    record = self.backend.find(
                        descriptor.related_model, descriptor.related_key_field, key
                    )
                    if record is not None:
                        self.backend.delete(record)
                logger.info(f"Deleted {model_name} {key!r} ({descriptor.relation_key})")
            except NestedUpdaterError as e:
                logger.warning(f"Could not delete {model_name} {key!r}: {e}")
                failures.append((key, e))

        return failures
