"""
Record resolution for nested payload fragments.

Each fragment found at a relation position is turned into exactly one
``ResolvedAction``: create a new record, update an existing one, link an
existing one, unlink, or delete. Policy checks happen here so that an action
is never produced for something the relation does not allow.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from ..exceptions import InvalidNestedPayload, NestedRecordNotFoundOrCreateDisallowed
from .descriptor import RelationDescriptor
from .ports import PersistenceBackend

logger = logging.getLogger(__name__)

SCALAR_KEY_TYPES = (str, int, uuid.UUID)


class ActionKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    LINK = "link"
    UNLINK = "unlink"
    DELETE = "delete"


@dataclass
class ResolvedAction:
    action: ActionKind
    key: Any = None
    record: Any = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def persists_data(self) -> bool:
        return self.action in (ActionKind.CREATE, ActionKind.UPDATE)

    @property
    def releases(self) -> bool:
        return self.action in (ActionKind.UNLINK, ActionKind.DELETE)


def is_empty_key(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RecordResolver:
    """Decides create, update, link, unlink or delete for payload fragments."""

    def __init__(self, backend: PersistenceBackend):
        self.backend = backend

    def resolve(self, fragment: Any, descriptor: RelationDescriptor) -> ResolvedAction:
        if fragment is None:
            if not descriptor.singular:
                raise InvalidNestedPayload(
                    f"Null is not a valid entry for plural relation '{descriptor.relation_key}'."
                )
            return self._release(None, descriptor)

        if isinstance(fragment, bool):
            raise InvalidNestedPayload(
                f"Unexpected boolean for relation '{descriptor.relation_key}'."
            )

        if isinstance(fragment, SCALAR_KEY_TYPES):
            return self._resolve_scalar(fragment, descriptor)

        if isinstance(fragment, Mapping):
            return self._resolve_mapping(fragment, descriptor)

        if self.backend.is_instance(fragment):
            key = self.backend.get_key(fragment, descriptor.related_key_field)
            return self._resolve_scalar(key, descriptor)

        raise InvalidNestedPayload(
            f"Cannot use {type(fragment).__name__} as nested data for "
            f"relation '{descriptor.relation_key}'."
        )

    def resolve_omitted(self, key: Any, descriptor: RelationDescriptor) -> Optional[ResolvedAction]:
        """Decide what happens to a previously linked record left out of the payload."""
        if not descriptor.detach_missing:
            return None
        return self._release(key, descriptor)

    def _release(self, key: Any, descriptor: RelationDescriptor) -> ResolvedAction:
        if descriptor.delete_detached:
            return ResolvedAction(ActionKind.DELETE, key=key)
        return ResolvedAction(ActionKind.UNLINK, key=key)

    def _find(self, descriptor: RelationDescriptor, key: Any):
        return self.backend.find(descriptor.related_model, descriptor.related_key_field, key)

    def _resolve_scalar(self, value: Any, descriptor: RelationDescriptor) -> ResolvedAction:
        # scalars only ever link, they never create
        record = None if is_empty_key(value) else self._find(descriptor, value)
        if record is None:
            raise NestedRecordNotFoundOrCreateDisallowed(
                self.backend.model_name(descriptor.related_model),
                value,
                descriptor.relation_key,
            )
        key = self.backend.get_key(record, descriptor.related_key_field)
        logger.debug(f"{descriptor.relation_key}: link existing {key!r}")
        return ResolvedAction(ActionKind.LINK, key=key, record=record)

    def _resolve_mapping(self, fragment: Mapping, descriptor: RelationDescriptor) -> ResolvedAction:
        data = dict(fragment)
        key_value = data.get(descriptor.related_key_field)
        model_name = self.backend.model_name(descriptor.related_model)

        if not is_empty_key(key_value):
            record = self._find(descriptor, key_value)
            if record is not None:
                key = self.backend.get_key(record, descriptor.related_key_field)
                if descriptor.update_allowed:
                    logger.debug(f"{descriptor.relation_key}: update existing {key!r}")
                    return ResolvedAction(ActionKind.UPDATE, key=key, record=record, data=data)
                logger.debug(f"{descriptor.relation_key}: link existing {key!r} (link-only)")
                return ResolvedAction(ActionKind.LINK, key=key, record=record)
        else:
            data.pop(descriptor.related_key_field, None)

        if not descriptor.create_allowed:
            raise NestedRecordNotFoundOrCreateDisallowed(
                model_name,
                None if is_empty_key(key_value) else key_value,
                descriptor.relation_key,
            )
        logger.debug(f"{descriptor.relation_key}: create new {model_name}")
        return ResolvedAction(ActionKind.CREATE, data=data)
