"""
Relation metadata provider.

``NestingConfig`` answers, for a parent model and a payload key, whether the
key is a nested relation and what that relation looks like: accessor name,
relation kind, related model and key field, and the effective policy.
"""

import logging
import re
from typing import Any, Optional

from ..core.settings import NestingSettings
from ..exceptions import InvalidRelationConfig, InvalidRelationMethod, NotNestedRelation
from .descriptor import RelationDescriptor, RelationHandle, RelationKind
from .policy import accessor_override, is_nested_config, resolve_policy
from .ports import PersistenceBackend

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_attribute_name(key: str) -> str:
    """Convert a payload key (kebab-case or camelCase) to a snake_case attribute name."""
    name = _CAMEL_BOUNDARY.sub("_", str(key).strip())
    return name.replace("-", "_").replace(" ", "_").lower()


class NestingConfig:
    """Resolves nested relation descriptors from settings and model reflection."""

    def __init__(
        self,
        settings: Optional[NestingSettings] = None,
        backend: Optional[PersistenceBackend] = None,
    ):
        self.settings = settings or NestingSettings.from_django_settings()
        if backend is None:
            from ..backends.django import DjangoPersistence

            backend = DjangoPersistence(full_clean=self.settings.full_clean)
        self.backend = backend
        self._descriptors: dict[tuple[str, str], RelationDescriptor] = {}

    def get_relation_config(self, model: Any, key: str) -> Any:
        """Return the raw config value for a key, ``False`` when absent."""
        label = self.backend.label(model)
        return self.settings.relations_for(label).get(key, False)

    def is_nested_relation(self, model: Any, key: str) -> bool:
        return is_nested_config(self.get_relation_config(model, key))

    def get_accessor_name(self, model: Any, key: str) -> str:
        raw = self.get_relation_config(model, key)
        if not is_nested_config(raw):
            raise NotNestedRelation(key, self.backend.model_name(model))
        return accessor_override(raw) or to_attribute_name(key)

    def get_relation_info(self, model: Any, key: str) -> RelationDescriptor:
        """
        Build the descriptor for a nested relation key of a model.

        Raises:
            InvalidParentModel: if ``model`` is not a concrete model
            NotNestedRelation: if ``key`` has no nested configuration
            InvalidRelationMethod: if the accessor does not yield a relation
        """
        model = self.backend.check_model(model)
        cache_key = (self.backend.label(model), key)
        if cache_key in self._descriptors:
            return self._descriptors[cache_key]

        raw = self.get_relation_config(model, key)
        if not is_nested_config(raw):
            raise NotNestedRelation(key, model.__name__)

        accessor_name = accessor_override(raw) or to_attribute_name(key)
        handle = self.backend.get_relation(model, accessor_name)
        kind = self.classify(model, handle)

        try:
            policy = resolve_policy(raw, kind)
        except ValueError as e:
            raise InvalidRelationConfig(cache_key[0], key, str(e)) from e

        descriptor = RelationDescriptor(
            relation_key=key,
            accessor_name=accessor_name,
            kind=kind,
            handle=handle,
            policy=policy,
        )
        logger.debug(
            f"Resolved nested relation {cache_key[0]}.{key} -> "
            f"{handle.relation_class} ({kind.value})"
        )
        self._descriptors[cache_key] = descriptor
        return descriptor

    def classify(self, model: Any, handle: RelationHandle) -> RelationKind:
        """Derive the relation kind from the configured relation class sets."""
        relation_class = handle.relation_class
        singular = relation_class in self.settings.singular_relations
        belongs_to = relation_class in self.settings.belongs_to_relations

        if belongs_to and not singular:
            raise InvalidRelationMethod(
                self.backend.model_name(model),
                handle.accessor_name,
                f"{relation_class} is configured as belongs-to but not as singular",
            )
        if belongs_to:
            return RelationKind.TO_ONE_PARENT_OWNS_KEY
        if singular:
            return RelationKind.TO_ONE_CHILD_OWNS_KEY
        if relation_class in self.settings.join_table_relations:
            return RelationKind.TO_MANY_JOIN_TABLE
        if relation_class in self.settings.polymorphic_relations:
            return RelationKind.TO_MANY_POLYMORPHIC
        return RelationKind.TO_MANY_CHILD_OWNS_KEY
