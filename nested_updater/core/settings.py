"""
NestingSettings implementation.

Settings are loaded from the library defaults and ``settings.NESTED_UPDATER``
and frozen into a dataclass so that a ``NestingConfig`` can be handed an
explicit, immutable configuration object.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from django.conf import settings as django_settings

from ..defaults import LIBRARY_DEFAULTS, merge_settings

logger = logging.getLogger(__name__)

SETTINGS_NAME = "NESTED_UPDATER"


def _get_global_settings() -> dict[str, Any]:
    """Get the project settings block from Django settings."""
    configured = getattr(django_settings, SETTINGS_NAME, None) or {}
    if not isinstance(configured, dict):
        logger.warning(f"{SETTINGS_NAME} should be a dict, got {type(configured).__name__}")
        return {}
    return configured


def _freeze_relations(relations: Mapping[str, Any]) -> Mapping[str, Mapping[str, Any]]:
    """Index relation configuration by lower-cased model label."""
    frozen = {}
    for label, keys in (relations or {}).items():
        if not isinstance(keys, Mapping):
            logger.warning(f"Ignoring nested relation config for {label}: expected a mapping")
            continue
        frozen[str(label).lower()] = MappingProxyType(dict(keys))
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class NestingSettings:
    """Settings for controlling nested relation updates."""

    relations: Mapping[str, Mapping[str, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    singular_relations: frozenset = frozenset()
    belongs_to_relations: frozenset = frozenset()
    join_table_relations: frozenset = frozenset()
    polymorphic_relations: frozenset = frozenset()
    max_nested_depth: int = 10
    full_clean: bool = True

    @classmethod
    def from_dict(cls, overrides: Optional[dict[str, Any]] = None) -> "NestingSettings":
        """Build settings from the library defaults and explicit overrides."""
        merged = merge_settings(LIBRARY_DEFAULTS, overrides or {})
        valid_fields = set(cls.__dataclass_fields__.keys())
        unknown = set(merged) - valid_fields
        if unknown:
            logger.warning(f"Unknown nested updater settings ignored: {sorted(unknown)}")
        return cls(
            relations=_freeze_relations(merged.get("relations", {})),
            singular_relations=frozenset(merged.get("singular_relations") or ()),
            belongs_to_relations=frozenset(merged.get("belongs_to_relations") or ()),
            join_table_relations=frozenset(merged.get("join_table_relations") or ()),
            polymorphic_relations=frozenset(merged.get("polymorphic_relations") or ()),
            max_nested_depth=int(merged.get("max_nested_depth", 10)),
            full_clean=bool(merged.get("full_clean", True)),
        )

    @classmethod
    def from_django_settings(cls) -> "NestingSettings":
        return cls.from_dict(_get_global_settings())

    def relations_for(self, label: str) -> Mapping[str, Any]:
        return self.relations.get(str(label).lower(), MappingProxyType({}))

    def with_relation(self, label: str, key: str, value: Any) -> "NestingSettings":
        """Return a copy with one relation entry replaced."""
        relations = {name: dict(keys) for name, keys in self.relations.items()}
        relations.setdefault(str(label).lower(), {})[key] = value
        return NestingSettings(
            relations=_freeze_relations(relations),
            singular_relations=self.singular_relations,
            belongs_to_relations=self.belongs_to_relations,
            join_table_relations=self.join_table_relations,
            polymorphic_relations=self.polymorphic_relations,
            max_nested_depth=self.max_nested_depth,
            full_clean=self.full_clean,
        )
