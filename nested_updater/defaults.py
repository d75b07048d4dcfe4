"""
Default configuration for the nested-updater library.

The goal of this module is to expose a single source of truth for every
setting that the library actually consumes. Projects override any of these
keys through ``settings.NESTED_UPDATER``; the merged result is materialized
by ``nested_updater.core.settings.NestingSettings``.
"""

from __future__ import annotations

from typing import Any

# --------------------------------------------------------------------------- #
# Library-wide defaults
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    # Per model label ("app_label.ModelName") mapping of payload key to either
    # ``True`` or an options mapping (link-only, detach, delete-detached, ...).
    "relations": {},
    # Class names of relation objects that yield at most one related record.
    "singular_relations": [
        "ForeignKey",
        "OneToOneField",
        "OneToOneRel",
    ],
    # Class names of relation objects whose foreign key lives on the parent.
    "belongs_to_relations": [
        "ForeignKey",
        "OneToOneField",
    ],
    # Class names of relation objects backed by a join table.
    "join_table_relations": [
        "ManyToManyField",
        "ManyToManyRel",
    ],
    # Class names of relation objects that carry a type discriminator.
    "polymorphic_relations": [
        "GenericRelation",
    ],
    "max_nested_depth": 10,
    "full_clean": True,
}


# Keys recognized inside a structured relation options mapping.
RELATION_OPTION_KEYS = frozenset(
    {
        "link-only",
        "detach",
        "detach-missing",
        "delete-detached",
        "validator",
        "rules-class",
        "rules-method",
        "updater",
        "method",
    }
)

DEFAULT_RULES_METHOD = "rules"


# --------------------------------------------------------------------------- #
# Helper functions
# --------------------------------------------------------------------------- #
def merge_settings(*settings_dicts: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple settings dictionaries with deep merging for nested dicts.
    Later dictionaries override earlier ones.
    """
    result: dict[str, Any] = {}
    for settings_dict in settings_dicts:
        if not settings_dict:
            continue
        for key, value in settings_dict.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = merge_settings(result[key], value)
            else:
                result[key] = value
    return result
