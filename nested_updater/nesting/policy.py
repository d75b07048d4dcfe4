"""
Policy resolution for nested relations.

Turns a raw relation configuration value (``True`` shorthand or an options
mapping) into effective ``RelationPolicy`` flags, applying relation kind
defaults where an option was left out.
"""

import logging
from typing import Any, Mapping, Optional

from ..defaults import DEFAULT_RULES_METHOD, RELATION_OPTION_KEYS
from .descriptor import RelationKind, RelationPolicy

logger = logging.getLogger(__name__)


def is_nested_config(raw: Any) -> bool:
    """``False``, ``None`` and missing entries all mean "not nested"."""
    return raw is not None and raw is not False


def normalize_options(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize option keys so that ``delete_detached`` equals ``delete-detached``."""
    options = {}
    for key, value in raw.items():
        normalized = str(key).strip().lower().replace("_", "-")
        if normalized not in RELATION_OPTION_KEYS:
            logger.warning(f"Unknown nested relation option '{key}' ignored")
            continue
        options[normalized] = value
    return options


def default_detach_missing(kind: Optional[RelationKind]) -> bool:
    return kind is RelationKind.TO_MANY_JOIN_TABLE


def accessor_override(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        method = normalize_options(raw).get("method")
        return str(method) if method else None
    return None


def resolve_policy(raw: Any, kind: Optional[RelationKind] = None) -> RelationPolicy:
    """
    Resolve effective policy flags for a relation.

    Args:
        raw: ``True`` or an options mapping as found in the relation config
        kind: relation kind, used for kind-dependent defaults

    Returns:
        RelationPolicy with every flag decided

    Raises:
        ValueError: if ``raw`` does not describe a nested relation
    """
    if not is_nested_config(raw):
        raise ValueError("Relation is not configured as nested")

    if raw is True:
        return RelationPolicy(
            update_allowed=True,
            create_allowed=True,
            detach_missing=default_detach_missing(kind),
        )

    if not isinstance(raw, Mapping):
        raise ValueError(
            f"Nested relation config must be True or a mapping, got {type(raw).__name__}"
        )

    options = normalize_options(raw)
    updatable = not bool(options.get("link-only", False))

    detach = options.get("detach-missing", options.get("detach"))
    if detach is None:
        detach = default_detach_missing(kind)

    return RelationPolicy(
        update_allowed=updatable,
        create_allowed=updatable,
        detach_missing=bool(detach),
        delete_detached=bool(options.get("delete-detached", False)),
        updater=options.get("updater") or None,
        validator=options.get("validator") or None,
        rules_class=options.get("rules-class") or None,
        rules_method=options.get("rules-method") or (
            DEFAULT_RULES_METHOD if options.get("rules-class") else None
        ),
        accessor_name=str(options["method"]) if options.get("method") else None,
    )
