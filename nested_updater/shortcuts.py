"""
Shortcuts running one nested create or update inside a single transaction.
"""

from typing import Any, Mapping, Optional

from django.db import transaction

from .nesting.engine import NestedUpdateEngine


def _atomic(engine: NestedUpdateEngine):
    return transaction.atomic(using=getattr(engine.backend, "using", None))


def nested_create(
    model: Any,
    data: Mapping[str, Any],
    *,
    engine: Optional[NestedUpdateEngine] = None,
) -> Any:
    """Create ``model`` with nested data; everything is rolled back on error."""
    engine = engine or NestedUpdateEngine()
    with _atomic(engine):
        return engine.create(model, data)


def nested_update(
    instance: Any,
    data: Mapping[str, Any],
    *,
    engine: Optional[NestedUpdateEngine] = None,
) -> Any:
    """Update ``instance`` with nested data; everything is rolled back on error."""
    engine = engine or NestedUpdateEngine()
    with _atomic(engine):
        return engine.update(data, instance)
