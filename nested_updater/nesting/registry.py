"""
Registry of delegate engines.

Nested records are handed to the engine registered for their model, or to
the engine named by the relation's ``updater`` option, or to the default
engine. Delegates are resolved once and then reused.
"""

import logging
from typing import Any, Optional

from django.core.exceptions import ImproperlyConfigured

from .descriptor import RelationDescriptor
from .validation import load_reference

logger = logging.getLogger(__name__)


class UpdaterRegistry:
    """Maps model labels and updater references to engine instances."""

    def __init__(self, default: Any):
        self.default = default
        self._by_label: dict[str, Any] = {}
        self._by_reference: dict[str, Any] = {}

    def _label(self, model: Any) -> str:
        return self.default.config.backend.label(model).lower()

    def register(self, model: Any, engine: Any) -> None:
        self._by_label[self._label(model)] = engine

    def unregister(self, model: Any) -> None:
        self._by_label.pop(self._label(model), None)

    def get(self, model: Any) -> Any:
        return self._by_label.get(self._label(model), self.default)

    def for_descriptor(self, descriptor: RelationDescriptor) -> Any:
        reference = descriptor.updater
        if not reference:
            return self.get(descriptor.related_model)
        return self.resolve_reference(reference)

    def resolve_reference(self, reference: Any) -> Any:
        cache_key = reference if isinstance(reference, str) else repr(reference)
        engine: Optional[Any] = self._by_reference.get(cache_key)
        if engine is not None:
            return engine

        target = load_reference(reference)
        if isinstance(target, type):
            engine = target(config=self.default.config, registry=self)
        else:
            engine = target
        if not callable(getattr(engine, "create", None)) or not callable(
            getattr(engine, "update", None)
        ):
            raise ImproperlyConfigured(
                f"Updater '{reference}' must provide create() and update()"
            )
        logger.debug(f"Resolved nested updater '{cache_key}'")
        self._by_reference[cache_key] = engine
        return engine
