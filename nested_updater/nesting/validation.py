"""
Validation delegates for nested record data.

A relation may name a ``validator`` (dotted path to a callable) and/or a
``rules-class`` whose ``rules-method`` returns ``{field: [validators]}`` made
of Django-style validator callables. Model level validation itself happens
in the backend's ``save`` through ``full_clean()``.
"""

import logging
from typing import Any, Callable, Optional

from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.utils.module_loading import import_string

from ..exceptions import ValidationFailed
from .descriptor import RelationDescriptor

logger = logging.getLogger(__name__)


def load_reference(reference: Any) -> Any:
    """Resolve a dotted path to the object it names; non-strings pass through."""
    if not isinstance(reference, str):
        return reference
    try:
        return import_string(reference)
    except ImportError as e:
        raise ImproperlyConfigured(f"Cannot import '{reference}': {e}") from e


class NestedValidator:
    """Runs per-relation validators against nested record data."""

    def __init__(self):
        self._references: dict[str, Any] = {}

    def _load(self, reference: Any) -> Any:
        if not isinstance(reference, str):
            return reference
        if reference not in self._references:
            self._references[reference] = load_reference(reference)
        return self._references[reference]

    def get_rules(self, descriptor: RelationDescriptor) -> dict[str, list[Callable]]:
        policy = descriptor.policy
        if not policy.rules_class:
            return {}
        rules_class = self._load(policy.rules_class)
        method = getattr(rules_class, policy.rules_method or "rules", None)
        if not callable(method):
            raise ImproperlyConfigured(
                f"{policy.rules_class} has no rules method '{policy.rules_method}'"
            )
        return method() or {}

    def validate(
        self,
        model: Any,
        data: dict[str, Any],
        descriptor: Optional[RelationDescriptor],
        *,
        creating: bool,
    ) -> None:
        if descriptor is None:
            return
        model_name = getattr(model, "__name__", str(model))
        errors: dict[str, list[str]] = {}

        if descriptor.validator:
            validator = self._load(descriptor.validator)
            try:
                result = validator(model, data, creating=creating)
            except ValidationError as e:
                raise ValidationFailed.from_validation_error(model_name, e) from e
            for field_name, messages in (result or {}).items():
                errors.setdefault(field_name, []).extend(messages)

        for field_name, validators in self.get_rules(descriptor).items():
            if field_name not in data:
                continue
            for rule in validators:
                try:
                    rule(data[field_name])
                except ValidationError as e:
                    errors.setdefault(field_name, []).extend(e.messages)

        if errors:
            logger.debug(f"Nested validation failed for {model_name}: {errors}")
            raise ValidationFailed(model_name, errors)
