"""
Custom exceptions for nested update operations.

Every error can be annotated with the dot-notation key of the nested record
it concerns (for example ``comments.1.author``). The engine prepends one
segment per recursion level while the error unwinds, so the final message
points at the exact location in the payload.
"""

from typing import Any, Optional

from django.core.exceptions import ImproperlyConfigured


class NestedUpdaterError(Exception):
    """Base exception for nested update operations."""

    default_code = "NESTED_UPDATE_ERROR"

    def __init__(
        self,
        message: str,
        nested_key: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.base_message = message
        self.nested_key = nested_key or None
        self.code = code or self.default_code
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.nested_key:
            return f"{self.base_message} (nesting: {self.nested_key})"
        return self.base_message

    def prefix_nested_key(self, segment: Any) -> "NestedUpdaterError":
        """Prepend a path segment to the nested key and refresh the message."""
        segment = str(segment)
        self.nested_key = f"{segment}.{self.nested_key}" if self.nested_key else segment
        self.args = (self.message,)
        return self

    def __str__(self) -> str:
        return self.message


class NotNestedRelation(NestedUpdaterError):
    """Raised when a key has no nested relation configuration for a model."""

    default_code = "NOT_NESTED_RELATION"

    def __init__(self, key: str, model_name: str):
        super().__init__(f"'{key}' is not a nested relation of {model_name}.")
        self.key = key
        self.model_name = model_name


class InvalidRelationMethod(NestedUpdaterError):
    """Raised when a relation accessor is missing or does not yield a relation."""

    default_code = "INVALID_RELATION_METHOD"

    def __init__(self, model_name: str, accessor_name: str, reason: str = ""):
        message = f"Relation accessor '{accessor_name}' on {model_name} is not usable"
        super().__init__(message + (f": {reason}" if reason else "."))
        self.model_name = model_name
        self.accessor_name = accessor_name


class InvalidRelationConfig(NestedUpdaterError, ImproperlyConfigured):
    """Raised when the options configured for a nested relation are malformed."""

    default_code = "INVALID_RELATION_CONFIG"

    def __init__(self, label: str, key: str, reason: str):
        super().__init__(f"Invalid nested relation config for {label}.{key}: {reason}")
        self.label = label
        self.key = key


class InvalidParentModel(NestedUpdaterError):
    """Raised when the parent type is not a concrete model."""

    default_code = "INVALID_PARENT_MODEL"

    def __init__(self, model: Any):
        name = getattr(model, "__name__", None) or repr(model)
        super().__init__(f"Expected a concrete model class as parent, got {name}.")
        self.model = model


class NestedRecordNotFoundOrCreateDisallowed(NestedUpdaterError):
    """Raised when a nested record cannot be found and may not be created."""

    default_code = "NESTED_RECORD_NOT_FOUND"

    def __init__(self, model_name: str, key: Any = None, relation_key: Optional[str] = None):
        if key is None:
            message = f"Creating {model_name} through nesting is not allowed"
        else:
            message = f"{model_name} with key '{key}' does not exist and may not be created"
        if relation_key:
            message += f" for relation '{relation_key}'"
        super().__init__(message + ".")
        self.model_name = model_name
        self.key = key
        self.relation_key = relation_key


class InvalidNestedPayload(NestedUpdaterError):
    """Raised when a payload fragment has a shape the relation cannot accept."""

    default_code = "INVALID_NESTED_PAYLOAD"


class NestedDepthError(NestedUpdaterError):
    """Raised when nesting exceeds the configured maximum depth."""

    default_code = "DEPTH_EXCEEDED"

    def __init__(self, max_depth: int, current_depth: int):
        super().__init__(
            f"Nested operation exceeds maximum depth of {max_depth}. "
            f"Current depth: {current_depth}"
        )
        self.max_depth = max_depth
        self.current_depth = current_depth


class ValidationFailed(NestedUpdaterError):
    """Raised when a validator rejects the data of a (nested) record."""

    default_code = "VALIDATION_FAILED"

    def __init__(self, model_name: str, errors: Optional[dict[str, list[str]]] = None):
        self.errors = dict(errors or {})
        details = "; ".join(
            f"{field}: {', '.join(str(m) for m in messages)}"
            for field, messages in self.errors.items()
        )
        super().__init__(
            f"Validation failed for {model_name}" + (f": {details}" if details else ".")
        )
        self.model_name = model_name

    @classmethod
    def from_validation_error(cls, model_name: str, error: Any) -> "ValidationFailed":
        """Build from a Django ``ValidationError``, keeping per-field messages."""
        if hasattr(error, "error_dict"):
            errors = {
                field: [str(m) for m in messages]
                for field, messages in error.message_dict.items()
            }
        else:
            errors = {"__all__": [str(m) for m in getattr(error, "messages", [error])]}
        return cls(model_name, errors)


class PersistenceFailure(NestedUpdaterError):
    """Raised when the persistence layer fails to save, delete, attach or detach."""

    default_code = "PERSISTENCE_FAILURE"

    def __init__(self, operation: str, model_name: str, error: Any = None):
        message = f"Failed to {operation} {model_name}"
        super().__init__(message + (f": {error}" if error else "."))
        self.operation = operation
        self.model_name = model_name


class ReconciliationFailed(NestedUpdaterError):
    """Raised after reconciliation when detaching or deleting omitted records failed."""

    default_code = "RECONCILIATION_FAILED"

    def __init__(self, relation_key: str, failures: list[tuple[Any, NestedUpdaterError]]):
        self.failures = list(failures)
        keys = ", ".join(str(key) for key, _ in self.failures)
        super().__init__(
            f"Could not detach or delete {len(self.failures)} omitted record(s) "
            f"of '{relation_key}': {keys}"
        )
        self.relation_key = relation_key
