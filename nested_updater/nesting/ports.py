"""
Persistence port consumed by the nesting engine.

The engine never touches the ORM directly; it asks a backend implementing
this protocol to reflect relations and to create, find, save, delete,
associate and attach records.
"""

from typing import Any, ContextManager, Optional, Protocol, runtime_checkable

from .descriptor import RelationHandle


@runtime_checkable
class PersistenceBackend(Protocol):
    def label(self, model: Any) -> str:
        """Return the configuration label (``app_label.ModelName``) of a model."""
        ...

    def model_name(self, model: Any) -> str: ...

    def check_model(self, model: Any) -> Any:
        """Return the model class, raising ``InvalidParentModel`` if it is not one."""
        ...

    def is_instance(self, value: Any) -> bool:
        """Return whether ``value`` is a record (model instance) of this backend."""
        ...

    def new_instance(self, model: Any) -> Any: ...

    def get_key(self, instance: Any, key_field: Optional[str] = None) -> Any: ...

    def key_field(self, model: Any) -> str: ...

    def coerce_key(self, model: Any, key_field: str, value: Any) -> Any: ...

    def find(self, model: Any, key_field: str, value: Any) -> Optional[Any]: ...

    def assign(self, instance: Any, attributes: dict[str, Any]) -> None: ...

    def save(self, instance: Any) -> Any: ...

    def delete(self, instance: Any) -> None: ...

    def get_relation(self, model: Any, accessor_name: str) -> RelationHandle: ...

    def get_foreign_key(self, instance: Any, handle: RelationHandle) -> Any: ...

    def set_foreign_key(self, instance: Any, handle: RelationHandle, key: Any) -> None: ...

    def associate(self, child: Any, handle: RelationHandle, parent: Any) -> None:
        """Point a child's foreign key (and type discriminator) at the parent, unsaved."""
        ...

    def is_associated(self, child: Any, handle: RelationHandle, parent: Any) -> bool: ...

    def dissociate(self, parent: Any, handle: RelationHandle, key: Any) -> None: ...

    def attach(self, parent: Any, handle: RelationHandle, key: Any) -> None: ...

    def detach(self, parent: Any, handle: RelationHandle, key: Any) -> None: ...

    def current_related_keys(self, parent: Any, handle: RelationHandle) -> list[Any]: ...

    def savepoint(self) -> ContextManager[Any]: ...
