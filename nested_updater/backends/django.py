"""
Django ORM persistence backend.

This module is the only place where Django model reflection happens: relation
accessors are looked up through ``Model._meta`` and turned into
``RelationHandle`` objects. Database and validation errors raised by the ORM
are translated into the library's exception types.
"""

import logging
from typing import Any, Optional

from django.core.exceptions import (
    FieldDoesNotExist,
    ObjectDoesNotExist,
    ValidationError,
)
from django.db import DatabaseError, models, transaction
from django.db.models.deletion import ProtectedError, RestrictedError

from ..exceptions import (
    InvalidNestedPayload,
    InvalidParentModel,
    InvalidRelationMethod,
    PersistenceFailure,
    ValidationFailed,
)
from ..nesting.descriptor import RelationHandle

logger = logging.getLogger(__name__)


class DjangoPersistence:
    """Persistence backend built on the Django ORM."""

    def __init__(self, using: Optional[str] = None, full_clean: bool = True):
        self.using = using
        self.full_clean = full_clean

    # --- Model helpers ---

    def label(self, model: Any) -> str:
        return self.check_model(model)._meta.label

    def model_name(self, model: Any) -> str:
        if isinstance(model, models.Model):
            model = type(model)
        return getattr(model, "__name__", repr(model))

    def check_model(self, model: Any) -> type[models.Model]:
        if isinstance(model, models.Model):
            model = type(model)
        if (
            not isinstance(model, type)
            or not issubclass(model, models.Model)
            or model._meta.abstract
        ):
            raise InvalidParentModel(model)
        return model

    def is_instance(self, value: Any) -> bool:
        return isinstance(value, models.Model)

    def new_instance(self, model: type[models.Model]) -> models.Model:
        return self.check_model(model)()

    def key_field(self, model: type[models.Model]) -> str:
        return self.check_model(model)._meta.pk.name

    def get_key(self, instance: models.Model, key_field: Optional[str] = None) -> Any:
        if key_field is None:
            return instance.pk
        field = instance._meta.get_field(key_field)
        return getattr(instance, getattr(field, "attname", key_field))

    def coerce_key(self, model: type[models.Model], key_field: str, value: Any) -> Any:
        if isinstance(value, models.Model):
            return self.get_key(value, key_field)
        try:
            field = model._meta.get_field(key_field)
            target = getattr(field, "target_field", field)
            return target.to_python(value)
        except (FieldDoesNotExist, ValidationError):
            return value

    def find(self, model: type[models.Model], key_field: str, value: Any) -> Optional[models.Model]:
        value = self.coerce_key(model, key_field, value)
        manager = model._default_manager
        if self.using:
            manager = manager.db_manager(self.using)
        try:
            return manager.filter(**{key_field: value}).first()
        except (TypeError, ValueError, ValidationError):
            logger.debug(f"Lookup of {model.__name__} by {key_field}={value!r} failed")
            return None

    def _assignable_fields(self, model: type[models.Model]) -> set[str]:
        """Concrete column names; relations only through their ``attname``."""
        names = set()
        for field in model._meta.concrete_fields:
            names.add(field.attname)
            if not field.is_relation:
                names.add(field.name)
        return names

    def assign(self, instance: models.Model, attributes: dict[str, Any]) -> None:
        model = type(instance)
        assignable = self._assignable_fields(model)
        for field_name, value in attributes.items():
            if field_name in assignable:
                setattr(instance, field_name, value)
                continue
            field = self._find_relation_field(model, field_name)
            if field is not None and field.is_relation:
                raise InvalidNestedPayload(
                    f"'{field_name}' is a relation of {model.__name__} that is not "
                    f"configured as nested.",
                    nested_key=field_name,
                )
            logger.debug(f"Skipping unknown attribute {model.__name__}.{field_name}")

    def save(self, instance: models.Model) -> models.Model:
        model_name = type(instance).__name__
        try:
            if self.full_clean:
                instance.full_clean()
            instance.save(using=self.using)
        except ValidationError as e:
            raise ValidationFailed.from_validation_error(model_name, e) from e
        except DatabaseError as e:
            raise PersistenceFailure("save", model_name, e) from e
        return instance

    def delete(self, instance: models.Model) -> None:
        model_name = type(instance).__name__
        try:
            instance.delete(using=self.using)
        except (ProtectedError, RestrictedError, DatabaseError) as e:
            raise PersistenceFailure("delete", model_name, e) from e

    def savepoint(self):
        return transaction.atomic(using=self.using)

    # --- Relation reflection ---

    def _find_relation_field(self, model: type[models.Model], accessor_name: str):
        for field in model._meta.get_fields():
            if field.auto_created and not field.concrete and hasattr(field, "get_accessor_name"):
                name = field.get_accessor_name()
            else:
                name = field.name
            if name == accessor_name:
                return field
        return None

    def get_relation(self, model: Any, accessor_name: str) -> RelationHandle:
        model = self.check_model(model)
        field = self._find_relation_field(model, accessor_name)

        if field is None:
            if hasattr(model, accessor_name):
                raise InvalidRelationMethod(
                    model.__name__, accessor_name, "it does not return a relation"
                )
            raise InvalidRelationMethod(model.__name__, accessor_name, "it does not exist")

        related_model = getattr(field, "related_model", None)
        if not field.is_relation or related_model is None or isinstance(related_model, str):
            raise InvalidRelationMethod(
                model.__name__, accessor_name, f"{type(field).__name__} is not a relation"
            )

        relation_class = type(field).__name__
        related_key_field = related_model._meta.pk.name
        remote_field = None
        nullable = True

        if isinstance(field, models.ForeignKey):
            # covers OneToOneField as well
            related_key_field = field.target_field.name
            remote_field = field.name
            nullable = field.null
        elif isinstance(field, models.ManyToOneRel):
            remote_field = field.field.name
            nullable = field.field.null
        elif hasattr(field, "object_id_field_name"):
            remote_field = field.object_id_field_name
            nullable = related_model._meta.get_field(field.object_id_field_name).null

        return RelationHandle(
            relation_class=relation_class,
            related_model=related_model,
            related_key_field=related_key_field,
            accessor_name=accessor_name,
            remote_field=remote_field,
            nullable=nullable,
            relation=field,
        )

    # --- Foreign keys held by the parent ---

    def get_foreign_key(self, instance: models.Model, handle: RelationHandle) -> Any:
        return getattr(instance, handle.relation.attname)

    def set_foreign_key(self, instance: models.Model, handle: RelationHandle, key: Any) -> None:
        setattr(instance, handle.relation.attname, key)

    # --- Foreign keys held by the child ---

    def _is_generic(self, handle: RelationHandle) -> bool:
        return hasattr(handle.relation, "content_type_field_name")

    def _content_type_for(self, handle: RelationHandle, parent: models.Model):
        from django.contrib.contenttypes.models import ContentType

        return ContentType.objects.db_manager(self.using).get_for_model(
            parent, for_concrete_model=handle.relation.for_concrete_model
        )

    def associate(self, child: models.Model, handle: RelationHandle, parent: models.Model) -> None:
        relation = handle.relation
        if self._is_generic(handle):
            setattr(child, relation.content_type_field_name, self._content_type_for(handle, parent))
            setattr(child, relation.object_id_field_name, parent.pk)
        else:
            setattr(child, relation.field.name, parent)

    def is_associated(self, child: models.Model, handle: RelationHandle, parent: models.Model) -> bool:
        relation = handle.relation
        if self._is_generic(handle):
            content_type = self._content_type_for(handle, parent)
            ct_field = child._meta.get_field(relation.content_type_field_name)
            return (
                getattr(child, ct_field.attname) == content_type.pk
                and str(getattr(child, relation.object_id_field_name)) == str(parent.pk)
            )
        fk = relation.field
        return getattr(child, fk.attname) == getattr(parent, fk.target_field.attname)

    def dissociate(self, parent: models.Model, handle: RelationHandle, key: Any) -> None:
        model_name = handle.related_model.__name__
        child = self.find(handle.related_model, handle.related_key_field, key)
        if child is None:
            raise PersistenceFailure("dissociate", model_name, f"no record with key '{key}'")
        if not handle.nullable:
            raise PersistenceFailure(
                "dissociate", model_name, f"'{handle.remote_field}' is not nullable"
            )

        relation = handle.relation
        if self._is_generic(handle):
            ct_field = child._meta.get_field(relation.content_type_field_name)
            setattr(child, ct_field.attname, None)
            setattr(child, relation.object_id_field_name, None)
            update_fields = [ct_field.name, relation.object_id_field_name]
        else:
            setattr(child, relation.field.name, None)
            update_fields = [relation.field.name]

        try:
            child.save(using=self.using, update_fields=update_fields)
        except DatabaseError as e:
            raise PersistenceFailure("dissociate", model_name, e) from e

    # --- Join tables ---

    def attach(self, parent: models.Model, handle: RelationHandle, key: Any) -> None:
        try:
            getattr(parent, handle.accessor_name).add(key)
        except (DatabaseError, ValueError, TypeError) as e:
            raise PersistenceFailure("attach", handle.related_model.__name__, e) from e

    def detach(self, parent: models.Model, handle: RelationHandle, key: Any) -> None:
        try:
            getattr(parent, handle.accessor_name).remove(key)
        except (DatabaseError, ValueError, TypeError) as e:
            raise PersistenceFailure("detach", handle.related_model.__name__, e) from e

    def current_related_keys(self, parent: models.Model, handle: RelationHandle) -> list[Any]:
        relation = handle.relation
        if isinstance(relation, models.ForeignKey):
            key = self.get_foreign_key(parent, handle)
            return [] if key is None else [key]
        if parent.pk is None:
            return []

        if isinstance(relation, models.ManyToOneRel):
            queryset = handle.related_model._default_manager.filter(
                **{relation.field.name: parent}
            )
        else:
            queryset = getattr(parent, handle.accessor_name).all()

        try:
            return list(queryset.values_list(handle.related_key_field, flat=True))
        except ObjectDoesNotExist:
            return []
