"""
Active Record Model

🎯 Persistence and Validation Engine:
A model instance owns three layers of values read with the precedence
``defaults < stored < unsaved``. Values assigned on the instance are staged
as unsaved until ``create()`` or ``set()`` commits them through the storage
driver. Every commit runs through the lifecycle event dispatcher (listeners
may veto it) and the validation pipeline (rules, uniqueness and required
fields).

Example:
    class User(Model):
        properties = {
            "email": {"required": True, "unique": True, "validation": "email"},
            "name": {},
            "active": {"type": "boolean", "default": True},
        }

    Model.set_driver(MemoryDriver())
    user = User({"email": "bob@example.com", "name": "Bob"})
    user.save()
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type, Union, TYPE_CHECKING
from datetime import date, datetime, timezone
import logging
import re

import inflect

from .errors import Errors, NOT_UNIQUE, REQUIRED_FIELD_MISSING, VALIDATION_FAILED, humanize
from .events import EventDispatcher, LifecycleEvent, Listener, ModelEvent
from .exceptions import (
    DriverMissingError, InvalidOperationError, MassAssignmentError,
    NotFoundError, UnknownPropertyError, call_driver
)
from .property import Mutability, Property
from .query import Query
from .registry import DEFAULT_ID_PROPERTY, ModelSchema, registry
from ..validation.validator import run_rules

if TYPE_CHECKING:
    from .iterator import ModelIterator
    from .locale import Locale
    from ..persistence.base import StorageDriver
    from ..relations import BelongsTo, BelongsToMany, HasMany, HasOne

logger = logging.getLogger(__name__)

_inflect = inflect.engine()


def is_empty(value: Any) -> bool:
    """None, empty strings and empty collections count as empty"""
    if value is None or value == "":
        return True
    if isinstance(value, (list, tuple, dict, set)) and len(value) == 0:
        return True
    return False


class Model:
    """
    Base class for active record models.

    Class attributes:
        properties: Property name -> ``Property`` or dict definition
        id_properties: Names of the id properties, ``["id"]`` by default
        auto_timestamps: Maintain ``created_at`` / ``updated_at``
        tablename: Storage table name, defaults to the pluralized model name
        permitted: Mass assignment whitelist
        protected: Mass assignment blacklist (ignored when ``permitted`` is set)
        hidden: Properties left out of ``to_dict()``
        appended: Extra (accessor) properties added to ``to_dict()``
    """

    properties: Dict[str, Union[Property, Mapping]] = {}
    id_properties: List[str] = [DEFAULT_ID_PROPERTY]
    auto_timestamps: bool = False
    tablename: Optional[str] = None
    permitted: Optional[List[str]] = None
    protected: Optional[List[str]] = None
    hidden: List[str] = []
    appended: List[str] = []

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {}
        self._unsaved: Dict[str, Any] = {}
        self._relationships: Dict[str, Any] = {}
        self._persisted = False
        self._loaded = False
        self._ignore_unsaved = False
        self._errors: Optional[Errors] = None

        # first instance of a type builds its schema
        self.schema()

        if values:
            self.set_values(values)

    # Schema
    @classmethod
    def schema(cls) -> ModelSchema:
        return registry.schema(cls)

    @classmethod
    def initialize(cls) -> None:
        """
        Hook called once per model type after its schema is built.
        Subclasses overriding it must call ``super().initialize()``.
        """
        if cls.auto_timestamps:
            cls.creating(_stamp_created)
            cls.updating(_stamp_updated)

    @classmethod
    def get_properties(cls) -> Dict[str, Property]:
        return dict(cls.schema().properties)

    @classmethod
    def get_property(cls, name: str) -> Optional[Property]:
        return cls.schema().properties.get(name)

    @classmethod
    def has_property(cls, name: str) -> bool:
        return cls.schema().has_property(name)

    @classmethod
    def get_accessor(cls, name: str) -> Optional[Callable]:
        return cls.schema().accessors.get(name)

    @classmethod
    def get_mutator(cls, name: str) -> Optional[Callable]:
        return cls.schema().mutators.get(name)

    @classmethod
    def model_name(cls) -> str:
        return cls.__name__

    @classmethod
    def get_tablename(cls) -> str:
        if cls.tablename:
            return cls.tablename
        # inflect leaves capitalised words alone, so pluralise the spaced lower case name
        words = re.sub(r"(?<!^)(?=[A-Z])", " ", cls.model_name()).lower()
        return "".join(word.capitalize() for word in _inflect.plural(words).split())

    @classmethod
    def get_property_title(cls, name: str) -> str:
        """Human readable property name, from the locale when it has one"""
        locale = registry.locale
        if locale is not None:
            key = f"properties.{cls.model_name()}.{name}"
            title = locale(key, {}, None, None)
            if title and title != key:
                return title

        definition = cls.schema().properties.get(name)
        if definition is not None and definition.title:
            return definition.title

        return humanize(name)

    # Services
    @classmethod
    def set_driver(cls, driver: 'StorageDriver') -> None:
        registry.driver = driver

    @classmethod
    def get_driver(cls) -> 'StorageDriver':
        if registry.driver is None:
            raise DriverMissingError("A storage driver has not been set yet")
        return registry.driver

    @classmethod
    def clear_driver(cls) -> None:
        registry.driver = None

    @classmethod
    def set_locale(cls, locale: 'Locale') -> None:
        registry.locale = locale

    @classmethod
    def get_locale(cls) -> Optional['Locale']:
        return registry.locale

    @classmethod
    def clear_locale(cls) -> None:
        registry.locale = None

    # Ids
    def ids(self) -> Dict[str, Any]:
        """Id property name -> value, in declaration order"""
        return self.get(self.id_properties)

    def id(self) -> Any:
        """The id value, or the comma-joined values of a composite id"""
        ids = self.ids()
        if len(ids) == 1:
            return next(iter(ids.values()))
        return ",".join(str(value) for value in ids.values())

    @classmethod
    def build_from_id(cls, id: Any) -> 'Model':
        """
        Build a persisted model that only knows its ids. Other values are
        loaded from storage when first read.

        Args:
            id: Scalar, comma separated string or list of values, or a dict
        """
        if isinstance(id, Mapping):
            values = {name: id.get(name) for name in cls.id_properties}
        else:
            if isinstance(id, (list, tuple)):
                parts = list(id)
            elif isinstance(id, str) and len(cls.id_properties) > 1:
                parts = id.split(",")
            else:
                parts = [id]
            values = dict(zip(cls.id_properties, parts))

        model = cls()
        model._values = model._cast(values)
        model._persisted = True
        return model

    # Values
    def set_value(self, name: str, value: Any) -> 'Model':
        """Stage a value through the property's mutator"""
        mutator = self.get_mutator(name)
        if mutator is not None:
            value = mutator(self, value)

        self._unsaved[name] = value
        self._relationships.pop(name, None)
        return self

    def set_values(self, values: Mapping[str, Any]) -> 'Model':
        """
        Mass assign values.

        Raises:
            MassAssignmentError: A name is outside ``permitted`` or inside ``protected``
        """
        permitted = self.permitted
        protected = self.protected if not permitted else None

        for name, value in values.items():
            if (permitted and name not in permitted) or (protected and name in protected):
                raise MassAssignmentError(
                    f"Mass assignment of {name} on {self.model_name()} is not allowed"
                )
            self.set_value(name, value)

        return self

    def ignore_unsaved(self) -> 'Model':
        """Make the next ``get()`` call ignore staged values"""
        self._ignore_unsaved = True
        return self

    def get(self, properties: Iterable[str]) -> Dict[str, Any]:
        """
        Resolve property values.

        Args:
            properties: Names to resolve

        Returns:
            Name -> value for exactly the requested names, in order

        Raises:
            UnknownPropertyError: A name is neither a property nor has an accessor
        """
        names = list(properties)
        ignore_unsaved = self._ignore_unsaved
        self._ignore_unsaved = False

        schema = self.schema()
        values = self._merged_values(ignore_unsaved)

        # persisted models fetch missing properties from storage once
        if self._persisted and not self._loaded:
            if any(name not in values and schema.has_property(name) for name in names):
                self.refresh()
                values = self._merged_values(ignore_unsaved)

        result = {}
        for name in names:
            if name in values:
                value = values[name]
            elif name in self._relationships:
                value = self._relationships[name]
            elif schema.has_property(name):
                value = schema.properties[name].default_value()
                if self._persisted:
                    self._values[name] = value
            elif name in schema.accessors:
                value = None
            else:
                raise UnknownPropertyError(
                    f"{self.model_name()} does not have a `{name}` property"
                )

            accessor = schema.accessors.get(name)
            if accessor is not None:
                value = accessor(self, value)

            result[name] = value

        return result

    def _merged_values(self, ignore_unsaved: bool = False) -> Dict[str, Any]:
        if ignore_unsaved:
            return dict(self._values)
        return {**self._values, **self._unsaved}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the model, honouring ``hidden`` and ``appended``"""
        names = [name for name in self.schema().properties if name not in self.hidden]
        names += [name for name in self.appended if name not in names]

        return {name: _to_primitive(value) for name, value in self.get(names).items()}

    def _cast(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        schema = self.schema()
        cast = {}
        for name, value in values.items():
            definition = schema.properties.get(name)
            cast[name] = definition.type.cast(value) if definition is not None else value
        return cast

    # Persistence
    def persisted(self) -> bool:
        return self._persisted

    def save(self) -> bool:
        """Create or update the model depending on its persistence state"""
        if not self._persisted:
            return self.create()
        return self.set()

    def create(self, data: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Insert the model into storage.

        Args:
            data: Values mass assigned before creating

        Returns:
            True on success, False when vetoed or invalid (see ``errors()``)

        Raises:
            InvalidOperationError: The model is already persisted
            DriverError: The storage driver failed
        """
        if self._persisted:
            raise InvalidOperationError(f"Cannot call create() on an existing {self.model_name()}")

        self.errors().clear()
        if data:
            self.set_values(data)

        if not self._dispatch(LifecycleEvent.CREATING):
            return False

        payload = self._create_payload()
        if not self._validate(payload, creating=True):
            logger.debug(f"{self.model_name()} failed validation: {self.errors()!r}")
            return False
        self._unsaved.update(payload)

        driver = self.get_driver()
        if not self._call_driver("create", driver.create_model, self, payload):
            logger.warning(f"Storage driver did not create {self.model_name()}")
            return False

        ids = self._created_ids(driver)

        self.clear_cache()
        self._values = ids
        self._persisted = True
        logger.debug(f"Created {self.model_name()}({self.id()})")

        return self._dispatch(LifecycleEvent.CREATED)

    def set(self, data: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Write staged changes of a persisted model to storage. Only mutable
        properties are written; immutable and create-only ones are dropped.

        Returns:
            True on success (or when nothing is staged), False when vetoed or invalid

        Raises:
            InvalidOperationError: The model is not persisted
            DriverError: The storage driver failed
        """
        if not self._persisted:
            raise InvalidOperationError(f"Can only call set() on an existing {self.model_name()}")

        self.errors().clear()
        if data:
            self.set_values(data)

        if not self._unsaved:
            return True

        if not self._dispatch(LifecycleEvent.UPDATING):
            return False

        payload = self._update_payload()
        if not self._validate(payload, creating=False):
            logger.debug(f"{self.model_name()}({self.id()}) failed validation: {self.errors()!r}")
            return False
        self._unsaved.update(payload)

        if payload:
            driver = self.get_driver()
            if not self._call_driver("update", driver.update_model, self, payload):
                logger.warning(f"Storage driver did not update {self.model_name()}({self.id()})")
                return False

        self.clear_cache()

        return self._dispatch(LifecycleEvent.UPDATED)

    def delete(self) -> bool:
        """
        Delete the model from storage.

        Raises:
            InvalidOperationError: The model is not persisted
            DriverError: The storage driver failed
        """
        if not self._persisted:
            raise InvalidOperationError(f"Can only call delete() on an existing {self.model_name()}")

        self.errors().clear()
        if not self._dispatch(LifecycleEvent.DELETING):
            return False

        driver = self.get_driver()
        if not self._call_driver("delete", driver.delete_model, self):
            logger.warning(f"Storage driver did not delete {self.model_name()}({self.id()})")
            return False

        deleted = self._dispatch(LifecycleEvent.DELETED)
        self.clear_cache()
        self._persisted = False

        return deleted

    def refresh(self) -> 'Model':
        """Reload the stored values from storage"""
        if not self._persisted:
            raise InvalidOperationError(
                f"Cannot call refresh() before {self.model_name()} has been persisted"
            )

        driver = self.get_driver()
        values = self._call_driver("load", driver.load_model, self)
        if values is None:
            logger.warning(f"{self.model_name()}({self.id()}) was not found in storage")
            return self

        return self.refresh_with(values)

    def refresh_with(self, values: Mapping[str, Any]) -> 'Model':
        """Replace the stored values with loaded ones and mark the model persisted"""
        self._values = self._cast(values)
        self._persisted = True
        self._loaded = True
        return self

    def clear_cache(self) -> 'Model':
        """
        Drop locally cached values and relations. A persisted model keeps
        its ids so that it stays addressable.
        """
        ids = {}
        if self._persisted:
            ids = {name: self._values[name] for name in self.id_properties if name in self._values}

        self._values = ids
        self._unsaved = {}
        self._relationships = {}
        self._loaded = False
        return self

    def _create_payload(self) -> Dict[str, Any]:
        schema = self.schema()
        staged = dict(self._unsaved)
        for name, definition in schema.properties.items():
            if definition.has_default and name not in staged:
                staged[name] = definition.default_value()

        payload = {}
        for name, value in staged.items():
            definition = schema.properties.get(name)
            if definition is None:
                continue
            # immutable values are only written when they equal the default
            if definition.mutable == Mutability.IMMUTABLE and value != definition.default:
                continue
            payload[name] = value
        return payload

    def _update_payload(self) -> Dict[str, Any]:
        schema = self.schema()
        return {
            name: value for name, value in self._unsaved.items()
            if name in schema.properties and schema.properties[name].mutable == Mutability.MUTABLE
        }

    def _created_ids(self, driver: 'StorageDriver') -> Dict[str, Any]:
        schema = self.schema()
        ids = {}
        for name in self.id_properties:
            definition = schema.properties.get(name)
            staged = self._unsaved.get(name)
            if definition is not None and definition.mutable != Mutability.IMMUTABLE and staged is not None:
                ids[name] = staged
            else:
                ids[name] = self._call_driver("get_created_id", driver.get_created_id, self, name)
        return self._cast(ids)

    def _call_driver(self, operation: str, method: Callable, *args) -> Any:
        return call_driver(operation, self.model_name(), method, *args)

    # Validation
    def errors(self) -> Errors:
        if self._errors is None:
            self._errors = Errors(type(self))
        return self._errors

    def valid(self) -> bool:
        """Validate the staged values without writing anything"""
        self.errors().clear()
        if self._persisted:
            return self._validate(self._update_payload(), creating=False)
        return self._validate(self._create_payload(), creating=True)

    def _validate(self, payload: Dict[str, Any], creating: bool) -> bool:
        """
        Validate (and transform in place) the values about to be written.

        Every field is checked, errors are collected for all of them.
        """
        schema = self.schema()
        errors = self.errors()
        valid = True

        for name in list(payload):
            definition = schema.properties[name]
            value = payload[name]

            if definition.nullable and is_empty(value):
                payload[name] = None
                continue

            if definition.validation is not None:
                result = run_rules(definition.validation, value, self)
                payload[name] = result.value
                if not result.valid:
                    errors.add(name, VALIDATION_FAILED, rule=result.failed[0])
                    valid = False
                    continue

            if definition.unique and (creating or payload[name] != self._stored_value(name)):
                if not self._check_uniqueness(name, payload[name]):
                    valid = False

        # required values are checked against stored values merged with the payload;
        # empty strings and collections count as missing
        for name in schema.required_properties():
            if name in payload:
                value = payload[name]
            elif creating:
                value = None
            else:
                value = self._stored_value(name)

            if is_empty(value):
                errors.add(name, REQUIRED_FIELD_MISSING)
                valid = False

        return valid

    def _stored_value(self, name: str) -> Any:
        if name not in self._values and self._persisted and not self._loaded:
            self.refresh()
        return self._values.get(name)

    def _check_uniqueness(self, name: str, value: Any) -> bool:
        if self.total_records({name: value}) > 0:
            self.errors().add(name, NOT_UNIQUE)
            return False
        return True

    # Queries
    @classmethod
    def query(cls) -> Query:
        cls.schema()
        return Query(cls)

    @classmethod
    def where(cls, where: Any, *args) -> Query:
        return cls.query().where(where, *args)

    @classmethod
    def all(cls) -> 'ModelIterator':
        return cls.query().all()

    @classmethod
    def first(cls, limit: int = 1) -> Union['Model', List['Model'], None]:
        return cls.query().first(limit)

    @classmethod
    def with_(cls, *relations: str) -> Query:
        return cls.query().with_(*relations)

    @classmethod
    def hydrate(cls, values: Mapping[str, Any]) -> 'Model':
        """Build a persisted model from a loaded row"""
        return cls().refresh_with(values)

    @classmethod
    def find(cls, id: Any) -> Optional['Model']:
        model = cls.build_from_id(id)
        return cls.query().where(model.ids()).first()

    @classmethod
    def find_or_fail(cls, id: Any) -> 'Model':
        model = cls.find(id)
        if model is None:
            raise NotFoundError(f"Could not find the requested {cls.model_name()}")
        return model

    @classmethod
    def total_records(cls, where: Optional[Mapping[str, Any]] = None) -> int:
        return cls.query().where(dict(where or {})).total_records()

    def exists(self) -> bool:
        return self.total_records(self.ids()) == 1

    # Relationships
    def has_one(self, model_class: Type['Model'], foreign_key: Optional[str] = None,
                local_key: Optional[str] = None) -> 'HasOne':
        from ..relations.has_one import HasOne
        return HasOne(self, local_key, model_class, foreign_key)

    def belongs_to(self, model_class: Type['Model'], foreign_key: Optional[str] = None,
                   local_key: Optional[str] = None) -> 'BelongsTo':
        from ..relations.belongs_to import BelongsTo
        return BelongsTo(self, local_key, model_class, foreign_key)

    def has_many(self, model_class: Type['Model'], foreign_key: Optional[str] = None,
                 local_key: Optional[str] = None) -> 'HasMany':
        from ..relations.has_many import HasMany
        return HasMany(self, local_key, model_class, foreign_key)

    def belongs_to_many(self, model_class: Type['Model'], tablename: Optional[str] = None,
                        foreign_key: Optional[str] = None,
                        local_key: Optional[str] = None) -> 'BelongsToMany':
        from ..relations.belongs_to_many import BelongsToMany
        return BelongsToMany(self, local_key, tablename, model_class, foreign_key)

    def related(self, name: str) -> Any:
        """
        Get the results of the relation returned by the ``name`` method,
        loading them on first use.
        """
        if name not in self._relationships:
            self.load_relationship(name)
        return self._relationships[name]

    def load_relationship(self, name: str) -> Any:
        relation = getattr(self, name)()
        self._relationships[name] = relation.get_results()
        return self._relationships[name]

    def set_relation(self, name: str, value: Any) -> 'Model':
        """Put already loaded relation results into the relation cache"""
        self._relationships[name] = value
        return self

    # Events
    @classmethod
    def get_dispatcher(cls) -> EventDispatcher:
        cls.schema()
        return registry.dispatcher(cls)

    @classmethod
    def listen(cls, event: LifecycleEvent, listener: Listener, priority: int = 0) -> None:
        cls.get_dispatcher().add_listener(event, listener, priority)

    @classmethod
    def creating(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.CREATING, listener, priority)

    @classmethod
    def created(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.CREATED, listener, priority)

    @classmethod
    def updating(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.UPDATING, listener, priority)

    @classmethod
    def updated(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.UPDATED, listener, priority)

    @classmethod
    def saving(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.CREATING, listener, priority)
        cls.listen(LifecycleEvent.UPDATING, listener, priority)

    @classmethod
    def saved(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.CREATED, listener, priority)
        cls.listen(LifecycleEvent.UPDATED, listener, priority)

    @classmethod
    def deleting(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.DELETING, listener, priority)

    @classmethod
    def deleted(cls, listener: Listener, priority: int = 0) -> None:
        cls.listen(LifecycleEvent.DELETED, listener, priority)

    def _dispatch(self, name: LifecycleEvent) -> bool:
        event = self.get_dispatcher().dispatch(ModelEvent(self, name))
        if event.is_propagation_stopped():
            logger.debug(f"{name.value} on {self.model_name()} was vetoed")
            return False
        return True

    # Attribute and item access
    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get([name])[name]

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self.set_value(name, value)

    def __delattr__(self, name: str) -> None:
        if name.startswith("_"):
            object.__delattr__(self, name)
        else:
            self._unsaved.pop(name, None)

    def __getitem__(self, name: str) -> Any:
        return self.get([name])[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set_value(name, value)

    def __delitem__(self, name: str) -> None:
        self._unsaved.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._unsaved or name in self._values or self.has_property(name)

    def __str__(self):
        return f"{self.model_name()}({self.id()})"

    def __repr__(self):
        return f"<{self.model_name()} ids={self._values_for_ids()!r} persisted={self._persisted}>"

    def _values_for_ids(self) -> Dict[str, Any]:
        merged = self._merged_values()
        return {name: merged.get(name) for name in self.id_properties}


def _to_primitive(value: Any) -> Any:
    if isinstance(value, Model):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_primitive(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _stamp_created(event: ModelEvent) -> None:
    now = datetime.now(timezone.utc)
    event.model.created_at = now
    event.model.updated_at = now


def _stamp_updated(event: ModelEvent) -> None:
    event.model.updated_at = datetime.now(timezone.utc)


__all__ = ["Model", "is_empty"]
