"""
Model Registry - Process-Wide Model Context

💾 Explicit Per-Type State:
Schema resolution, accessor/mutator tables and event dispatchers are
computed once per concrete model type and kept here, together with the
services shared by every model (storage driver, locale, cache store).
Keeping them in one context object instead of class statics gives tests
a single ``reset()`` teardown point and lets initialization be guarded by
a lock.
"""

from typing import Callable, Dict, Optional, Set, Type, TYPE_CHECKING
from dataclasses import dataclass, field
import inspect
import logging
import threading

from .events import EventDispatcher
from .property import Property, PropertyType, Mutability

if TYPE_CHECKING:
    from .model import Model
    from .locale import Locale
    from ..persistence.base import StorageDriver
    from ..persistence.cache import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_ID_PROPERTY = "id"
TIMESTAMP_PROPERTIES = ("created_at", "updated_at")


def accessor(property_name: str):
    """
    Mark a method as the accessor of a property.

    The method receives the raw resolved value and returns the value
    handed to the caller.
    """
    def decorator(func):
        func._accessor_for = property_name
        return func
    return decorator


def mutator(property_name: str):
    """
    Mark a method as the mutator of a property.

    The method receives the assigned value and returns the value that
    gets staged on the model.
    """
    def decorator(func):
        func._mutator_for = property_name
        return func
    return decorator


@dataclass
class ModelSchema:
    """Resolved, immutable schema of one model type"""
    properties: Dict[str, Property] = field(default_factory=dict)
    accessors: Dict[str, Callable] = field(default_factory=dict)
    mutators: Dict[str, Callable] = field(default_factory=dict)

    def has_property(self, name: str) -> bool:
        return name in self.properties

    def required_properties(self):
        return [name for name, prop in self.properties.items() if prop.required]


class ModelRegistry:
    """
    Context object owning all per-model-type state.

    Usage:
        registry.driver = MemoryDriver()
        schema = registry.schema(User)
        registry.reset()  # teardown, i.e. between tests
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._schemas: Dict[Type, ModelSchema] = {}
        self._ready: Set[Type] = set()
        self._dispatchers: Dict[Type, EventDispatcher] = {}

        # Shared services
        self.driver: Optional['StorageDriver'] = None
        self.locale: Optional['Locale'] = None
        self.cache_store: Optional['CacheStore'] = None

    def is_initialized(self, model_class: Type['Model']) -> bool:
        return model_class in self._ready

    def schema(self, model_class: Type['Model']) -> ModelSchema:
        """
        Get the resolved schema of a model type, initializing the type the
        first time it is seen.
        """
        if model_class in self._ready:
            return self._schemas[model_class]

        with self._lock:
            if model_class not in self._schemas:
                self._initialize(model_class)
                self._ready.add(model_class)
            return self._schemas[model_class]

    def dispatcher(self, model_class: Type['Model']) -> EventDispatcher:
        """Get the event dispatcher of a model type"""
        dispatcher = self._dispatchers.get(model_class)
        if dispatcher is None:
            with self._lock:
                dispatcher = self._dispatchers.setdefault(model_class, EventDispatcher())
        return dispatcher

    def reset(self, keep_services: bool = False) -> None:
        """
        Forget every initialized model type.

        Args:
            keep_services: Keep the driver, locale and cache store
        """
        with self._lock:
            self._schemas.clear()
            self._ready.clear()
            self._dispatchers.clear()
            if not keep_services:
                self.driver = None
                self.locale = None
                self.cache_store = None

    # Schema construction
    def _initialize(self, model_class: Type['Model']) -> None:
        schema = ModelSchema(
            properties=self._build_properties(model_class),
            accessors=self._collect_methods(model_class, "_accessor_for"),
            mutators=self._collect_methods(model_class, "_mutator_for"),
        )
        # registered before the hook so that the hook may build instances
        self._schemas[model_class] = schema

        logger.info(f"Initialized model {model_class.__name__} with "
                    f"{len(schema.properties)} properties")

        model_class.initialize()

    @staticmethod
    def _build_properties(model_class: Type['Model']) -> Dict[str, Property]:
        declared = dict(getattr(model_class, "properties", None) or {})
        properties: Dict[str, Property] = {}

        if (list(model_class.id_properties) == [DEFAULT_ID_PROPERTY]
                and DEFAULT_ID_PROPERTY not in declared):
            properties[DEFAULT_ID_PROPERTY] = Property(
                type=PropertyType.NUMBER,
                mutable=Mutability.IMMUTABLE,
            )

        if getattr(model_class, "auto_timestamps", False):
            properties["created_at"] = Property(
                type=PropertyType.DATE,
                mutable=Mutability.CREATE_ONLY,
                nullable=True,
            )
            properties["updated_at"] = Property(
                type=PropertyType.DATE,
                nullable=True,
            )

        for name, definition in declared.items():
            properties[name] = Property.build(definition)

        return dict(sorted(properties.items()))

    @staticmethod
    def _collect_methods(model_class: Type['Model'], marker: str) -> Dict[str, Callable]:
        methods: Dict[str, Callable] = {}
        for _, member in inspect.getmembers(model_class, predicate=inspect.isfunction):
            property_name = getattr(member, marker, None)
            if property_name:
                methods[property_name] = member
        return methods


# Process-wide context
registry = ModelRegistry()


def get_registry() -> ModelRegistry:
    """Get the process-wide model registry"""
    return registry


__all__ = [
    "ModelRegistry", "ModelSchema", "registry", "get_registry",
    "accessor", "mutator", "DEFAULT_ID_PROPERTY", "TIMESTAMP_PROPERTIES"
]
