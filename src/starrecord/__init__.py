"""
StarRecord - Active Record Models for Python

Model classes declare typed properties, validation rules, relations and
lifecycle hooks; StarRecord persists and retrieves them through a
pluggable storage driver.
"""

from .config import (
    StarRecordConfig, Environment, configure_logging, get_config, set_config
)
from .core import (
    # Models and schema
    Model, Property, PropertyType, Mutability, accessor, mutator,
    ModelRegistry, registry, get_registry,

    # Queries
    Query, Condition, ModelIterator,

    # Events
    EventDispatcher, ModelEvent, LifecycleEvent,

    # Errors
    Errors, Locale,
    StarRecordError, InvalidOperationError, UnknownPropertyError, MassAssignmentError,
    NotFoundError, DriverMissingError, DriverError,
)
from .validation import Validator, ValidationState, register_rule
from .relations import Relation, HasOne, BelongsTo, HasMany, BelongsToMany, Pivot
from .mixins import ACLModel, Cacheable
from .persistence import (
    StorageDriver, CacheStore, MemoryCacheStore, MemoryDriver, DatabaseDriver, SQLConnectionConfig
)

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "StarRecordConfig", "Environment", "configure_logging", "get_config", "set_config",

    # Models and schema
    "Model", "Property", "PropertyType", "Mutability", "accessor", "mutator",
    "ModelRegistry", "registry", "get_registry",

    # Queries
    "Query", "Condition", "ModelIterator",

    # Events
    "EventDispatcher", "ModelEvent", "LifecycleEvent",

    # Errors
    "Errors", "Locale",
    "StarRecordError", "InvalidOperationError", "UnknownPropertyError", "MassAssignmentError",
    "NotFoundError", "DriverMissingError", "DriverError",

    # Validation
    "Validator", "ValidationState", "register_rule",

    # Relations
    "Relation", "HasOne", "BelongsTo", "HasMany", "BelongsToMany", "Pivot",

    # Mixins
    "ACLModel", "Cacheable",

    # Persistence
    "StorageDriver", "CacheStore", "MemoryCacheStore", "MemoryDriver",
    "DatabaseDriver", "SQLConnectionConfig",
]
