"""
StarRecord Core - models, schema, queries, events and errors
"""

from .exceptions import (
    StarRecordError, InvalidOperationError, UnknownPropertyError, MassAssignmentError,
    NotFoundError, DriverMissingError, DriverError
)
from .property import Property, PropertyType, Mutability
from .events import EventDispatcher, ModelEvent, LifecycleEvent
from .registry import ModelRegistry, ModelSchema, registry, get_registry, accessor, mutator
from .locale import Locale
from .errors import Errors, ErrorMessage
from .query import Query, Condition
from .iterator import ModelIterator
from .model import Model

__all__ = [
    # Exceptions
    "StarRecordError", "InvalidOperationError", "UnknownPropertyError",
    "MassAssignmentError", "NotFoundError", "DriverMissingError", "DriverError",

    # Schema
    "Property", "PropertyType", "Mutability",
    "ModelRegistry", "ModelSchema", "registry", "get_registry", "accessor", "mutator",

    # Events
    "EventDispatcher", "ModelEvent", "LifecycleEvent",

    # Errors
    "Locale", "Errors", "ErrorMessage",

    # Queries
    "Query", "Condition", "ModelIterator",

    # Models
    "Model",
]
