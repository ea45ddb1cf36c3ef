"""
Property Definitions

Declarative description of a single model property: its storage type,
mutability class, nullability, uniqueness, requiredness, default value and
validation rule. Definitions are pydantic models so that plain dictionaries
declared on a model class are validated once, when the schema is built.

``PropertyType`` doubles as the tag for values crossing the storage
boundary: every member knows how to ``cast`` a raw stored value into its
Python form and how to ``serialize`` it back.
"""

from typing import Any, Callable, Optional, Union
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
import copy
import json

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict

_TRUE_STRINGS = ("1", "true", "yes", "on", "y")


class PropertyType(str, Enum):
    """Storage types a property can have"""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"

    def cast(self, value: Any) -> Any:
        """
        Convert a raw stored value into its Python representation.

        Args:
            value: Untyped value as returned by a storage driver

        Returns:
            The typed value, ``None`` stays ``None``
        """
        if value is None:
            return None

        caster = getattr(self, f"_cast_{self.value}")
        return caster(value)

    def serialize(self, value: Any) -> Any:
        """Convert a Python value into a storage-native representation"""
        if value is None:
            return None

        if self in (PropertyType.ARRAY, PropertyType.OBJECT):
            if isinstance(value, str):
                return value
            return json.dumps(value, default=str)

        if self == PropertyType.DATE:
            return self._cast_date(value)

        if self == PropertyType.BOOLEAN:
            return self._cast_boolean(value)

        return value

    # Casters
    @staticmethod
    def _cast_string(value: Any) -> str:
        return value if isinstance(value, str) else str(value)

    @staticmethod
    def _cast_number(value: Any) -> Union[int, float]:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, (float, Decimal)):
            value = float(value)
            return int(value) if value.is_integer() else value
        try:
            text = str(value).strip()
            return int(text)
        except ValueError:
            number = float(text)
            return int(number) if number.is_integer() else number

    @staticmethod
    def _cast_boolean(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    @staticmethod
    def _cast_date(value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        text = str(value).strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text), tz=timezone.utc)
        return date_parser.parse(text)

    @staticmethod
    def _cast_array(value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value) if value else []
        if isinstance(value, (tuple, set)):
            return list(value)
        return value

    @staticmethod
    def _cast_object(value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value) if value else {}
        if isinstance(value, Mapping):
            return dict(value)
        return value


class Mutability(str, Enum):
    """When a property may be written by a client"""
    IMMUTABLE = "immutable"
    CREATE_ONLY = "create_only"
    MUTABLE = "mutable"


class Property(BaseModel):
    """
    Definition of a model property.

    Unset fields take the base definition: a mutable, non-null, optional,
    non-unique string with no default. Whether a default was declared is
    tracked separately from its value so that ``default=None`` is
    distinguishable from "no default".

    Example:
        properties = {
            "email": Property(required=True, unique=True, validation="email"),
            "age": {"type": "number", "validation": "range:0:150"},
        }
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: PropertyType = PropertyType.STRING
    mutable: Mutability = Mutability.MUTABLE
    nullable: bool = False
    unique: bool = False
    required: bool = False
    default: Any = None
    validation: Optional[Union[str, Callable[..., bool]]] = None
    title: Optional[str] = None

    @property
    def has_default(self) -> bool:
        """True when a default value was declared"""
        return "default" in self.model_fields_set

    def default_value(self) -> Any:
        """Get a fresh copy of the default value"""
        return copy.deepcopy(self.default)

    @classmethod
    def build(cls, definition: Union['Property', Mapping, None]) -> 'Property':
        """Merge a declared definition over the base definition"""
        if isinstance(definition, Property):
            return definition
        return cls.model_validate(dict(definition or {}))


__all__ = ["Property", "PropertyType", "Mutability"]
