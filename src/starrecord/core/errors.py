"""
Error Collection

Soft failures (validation, uniqueness, required fields, permissions) are
collected per property on an ``Errors`` stack instead of being raised.
Each entry keeps its error code and parameters so that the message can be
rendered later, optionally through a ``Locale``.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type, TYPE_CHECKING
from dataclasses import dataclass, field

from .registry import registry

if TYPE_CHECKING:
    from .model import Model

# Error codes
VALIDATION_FAILED = "validation_failed"
NOT_UNIQUE = "not_unique"
REQUIRED_FIELD_MISSING = "required_field_missing"
NO_PERMISSION = "no_permission"

DEFAULT_MESSAGES: Dict[str, str] = {
    VALIDATION_FAILED: "{property} is invalid",
    NOT_UNIQUE: "{property} must be unique",
    REQUIRED_FIELD_MISSING: "{property} is missing",
    NO_PERMISSION: "You do not have permission to do that",
}

# Fallbacks for validation_failed, keyed by the failing rule
RULE_MESSAGES: Dict[str, str] = {
    "alpha": "{property} only allows letters",
    "alpha_numeric": "{property} only allows letters and numbers",
    "alpha_dash": "{property} only allows letters and dashes",
    "boolean": "{property} must be yes or no",
    "custom": "{property} validation failed",
    "date": "{property} must be a date",
    "email": "{property} must be a valid email address",
    "enum": "{property} must be one of the allowed values",
    "ip": "{property} only allows valid IP addresses",
    "matching": "{property} must match",
    "numeric": "{property} only allows numbers",
    "password": "{property} must meet the password requirements",
    "range": "{property} must be within the allowed range",
    "required": "{property} is missing",
    "string": "{property} must be a string of the proper length",
    "time_zone": "{property} only allows valid time zones",
    "timestamp": "{property} only allows timestamps",
    "url": "{property} only allows valid URLs",
}

Translator = Callable[..., str]


def humanize(name: str) -> str:
    """``first_name`` -> ``First name``"""
    text = name.replace("_", " ").strip()
    if text.endswith(" id"):
        text = text[:-3]
    return text[:1].upper() + text[1:]


@dataclass(frozen=True)
class ErrorMessage:
    """A single collected error"""
    property: str
    code: str
    params: Dict[str, Any] = field(default_factory=dict)

    def fallback(self) -> str:
        if self.code == VALIDATION_FAILED and self.params.get("rule") in RULE_MESSAGES:
            return RULE_MESSAGES[self.params["rule"]]
        return DEFAULT_MESSAGES.get(self.code, self.code)


class Errors:
    """
    Insertion ordered map of property name -> collected errors.

    ``len(errors)`` is the total number of errors, iterating yields the
    property names that have errors, and item access returns the rendered
    messages of one property.

    Example:
        errors.add("email", "not_unique")
        errors.has("email")      # True
        errors.codes("email")    # ["not_unique"]
        errors["email"]          # ["Email must be unique"]
    """

    def __init__(self, model_class: Optional[Type['Model']] = None,
                 locale: Optional[Translator] = None):
        self.model_class = model_class
        self._locale = locale
        self._stack: Dict[str, List[ErrorMessage]] = {}

    @property
    def locale(self) -> Optional[Translator]:
        if self._locale is not None:
            return self._locale

        return registry.locale

    @locale.setter
    def locale(self, locale: Optional[Translator]) -> None:
        self._locale = locale

    def add(self, property: str, code: str, **params) -> 'Errors':
        """
        Add an error to the stack.

        Args:
            property: Property (or pseudo-key such as a permission) the error is about
            code: Error code
            **params: Extra parameters for message formatting
        """
        self._stack.setdefault(property, []).append(ErrorMessage(property, code, params))
        return self

    def has(self, property: str) -> bool:
        return property in self._stack

    def codes(self, property: Optional[str] = None) -> List[str]:
        """Get the raw error codes, optionally for one property"""
        return [error.code for error in self._entries(property)]

    def all(self, property: Optional[str] = None, locale: Optional[str] = None) -> List[str]:
        """
        Get rendered error messages.

        Args:
            property: Only return the errors of this property
            locale: Locale name passed to the translator

        Returns:
            Messages in insertion order
        """
        return [self._render(error, locale) for error in self._entries(property)]

    def clear(self) -> 'Errors':
        self._stack.clear()
        return self

    def items(self) -> Iterator[Tuple[str, List[ErrorMessage]]]:
        for property, errors in self._stack.items():
            yield property, list(errors)

    def to_dict(self, locale: Optional[str] = None) -> Dict[str, List[str]]:
        return {
            property: [self._render(error, locale) for error in errors]
            for property, errors in self._stack.items()
        }

    def _entries(self, property: Optional[str]) -> List[ErrorMessage]:
        if property is not None:
            return list(self._stack.get(property, []))
        return [error for errors in self._stack.values() for error in errors]

    def _render(self, error: ErrorMessage, locale: Optional[str]) -> str:
        parameters = dict(error.params)
        parameters["property"] = self._property_title(error.property)

        translator = self.locale
        if translator is None:
            return error.fallback().format_map(parameters)

        return translator(error.code, parameters, locale, error.fallback())

    def _property_title(self, property: str) -> str:
        if self.model_class is not None:
            return self.model_class.get_property_title(property)
        return humanize(property)

    def __len__(self) -> int:
        return sum(len(errors) for errors in self._stack.values())

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._stack))

    def __contains__(self, property: str) -> bool:
        return self.has(property)

    def __getitem__(self, property: str) -> List[str]:
        return self.all(property)

    def __setitem__(self, property: str, code: str) -> None:
        self.add(property, code)

    def __delitem__(self, property: str) -> None:
        self._stack.pop(property, None)

    def __repr__(self):
        codes = {property: [error.code for error in errors] for property, errors in self._stack.items()}
        return f"Errors({codes!r})"


__all__ = [
    "Errors", "ErrorMessage", "humanize", "DEFAULT_MESSAGES", "RULE_MESSAGES",
    "VALIDATION_FAILED", "NOT_UNIQUE", "REQUIRED_FIELD_MISSING", "NO_PERMISSION"
]
