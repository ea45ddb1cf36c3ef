"""
Built-in Validation Rules

Every rule is a plain function ``rule(state, parameters) -> bool``. The
``ValidationState`` carries the value being validated; a rule may replace
``state.value`` (normalising an email address, hashing a password...) and
may set ``state.skip_remaining`` to short-circuit the rest of the chain.

New named rules are added with ``register_rule``.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
import hashlib
import hmac
import ipaddress
import re
import zoneinfo

from dateutil import parser as date_parser
from email_validator import EmailNotValidError, validate_email
from pydantic import AnyUrl, TypeAdapter, ValidationError

from ..config import get_config
from ..core.property import PropertyType

DB_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_ALPHA = re.compile(r"[A-Za-z]*")
_ALPHA_NUMERIC = re.compile(r"[A-Za-z0-9]*")
_ALPHA_DASH = re.compile(r"[A-Za-z0-9_-]*")

_url_adapter = TypeAdapter(AnyUrl)


@dataclass
class ValidationState:
    """Mutable state handed down a rule chain"""
    value: Any
    model: Any = None
    skip_remaining: bool = False


Rule = Callable[[ValidationState, List[str]], bool]


def _param(parameters: List[str], index: int, default: Any = None) -> Any:
    if len(parameters) > index and parameters[index] != "":
        return parameters[index]
    return default


def _min_length(parameters: List[str]) -> int:
    return int(_param(parameters, 0, 0))


def _is_empty(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, (list, tuple, dict, set)) and len(value) == 0:
        return True
    return False


# Rules
def alpha(state: ValidationState, parameters: List[str]) -> bool:
    """Letters only. ``alpha:5`` sets a minimum length."""
    value = str(state.value)
    return bool(_ALPHA.fullmatch(value)) and len(value) >= _min_length(parameters)


def alpha_numeric(state: ValidationState, parameters: List[str]) -> bool:
    """Letters and digits only. ``alpha_numeric:6`` sets a minimum length."""
    value = str(state.value)
    return bool(_ALPHA_NUMERIC.fullmatch(value)) and len(value) >= _min_length(parameters)


def alpha_dash(state: ValidationState, parameters: List[str]) -> bool:
    """Letters, digits, dashes and underscores"""
    value = str(state.value)
    return bool(_ALPHA_DASH.fullmatch(value)) and len(value) >= _min_length(parameters)


def boolean(state: ValidationState, parameters: List[str]) -> bool:
    """Converts the value into a boolean, never fails"""
    state.value = PropertyType.BOOLEAN.cast(state.value)
    return True


def date(state: ValidationState, parameters: List[str]) -> bool:
    """Anything that parses as a date"""
    if isinstance(state.value, datetime):
        return True
    try:
        date_parser.parse(str(state.value))
    except (ValueError, OverflowError):
        return False
    return True


def db_timestamp(state: ValidationState, parameters: List[str]) -> bool:
    """Converts a unix timestamp into a database datetime string"""
    if isinstance(state.value, int) and not isinstance(state.value, bool):
        moment = datetime.fromtimestamp(state.value, tz=timezone.utc)
        state.value = moment.strftime(DB_TIMESTAMP_FORMAT)
        return True
    return False


def email(state: ValidationState, parameters: List[str]) -> bool:
    """Valid email address, lowercased and trimmed"""
    state.value = str(state.value).strip().lower()
    try:
        validate_email(state.value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def enum(state: ValidationState, parameters: List[str]) -> bool:
    """One of the listed values, i.e. ``enum:red,green,blue``"""
    return str(state.value) in parameters


def ip(state: ValidationState, parameters: List[str]) -> bool:
    """IPv4 or IPv6 address"""
    try:
        ipaddress.ip_address(str(state.value))
    except ValueError:
        return False
    return True


def matching(state: ValidationState, parameters: List[str]) -> bool:
    """
    All entries of a list must be equal (password + confirmation). The
    list collapses into the matched value.
    """
    if not isinstance(state.value, (list, tuple)):
        return True

    values = list(state.value)
    if any(value != values[0] for value in values):
        return False

    if values:
        state.value = values[-1]
    return True


def numeric(state: ValidationState, parameters: List[str]) -> bool:
    """Any number, or ``numeric:int`` / ``numeric:float`` for a specific type"""
    value = state.value
    if isinstance(value, bool):
        return False

    kind = _param(parameters, 0)
    if kind == "int":
        return isinstance(value, int)
    if kind == "float":
        return isinstance(value, float)

    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
    except ValueError:
        return False
    return True


def password(state: ValidationState, parameters: List[str]) -> bool:
    """
    Checks the minimum length (``password:10``) and replaces the value
    with its salted HMAC-SHA512 hash.
    """
    config = get_config().validation
    minimum = int(_param(parameters, 0, config.password_min_length))

    value = str(state.value)
    if len(value) < minimum:
        return False

    state.value = hmac.new(config.salt.encode(), value.encode(), hashlib.sha512).hexdigest()
    return True


def range_(state: ValidationState, parameters: List[str]) -> bool:
    """Number within bounds, i.e. ``range:1:100``. Either bound may be left out."""
    try:
        value = float(state.value)
    except (TypeError, ValueError):
        return False

    low = _param(parameters, 0)
    if low is not None and value < float(low):
        return False

    high = _param(parameters, 1)
    if high is not None and value > float(high):
        return False

    return True


def required(state: ValidationState, parameters: List[str]) -> bool:
    """Not null, not an empty string and not an empty collection"""
    return not _is_empty(state.value)


def skip_empty(state: ValidationState, parameters: List[str]) -> bool:
    """Empty values become ``None`` and skip the rest of the chain"""
    if not state.value:
        state.value = None
        state.skip_remaining = True
    return True


def string(state: ValidationState, parameters: List[str]) -> bool:
    """String with optional length bounds, i.e. ``string:2:64``"""
    if not isinstance(state.value, str):
        return False

    length = len(state.value)
    minimum = int(_param(parameters, 0, 0))
    maximum = _param(parameters, 1)
    return length >= minimum and (maximum is None or length <= int(maximum))


@lru_cache(maxsize=1)
def _time_zones() -> frozenset:
    return frozenset(zoneinfo.available_timezones())


def time_zone(state: ValidationState, parameters: List[str]) -> bool:
    """IANA time zone identifier"""
    return str(state.value) in _time_zones()


def timestamp(state: ValidationState, parameters: List[str]) -> bool:
    """Converts dates into unix timestamps"""
    value = state.value
    if isinstance(value, int) and not isinstance(value, bool):
        return True
    if isinstance(value, datetime):
        state.value = int(value.timestamp())
        return True
    if str(value).isdigit():
        state.value = int(str(value))
        return True

    try:
        state.value = int(date_parser.parse(str(value)).timestamp())
    except (ValueError, OverflowError):
        return False
    return True


def url(state: ValidationState, parameters: List[str]) -> bool:
    """Absolute URL"""
    try:
        _url_adapter.validate_python(str(state.value))
    except ValidationError:
        return False
    return True


RULES: Dict[str, Rule] = {
    "alpha": alpha,
    "alpha_numeric": alpha_numeric,
    "alpha_dash": alpha_dash,
    "boolean": boolean,
    "date": date,
    "db_timestamp": db_timestamp,
    "email": email,
    "enum": enum,
    "ip": ip,
    "matching": matching,
    "numeric": numeric,
    "password": password,
    "range": range_,
    "required": required,
    "skip_empty": skip_empty,
    "string": string,
    "time_zone": time_zone,
    "timestamp": timestamp,
    "url": url,
}


def register_rule(name: str, rule: Rule) -> None:
    """
    Register a named rule.

    Args:
        name: Name used in rule strings
        rule: Callable ``rule(state, parameters) -> bool``
    """
    RULES[name] = rule


def get_rule(name: str) -> Optional[Rule]:
    return RULES.get(name)


__all__ = ["ValidationState", "Rule", "RULES", "register_rule", "get_rule", "DB_TIMESTAMP_FORMAT"]
