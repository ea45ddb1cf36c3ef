"""
Rule Chain Validator

Rule strings chain named rules with ``|`` and pass parameters with ``:``
(``"string:2:64|alpha_dash"``). A comma-separated parameter is split into
several parameters, so ``"enum:a,b,c"`` and ``"range:1,100"`` work too.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field
import logging

from ..core.errors import Errors, VALIDATION_FAILED
from .rules import ValidationState, get_rule

logger = logging.getLogger(__name__)

# Rules that run even when the value is absent or empty
RUNS_WHEN_NOT_PRESENT = ("required",)

RuleDefinition = Union[str, Callable[..., bool], List[Tuple[str, List[str]]]]


def parse_rules(rules: str) -> List[Tuple[str, List[str]]]:
    """
    Parse a rule string.

    Example:
        parse_rules("numeric|range:10:30")
        # [("numeric", []), ("range", ["10", "30"])]
    """
    parsed = []
    for piece in rules.split("|"):
        piece = piece.strip()
        if not piece:
            continue
        name, *raw_parameters = piece.split(":")
        parameters = [p for raw in raw_parameters for p in raw.split(",")]
        parsed.append((name, parameters))
    return parsed


@dataclass
class RuleResult:
    """Outcome of running one value through a rule chain"""
    valid: bool
    value: Any
    failed: List[str] = field(default_factory=list)


def run_rules(rules: RuleDefinition, value: Any, model: Any = None) -> RuleResult:
    """
    Run a value through a rule chain or a callable rule.

    Args:
        rules: Rule string, parsed rule list or callable ``rule(value, model)``
        value: Value to validate
        model: Model owning the value, passed to callable rules

    Returns:
        The result with the (possibly transformed) value and the failed rule names
    """
    if callable(rules):
        valid = bool(rules(value, model))
        return RuleResult(valid, value, [] if valid else ["custom"])

    chain = parse_rules(rules) if isinstance(rules, str) else list(rules)
    state = ValidationState(value=value, model=model)
    failed = []

    for name, parameters in chain:
        rule = get_rule(name)
        if rule is None:
            raise ValueError(f"Unknown validation rule: {name}")

        if not rule(state, parameters):
            failed.append(name)

        if state.skip_remaining:
            break

    return RuleResult(not failed, state.value, failed)


class Validator:
    """
    Validates a dict of values against per-key rules.

    Keys that are missing or empty are skipped unless their chain contains
    ``required``. Transformed values are written back into ``data``.

    Usage:
        validator = Validator({"email": "email", "age": "numeric|range:18"}, errors)
        data = {"email": " Bob@Example.com ", "age": 30}
        validator.validate(data)   # True, data["email"] == "bob@example.com"
    """

    def __init__(self, rules: Dict[str, RuleDefinition], errors: Optional[Errors] = None):
        self.rules: Dict[str, RuleDefinition] = {
            name: parse_rules(chain) if isinstance(chain, str) else chain
            for name, chain in rules.items()
        }
        self.errors = errors

    def validate(self, data: Dict[str, Any]) -> bool:
        validated = True

        for name, rules in self.rules.items():
            present = name in data and data[name] not in (None, "")
            if not present and not self._runs_when_not_present(rules):
                continue

            result = run_rules(rules, data.get(name))
            data[name] = result.value

            if not result.valid:
                validated = False
                logger.debug(f"{name} failed validation: {', '.join(result.failed)}")
                if self.errors is not None:
                    for rule in result.failed:
                        self.errors.add(name, VALIDATION_FAILED, rule=rule)

        return validated

    @staticmethod
    def _runs_when_not_present(rules: RuleDefinition) -> bool:
        if callable(rules):
            return False
        return any(name in RUNS_WHEN_NOT_PRESENT for name, _ in rules)


__all__ = ["Validator", "RuleResult", "parse_rules", "run_rules", "RUNS_WHEN_NOT_PRESENT"]
