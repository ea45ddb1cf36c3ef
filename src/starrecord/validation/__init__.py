"""
Validation - rule based value validation and transformation
"""

from .rules import ValidationState, RULES, register_rule, get_rule
from .validator import Validator, RuleResult, parse_rules, run_rules

__all__ = [
    "Validator", "ValidationState", "RuleResult", "RULES",
    "register_rule", "get_rule", "parse_rules", "run_rules"
]
