"""
rules package for guardian

This package contains the rule base classes, the default security rules and
the rule engine that applies them to workflow files.
"""

from .base import PatternRule, Rule, rule_from_dict
from .engine import RuleEngine, create_rule_engine, decode_content, split_lines
from .security import DEFAULT_RULE_IDS, default_rules

__all__ = [
    # Base classes
    "Rule",
    "PatternRule",
    "rule_from_dict",
    # Rule engine
    "RuleEngine",
    "create_rule_engine",
    "decode_content",
    "split_lines",
    # Default rules
    "DEFAULT_RULE_IDS",
    "default_rules",
]
