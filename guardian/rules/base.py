"""
base.py - Base class for workflow security rules

This module provides the foundation for implementing rules in guardian.
A rule inspects one raw line of a workflow file at a time; it never sees the
parsed document, so any number of rules may fire on the same line.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Pattern, Union

from ..core import Finding
from ..core.config import ConfigurationError
from ..core.scanner import Severity, normalize_severity


class Rule(ABC):
    """Base class for all guardian rules"""

    def __init__(
        self,
        rule_id: str,
        severity: Union[str, Severity],
        description: str,
        remediation: str,
        category: str = "security",
    ):
        """
        Initialize a rule

        Args:
            rule_id: Unique, stable identifier for the rule
            severity: Severity level (critical, high, medium, low)
            description: Human-readable description of what the rule detects
            remediation: Generic remediation advice for this rule
            category: Category of the rule (security, custom, etc.)
        """
        if not rule_id:
            raise ValueError("Rule id must not be empty")

        self._rule_id = rule_id
        self.severity = normalize_severity(severity)
        self.description = description
        self.remediation = remediation
        self.category = category
        self.enabled = True

    @property
    def rule_id(self) -> str:
        return self._rule_id

    @abstractmethod
    def matches(self, line: str) -> bool:
        """
        Check a single line of workflow text

        Args:
            line: Raw line, without its line terminator

        Returns:
            True if the rule fires on this line
        """
        pass

    def create_finding(self, file: str, line_number: int, line: str) -> Finding:
        """
        Create a Finding for this rule

        The rule's current severity, description and remediation are copied,
        so later changes to the rule do not alter the finding.

        Args:
            file: Name of the workflow file
            line_number: 1-based line number
            line: The line that matched

        Returns:
            Finding object
        """
        return Finding(
            file=file,
            line=line_number,
            rule_id=self.rule_id,
            severity=self.severity,
            description=self.description,
            remediation=self.remediation,
            matched_text=line.strip(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.rule_id,
            "enabled": self.enabled,
            "severity": self.severity,
            "description": self.description,
            "remediation": self.remediation,
            "category": self.category,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r}, severity={self.severity!r})"


class PatternRule(Rule):
    """Rule that fires when a regular expression matches anywhere in a line"""

    def __init__(
        self,
        rule_id: str,
        pattern: Union[str, Pattern[str]],
        severity: Union[str, Severity],
        description: str,
        remediation: str,
        category: str = "security",
        flags: int = 0,
    ):
        super().__init__(
            rule_id=rule_id,
            severity=severity,
            description=description,
            remediation=remediation,
            category=category,
        )
        if isinstance(pattern, str):
            pattern = re.compile(pattern, flags)
        self.pattern = pattern

    def matches(self, line: str) -> bool:
        return self.pattern.search(line) is not None

    def to_dict(self) -> Dict[str, Any]:
        info = super().to_dict()
        info["pattern"] = self.pattern.pattern
        return info


def rule_from_dict(data: Dict[str, Any]) -> PatternRule:
    """
    Build a pattern rule from a configuration mapping

    Args:
        data: Mapping with id, description, pattern, severity, remediation and
            optionally ignore_case and category

    Raises:
        ConfigurationError: If the definition is incomplete or invalid
    """
    missing = {"id", "description", "pattern", "severity", "remediation"} - set(data)
    if missing:
        raise ConfigurationError(f"Custom rule is missing: {', '.join(sorted(missing))}")

    flags = re.IGNORECASE if data.get("ignore_case") else 0
    try:
        return PatternRule(
            rule_id=str(data["id"]),
            pattern=re.compile(str(data["pattern"]), flags),
            severity=str(data["severity"]),
            description=str(data["description"]),
            remediation=str(data["remediation"]),
            category=str(data.get("category", "custom")),
        )
    except re.error as e:
        raise ConfigurationError(f"Invalid pattern for custom rule '{data['id']}': {e}")
    except ValueError as e:
        raise ConfigurationError(f"Invalid custom rule '{data['id']}': {e}")
