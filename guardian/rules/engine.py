"""
engine.py - Rule engine for guardian

This module provides the rule engine that holds an ordered rule set, applies
it line by line to workflow files and renders the resulting findings.
"""

import codecs
import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from ..core import ConfigurationError, Finding, MalformedContentError, ScanResult
from ..core.scanner import normalize_severity
from ..sources.base import WorkflowFile
from .base import Rule, rule_from_dict
from .security import default_rules

LINE_BREAK = re.compile(r"\r\n|\n|\r")

WorkflowInput = Union[WorkflowFile, Tuple[str, Union[str, bytes]]]


def decode_content(content: Union[str, bytes]) -> str:
    """
    Decode workflow file content as UTF-8 text

    Raises:
        MalformedContentError: If the bytes are not valid UTF-8
    """
    if isinstance(content, str):
        return content

    try:
        text = bytes(content).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedContentError(str(e)) from e

    return text[1:] if text.startswith(codecs.BOM_UTF8.decode("utf-8")) else text


def split_lines(text: str) -> List[str]:
    """Split text on \\r\\n, \\n or \\r line endings"""
    return LINE_BREAK.split(text)


def _as_workflow_file(item: WorkflowInput) -> WorkflowFile:
    if isinstance(item, WorkflowFile):
        return item
    name, content = item
    return WorkflowFile(name=name, content=content)


class RuleEngine:
    """Engine for managing and running workflow security rules"""

    def __init__(
        self,
        rules: Optional[Sequence[Rule]] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the rule engine

        Args:
            rules: Ordered rule set (defaults to the built-in rules)
            config: Configuration dictionary
        """
        self.config = config or {}
        self.rules: List[Rule] = []

        for rule in default_rules() if rules is None else rules:
            self.register_rule(rule)

        self._apply_config()

    def _apply_config(self) -> None:
        """
        Apply configuration to rules

        Raises:
            ConfigurationError: If a custom rule or severity override is invalid
        """
        if not self.config:
            return

        for data in self.config.get("custom_rules", []):
            try:
                self.register_rule(rule_from_dict(data))
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        for rule_id, enabled in self.config.get("rules", {}).items():
            rule = self.get_rule_by_id(rule_id)
            if rule is None:
                logger.warning("configuration refers to unknown rule '{}'", rule_id)
                continue
            rule.enabled = bool(enabled)

        for rule_id, severity in self.config.get("severity_overrides", {}).items():
            try:
                level = normalize_severity(severity)
            except ValueError as e:
                raise ConfigurationError(f"Invalid severity override for '{rule_id}': {e}") from e

            rule = self.get_rule_by_id(rule_id)
            if rule is None:
                logger.warning("severity override for unknown rule '{}'", rule_id)
                continue
            rule.severity = level

    def register_rule(self, rule: Rule) -> None:
        """
        Append a rule to the rule set

        Raises:
            ValueError: If a rule with the same id is already registered
        """
        if self.get_rule_by_id(rule.rule_id) is not None:
            raise ValueError(f"Duplicate rule id: {rule.rule_id}")
        self.rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        """
        Remove a rule from the rule set

        Returns:
            True if the rule was found and removed, False otherwise
        """
        rule = self.get_rule_by_id(rule_id)
        if rule is None:
            return False
        self.rules.remove(rule)
        return True

    def get_rule_by_id(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def list_rules(self) -> List[Dict[str, Any]]:
        """
        Get information about all registered rules

        Returns:
            List of rule information dictionaries, in evaluation order
        """
        return [rule.to_dict() for rule in self.rules]

    def enable_rule(self, rule_id: str) -> bool:
        rule = self.get_rule_by_id(rule_id)
        if rule:
            rule.enabled = True
            return True
        return False

    def disable_rule(self, rule_id: str) -> bool:
        rule = self.get_rule_by_id(rule_id)
        if rule:
            rule.enabled = False
            return True
        return False

    @property
    def active_rules(self) -> List[Rule]:
        return [rule for rule in self.rules if rule.enabled]

    def match_line(self, line: str) -> List[Rule]:
        """
        Find the enabled rules matching a line

        Returns:
            Matching rules in rule-set order
        """
        return [rule for rule in self.active_rules if rule.matches(line)]

    def scan_file(self, filename: str, content: Union[str, bytes]) -> List[Finding]:
        """
        Scan the content of one workflow file

        Args:
            filename: Name reported on the findings
            content: File content as text or UTF-8 bytes

        Returns:
            Findings in line order, then rule order

        Raises:
            MalformedContentError: If the content cannot be decoded
        """
        text = decode_content(content)
        rules = self.active_rules
        findings: List[Finding] = []

        for line_number, line in enumerate(split_lines(text), start=1):
            for rule in rules:
                if rule.matches(line):
                    findings.append(rule.create_finding(filename, line_number, line))

        return findings

    def scan(
        self,
        files: Iterable[WorkflowInput],
        repository_id: str = "",
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> ScanResult:
        """
        Scan workflow files in the order given

        Entries that are not plain workflow files are skipped silently. Files
        that cannot be decoded, or that the source marked as unreadable, are
        skipped and counted in files_skipped.

        Args:
            files: (filename, content) pairs or WorkflowFile entries
            repository_id: Identifier of the scanned repository
            should_abort: Checked before each file; a true result stops the
                scan and returns what has been found so far

        Returns:
            Scan result for the repository
        """
        findings: List[Finding] = []
        files_scanned = 0
        files_skipped = 0
        aborted = False

        for item in files:
            if should_abort is not None and should_abort():
                aborted = True
                break

            workflow = _as_workflow_file(item)
            if not workflow.is_workflow:
                continue

            if workflow.error is not None:
                logger.warning("skipping {}: {}", workflow.name, workflow.error)
                files_skipped += 1
                continue

            try:
                findings.extend(self.scan_file(workflow.name, workflow.content))
            except MalformedContentError as e:
                logger.warning("skipping {}: content is not valid UTF-8 ({})", workflow.name, e)
                files_skipped += 1
                continue

            files_scanned += 1

        if findings:
            message = f"Found {len(findings)} security issues in workflows"
        else:
            message = "No security issues found in workflows"
        if aborted:
            message += f" (scan aborted after {files_scanned} file(s))"

        return ScanResult(
            repository_id=repository_id,
            succeeded=True,
            message=message,
            findings=findings,
            files_scanned=files_scanned,
            files_skipped=files_skipped,
            aborted=aborted,
        )

    def render(self, result: ScanResult, generated_at: Optional[datetime] = None) -> str:
        """Render a scan result as a Markdown report"""
        from ..reports.markdown import generate_markdown_report

        return generate_markdown_report(result, generated_at=generated_at)


def create_rule_engine(
    config: Optional[Dict[str, Any]] = None, rules: Optional[Sequence[Rule]] = None
) -> RuleEngine:
    """
    Create a rule engine with the specified configuration

    Args:
        config: Configuration dictionary
        rules: Rule set to use instead of the defaults

    Returns:
        Configured RuleEngine instance
    """
    return RuleEngine(rules=rules, config=config)
