"""
scanner.py - Core scanning data model and orchestration for guardian

This module defines the findings and scan results produced by the rule engine
and drives scans of one or many repositories through a workflow source.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from ..sources.base import RetrievalError, WorkflowSource

if TYPE_CHECKING:
    from ..rules.engine import RuleEngine


class Severity(Enum):
    """Enumeration of finding severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_LEVELS = [level.value for level in Severity]

REPORT_ORDER = list(reversed(SEVERITY_LEVELS))


def normalize_severity(severity: Union[str, Severity]) -> str:
    """
    Convert a severity given as enum or string into its canonical value

    Raises:
        ValueError: If the severity is not one of the known levels
    """
    if isinstance(severity, Severity):
        return severity.value
    value = str(severity).strip().lower()
    if value not in SEVERITY_LEVELS:
        raise ValueError(f"Invalid severity level: {severity}")
    return value


class MalformedContentError(Exception):
    """Raised when a workflow file cannot be decoded as text"""

    pass


@dataclass(frozen=True)
class Finding:
    """One rule matching one line of one workflow file"""

    file: str
    line: int
    rule_id: str
    severity: str
    description: str
    remediation: str
    matched_text: str

    def __post_init__(self) -> None:
        """Validate severity level"""
        object.__setattr__(self, "severity", normalize_severity(self.severity))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "rule_id": self.rule_id,
            "severity": self.severity,
            "description": self.description,
            "remediation": self.remediation,
            "matched_text": self.matched_text,
        }


@dataclass
class ScanResult:
    """Outcome of scanning the workflows of a single repository"""

    repository_id: str
    succeeded: bool
    message: str
    findings: List[Finding] = field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = 0
    aborted: bool = False

    def severity_counts(self) -> Dict[str, int]:
        """Count findings per severity, with every level present"""
        counts = {level: 0 for level in REPORT_ORDER}
        for finding in self.findings:
            counts[finding.severity] += 1
        return counts

    def findings_by_severity(self, severity: Union[str, Severity]) -> List[Finding]:
        level = normalize_severity(severity)
        return [finding for finding in self.findings if finding.severity == level]

    @classmethod
    def failure(cls, repository_id: str, message: str) -> "ScanResult":
        """Build the terminal result for a repository whose workflows could not be read"""
        return cls(repository_id=repository_id, succeeded=False, message=message)


class WorkflowScanner:
    """Scans the workflows of repositories supplied by a workflow source"""

    def __init__(
        self,
        source: WorkflowSource,
        engine: Optional["RuleEngine"] = None,
        config: Optional[Dict[str, Any]] = None,
        concurrency: int = 4,
    ) -> None:
        """
        Initialize the scanner

        Args:
            source: Source providing workflow files for a repository id
            engine: Rule engine to apply (built from config when omitted)
            config: Configuration dictionary used to build the default engine
            concurrency: Maximum number of repositories scanned at once
        """
        if engine is None:
            from ..rules.engine import create_rule_engine

            engine = create_rule_engine(config)

        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.source = source
        self.engine = engine
        self.concurrency = concurrency

    async def scan_repository(self, repository_id: str) -> ScanResult:
        """
        Retrieve and scan the workflows of one repository

        Retrieval failures are reported in the result, never raised.
        """
        logger.debug("scanning workflows of {}", repository_id)
        try:
            files = await self.source.fetch_workflows(repository_id)
        except RetrievalError as e:
            logger.warning("could not retrieve workflows for {}: {}", repository_id, e)
            return ScanResult.failure(repository_id, f"Error scanning workflows: {e}")

        result = self.engine.scan(files, repository_id=repository_id)
        logger.debug(
            "{}: {} file(s) scanned, {} finding(s)",
            repository_id,
            result.files_scanned,
            len(result.findings),
        )
        return result

    async def scan_repositories(self, repository_ids: Iterable[str]) -> List[ScanResult]:
        """
        Scan several independent repositories

        Returns:
            One result per repository, in the order the ids were given
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(repository_id: str) -> ScanResult:
            async with semaphore:
                return await self.scan_repository(repository_id)

        return list(await asyncio.gather(*(_bounded(rid) for rid in repository_ids)))

    def render(self, result: ScanResult, generated_at: Optional[Any] = None) -> str:
        return self.engine.render(result, generated_at=generated_at)


def scan_repository(
    repo_path: str,
    config: Optional[Dict[str, Any]] = None,
    engine: Optional["RuleEngine"] = None,
) -> ScanResult:
    """
    Scan the workflows of a repository checked out on the local filesystem

    Args:
        repo_path: Path to the repository root
        config: Configuration for rules
        engine: Rule engine to use instead of one built from config

    Returns:
        Scan result for the repository
    """
    from ..sources.local import LocalWorkflowSource

    scanner = WorkflowScanner(LocalWorkflowSource(), engine=engine, config=config)
    return asyncio.run(scanner.scan_repository(repo_path))
