"""
guardian - Repository Guardian

A read-only security tool for GitHub repositories. It scans GitHub Actions
workflows for hardcoded secrets, unpinned and third-party actions and script
injection, and reports on the branch protection of repositories.
"""

from typing import Optional

from guardian.utils.version import __version__, get_version, get_version_info

from .core import (
    REPORT_ORDER,
    SEVERITY_LEVELS,
    ConfigurationError,
    Finding,
    ScanResult,
    Settings,
    WorkflowScanner,
    disable_rules,
    generate_default_config,
    load_config,
    load_settings,
    save_config,
    scan_repository,
)
from .reports import generate_compliance_report, generate_report, print_report, save_report
from .rules import PatternRule, Rule, RuleEngine, create_rule_engine
from .sources import GitHubClient, GitHubWorkflowSource, LocalWorkflowSource, RetrievalError

__all__ = [
    "__version__",
    "get_version",
    "get_version_info",
    "Finding",
    "ScanResult",
    "WorkflowScanner",
    "scan_repository",
    "SEVERITY_LEVELS",
    "REPORT_ORDER",
    "load_config",
    "load_settings",
    "Settings",
    "generate_default_config",
    "save_config",
    "disable_rules",
    "ConfigurationError",
    "generate_report",
    "generate_compliance_report",
    "save_report",
    "print_report",
    "Rule",
    "PatternRule",
    "RuleEngine",
    "create_rule_engine",
    "GitHubClient",
    "GitHubWorkflowSource",
    "LocalWorkflowSource",
    "RetrievalError",
]


def main() -> Optional[int]:
    """Main entry point for the guardian CLI tool"""
    from .cli import cli

    return cli()


if __name__ == "__main__":
    main()
