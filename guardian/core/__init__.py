"""
core package for guardian

This package contains the scan data model, scan orchestration and configuration.
"""

from .scanner import (
    REPORT_ORDER,
    SEVERITY_LEVELS,
    Finding,
    MalformedContentError,
    ScanResult,
    Severity,
    WorkflowScanner,
    scan_repository,
)
from .config import (
    ConfigurationError,
    Settings,
    disable_rules,
    generate_default_config,
    load_config,
    load_environment,
    load_settings,
    save_config,
)

__all__ = [
    "REPORT_ORDER",
    "SEVERITY_LEVELS",
    "Finding",
    "MalformedContentError",
    "ScanResult",
    "Severity",
    "WorkflowScanner",
    "scan_repository",
    "ConfigurationError",
    "Settings",
    "disable_rules",
    "generate_default_config",
    "load_config",
    "load_environment",
    "load_settings",
    "save_config",
]
