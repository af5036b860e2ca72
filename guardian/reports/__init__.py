"""
reports package for guardian

This package contains reporting functionality for presenting scan results
as Markdown, JSON or console text, and for repository compliance reports.
"""

from .report import generate_report, print_report, report_filename, save_report

from .markdown import format_finding, format_summary, generate_markdown_report

from .json import generate_json_report, result_to_dict

from .console import format_console_report, print_console_report

from .compliance import CompliancePolicy, check_policy, generate_compliance_report

__all__ = [
    "generate_report",
    "print_report",
    "report_filename",
    "save_report",
    "format_finding",
    "format_summary",
    "generate_markdown_report",
    "generate_json_report",
    "result_to_dict",
    "format_console_report",
    "print_console_report",
    "CompliancePolicy",
    "check_policy",
    "generate_compliance_report",
]
