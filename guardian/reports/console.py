"""
console.py - Console/terminal reporting for guardian

This module provides functionality for formatting and displaying scan
results in a human-readable format for terminal output.
"""

import os
import sys
from typing import Optional, TextIO

import click

from ..core import REPORT_ORDER, Finding, ScanResult

COLORS = {
    "critical": "bright_red",
    "high": "red",
    "medium": "yellow",
    "low": "blue",
}


def get_severity_symbol(severity: str) -> str:
    """Get a symbol representing the severity level"""
    if severity == "critical":
        return "🚨"
    elif severity == "high":
        return "❗"
    elif severity == "medium":
        return "⚠️"
    elif severity == "low":
        return "ℹ️"
    else:
        return "✓"


def colorize(text: str, color: Optional[str] = None, bold: bool = False) -> str:
    """
    Apply color to text if color output is enabled

    Args:
        text: Text to colorize
        color: Foreground color name understood by click
        bold: Whether to render the text in bold

    Returns:
        Colorized text or original text if color is disabled
    """
    if os.environ.get("NO_COLOR"):
        return text

    return click.style(text, fg=color, bold=bold)


def format_finding(finding: Finding, show_remediation: bool = True) -> str:
    """
    Format a single finding for console output

    Args:
        finding: Finding to format
        show_remediation: Whether to include remediation advice

    Returns:
        Formatted finding as string
    """
    severity = finding.severity
    symbol = get_severity_symbol(severity)

    formatted = (
        f"{symbol} {colorize(severity.upper(), COLORS.get(severity))}: {finding.description}\n"
    )
    formatted += f"  Rule: {finding.rule_id}\n"
    formatted += f"  File: {finding.file}:{finding.line}\n"
    formatted += f"  Code: {finding.matched_text}\n"

    if show_remediation and finding.remediation:
        formatted += f"  Remediation: {finding.remediation}\n"

    return formatted


def format_summary(result: ScanResult) -> str:
    """
    Format summary statistics of a scan result

    Args:
        result: Scan result

    Returns:
        Formatted summary as string
    """
    output = f"\n{colorize('Scan Summary', bold=True)}\n"
    output += "=" * 50 + "\n"

    output += f"Repository: {result.repository_id}\n"
    output += f"Total files scanned: {result.files_scanned}\n"
    if result.files_skipped:
        output += f"Files skipped (not valid UTF-8): {result.files_skipped}\n"
    output += f"Total issues found: {len(result.findings)}\n"

    output += "\nIssues by severity:\n"
    counts = result.severity_counts()
    for level in REPORT_ORDER:
        output += f"  {colorize(level.upper(), COLORS.get(level))}: {counts[level]}\n"

    return output


def format_console_report(result: ScanResult, show_remediation: bool = True) -> str:
    """
    Generate a complete console report

    Args:
        result: Scan result
        show_remediation: Whether to include remediation advice

    Returns:
        Complete formatted report as string
    """
    if not result.succeeded:
        return f"{colorize('Error', COLORS['critical'], bold=True)}: {result.message}\n"

    output = ""
    if not result.findings:
        output += "No issues found.\n"

    for level in REPORT_ORDER:
        for finding in result.findings_by_severity(level):
            output += format_finding(finding, show_remediation) + "\n"

    output += format_summary(result)
    return output


def print_console_report(
    result: ScanResult,
    show_remediation: bool = True,
    output_stream: Optional[TextIO] = None,
) -> None:
    """
    Print console report to output stream

    Args:
        result: Scan result
        show_remediation: Whether to include remediation advice
        output_stream: Output stream to write to (defaults to sys.stdout)
    """
    report = format_console_report(result, show_remediation=show_remediation)

    if output_stream is None:
        output_stream = sys.stdout

    output_stream.write(report)
    output_stream.flush()
