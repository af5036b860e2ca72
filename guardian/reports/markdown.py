"""
markdown.py - Markdown reporting for guardian

Renders a scan result as a Markdown document grouped by severity. Rendering
is a pure function of its arguments: the same result and timestamp always
produce the same text.
"""

import re
from datetime import datetime
from typing import List, Optional

from ..core import REPORT_ORDER, Finding, ScanResult

BACKTICK_RUN = re.compile(r"`+")


def code_fence(text: str) -> str:
    """Return a backtick fence longer than any backtick run in text"""
    longest = max((len(run) for run in BACKTICK_RUN.findall(text)), default=0)
    return "`" * max(3, longest + 1)


def format_finding(finding: Finding) -> str:
    """
    Format a single finding as a Markdown block

    Args:
        finding: Finding to format

    Returns:
        Formatted finding, ending with a horizontal rule
    """
    block = f"### {finding.rule_id}\n\n"
    block += f"**File**: `{finding.file}` (line {finding.line})\n\n"
    block += f"**Description**: {finding.description}\n\n"
    fence = code_fence(finding.matched_text)
    block += f"**Code**:\n{fence}yaml\n{finding.matched_text}\n{fence}\n\n"
    block += f"**Remediation**: {finding.remediation}\n\n"
    block += "---\n\n"
    return block


def format_findings(findings: List[Finding]) -> str:
    return "".join(format_finding(finding) for finding in findings)


def format_summary(result: ScanResult) -> str:
    """
    Format the per-severity counts, zero buckets included

    Args:
        result: Scan result to summarize

    Returns:
        Summary section as string
    """
    counts = result.severity_counts()
    summary = "## Summary\n\n"
    for level in REPORT_ORDER:
        summary += f"- {level.capitalize()}: {counts[level]}\n"
    return summary + "\n"


def generate_markdown_report(result: ScanResult, generated_at: Optional[datetime] = None) -> str:
    """
    Generate a Markdown report of a workflow scan

    Args:
        result: Scan result to render
        generated_at: Timestamp to print in the header; omitted when None

    Returns:
        Markdown report as a string
    """
    report = f"# Workflow Security Scan Report for {result.repository_id}\n\n"

    if generated_at is not None:
        report += f"Generated: {generated_at.isoformat()}\n\n"

    if not result.succeeded:
        report += f"## Error\n\n{result.message}\n\n"
        return report

    if not result.findings:
        report += "## Summary\n\nNo security issues found in workflows. Good job!\n\n"
        return report

    report += format_summary(result)

    for level in REPORT_ORDER:
        level_findings = result.findings_by_severity(level)
        if not level_findings:
            continue

        report += f"## {level.capitalize()} Issues\n\n"
        report += format_findings(level_findings)

    return report
