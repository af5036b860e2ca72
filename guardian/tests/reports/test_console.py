"""
test_console.py - Tests for console output formatting
"""

import io
import os
from unittest.mock import patch

from guardian.core import ScanResult
from guardian.reports.console import (
    COLORS,
    colorize,
    format_console_report,
    format_finding,
    format_summary,
    get_severity_symbol,
    print_console_report,
)


def test_get_severity_symbol():
    """Test getting symbols for severity levels."""
    assert get_severity_symbol("critical") == "🚨"
    assert get_severity_symbol("high") == "❗"
    assert get_severity_symbol("medium") == "⚠️"
    assert get_severity_symbol("low") == "ℹ️"
    assert get_severity_symbol("unknown") == "✓"


def test_colorize():
    """Test colorizing text."""
    with patch.dict(os.environ, {"NO_COLOR": ""}):
        colored_text = colorize("Test", COLORS["high"])
        assert colored_text != "Test"
        assert "Test" in colored_text

    with patch.dict(os.environ, {"NO_COLOR": "1"}):
        assert colorize("Test", COLORS["high"]) == "Test"


def test_format_finding(mock_findings):
    """Test formatting a single finding."""
    formatted = format_finding(mock_findings[1])

    assert "HIGH: Pin actions to a specific SHA" in formatted
    assert "Rule: pin-actions-versions" in formatted
    assert "File: deploy.yml:14" in formatted
    assert "Code: - uses: actions/checkout@main" in formatted
    assert "Remediation:" in formatted
    assert "Remediation:" not in format_finding(mock_findings[1], show_remediation=False)


def test_format_summary(mock_result):
    """Test summary statistics."""
    summary = format_summary(mock_result)

    assert "Scan Summary" in summary
    assert "Total files scanned: 2" in summary
    assert "Total issues found: 3" in summary
    assert "LOW: 0" in summary


def test_format_console_report_order(mock_result):
    """Test findings are printed from critical to low."""
    report = format_console_report(mock_result)

    assert report.index("CRITICAL:") < report.index("HIGH:") < report.index("MEDIUM:")


def test_format_console_report_clean():
    """Test the report for a clean repository."""
    report = format_console_report(ScanResult("api", True, "No security issues found"))
    assert report.startswith("No issues found.")


def test_format_console_report_failure():
    """Test the report for a failed scan."""
    report = format_console_report(ScanResult.failure("api", "Error scanning workflows: boom"))
    assert report == "Error: Error scanning workflows: boom\n"


def test_print_console_report(mock_result):
    """Test printing to a given stream."""
    stream = io.StringIO()
    print_console_report(mock_result, output_stream=stream)
    assert "Scan Summary" in stream.getvalue()
