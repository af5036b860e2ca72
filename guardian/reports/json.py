"""
json.py - JSON reporting for guardian

This module formats scan results as JSON, suitable for machine processing or
forwarding to other tools.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from ..core import ScanResult
from ..utils.version import __version__


def result_to_dict(result: ScanResult) -> Dict[str, Any]:
    """
    Convert a ScanResult to a dictionary suitable for JSON serialization

    Args:
        result: Result to convert

    Returns:
        Dictionary representation of the result
    """
    return {
        "repository": result.repository_id,
        "success": result.succeeded,
        "message": result.message,
        "files_scanned": result.files_scanned,
        "files_skipped": result.files_skipped,
        "aborted": result.aborted,
        "severity_counts": result.severity_counts(),
        "findings": [finding.to_dict() for finding in result.findings],
    }


def generate_json_report(result: ScanResult, generated_at: Optional[datetime] = None) -> str:
    """
    Generate a JSON report of a scan result

    Args:
        result: Scan result
        generated_at: Timestamp to include; omitted when None

    Returns:
        JSON string representation of the report
    """
    report: Dict[str, Any] = {"guardian_version": __version__}

    if generated_at is not None:
        report["generated_at"] = generated_at.isoformat()

    report.update(result_to_dict(result))

    return json.dumps(report, indent=2)
