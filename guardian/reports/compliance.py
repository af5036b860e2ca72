"""
compliance.py - Repository compliance reporting for guardian

Builds a read-only Markdown compliance report from the repository and branch
protection payloads of the GitHub API, and checks the protection settings
against the configured policy.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..core import Settings


@dataclass
class CompliancePolicy:
    """Branch protection expected on every repository"""

    default_branch: str = "main"
    required_status_checks: List[str] = field(default_factory=lambda: ["tests", "linting"])
    min_reviewers: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompliancePolicy":
        return cls(
            default_branch=settings.default_branch,
            required_status_checks=list(settings.required_status_checks),
            min_reviewers=settings.min_reviewers,
        )


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def _enabled(section: Optional[Dict[str, Any]]) -> bool:
    return bool(section and section.get("enabled"))


def _format_date(value: Optional[str]) -> str:
    if not value:
        return "Unknown"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


def check_policy(
    protection: Optional[Dict[str, Any]], policy: CompliancePolicy
) -> List[Tuple[str, bool, str]]:
    """
    Compare branch protection settings with a policy

    Args:
        protection: Branch protection payload, or None when unprotected
        policy: Expected settings

    Returns:
        (check name, passed, detail) tuples in a fixed order
    """
    checks: List[Tuple[str, bool, str]] = []
    protection = protection or {}

    checks.append(("Branch protection enabled", bool(protection), ""))

    status_checks = protection.get("required_status_checks") or {}
    contexts = status_checks.get("contexts") or []
    missing = [check for check in policy.required_status_checks if check not in contexts]
    checks.append(
        (
            f"Required status checks ({', '.join(policy.required_status_checks) or 'none'})",
            not missing,
            f"missing: {', '.join(missing)}" if missing else "",
        )
    )

    reviews = protection.get("required_pull_request_reviews") or {}
    review_count = int(reviews.get("required_approving_review_count") or 0)
    checks.append(
        (
            f"Approving reviews >= {policy.min_reviewers}",
            review_count >= policy.min_reviewers,
            f"configured: {review_count}",
        )
    )

    checks.append(("Admins enforced", _enabled(protection.get("enforce_admins")), ""))
    checks.append(
        ("Force pushes disabled", not _enabled(protection.get("allow_force_pushes")), "")
    )
    checks.append(("Deletions disabled", not _enabled(protection.get("allow_deletions")), ""))

    return checks


def format_branch_protection(branch: str, protection: Optional[Dict[str, Any]]) -> str:
    """Format the branch protection section"""
    section = "## Branch Protection\n"

    if not protection:
        return section + "- No branch protection rules configured\n"

    section += f"- Branch: {branch}\n"

    status_checks = protection.get("required_status_checks")
    if status_checks:
        strict = "Strict" if status_checks.get("strict") else "Not Strict"
        section += f"- Required Status Checks: {strict}\n"
        section += f"  - Contexts: {', '.join(status_checks.get('contexts') or []) or 'None'}\n"
    else:
        section += "- Required Status Checks: Not enabled\n"

    reviews = protection.get("required_pull_request_reviews")
    if reviews:
        section += "- Required Pull Request Reviews:\n"
        section += (
            "  - Required Approving Review Count: "
            f"{reviews.get('required_approving_review_count') or 'None'}\n"
        )
        section += f"  - Dismiss Stale Reviews: {_yes_no(reviews.get('dismiss_stale_reviews'))}\n"
        section += (
            "  - Require Code Owner Reviews: "
            f"{_yes_no(reviews.get('require_code_owner_reviews'))}\n"
        )
    else:
        section += "- Required Pull Request Reviews: Not enabled\n"

    section += f"- Enforce Admins: {_yes_no(_enabled(protection.get('enforce_admins')))}\n"
    section += f"- Allow Force Pushes: {_yes_no(_enabled(protection.get('allow_force_pushes')))}\n"
    section += f"- Allow Deletions: {_yes_no(_enabled(protection.get('allow_deletions')))}\n"

    return section


def generate_compliance_report(
    repository: Dict[str, Any],
    protection: Optional[Dict[str, Any]],
    policy: CompliancePolicy,
    generated_at: datetime,
) -> str:
    """
    Generate a Markdown compliance report for a repository

    Args:
        repository: Repository payload from the GitHub API
        protection: Protection of the default branch, or None
        policy: Expected branch protection settings
        generated_at: Timestamp printed at the end of the report

    Returns:
        Markdown report as a string
    """
    name = repository.get("name", "unknown")
    branch = repository.get("default_branch") or policy.default_branch

    report = f"# Compliance Report for {name}\n\n"

    report += "## Repository Information\n"
    report += f"- Name: {name}\n"
    report += f"- Description: {repository.get('description') or 'None'}\n"
    report += f"- Private: {_yes_no(repository.get('private'))}\n"
    report += f"- Default Branch: {branch}\n"
    report += f"- Created: {_format_date(repository.get('created_at'))}\n"
    report += f"- Last Updated: {_format_date(repository.get('updated_at'))}\n\n"

    report += format_branch_protection(branch, protection)

    analysis = repository.get("security_and_analysis") or {}
    advanced = (analysis.get("advanced_security") or {}).get("status") == "enabled"
    secret_scanning = (analysis.get("secret_scanning") or {}).get("status") == "enabled"

    report += "\n## Security Features\n"
    report += f"- Advanced Security: {'Enabled' if advanced else 'Not Enabled'}\n"
    report += f"- Secret Scanning: {'Enabled' if secret_scanning else 'Not Enabled'}\n"

    checks = check_policy(protection, policy)
    report += "\n## Policy Checks\n"
    for check_name, passed, detail in checks:
        line = f"- {check_name}: {'PASS' if passed else 'FAIL'}"
        if detail and not passed:
            line += f" ({detail})"
        report += line + "\n"

    passed_count = sum(1 for _, passed, _ in checks if passed)
    report += f"\nResult: {passed_count} of {len(checks)} checks passed\n"

    report += f"\nGenerated by Repository Guardian on {generated_at.isoformat()}\n"

    return report
