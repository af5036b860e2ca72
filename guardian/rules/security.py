"""
security.py - Default security rules for GitHub Actions workflows

The default rule set is plain data: each entry is a PatternRule, and the
engine evaluates them in the order listed here.
"""

import re
from typing import List

from .base import PatternRule

PLAINTEXT_SECRET_PATTERN = r"""(password|token|key|secret):\s*['"][^'"]+['"]"""

# Mutable refs: branch names, "latest" and purely numeric tags. The lookahead
# stops a SHA that happens to start with digits from matching.
MUTABLE_REF_PATTERN = r"\buses:\s*([^@\s]+)@(?:main|master|latest|\d+(?:\.\d+)*)(?![\w.\-/])"

FIRST_PARTY_PREFIXES = ("actions/", "github/", "./")

THIRD_PARTY_ACTION_PATTERN = (
    r"""\buses:(?!\s*['"]?(?:"""
    + "|".join(re.escape(prefix) for prefix in FIRST_PARTY_PREFIXES)
    + r"""))\s*['"]?[^\s'"#]"""
)

UNTRUSTED_EVENT_DATA = (
    r"event\.issue\.(?:title|body)",
    r"event\.comment\.body",
    r"event\.review\.body",
    r"event\.review_comment\.body",
    r"event\.pull_request\.(?:title|body|head\.ref|head\.label)",
    r"event\.head_commit\.message",
    r"event\.discussion\.(?:title|body)",
    r"head_ref",
)

SCRIPT_INJECTION_PATTERN = (
    r"\$\{\{\s*github\.(?:" + "|".join(UNTRUSTED_EVENT_DATA) + r")\s*\}\}"
)


def default_rules() -> List[PatternRule]:
    """
    Build fresh instances of the default rule set

    Returns:
        Rules in evaluation order
    """
    return [
        PatternRule(
            rule_id="no-plaintext-secrets",
            pattern=PLAINTEXT_SECRET_PATTERN,
            flags=re.IGNORECASE,
            severity="critical",
            description="Avoid hardcoded secrets in workflows",
            remediation="Use GitHub Secrets (secrets.*) instead of hardcoded values",
        ),
        PatternRule(
            rule_id="pin-actions-versions",
            pattern=MUTABLE_REF_PATTERN,
            flags=re.IGNORECASE,
            severity="high",
            description="Pin actions to a specific SHA",
            remediation=(
                "Pin actions to a full length commit SHA instead of using branch names "
                "or version tags"
            ),
        ),
        PatternRule(
            rule_id="third-party-action-review",
            pattern=THIRD_PARTY_ACTION_PATTERN,
            severity="medium",
            description="Review third-party actions",
            remediation=(
                "Review third-party actions before using them or consider creating "
                "internal actions"
            ),
        ),
        PatternRule(
            rule_id="script-injection",
            pattern=SCRIPT_INJECTION_PATTERN,
            severity="high",
            description="Potential script injection via user inputs",
            remediation=(
                "Sanitize user inputs before using them in scripts, e.g. pass them "
                "through an environment variable instead of interpolating them"
            ),
        ),
    ]


DEFAULT_RULE_IDS = [rule.rule_id for rule in default_rules()]
