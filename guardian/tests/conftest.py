"""
conftest.py - Pytest fixtures for guardian tests
"""

import tempfile
from pathlib import Path

import pytest
from loguru import logger

from guardian.core import Finding, ScanResult

GITHUB_ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_ORGANIZATION",
    "GITHUB_API_URL",
    "GUARDIAN_REPORTS_DIR",
    "DEFAULT_BRANCH",
    "REQUIRED_STATUS_CHECKS",
    "MIN_REVIEWERS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's GitHub settings out of the tests."""
    for name in GITHUB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    yield
    logger.remove()


@pytest.fixture
def temp_dir():
    """Create a temporary directory that is removed after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def sample_workflow_content():
    """Workflow without any security issue."""
    return """name: Sample Workflow

on:
  push:
    branches: [ main ]

jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@8f4b7f84864484a7bf31766abe9204da3cbe65b3
      - name: Run tests
        run: pytest
"""


@pytest.fixture
def insecure_workflow_content():
    """Workflow with one issue for each default rule.

    Line 8: plaintext secret, line 14: branch ref, line 15: third-party
    action, line 17: script injection.
    """
    return """name: Insecure Workflow

on:
  pull_request_target:
    branches: [ main ]

env:
  password: "supersecret123"

jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@main
      - uses: someoneelse/custom-action@v1
      - name: Greet
        run: echo "${{ github.event.issue.title }}"
"""


@pytest.fixture
def sample_workflow_file(temp_dir, sample_workflow_content):
    """Create a sample workflow file in a temporary directory."""
    workflows_dir = Path(temp_dir) / ".github" / "workflows"
    workflows_dir.mkdir(parents=True, exist_ok=True)

    workflow_file = workflows_dir / "sample.yml"
    workflow_file.write_text(sample_workflow_content)

    return str(workflow_file)


@pytest.fixture
def insecure_workflow_file(temp_dir, insecure_workflow_content):
    """Create an insecure workflow file in a temporary directory."""
    workflows_dir = Path(temp_dir) / ".github" / "workflows"
    workflows_dir.mkdir(parents=True, exist_ok=True)

    workflow_file = workflows_dir / "insecure.yml"
    workflow_file.write_text(insecure_workflow_content)

    return str(workflow_file)


@pytest.fixture
def clean_repo(temp_dir, sample_workflow_file):
    """Create a repository whose only workflow is clean."""
    return temp_dir


@pytest.fixture
def mock_repo(temp_dir, sample_workflow_file, insecure_workflow_file):
    """Create a mock repository with workflow files."""
    readme_file = Path(temp_dir) / "README.md"
    readme_file.write_text("# Mock Repository\n\nThis is a mock repository for testing guardian.")

    workflows_dir = Path(temp_dir) / ".github" / "workflows"
    (workflows_dir / "notes.txt").write_text('password: "not-a-workflow"\n')
    (workflows_dir / "templates").mkdir()

    return temp_dir


@pytest.fixture
def mock_findings():
    """Create mock findings for testing reporting functions."""
    return [
        Finding(
            file="deploy.yml",
            line=8,
            rule_id="no-plaintext-secrets",
            severity="critical",
            description="Avoid hardcoded secrets in workflows",
            remediation="Use GitHub Secrets (secrets.*) instead of hardcoded values",
            matched_text='password: "supersecret123"',
        ),
        Finding(
            file="deploy.yml",
            line=14,
            rule_id="pin-actions-versions",
            severity="high",
            description="Pin actions to a specific SHA",
            remediation="Pin actions to a full length commit SHA",
            matched_text="- uses: actions/checkout@main",
        ),
        Finding(
            file="deploy.yml",
            line=15,
            rule_id="third-party-action-review",
            severity="medium",
            description="Review third-party actions",
            remediation="Review third-party actions before using them",
            matched_text="- uses: someoneelse/custom-action@v1",
        ),
    ]


@pytest.fixture
def mock_result(mock_findings):
    """Create a successful scan result holding the mock findings."""
    return ScanResult(
        repository_id="api",
        succeeded=True,
        message=f"Found {len(mock_findings)} security issues in workflows",
        findings=mock_findings,
        files_scanned=2,
    )
