"""
test_cli.py - Tests for the command-line interface
"""

import base64
import glob
import json
import os

import httpx
import pytest
import yaml
from click.testing import CliRunner

from guardian.cli import cli
from guardian.sources import GitHubClient


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace(temp_dir, monkeypatch):
    """Run commands from an empty directory with no user config."""
    monkeypatch.chdir(temp_dir)
    monkeypatch.setenv("HOME", temp_dir)
    return temp_dir


@pytest.fixture
def github(monkeypatch, workspace, insecure_workflow_content):
    """Route the CLI's GitHub client to an in-memory organization."""
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    monkeypatch.setenv("GITHUB_ORGANIZATION", "acme")

    encoded = base64.b64encode(insecure_workflow_content.encode("utf-8")).decode("ascii")
    routes = {
        "/orgs/acme/repos": [
            {"name": "api", "private": True},
            {"name": "web", "private": False},
        ],
        "/repos/acme/api": {
            "name": "api",
            "description": "Public API service",
            "private": True,
            "default_branch": "main",
            "created_at": "2023-04-01T10:00:00Z",
            "updated_at": "2026-01-15T08:30:00Z",
        },
        "/repos/acme/api/contents/.github/workflows": [
            {"name": "ci.yml", "path": ".github/workflows/ci.yml", "type": "file"},
        ],
        "/repos/acme/api/contents/.github/workflows/ci.yml": {
            "name": "ci.yml",
            "path": ".github/workflows/ci.yml",
            "encoding": "base64",
            "content": encoded,
        },
    }

    def handler(request):
        payload = routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=payload)

    def build_client(settings):
        return GitHubClient(token=settings.github_token, transport=httpx.MockTransport(handler))

    monkeypatch.setattr("guardian.cli._build_client", build_client)
    return workspace


def test_cli_version(cli_runner):
    """Test getting the version with --version."""
    from guardian.utils.version import __version__

    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_help(cli_runner):
    """Test getting help with --help."""
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("scan", "scan-remote", "scan-all", "repos", "compliance", "menu", "rules"):
        assert command in result.output


def test_cli_scan_help(cli_runner):
    """Test getting help for scan command."""
    result = cli_runner.invoke(cli, ["scan", "--help"])
    assert result.exit_code == 0
    assert "Audit the workflows of a local repository" in result.output


def test_cli_scan_nonexistent_repo(cli_runner, workspace):
    """Test scanning a non-existent repository."""
    result = cli_runner.invoke(cli, ["scan", os.path.join(workspace, "nonexistent")])
    assert result.exit_code == 1
    assert "No workflows directory found" in result.output


def test_cli_scan_repo(cli_runner, workspace, mock_repo):
    """Test scanning a repository with workflows."""
    result = cli_runner.invoke(cli, ["scan", mock_repo])
    assert result.exit_code == 1
    assert "Scan Summary" in result.output
    assert "Total files scanned: 2" in result.output
    assert "Total issues found: 4" in result.output


def test_cli_scan_clean_repo(cli_runner, workspace, clean_repo):
    """Test a clean repository exits successfully."""
    result = cli_runner.invoke(cli, ["scan", clean_repo])
    assert result.exit_code == 0
    assert "No issues found." in result.output


def test_cli_scan_json(cli_runner, workspace, mock_repo):
    """Test scanning with JSON output."""
    result = cli_runner.invoke(cli, ["scan", mock_repo, "--output", "json"])
    assert result.exit_code == 1

    data = json.loads(result.output)
    assert data["success"] is True
    assert len(data["findings"]) == 4


def test_cli_scan_markdown(cli_runner, workspace, mock_repo):
    """Test scanning with Markdown output."""
    result = cli_runner.invoke(cli, ["scan", mock_repo, "--output", "markdown"])
    assert result.exit_code == 1
    assert f"# Workflow Security Scan Report for {mock_repo}" in result.output
    assert "## Critical Issues" in result.output


def test_cli_scan_disable(cli_runner, workspace, mock_repo):
    """Test disabling rules from the command line."""
    result = cli_runner.invoke(
        cli,
        [
            "scan",
            mock_repo,
            "--output",
            "json",
            "--disable",
            "no-plaintext-secrets",
            "--disable",
            "script-injection",
        ],
    )

    data = json.loads(result.output)
    assert [f["rule_id"] for f in data["findings"]] == [
        "pin-actions-versions",
        "third-party-action-review",
    ]


def test_cli_scan_output_file(cli_runner, workspace, mock_repo):
    """Test writing scan results to a file."""
    output_file = os.path.join(workspace, "out", "report.md")
    result = cli_runner.invoke(
        cli, ["scan", mock_repo, "--output", "markdown", "--output-file", output_file]
    )

    assert result.exit_code == 1
    assert f"Results written to {output_file}" in result.output
    assert "Scan complete: 4 issues found (CRITICAL: 1, HIGH: 2, MEDIUM: 1, LOW: 0)" in result.output
    with open(output_file, encoding="utf-8") as f:
        assert "Generated:" in f.read()


def test_cli_scan_with_config(cli_runner, workspace, mock_repo):
    """Test rule settings from a config file."""
    config_path = os.path.join(workspace, "custom.yml")
    with open(config_path, "w") as f:
        yaml.dump({"rules": {"third-party-action-review": False}}, f)

    result = cli_runner.invoke(
        cli, ["scan", mock_repo, "--config", config_path, "--output", "json"]
    )

    data = json.loads(result.output)
    assert "third-party-action-review" not in [f["rule_id"] for f in data["findings"]]


def test_cli_rules(cli_runner, workspace):
    """Test listing rules."""
    result = cli_runner.invoke(cli, ["rules"])
    assert result.exit_code == 0
    assert "no-plaintext-secrets" in result.output
    assert "script-injection" in result.output

    result = cli_runner.invoke(cli, ["rules", "--format", "json"])
    assert result.exit_code == 0
    assert [rule["id"] for rule in json.loads(result.output)][0] == "no-plaintext-secrets"


def _write_clashing_custom_rule(directory):
    with open(os.path.join(directory, "guardian.yml"), "w") as f:
        yaml.dump(
            {
                "custom_rules": [
                    {
                        "id": "script-injection",
                        "description": "d",
                        "pattern": "p",
                        "severity": "low",
                        "remediation": "r",
                    }
                ]
            },
            f,
        )


def test_cli_rules_custom_rule_reuses_builtin_id(cli_runner, workspace):
    """Test a custom rule taking a built-in id is reported, not raised."""
    _write_clashing_custom_rule(workspace)

    result = cli_runner.invoke(cli, ["rules"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "already used by a built-in rule" in result.output


@pytest.mark.parametrize("args", [["scan-remote", "api"], ["scan-all"], ["menu"]])
def test_cli_remote_commands_report_rule_errors(cli_runner, github, args):
    """Test remote commands stop cleanly on invalid rule configuration."""
    _write_clashing_custom_rule(github)

    result = cli_runner.invoke(cli, args, input="5\n")

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "already used by a built-in rule" in result.output


def test_cli_config_generate(cli_runner, workspace):
    """Test generating the default config."""
    output = os.path.join(workspace, "guardian.yml")
    result = cli_runner.invoke(cli, ["config", "--generate", "--output", output])

    assert result.exit_code == 0
    assert os.path.exists(output)

    result = cli_runner.invoke(cli, ["config", "--config", output])
    assert result.exit_code == 0
    assert "Config loaded and valid" in result.output


def test_cli_config_invalid(cli_runner, workspace):
    """Test validation of an invalid config file."""
    config_path = os.path.join(workspace, "bad.yml")
    with open(config_path, "w") as f:
        yaml.dump({"severity_overrides": {"script-injection": "urgent"}}, f)

    result = cli_runner.invoke(cli, ["config", "--config", config_path])
    assert result.exit_code == 1
    assert "Config validation failed" in result.output


def test_cli_repos_requires_token(cli_runner, workspace):
    """Test remote commands need a GitHub token."""
    result = cli_runner.invoke(cli, ["repos"])
    assert result.exit_code == 1
    assert "GITHUB_TOKEN is not set" in result.output


def test_cli_repos_requires_organization(cli_runner, workspace, monkeypatch):
    """Test remote commands need an organization."""
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    result = cli_runner.invoke(cli, ["repos"])
    assert result.exit_code == 1
    assert "GITHUB_ORGANIZATION is not set" in result.output


def test_cli_repos(cli_runner, github):
    """Test listing organization repositories."""
    result = cli_runner.invoke(cli, ["repos"])

    assert result.exit_code == 0
    assert "Repositories in organization acme:" in result.output
    assert "1. api (Private)" in result.output
    assert "2. web (Public)" in result.output
    assert "Total: 2 repositories" in result.output


def test_cli_repos_api_error(cli_runner, github):
    """Test API failures are reported."""
    result = cli_runner.invoke(cli, ["repos", "--org", "nobody"])
    assert result.exit_code == 1
    assert "Error listing repositories" in result.output


def test_cli_scan_remote(cli_runner, github):
    """Test scanning a GitHub repository saves a Markdown report."""
    result = cli_runner.invoke(cli, ["scan-remote", "api"])

    assert result.exit_code == 1
    assert "Scan complete!" in result.output
    assert "Found 4 security issues in workflows" in result.output

    reports = glob.glob(os.path.join(github, "reports", "api-workflow-scan-*.md"))
    assert len(reports) == 1
    with open(reports[0], encoding="utf-8") as f:
        report = f.read()
    assert report.startswith("# Workflow Security Scan Report for api")
    assert "`ci.yml` (line 8)" in report


def test_cli_scan_all(cli_runner, github):
    """Test scanning every repository isolates failures."""
    result = cli_runner.invoke(cli, ["scan-all"])

    assert result.exit_code == 1
    assert "1 repositories could not be scanned: web" in result.output

    web = glob.glob(os.path.join(github, "reports", "web-workflow-scan-*.md"))
    assert len(web) == 1
    with open(web[0], encoding="utf-8") as f:
        assert "## Error" in f.read()
    assert glob.glob(os.path.join(github, "reports", "api-workflow-scan-*.md"))


def test_cli_compliance(cli_runner, github):
    """Test generating a compliance report."""
    result = cli_runner.invoke(cli, ["compliance", "api"])

    assert result.exit_code == 0
    assert "No branch protection rules found for api (main)." in result.output

    reports = glob.glob(os.path.join(github, "reports", "api-compliance-report-*.md"))
    assert len(reports) == 1
    with open(reports[0], encoding="utf-8") as f:
        assert "- No branch protection rules configured" in f.read()


def test_cli_menu(cli_runner, github):
    """Test the interactive menu loop."""
    result = cli_runner.invoke(cli, ["menu"], input="9\n1\n2\n\n5\n")

    assert result.exit_code == 0
    assert "=== Repository Guardian CLI ===" in result.output
    assert "Invalid option. Please try again." in result.output
    assert "1. api (Private)" in result.output
    assert "Error: Repository name is required." in result.output
    assert "Exiting Repository Guardian CLI. Goodbye!" in result.output


def test_cli_menu_scan_and_compliance(cli_runner, github):
    """Test menu actions that write reports."""
    result = cli_runner.invoke(cli, ["menu"], input="2\napi\n4\napi\n5\n")

    assert result.exit_code == 0
    assert glob.glob(os.path.join(github, "reports", "api-workflow-scan-*.md"))
    assert glob.glob(os.path.join(github, "reports", "api-compliance-report-*.md"))


def test_cli_menu_keeps_running_after_errors(cli_runner, github):
    """Test a failing action does not end the menu."""
    result = cli_runner.invoke(cli, ["menu"], input="4\nmissing\n5\n")

    assert result.exit_code == 0
    assert "Error generating compliance report" in result.output
    assert "Goodbye!" in result.output
