"""
cli.py - Command-line interface for guardian

This module provides the command-line interface for the guardian tool:
local workflow scans, scans of repositories hosted on GitHub, repository
compliance reports and an interactive menu driving the same handlers.
"""

import asyncio
import json
import sys
from datetime import datetime
from typing import Any, Coroutine, Dict, List, Optional, Tuple, TypeVar, cast

import click
from loguru import logger

from .core import (
    ConfigurationError,
    ScanResult,
    Settings,
    WorkflowScanner,
    disable_rules,
    generate_default_config,
    load_config,
    load_environment,
    load_settings,
    scan_repository,
)
from .reports import (
    CompliancePolicy,
    generate_compliance_report,
    generate_report,
    print_report,
    report_filename,
    save_report,
)
from .rules import RuleEngine, create_rule_engine
from .sources import GitHubClient, GitHubWorkflowSource, RetrievalError
from .utils.file_handler import has_github_workflows, safe_write_file
from .utils.logs import configure_logging
from .utils.version import __version__

OUTPUT_FORMATS = ["text", "markdown", "json"]

T = TypeVar("T")


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _load_config_or_exit(config: Optional[str]) -> Dict[str, Any]:
    try:
        return load_config(config)
    except ConfigurationError as e:
        click.echo(f"Error loading config file: {e}", err=True)
        sys.exit(1)


def _build_engine_or_exit(config_data: Dict[str, Any]) -> RuleEngine:
    try:
        return create_rule_engine(config_data)
    except ConfigurationError as e:
        click.echo(f"Error loading rules: {e}", err=True)
        sys.exit(1)


def _remote_settings(config: Optional[str], org: Optional[str]) -> Tuple[Settings, Dict[str, Any]]:
    """Load configuration and settings for commands talking to GitHub"""
    config_data = _load_config_or_exit(config)
    try:
        settings = load_settings(config_data)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if org:
        settings.organization = org

    if not settings.github_token:
        click.echo("Error: GITHUB_TOKEN is not set. Please set it in your .env file.", err=True)
        sys.exit(1)

    if not settings.organization:
        click.echo(
            "Error: GITHUB_ORGANIZATION is not set. Please set it in your .env file.", err=True
        )
        sys.exit(1)

    return settings, config_data


def _build_client(settings: Settings) -> GitHubClient:
    return GitHubClient(
        token=settings.github_token,
        base_url=settings.api_url,
        timeout=settings.timeout,
    )


def _summary_line(result: ScanResult) -> str:
    counts = result.severity_counts()
    summary = f"Scan complete: {len(result.findings)} issues found ("
    summary += ", ".join(f"{level.upper()}: {count}" for level, count in counts.items())
    return summary + ")"


async def list_repositories(settings: Settings) -> List[Dict[str, Any]]:
    """List the repositories of the configured organization"""
    organization = cast(str, settings.organization)
    async with _build_client(settings) as client:
        repos = await client.list_repositories(organization)

    click.echo(f"\nRepositories in organization {organization}:")
    for index, repo in enumerate(repos, start=1):
        visibility = "Private" if repo.get("private") else "Public"
        click.echo(f"{index}. {repo.get('name')} ({visibility})")
    click.echo(f"\nTotal: {len(repos)} repositories")

    return repos


def _save_scan_report(
    engine: RuleEngine, result: ScanResult, settings: Settings, now: datetime
) -> str:
    report = engine.render(result, generated_at=now)
    return save_report(
        report,
        settings.reports_dir,
        report_filename(result.repository_id, "workflow-scan", now),
    )


async def scan_remote_repository(
    settings: Settings, engine: RuleEngine, repo: str
) -> Tuple[ScanResult, str]:
    """Scan one GitHub repository and save its Markdown report"""
    click.echo(f"Scanning {repo} for workflow security issues...")

    async with _build_client(settings) as client:
        source = GitHubWorkflowSource(
            client, cast(str, settings.organization), concurrency=settings.concurrency
        )
        result = await WorkflowScanner(source, engine=engine).scan_repository(repo)

    path = _save_scan_report(engine, result, settings, datetime.now())
    click.echo("\nScan complete!")
    click.echo(f"Report saved to {path}")
    return result, path


async def scan_all_repositories(settings: Settings, engine: RuleEngine) -> List[ScanResult]:
    """Scan every repository of the organization, one report per repository"""
    organization = cast(str, settings.organization)
    click.echo(
        f"Scanning all repositories in organization {organization} "
        "for workflow security issues..."
    )

    async with _build_client(settings) as client:
        repos = await client.list_repositories(organization)
        names = [str(repo.get("name")) for repo in repos if repo.get("name")]
        source = GitHubWorkflowSource(client, organization, concurrency=settings.concurrency)
        scanner = WorkflowScanner(source, engine=engine, concurrency=settings.concurrency)
        results = await scanner.scan_repositories(names)

    now = datetime.now()
    for result in results:
        path = _save_scan_report(engine, result, settings, now)
        click.echo(f"Report for {result.repository_id} saved to {path}")

    failed = [result.repository_id for result in results if not result.succeeded]
    if failed:
        click.echo(f"\n{len(failed)} repositories could not be scanned: {', '.join(failed)}")
    else:
        click.echo("\nAll repositories scanned successfully!")

    return results


async def compliance_report(settings: Settings, repo: str) -> str:
    """Generate and save the compliance report of a repository"""
    organization = cast(str, settings.organization)
    policy = CompliancePolicy.from_settings(settings)

    async with _build_client(settings) as client:
        repository = await client.get_repository(organization, repo)
        branch = repository.get("default_branch") or policy.default_branch
        protection = await client.get_branch_protection(organization, repo, branch)

    if protection is None:
        click.echo(f"No branch protection rules found for {repo} ({branch}).")

    now = datetime.now()
    report = generate_compliance_report(repository, protection, policy, generated_at=now)
    path = save_report(
        report, settings.reports_dir, report_filename(repo, "compliance-report", now)
    )
    click.echo(f"Compliance report saved to {path}")
    return path


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Show diagnostic log messages")
@click.option("--env-file", type=click.Path(), help="Path to a .env file to load")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, env_file: Optional[str]) -> None:
    """guardian - GitHub repository and workflow security tool

    Scans GitHub Actions workflows for security issues and reports on
    repository compliance.
    """
    configure_logging(verbose)
    load_environment(env_file)

    if ctx.invoked_subcommand is None:
        click.echo("Use `guardian --help` for available commands.")


@cli.command()
@click.argument("repo_path", type=click.Path())
@click.option("--config", type=click.Path(), help="Path to YAML config file for rule settings")
@click.option("--disable", multiple=True, help="Disable specific rule(s)")
@click.option(
    "--output",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    help="Output format for results",
)
@click.option("--output-file", type=click.Path(), help="Write output to file instead of stdout")
def scan(
    repo_path: str,
    config: Optional[str],
    disable: Tuple[str, ...],
    output: str,
    output_file: Optional[str],
) -> None:
    """Audit the workflows of a local repository (read-only)

    REPO_PATH: Path to the repository root
    """
    config_data = _load_config_or_exit(config)
    if disable:
        config_data = disable_rules(config_data, list(disable))

    engine = _build_engine_or_exit(config_data)

    if output == "text":
        click.echo(f"Scanning repository: {repo_path}")

    if not has_github_workflows(repo_path):
        click.echo(f"No GitHub workflow files found in {repo_path}", err=True)

    result = scan_repository(repo_path, engine=engine)

    if output_file:
        content = generate_report(result, format=output, generated_at=datetime.now())
        try:
            safe_write_file(output_file, content)
        except OSError as e:
            click.echo(f"Error writing {output_file}: {e}", err=True)
            sys.exit(1)
        click.echo(f"Results written to {output_file}")
        click.echo(_summary_line(result))
    else:
        print_report(result, format=output)

    if not result.succeeded or result.findings:
        sys.exit(1)


@cli.command()
@click.option("--org", help="Organization (defaults to GITHUB_ORGANIZATION)")
@click.option("--config", type=click.Path(), help="Path to YAML config file")
def repos(org: Optional[str], config: Optional[str]) -> None:
    """List repositories in the organization"""
    settings, _ = _remote_settings(config, org)
    try:
        _run(list_repositories(settings))
    except RetrievalError as e:
        click.echo(f"Error listing repositories: {e}", err=True)
        sys.exit(1)


@cli.command("scan-remote")
@click.argument("repo")
@click.option("--org", help="Organization (defaults to GITHUB_ORGANIZATION)")
@click.option("--config", type=click.Path(), help="Path to YAML config file")
def scan_remote(repo: str, org: Optional[str], config: Optional[str]) -> None:
    """Scan a GitHub repository for workflow security issues

    REPO: Repository name within the organization
    """
    settings, config_data = _remote_settings(config, org)
    engine = _build_engine_or_exit(config_data)
    try:
        result, _ = _run(scan_remote_repository(settings, engine, repo))
    except OSError as e:
        click.echo(f"Error scanning repository: {e}", err=True)
        sys.exit(1)

    click.echo(result.message)
    if not result.succeeded or result.findings:
        sys.exit(1)


@cli.command("scan-all")
@click.option("--org", help="Organization (defaults to GITHUB_ORGANIZATION)")
@click.option("--config", type=click.Path(), help="Path to YAML config file")
def scan_all(org: Optional[str], config: Optional[str]) -> None:
    """Scan all repositories in the organization for workflow security issues"""
    settings, config_data = _remote_settings(config, org)
    engine = _build_engine_or_exit(config_data)
    try:
        results = _run(scan_all_repositories(settings, engine))
    except (RetrievalError, OSError) as e:
        click.echo(f"Error scanning repositories: {e}", err=True)
        sys.exit(1)

    if any(not result.succeeded or result.findings for result in results):
        sys.exit(1)


@cli.command()
@click.argument("repo")
@click.option("--org", help="Organization (defaults to GITHUB_ORGANIZATION)")
@click.option("--config", type=click.Path(), help="Path to YAML config file")
def compliance(repo: str, org: Optional[str], config: Optional[str]) -> None:
    """Generate a compliance report for a repository

    REPO: Repository name within the organization
    """
    settings, _ = _remote_settings(config, org)
    try:
        _run(compliance_report(settings, repo))
    except (RetrievalError, OSError) as e:
        click.echo(f"Error generating compliance report: {e}", err=True)
        sys.exit(1)


MENU = [
    "1. List repositories in organization",
    "2. Scan repository for workflow security issues",
    "3. Scan all repositories for workflow security issues",
    "4. Generate compliance report",
    "5. Exit",
]


def _display_menu() -> None:
    click.echo("\n=== Repository Guardian CLI ===")
    for line in MENU:
        click.echo(line)
    click.echo("===============================\n")


def _prompt_repository() -> Optional[str]:
    name = cast(str, click.prompt("Enter repository name", default="", show_default=False))
    if not name.strip():
        click.echo("Error: Repository name is required.", err=True)
        return None
    return name.strip()


def _menu_action(coro: Coroutine[Any, Any, Any], error_prefix: str) -> None:
    try:
        _run(coro)
    except (RetrievalError, OSError) as e:
        logger.debug("menu action failed: {!r}", e)
        click.echo(f"{error_prefix}: {e}", err=True)


@cli.command()
@click.option("--org", help="Organization (defaults to GITHUB_ORGANIZATION)")
@click.option("--config", type=click.Path(), help="Path to YAML config file")
def menu(org: Optional[str], config: Optional[str]) -> None:
    """Interactive menu for organization scans and reports"""
    settings, config_data = _remote_settings(config, org)
    engine = _build_engine_or_exit(config_data)

    click.echo("Repository Guardian CLI")
    click.echo(f"Organization: {settings.organization}")

    while True:
        _display_menu()
        option = cast(
            str, click.prompt("Select an option (1-5)", default="", show_default=False)
        ).strip()

        if option == "1":
            _menu_action(list_repositories(settings), "Error listing repositories")
        elif option == "2":
            repo = _prompt_repository()
            if repo:
                _menu_action(
                    scan_remote_repository(settings, engine, repo), "Error scanning repository"
                )
        elif option == "3":
            _menu_action(scan_all_repositories(settings, engine), "Error scanning repositories")
        elif option == "4":
            repo = _prompt_repository()
            if repo:
                _menu_action(
                    compliance_report(settings, repo), "Error generating compliance report"
                )
        elif option == "5":
            click.echo("Exiting Repository Guardian CLI. Goodbye!")
            return
        else:
            click.echo("Invalid option. Please try again.")


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to YAML config file to validate")
@click.option("--generate", is_flag=True, help="Generate a default config file")
@click.option("--output", type=click.Path(), help="Output path for generated config")
def config(config: Optional[str], generate: bool, output: Optional[str]) -> None:
    """View or validate current config"""
    if generate:
        config_str = generate_default_config(output_path=output)

        if output:
            click.echo(f"Default config written to {output}")
        else:
            click.echo(config_str)
        return

    try:
        config_data = load_config(config)
        rule_engine = create_rule_engine(config_data)
    except ConfigurationError as e:
        click.echo(f"❌ Config validation failed: {e}", err=True)
        sys.exit(1)

    click.echo("✅ Config loaded and valid.")
    for rule_info in rule_engine.list_rules():
        click.echo(
            f" - {rule_info['id']}: "
            f"{'enabled' if rule_info['enabled'] else 'disabled'} "
            f"[{rule_info['severity']}]"
        )


@cli.command()
@click.option(
    "--format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.option("--config", type=click.Path(), help="Path to YAML config file")
def rules(format: str, config: Optional[str]) -> None:
    """List all available rules and what they do"""
    config_data = _load_config_or_exit(config)
    rules_list = _build_engine_or_exit(config_data).list_rules()

    if format == "json":
        click.echo(json.dumps(rules_list, indent=2))
        return

    click.echo("🔍 guardian applies the following rules, in order:")

    severity_colors = {
        "low": "blue",
        "medium": "yellow",
        "high": "red",
        "critical": "bright_red",
    }

    for rule in rules_list:
        enabled_text = "✅ enabled" if rule["enabled"] else "❌ disabled"
        severity_text = click.style(
            f"[{rule['severity']}]", fg=severity_colors.get(rule["severity"], "white")
        )
        click.echo(f" - {rule['id']}: {enabled_text} {severity_text}")
        click.echo(f"   {rule['description']}")


if __name__ == "__main__":
    cli()
