"""
config.py - Configuration management for guardian

This module handles loading, validating, and managing the YAML configuration
file and the environment settings used by the remote commands.
"""

import copy
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, cast

import yaml
from dotenv import find_dotenv, load_dotenv

from .scanner import SEVERITY_LEVELS

DEFAULT_CONFIG: Dict[str, Any] = {
    "rules": {
        "no-plaintext-secrets": True,
        "pin-actions-versions": True,
        "third-party-action-review": True,
        "script-injection": True,
    },
    "severity_overrides": {},
    "custom_rules": [],
    "report": {
        "output_dir": "reports",
        "format": "markdown",
    },
    "github": {
        "api_url": "https://api.github.com",
        "timeout": 30,
        "concurrency": 4,
    },
    "compliance": {
        "default_branch": "main",
        "required_status_checks": ["tests", "linting"],
        "min_reviewers": 2,
    },
}

REPORT_FORMATS = ["markdown", "json", "text"]

CUSTOM_RULE_KEYS = {"id", "description", "pattern", "severity", "remediation"}


class ConfigurationError(Exception):
    """Exception raised for configuration errors"""

    pass


def get_config_paths() -> List[str]:
    """
    Get list of possible config file locations in priority order

    Returns:
        List of config file paths to check
    """
    paths = []

    for name in ("guardian.yml", "guardian.yaml", ".guardian.yml", ".guardian.yaml"):
        paths.append(os.path.join(os.getcwd(), name))

    home_dir = os.path.expanduser("~")
    paths.append(os.path.join(home_dir, ".config", "guardian", "config.yml"))
    paths.append(os.path.join(home_dir, ".config", "guardian", "config.yaml"))

    return paths


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two config dictionaries

    Args:
        base: Base configuration
        override: Configuration to override base

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, override_value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(override_value, dict):
            result[key] = merge_configs(result[key], override_value)
        else:
            result[key] = override_value

    return result


def _validate_rules(config: Dict[str, Any]) -> None:
    """Validate the rule enable/disable switches"""

    if "rules" in config:
        if not isinstance(config["rules"], dict):
            raise ConfigurationError("'rules' must be a dictionary")

        for rule_id, enabled in config["rules"].items():
            if not isinstance(enabled, bool):
                raise ConfigurationError(f"'rules.{rule_id}' must be a boolean (true/false)")


def _validate_severity_overrides(config: Dict[str, Any]) -> None:
    """Validate severity overrides, normalizing values to lowercase"""

    if "severity_overrides" in config:
        if not isinstance(config["severity_overrides"], dict):
            raise ConfigurationError("'severity_overrides' must be a dictionary")

        for rule_id, severity in list(config["severity_overrides"].items()):
            value = str(severity).lower()
            if value not in SEVERITY_LEVELS:
                valid = ", ".join(SEVERITY_LEVELS)
                raise ConfigurationError(
                    f"Invalid severity '{severity}' for rule '{rule_id}'. Must be one of: {valid}"
                )
            config["severity_overrides"][rule_id] = value


def _validate_custom_rules(config: Dict[str, Any]) -> None:
    """Validate custom pattern rule definitions"""

    if "custom_rules" not in config:
        return

    if not isinstance(config["custom_rules"], list):
        raise ConfigurationError("'custom_rules' must be a list")

    seen = set()
    for index, rule in enumerate(config["custom_rules"]):
        if not isinstance(rule, dict):
            raise ConfigurationError(f"'custom_rules[{index}]' must be a dictionary")

        missing = CUSTOM_RULE_KEYS - set(rule)
        if missing:
            raise ConfigurationError(
                f"'custom_rules[{index}]' is missing: {', '.join(sorted(missing))}"
            )

        if rule["id"] in DEFAULT_CONFIG["rules"]:
            raise ConfigurationError(
                f"Custom rule id '{rule['id']}' is already used by a built-in rule"
            )
        if rule["id"] in seen:
            raise ConfigurationError(f"Duplicate custom rule id '{rule['id']}'")
        seen.add(rule["id"])

        if str(rule["severity"]).lower() not in SEVERITY_LEVELS:
            raise ConfigurationError(
                f"Invalid severity '{rule['severity']}' for custom rule '{rule['id']}'"
            )

        try:
            re.compile(str(rule["pattern"]))
        except re.error as e:
            raise ConfigurationError(f"Invalid pattern for custom rule '{rule['id']}': {e}")

        if "ignore_case" in rule and not isinstance(rule["ignore_case"], bool):
            raise ConfigurationError(f"'custom_rules[{index}].ignore_case' must be a boolean")


def _validate_sections(config: Dict[str, Any]) -> None:
    """Validate the report, github and compliance sections"""

    for section in ("report", "github", "compliance"):
        if section in config and not isinstance(config[section], dict):
            raise ConfigurationError(f"'{section}' must be a dictionary")
        for key in config.get(section, {}):
            if key not in DEFAULT_CONFIG[section]:
                raise ConfigurationError(f"Unknown configuration option '{section}.{key}'")

    report = config.get("report", {})
    if "format" in report and report["format"] not in REPORT_FORMATS:
        raise ConfigurationError(
            f"'report.format' must be one of: {', '.join(REPORT_FORMATS)}"
        )

    github = config.get("github", {})
    for key in ("timeout", "concurrency"):
        if key in github:
            value = github[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"'github.{key}' must be a positive number")

    compliance = config.get("compliance", {})
    if "required_status_checks" in compliance and not isinstance(
        compliance["required_status_checks"], list
    ):
        raise ConfigurationError("'compliance.required_status_checks' must be a list")
    if "min_reviewers" in compliance:
        value = compliance["min_reviewers"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError("'compliance.min_reviewers' must be a non-negative integer")


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration structure and values"""

    for key in config.keys():
        if key not in DEFAULT_CONFIG:
            raise ConfigurationError(f"Unknown configuration option '{key}'")

    _validate_rules(config)
    _validate_severity_overrides(config)
    _validate_custom_rules(config)
    _validate_sections(config)


def _read_config_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        user_config = yaml.safe_load(f)

    if user_config is None:
        return {}
    if not isinstance(user_config, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return user_config


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or use defaults

    Args:
        config_path: Path to configuration file, or None to auto-detect

    Returns:
        Loaded configuration dictionary

    Raises:
        ConfigurationError: If configuration file is invalid
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        candidates = [config_path]
    else:
        candidates = [path for path in get_config_paths() if os.path.exists(path)][:1]

    for path in candidates:
        try:
            user_config = _read_config_file(path)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML configuration: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration: {e}")

        validate_config(user_config)
        config = merge_configs(config, user_config)

    return config


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to file

    Raises:
        ConfigurationError: If configuration cannot be saved
    """
    try:
        os.makedirs(os.path.dirname(os.path.abspath(config_path)), exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigurationError(f"Error saving configuration: {e}")


def generate_default_config(output_path: Optional[str] = None) -> str:
    """
    Generate default configuration YAML

    Args:
        output_path: Path to save default configuration to, or None to return as string

    Returns:
        Default configuration YAML

    Raises:
        ConfigurationError: If configuration cannot be saved
    """
    default_config_yaml = cast(
        str,
        yaml.safe_dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False),
    )

    if output_path:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)

            with open(output_path, "w", encoding="utf-8") as f:
                f.write(default_config_yaml)
        except OSError as e:
            raise ConfigurationError(f"Error saving default configuration: {e}")

    return default_config_yaml


def disable_rules(config: Dict[str, Any], rules: List[str]) -> Dict[str, Any]:
    """
    Disable specific rules in a configuration

    Args:
        config: Configuration dictionary
        rules: List of rule IDs to disable

    Returns:
        Updated configuration dictionary
    """
    updated_config = copy.deepcopy(config)
    switches = updated_config.setdefault("rules", {})

    for rule in rules:
        switches[rule] = False

    return updated_config


@dataclass
class Settings:
    """Settings for commands talking to GitHub"""

    github_token: Optional[str] = None
    organization: Optional[str] = None
    api_url: str = "https://api.github.com"
    timeout: float = 30.0
    concurrency: int = 4
    reports_dir: str = "reports"
    default_branch: str = "main"
    required_status_checks: List[str] = field(default_factory=lambda: ["tests", "linting"])
    min_reviewers: int = 2


def load_environment(env_file: Optional[str] = None) -> bool:
    """
    Load a .env file into the process environment

    Variables already set in the environment take precedence.
    """
    path = env_file or find_dotenv(usecwd=True)
    if not path:
        return False
    return load_dotenv(path, override=False)


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def load_settings(
    config: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build settings from the configuration file values and the environment

    Environment variables override file values.

    Args:
        config: Loaded configuration (defaults to DEFAULT_CONFIG)
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigurationError: If an environment value is invalid
    """
    config = config if config is not None else DEFAULT_CONFIG
    environ = environ if environ is not None else os.environ

    github = config.get("github", {})
    compliance = config.get("compliance", {})
    report = config.get("report", {})

    checks_env = environ.get("REQUIRED_STATUS_CHECKS")
    if checks_env:
        required_checks = [check.strip() for check in checks_env.split(",") if check.strip()]
    else:
        required_checks = list(compliance.get("required_status_checks", ["tests", "linting"]))

    return Settings(
        github_token=environ.get("GITHUB_TOKEN") or None,
        organization=environ.get("GITHUB_ORGANIZATION") or None,
        api_url=environ.get("GITHUB_API_URL") or github.get("api_url", "https://api.github.com"),
        timeout=float(github.get("timeout", 30)),
        concurrency=int(github.get("concurrency", 4)),
        reports_dir=environ.get("GUARDIAN_REPORTS_DIR") or report.get("output_dir", "reports"),
        default_branch=environ.get("DEFAULT_BRANCH") or compliance.get("default_branch", "main"),
        required_status_checks=required_checks,
        min_reviewers=_env_int(environ, "MIN_REVIEWERS", int(compliance.get("min_reviewers", 2))),
    )
