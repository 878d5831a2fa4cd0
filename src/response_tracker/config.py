"""Configuration parsing and validation for the GitHub response time tracker."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import AuthenticationError, ConfigurationError

DEFAULT_CONFIG_PATH = "./config.json"
DEFAULT_RESPONSE_PAGE_SIZE = 10
DEFAULT_PR_BATCH_SIZE = 5


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the response time tracker."""

    organization: str
    repositories: Tuple[str, ...]
    token: str
    exclude_teams: Tuple[str, ...] = ()
    exclude_bots: Tuple[str, ...] = ()
    repository_teams: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    include_org_members: bool = True
    response_page_size: int = DEFAULT_RESPONSE_PAGE_SIZE
    pr_batch_size: int = DEFAULT_PR_BATCH_SIZE
    slack_webhook_url: Optional[str] = None
    slack_bot_token: Optional[str] = None
    slack_channel: Optional[str] = None


def _read_config_file(config_path: str) -> Dict[str, Any]:
    path = Path(config_path)
    if not path.is_file():
        raise ConfigurationError(
            f"Configuration file not found at {config_path}. "
            "Create a config.json file based on config.example.json."
        )

    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Could not read configuration file {config_path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a JSON object.")

    return payload


def _string_list(payload: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = payload.get(key) or []
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        raise ConfigurationError(f"Invalid value for '{key}': expected a list of strings.")
    return tuple(entry.strip() for entry in value if entry.strip())


def _positive_int(payload: Dict[str, Any], key: str, default: int) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"Invalid value for '{key}': expected an integer greater than 0.")
    return value


def _repository_teams(payload: Dict[str, Any]) -> Dict[str, Tuple[str, ...]]:
    value = payload.get("repositoryTeams") or {}
    if not isinstance(value, dict):
        raise ConfigurationError(
            "Invalid value for 'repositoryTeams': expected an object mapping repositories to team slugs."
        )

    mapping: Dict[str, Tuple[str, ...]] = {}
    for repository, teams in value.items():
        if not isinstance(teams, list) or not all(isinstance(team, str) for team in teams):
            raise ConfigurationError(
                f"Invalid team list for repository '{repository}' in 'repositoryTeams'."
            )
        mapping[repository] = tuple(team.strip() for team in teams if team.strip())
    return mapping


def _optional_setting(payload: Dict[str, Any], key: str, env_var: str) -> Optional[str]:
    value = payload.get(key) or os.getenv(env_var, "")
    value = str(value).strip()
    return value or None


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Build and validate application configuration.

    Values come from the JSON configuration file; the GitHub token and Slack
    settings may instead be supplied through the environment.

    Args:
        config_path: Path to the JSON configuration file.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the file is missing or a field is invalid.
        AuthenticationError: If no GitHub token is configured.
    """
    payload = _read_config_file(config_path)

    organization = str(payload.get("organization") or "").strip()
    if not organization:
        raise ConfigurationError("Invalid configuration: 'organization' is required.")

    repositories = _string_list(payload, "repositories")
    if not repositories:
        raise ConfigurationError("Invalid configuration: 'repositories' must list at least one repository.")

    include_org_members = payload.get("includeOrgMembers", True)
    if not isinstance(include_org_members, bool):
        raise ConfigurationError("Invalid value for 'includeOrgMembers': expected true or false.")

    token = str(
        payload.get("githubToken") or os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN") or ""
    ).strip()
    if not token:
        raise AuthenticationError(
            "Missing required GitHub token. Set 'githubToken' in the configuration file "
            "or the 'GITHUB_TOKEN' / 'GH_TOKEN' environment variable."
        )

    return Config(
        organization=organization,
        repositories=repositories,
        token=token,
        exclude_teams=_string_list(payload, "excludeTeams"),
        exclude_bots=_string_list(payload, "excludeBots"),
        repository_teams=_repository_teams(payload),
        include_org_members=include_org_members,
        response_page_size=_positive_int(payload, "responsePageSize", DEFAULT_RESPONSE_PAGE_SIZE),
        pr_batch_size=_positive_int(payload, "prBatchSize", DEFAULT_PR_BATCH_SIZE),
        slack_webhook_url=_optional_setting(payload, "slackWebhookUrl", "SLACK_WEBHOOK_URL"),
        slack_bot_token=_optional_setting(payload, "slackBotToken", "SLACK_BOT_TOKEN"),
        slack_channel=_optional_setting(payload, "slackChannel", "SLACK_CHANNEL"),
    )
