"""
Configuration loading for Milestone Keeper.

Settings come from ``config/api_config.yaml``; environment variables (and a
``.env`` file) override the ``github`` section.
"""

import os
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/api_config.yaml"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0

_TRUTHY = ("1", "true", "yes", "on")


class ConfigurationError(ValueError):
    """Raised when a run cannot be configured (missing token, bad repository)."""


@dataclass(frozen=True)
class GitHubSettings:
    """Connection settings for the GitHub REST API."""
    token: Optional[str]
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    repository: Optional[str] = None
    debug_only: bool = False


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load the YAML configuration file."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}
    return config


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


def get_github_settings(config: Optional[Dict[str, Any]] = None) -> GitHubSettings:
    """
    Build GitHub settings from the config file's ``github`` section and the environment.

    Args:
        config: Parsed configuration; loaded from disk when omitted

    Returns:
        GitHubSettings with environment overrides applied
    """
    if config is None:
        config = load_config()
    github_config = config.get('github', {}) or {}

    token = os.getenv("GITHUB_TOKEN") or os.getenv("REPO_TOKEN")
    api_url = os.getenv("GITHUB_API_URL") or github_config.get('api_url', DEFAULT_API_URL)
    timeout = float(github_config.get('timeout', DEFAULT_TIMEOUT))

    return GitHubSettings(
        token=token,
        api_url=api_url.rstrip("/"),
        timeout=timeout,
        repository=os.getenv("GITHUB_REPOSITORY"),
        debug_only=_env_flag("DEBUG_ONLY", bool(github_config.get('debug_only', False))),
    )


def parse_repository(repository: Optional[str]) -> Tuple[str, str]:
    """
    Split an ``owner/repo`` string.

    Raises:
        ConfigurationError: If the value is missing or not of the form owner/repo
    """
    if not repository:
        raise ConfigurationError("GITHUB_REPOSITORY is not set and no owner/repo was given")
    parts = repository.strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError(f"Invalid repository '{repository}', expected 'owner/repo'")
    return parts[0], parts[1]


def resolve_repository(
    owner: Optional[str],
    repo: Optional[str],
    settings: GitHubSettings
) -> Tuple[str, str]:
    """Explicit owner/repo win; otherwise fall back to GITHUB_REPOSITORY."""
    if owner and repo:
        return owner, repo
    default_owner, default_repo = parse_repository(settings.repository)
    return owner or default_owner, repo or default_repo


def require_token(settings: GitHubSettings) -> str:
    if not settings.token:
        raise ConfigurationError("GITHUB_TOKEN (or REPO_TOKEN) environment variable is not set")
    return settings.token
