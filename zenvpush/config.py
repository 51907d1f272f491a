"""
Push Configuration — Build run settings from environment variables.

Settings are read once, at the edge (CLI), and handed to the orchestrator.
Nothing in the pipeline reads ``os.environ`` itself.

Environment:
    GITHUB_TOKEN           (required) token with repo/secrets write access
    ZENVPUSH_API_URL       API base URL (default https://api.github.com)
    ZENVPUSH_REPOSITORY    owner/name, skips origin remote detection
    ZENVPUSH_PACING_MS     delay after each secret (default 100)
    ZENVPUSH_TIMEOUT       HTTP timeout in seconds (default 15)
    ZENVPUSH_MAX_ATTEMPTS  attempts per secret for transient failures (default 3)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigError
from .github import DEFAULT_API_URL
from .models import Credential, RepositoryIdentity

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"
TOKEN_GUIDANCE = (
    f"{TOKEN_ENV_VAR} environment variable not set. Please set it with the "
    "required scopes (repo, admin:repo_hook, secrets)."
)

DEFAULT_PACING_MS = 100
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_ATTEMPTS = 3


def load_env_file(env_file: Optional[Union[str, Path]] = None) -> bool:
    """
    Load KEY=VALUE definitions into the process environment.

    An explicit ``env_file`` must exist. Without one, ``./.env`` is loaded
    if present. Variables already set in the environment win.
    """
    if env_file is not None:
        path = Path(env_file)
        if not path.is_file():
            raise ConfigError(f"Environment file not found: {path}")
        logger.debug(f"Loading environment from {path}")
        return load_dotenv(path, override=False)

    default = Path.cwd() / ".env"
    if default.is_file():
        logger.debug(f"Loading environment from {default}")
        return load_dotenv(default, override=False)
    return False


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative")
    return value


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive")
    return value


@dataclass
class PushSettings:
    """Everything a push run needs besides the secrets file."""

    credential: Credential
    api_url: str = DEFAULT_API_URL
    repository: Optional[RepositoryIdentity] = None
    pacing_seconds: float = DEFAULT_PACING_MS / 1000
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    project_root: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        project_root: Optional[Path] = None,
        repository: Optional[str] = None,
    ) -> "PushSettings":
        """
        Parse settings from ``env`` (defaults to ``os.environ``).

        ``repository`` overrides ZENVPUSH_REPOSITORY.

        Raises:
            ConfigError: token missing or a value is invalid.
        """
        env = os.environ if env is None else env

        token = (env.get(TOKEN_ENV_VAR) or "").strip()
        if not token:
            raise ConfigError(TOKEN_GUIDANCE)

        repo_override = repository or env.get("ZENVPUSH_REPOSITORY")
        identity = None
        if repo_override:
            try:
                identity = RepositoryIdentity.from_full_name(repo_override)
            except ValueError as e:
                raise ConfigError(f"Invalid repository {repo_override!r}: {e}")

        settings = cls(
            credential=Credential(token=token),
            api_url=(env.get("ZENVPUSH_API_URL") or DEFAULT_API_URL).rstrip("/"),
            repository=identity,
            pacing_seconds=_int_setting(env, "ZENVPUSH_PACING_MS", DEFAULT_PACING_MS) / 1000,
            timeout=_float_setting(env, "ZENVPUSH_TIMEOUT", DEFAULT_TIMEOUT),
            max_attempts=max(1, _int_setting(env, "ZENVPUSH_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
            project_root=project_root or Path.cwd(),
        )
        logger.debug(
            f"Settings: api={settings.api_url} token={settings.credential.masked} "
            f"pacing={settings.pacing_seconds}s attempts={settings.max_attempts}"
        )
        return settings
