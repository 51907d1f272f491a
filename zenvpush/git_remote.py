"""
Git Remote — Detect the target repository from the "origin" remote.

Supported URL shapes:

    git@github.com:owner/repo.git
    https://github.com/owner/repo.git

The ``.git`` suffix is optional. Only the first two path segments are used.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List

from .errors import ConfigError, ParseError, RemoteNotFound
from .models import RepositoryIdentity

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"


def get_origin_url(project_root: Path) -> str:
    """
    Read the URL of the "origin" remote of the repository at ``project_root``.

    Raises:
        ConfigError: ``project_root`` is not a Git checkout.
        RemoteNotFound: git is unavailable or no origin remote exists.
        ParseError: git printed something that is not text.
    """
    if not (project_root / ".git").exists():
        raise ConfigError(
            ".git folder not found. Please run this command from the root "
            "of your Git repository."
        )

    try:
        result = subprocess.run(
            ["git", "remote", "get-url", REMOTE_NAME],
            cwd=str(project_root),
            capture_output=True,
            timeout=5,
        )
    except FileNotFoundError:
        raise RemoteNotFound("git executable not found on PATH")
    except subprocess.TimeoutExpired:
        raise RemoteNotFound("Timed out reading git remote configuration")

    if result.returncode != 0:
        logger.debug(f"[git] get-url failed: {result.stderr!r}")
        raise RemoteNotFound("Remote URL not found in repository config.")

    try:
        url = result.stdout.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise ParseError("Remote URL is not valid UTF-8.")

    if not url:
        raise RemoteNotFound("Remote URL not found in repository config.")
    return url


def _split_path(path: str) -> List[str]:
    path = path.strip().strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return path.split("/")


def parse_remote_url(url: str) -> RepositoryIdentity:
    """Extract owner and repository name from an SSH or HTTPS remote URL."""
    url = url.strip()

    if url.startswith("git@"):
        host, sep, path = url[len("git@"):].partition(":")
        if not sep or not host:
            raise ParseError("Cannot parse SSH remote URL.")
    elif url.startswith("https://"):
        # The path is taken verbatim; "#", "?" and "%" are legal in names
        authority, _, path = url[len("https://"):].partition("/")
        host = authority.rpartition("@")[2]
        if not host:
            raise ParseError("Cannot parse host from URL.")
    else:
        raise ParseError("Unsupported remote URL format.")

    segments = _split_path(path)
    if len(segments) < 2:
        raise ParseError("Cannot parse repo name from URL.")

    owner, name = segments[0], segments[1]
    if not owner:
        raise ParseError("Cannot parse owner from URL.")
    if not name:
        raise ParseError("Cannot parse repo name from URL.")

    return RepositoryIdentity(owner=owner, name=name)


def resolve_repository(project_root: Path) -> RepositoryIdentity:
    """Resolve owner/name from the origin remote at ``project_root``."""
    url = get_origin_url(project_root)
    identity = parse_remote_url(url)
    logger.info(f"[git] Detected repository: {identity.full_name}")
    return identity
