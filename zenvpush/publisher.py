"""
Secret Publisher — upsert one sealed secret, retrying transient failures.

The PUT is create-or-update, so repeating it with the same body leaves the
repository in the same state. That makes retrying 429/5xx responses and
transport errors safe.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional, Sequence

from .errors import PublishError, TransportError
from .github import GitHubClient
from .models import EncodedSecret, RepositoryIdentity

logger = logging.getLogger(__name__)

# GitHub secret names: alphanumerics and underscores, no leading digit
SECRET_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
RESERVED_PREFIX = "GITHUB_"
INVALID_NAME = "invalid_name"

# Seconds to wait before attempt 2, 3, ...
BACKOFF_SECONDS = (1.0, 3.0, 10.0)


def validate_secret_name(key: str) -> Optional[str]:
    """Return why GitHub would reject ``key`` as a secret name, or None."""
    if not key:
        return "Secret name is empty"
    if not SECRET_NAME_RE.match(key):
        return (
            f"Invalid secret name {key!r}: use letters, digits and underscores, "
            "not starting with a digit"
        )
    if key.upper().startswith(RESERVED_PREFIX):
        return f"Invalid secret name {key!r}: names must not start with {RESERVED_PREFIX}"
    return None


class SecretPublisher:
    """Publishes sealed secrets to one GitHub client."""

    def __init__(
        self,
        client: GitHubClient,
        max_attempts: int = 3,
        backoff_seconds: Sequence[float] = BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = tuple(backoff_seconds) or (0.0,)
        self._sleep = sleep

    def _backoff(self, attempt: int) -> float:
        return self.backoff_seconds[min(attempt - 1, len(self.backoff_seconds) - 1)]

    def publish(self, repository: RepositoryIdentity, encoded: EncodedSecret) -> int:
        """
        Upsert ``encoded`` into ``repository``.

        Returns the number of attempts it took.

        Raises:
            PublishError: the name is invalid, GitHub rejected the secret, or
                every attempt failed. ``retryable`` is set when the last
                failure was transient.
        """
        reason = validate_secret_name(encoded.key)
        if reason:
            raise PublishError(encoded.key, reason, code=INVALID_NAME)

        attempt = 0
        while True:
            attempt += 1
            try:
                self.client.put_secret(repository, encoded)
                logger.info(
                    f"[push] Secret {encoded.key} synced to {repository.full_name}",
                    extra={"secret_key": encoded.key, "repository": repository.full_name},
                )
                return attempt
            except PublishError as e:
                if not e.retryable or attempt >= self.max_attempts:
                    e.attempts = attempt
                    raise
                error: Exception = e
            except TransportError as e:
                if attempt >= self.max_attempts:
                    raise PublishError(
                        encoded.key,
                        f"Failed to push secret {encoded.key}: {e.message}",
                        retryable=True,
                        code=TransportError.code,
                        attempts=attempt,
                    )
                error = e

            delay = self._backoff(attempt)
            logger.warning(
                f"[push] Attempt {attempt}/{self.max_attempts} for {encoded.key} "
                f"failed ({error}), retrying in {delay:.0f}s"
            )
            self._sleep(delay)
