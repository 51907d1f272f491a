"""
Error taxonomy for a push run.

Pre-flight errors (ConfigError, ParseError, SecretsFileError, AuthError and a
TransportError raised before publishing) abort the run. Errors raised while
publishing a single secret are recorded against that secret only.
"""

from __future__ import annotations

from typing import Optional


class ZenvpushError(Exception):
    """Base class for every error the push pipeline knows how to report."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(ZenvpushError):
    """Required local context or setting is missing."""

    code = "config_error"


class RemoteNotFound(ConfigError):
    """No "origin" remote is configured."""

    code = "remote_not_found"


class ParseError(ZenvpushError):
    """The origin remote URL could not be turned into owner/name."""

    code = "parse_error"


class SecretsFileError(ZenvpushError):
    """The secrets file could not be opened, read or decoded."""

    code = "secrets_file_error"


class AuthError(ZenvpushError):
    """The remote service rejected the access token."""

    code = "auth_error"

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"GitHub API responded with status: {status_code}")
        self.status_code = status_code


class TransportError(ZenvpushError):
    """DNS, TLS, connection or timeout failure talking to the remote service."""

    code = "transport_error"


class EncryptionError(ZenvpushError):
    """The repository public key is missing or malformed."""

    code = "encryption_error"


class PublishError(ZenvpushError):
    """The remote service rejected one secret upsert."""

    code = "publish_error"

    def __init__(
        self,
        key: str,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
        code: Optional[str] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.key = key
        self.attempts = attempts
        self.status_code = status_code
        self.retryable = retryable
        if code:
            self.code = code
