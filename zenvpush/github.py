"""
GitHub API client — token check, repository public key, secret upsert.

One ``httpx.Client`` is held for the whole run and reused for every call.
Calls are made strictly one at a time.

Endpoints:

    GET /user
    GET /repos/{owner}/{repo}/actions/secrets/public-key
    PUT /repos/{owner}/{repo}/actions/secrets/{secret_name}
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from .errors import AuthError, EncryptionError, PublishError, TransportError
from .models import Credential, EncodedSecret, RepositoryIdentity, RepositoryPublicKey

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "zenvpush"

# Statuses worth repeating an idempotent PUT for
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def _get_headers(credential: Credential) -> Dict[str, str]:
    """Get GitHub API headers."""
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {credential.token}",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": USER_AGENT,
    }


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUSES


def _error_message(resp: httpx.Response) -> str:
    """Best-effort short reason from a GitHub error response."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return f"HTTP {resp.status_code}: {data['message']}"
    return f"HTTP {resp.status_code}"


class GitHubClient:
    """
    Thin wrapper over the GitHub REST API for Actions secrets.

    Use as a context manager so the underlying connection pool is closed.
    """

    def __init__(
        self,
        credential: Credential,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.credential = credential
        self.api_url = api_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.api_url,
            headers=_get_headers(credential),
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}")

    def verify_token(self) -> Optional[str]:
        """
        Confirm the token is accepted.

        Returns the authenticated login, if GitHub reports one.

        Raises:
            AuthError: any non-2xx status.
            TransportError: the request never got a response.
        """
        resp = self._request("GET", "/user")
        if not resp.is_success:
            logger.error(f"[github] Token verification failed: {resp.status_code}")
            raise AuthError(resp.status_code)

        try:
            login = resp.json().get("login")
        except (ValueError, AttributeError):
            login = None
        logger.info(f"[github] Token verified for {login or 'unknown user'}")
        return login

    def get_public_key(self, repository: RepositoryIdentity) -> RepositoryPublicKey:
        """
        Get the repository's public key for encrypting secrets.

        Raises:
            EncryptionError: GitHub did not return a usable key.
            TransportError: the request never got a response.
        """
        path = f"/repos/{repository.full_name}/actions/secrets/public-key"
        resp = self._request("GET", path)
        if resp.status_code != 200:
            logger.error(f"[github] Failed to get public key: {resp.status_code}")
            raise EncryptionError(
                f"Could not get public key for {repository.full_name}: {_error_message(resp)}"
            )

        try:
            data = resp.json()
            return RepositoryPublicKey(key_id=str(data["key_id"]), key=data["key"])
        except (ValueError, KeyError, TypeError) as e:
            raise EncryptionError(f"Malformed public key response: {e}")

    def put_secret(self, repository: RepositoryIdentity, encoded: EncodedSecret) -> int:
        """
        Create or update one Actions secret.

        Returns the response status (201 created, 204 updated).

        Raises:
            PublishError: any non-2xx status.
            TransportError: the request never got a response.
        """
        path = f"/repos/{repository.full_name}/actions/secrets/{encoded.key}"
        resp = self._request("PUT", path, json=encoded.to_body())
        if resp.is_success:
            logger.debug(f"[github] Secret {encoded.key} stored ({resp.status_code})")
            return resp.status_code

        raise PublishError(
            encoded.key,
            f"Failed to push secret {encoded.key}: {_error_message(resp)}",
            status_code=resp.status_code,
            retryable=is_retryable_status(resp.status_code),
        )
