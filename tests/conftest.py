"""
Shared fixtures for push pipeline tests.

Provides a stub repository key pair and an in-memory GitHub API served
through ``httpx.MockTransport``, so the client, publisher and orchestrator
run against real HTTP request/response objects without network access.
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Dict, List

import httpx
import pytest
from nacl import encoding, public as nacl_public

from zenvpush.config import PushSettings
from zenvpush.github import GitHubClient
from zenvpush.models import Credential, RepositoryIdentity, RepositoryPublicKey

TOKEN = "ghp_test_token_123456"
KEY_ID = "568250167242549743"


def decode(payload: str, private_key: nacl_public.PrivateKey) -> str:
    """Open a sealed payload the way the GitHub side does."""
    unseal_box = nacl_public.SealedBox(private_key)
    return unseal_box.decrypt(base64.b64decode(payload)).decode("utf-8")


class FakeGitHub:
    """
    Minimal stand-in for the GitHub secrets API.

    Stores decrypted secret values per repository so tests can check the
    remote-visible state. ``fail_keys`` maps a secret name to a list of
    statuses returned (in order) before the secret is accepted.
    """

    def __init__(self, private_key: nacl_public.PrivateKey, key_id: str = KEY_ID):
        self.private_key = private_key
        self.key_id = key_id
        self.token = TOKEN
        self.user_status = 200
        self.public_key_status = 200
        self.fail_keys: Dict[str, List[int]] = {}
        self.secrets: Dict[str, Dict[str, str]] = {}
        self.requests: List[httpx.Request] = []

    @property
    def public_key_b64(self) -> str:
        return self.private_key.public_key.encode(encoding.Base64Encoder).decode("utf-8")

    def put_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Bad credentials"})

        if request.method == "GET" and path == "/user":
            if self.user_status != 200:
                return httpx.Response(self.user_status, json={"message": "Forbidden"})
            return httpx.Response(200, json={"login": "octocat"})

        parts = path.strip("/").split("/")
        # repos/{owner}/{repo}/actions/secrets/...
        if len(parts) >= 5 and parts[0] == "repos" and parts[3:5] == ["actions", "secrets"]:
            repo = f"{parts[1]}/{parts[2]}"
            name = "/".join(parts[5:])

            if request.method == "GET" and name == "public-key":
                if self.public_key_status != 200:
                    return httpx.Response(self.public_key_status, json={"message": "Not Found"})
                return httpx.Response(200, json={"key_id": self.key_id, "key": self.public_key_b64})

            if request.method == "PUT" and name:
                pending = self.fail_keys.get(name)
                if pending:
                    return httpx.Response(pending.pop(0), json={"message": "Injected failure"})

                body = json.loads(request.content)
                if body.get("key_id") != self.key_id:
                    return httpx.Response(422, json={"message": "Bad key_id"})
                value = decode(body["encrypted_value"], self.private_key)
                stored = self.secrets.setdefault(repo, {})
                created = name not in stored
                stored[name] = value
                return httpx.Response(201 if created else 204)

        return httpx.Response(404, json={"message": "Not Found"})

    def client(self, token: str = TOKEN) -> GitHubClient:
        return GitHubClient(
            Credential(token=token),
            api_url="https://api.github.test",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def private_key() -> nacl_public.PrivateKey:
    return nacl_public.PrivateKey.generate()


@pytest.fixture
def public_key(private_key) -> RepositoryPublicKey:
    key = private_key.public_key.encode(encoding.Base64Encoder).decode("utf-8")
    return RepositoryPublicKey(key_id=KEY_ID, key=key)


@pytest.fixture
def fake_github(private_key) -> FakeGitHub:
    return FakeGitHub(private_key)


@pytest.fixture
def repository() -> RepositoryIdentity:
    return RepositoryIdentity(owner="owner", name="repo")


@pytest.fixture
def settings(tmp_path: Path, repository) -> PushSettings:
    """Settings with a fixed repository override."""
    return PushSettings(
        credential=Credential(token=TOKEN),
        api_url="https://api.github.test",
        repository=repository,
        pacing_seconds=0.1,
        max_attempts=3,
        project_root=tmp_path,
    )


def write_secrets(path: Path, content: str) -> Path:
    """Helper to write a secrets file."""
    path.write_text(content, encoding="utf-8")
    return path
