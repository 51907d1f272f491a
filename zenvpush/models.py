"""
Push Models — values passed between the pipeline stages.

Inputs (repository, credential, entries, keys) are plain dataclasses.
Results are pydantic models so a report can be dumped straight to JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class RepositoryIdentity:
    """Owner and name of the target repository."""

    owner: str
    name: str

    def __post_init__(self) -> None:
        for label, value in (("owner", self.owner), ("name", self.name)):
            if not value:
                raise ValueError(f"Repository {label} must not be empty")
            if "/" in value:
                raise ValueError(f"Repository {label} must not contain '/': {value!r}")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_full_name(cls, full_name: str) -> "RepositoryIdentity":
        """Build from an ``owner/name`` string."""
        owner, sep, name = full_name.strip().partition("/")
        if not sep:
            raise ValueError(f"Expected owner/name, got {full_name!r}")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class Credential:
    """Access token for the remote service. Never printed in full."""

    token: str

    @property
    def masked(self) -> str:
        if len(self.token) > 4:
            return self.token[:4] + "..."
        return "***"

    def __repr__(self) -> str:
        return f"Credential(token={self.masked!r})"

    __str__ = __repr__


@dataclass(frozen=True)
class SecretEntry:
    """One KEY=VALUE line from the secrets file."""

    key: str
    value: str
    line_number: int = 0

    def __repr__(self) -> str:
        # value is a secret
        return f"SecretEntry(key={self.key!r}, line_number={self.line_number})"


@dataclass(frozen=True)
class RepositoryPublicKey:
    """Public key GitHub uses to open sealed secrets for one repository."""

    key_id: str
    key: str  # base64 Curve25519 public key


@dataclass(frozen=True)
class EncodedSecret:
    """A sealed secret ready for the PUT body."""

    key: str
    payload: str
    key_id: str

    def to_body(self) -> dict:
        return {"encrypted_value": self.payload, "key_id": self.key_id}


class RunStage(str, Enum):
    """Orchestrator run states."""

    NOT_STARTED = "not_started"
    RESOLVING_IDENTITY = "resolving_identity"
    VALIDATING_CREDENTIAL = "validating_credential"
    PARSING = "parsing"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


class ErrorDetails(BaseModel):
    """Why a single secret failed."""

    code: str
    message: str
    status_code: Optional[int] = None
    retryable: bool = False


class PushResult(BaseModel):
    """Outcome of publishing one secret."""

    key: str
    status: Literal["ok", "failed"]
    attempts: int = 0
    ts_iso: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    error: Optional[ErrorDetails] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def succeeded(cls, key: str, attempts: int = 1) -> "PushResult":
        return cls(key=key, status="ok", attempts=attempts)

    @classmethod
    def failed(
        cls,
        key: str,
        error_code: str,
        error_message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
        attempts: int = 0,
    ) -> "PushResult":
        return cls(
            key=key,
            status="failed",
            attempts=attempts,
            error=ErrorDetails(
                code=error_code,
                message=error_message,
                status_code=status_code,
                retryable=retryable,
            ),
        )


class StageFailure(BaseModel):
    """A fatal pre-flight failure: the stage it happened in and why."""

    stage: RunStage
    code: str
    message: str


class PushReport(BaseModel):
    """Aggregate result of one run."""

    repository: Optional[str] = None
    stage: RunStage = RunStage.NOT_STARTED
    results: List[PushResult] = Field(default_factory=list)
    failure: Optional[StageFailure] = None
    nothing_to_do: bool = False

    @property
    def fatal(self) -> bool:
        return self.failure is not None

    @property
    def succeeded(self) -> List[str]:
        return [r.key for r in self.results if r.ok]

    @property
    def failed(self) -> List[str]:
        return [r.key for r in self.results if not r.ok]

    @property
    def success(self) -> bool:
        """True iff no fatal failure and every attempted secret was published."""
        return not self.fatal and all(r.ok for r in self.results)
