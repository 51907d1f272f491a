"""
zenvpush — push a local secrets file to a GitHub repository's Actions secrets.
"""

from .models import (
    Credential,
    EncodedSecret,
    PushReport,
    PushResult,
    RepositoryIdentity,
    RepositoryPublicKey,
    RunStage,
    SecretEntry,
)
from .orchestrator import PushOrchestrator

__version__ = "0.2.0"

__all__ = [
    "Credential",
    "EncodedSecret",
    "PushOrchestrator",
    "PushReport",
    "PushResult",
    "RepositoryIdentity",
    "RepositoryPublicKey",
    "RunStage",
    "SecretEntry",
]
