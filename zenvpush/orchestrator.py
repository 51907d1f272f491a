"""
Push Orchestrator — run the full secret sync for one repository.

## Stages

    not_started → resolving_identity → validating_credential → parsing
                → publishing → done

A failure in any stage before ``publishing`` ends the run in ``failed`` with
a StageFailure and nothing is published. While ``publishing``, each secret
succeeds or fails on its own and the loop always reaches the last entry.

## Progress events

``on_event`` receives JSON-able dicts such as:

    {"step": "identity", "status": "ok", "detail": "owner/repo"}
    {"step": "secret", "status": "progress", "detail": "API_KEY", "ok": True,
     "progress": "1/3"}
    {"step": "done", "status": "done", "success": True, "failed": 0}
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from . import crypto
from .config import PushSettings
from .errors import PublishError, ZenvpushError
from .git_remote import resolve_repository
from .github import GitHubClient
from .models import (
    PushReport,
    PushResult,
    RepositoryIdentity,
    RepositoryPublicKey,
    RunStage,
    SecretEntry,
    StageFailure,
)
from .publisher import INVALID_NAME, SecretPublisher
from .secrets_file import parse_secrets_file

logger = logging.getLogger(__name__)

EventCallback = Callable[[Dict[str, Any]], None]


class PushOrchestrator:
    """
    Composes remote resolution, token check, parsing, sealing and publishing.

    The client and settings are passed in, so a run can be driven entirely
    by test doubles.
    """

    def __init__(
        self,
        settings: PushSettings,
        client: GitHubClient,
        publisher: Optional[SecretPublisher] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_event: Optional[EventCallback] = None,
    ):
        self.settings = settings
        self.client = client
        self.publisher = publisher or SecretPublisher(
            client, max_attempts=settings.max_attempts, sleep=sleep
        )
        self._sleep = sleep
        self._on_event = on_event
        self._public_key: Optional[RepositoryPublicKey] = None
        self.report = PushReport()

    @property
    def stage(self) -> RunStage:
        return self.report.stage

    def _emit(self, data: Dict[str, Any]) -> None:
        if self._on_event is not None:
            self._on_event(data)

    def _enter(self, stage: RunStage) -> None:
        logger.debug(f"[push] Stage {self.report.stage.value} → {stage.value}",
                     extra={"stage": stage.value})
        self.report.stage = stage

    def _fail(self, error: ZenvpushError, step: str) -> PushReport:
        stage = self.report.stage
        self.report.failure = StageFailure(stage=stage, code=error.code, message=error.message)
        self._enter(RunStage.FAILED)
        logger.error(f"[push] {stage.value} failed: {error.message}", extra={"stage": stage.value})
        self._emit({"step": step, "status": "failed", "error": error.message,
                    "code": error.code})
        return self.report

    # -- Pre-flight ---------------------------------------------------------

    def _resolve_identity(self) -> RepositoryIdentity:
        if self.settings.repository is not None:
            return self.settings.repository
        return resolve_repository(self.settings.project_root)

    # -- Publishing ---------------------------------------------------------

    def _recipient_key(self, repository: RepositoryIdentity) -> RepositoryPublicKey:
        """Cached repository public key, fetched on first use."""
        if self._public_key is None:
            self._public_key = self.client.get_public_key(repository)
            logger.debug(f"[push] Using public key {self._public_key.key_id}")
        return self._public_key

    def _push_one(self, repository: RepositoryIdentity, entry: SecretEntry) -> PushResult:
        try:
            encoded = crypto.encode(entry, self._recipient_key(repository))
            attempts = self.publisher.publish(repository, encoded)
            return PushResult.succeeded(entry.key, attempts=attempts)
        except PublishError as e:
            # The key may have been rotated; fetch it again for the next entry.
            # A rejected name never reached the server.
            if e.code != INVALID_NAME:
                self._public_key = None
            return PushResult.failed(
                entry.key,
                error_code=e.code,
                error_message=e.message,
                status_code=e.status_code,
                retryable=e.retryable,
                attempts=e.attempts,
            )
        except ZenvpushError as e:
            self._public_key = None
            return PushResult.failed(entry.key, error_code=e.code, error_message=e.message)

    def _publish_all(self, repository: RepositoryIdentity, entries: List[SecretEntry]) -> None:
        total = len(entries)
        self._emit({"step": "secrets", "status": "running", "progress": f"0/{total}"})

        for index, entry in enumerate(entries, start=1):
            self._emit({"step": "secret", "status": "running", "detail": entry.key,
                        "progress": f"{index - 1}/{total}"})
            result = self._push_one(repository, entry)
            self.report.results.append(result)

            if not result.ok:
                logger.warning(
                    f"[push] Failed to push secret {entry.key}: {result.error.message}",
                    extra={"secret_key": entry.key, "repository": repository.full_name},
                )
            event: Dict[str, Any] = {"step": "secret", "status": "progress",
                                     "detail": entry.key, "ok": result.ok,
                                     "progress": f"{index}/{total}"}
            if result.error is not None:
                event["error"] = result.error.message
            self._emit(event)

            if self.settings.pacing_seconds > 0:
                self._sleep(self.settings.pacing_seconds)

    # -- Run ----------------------------------------------------------------

    def run(self, secrets_file: Union[str, Path]) -> PushReport:
        """
        Execute one push run.

        Taxonomy errors never escape: pre-flight ones end the run in
        ``failed``; per-secret ones are recorded in the matching PushResult.
        """
        self.report = PushReport()
        self._public_key = None

        self._enter(RunStage.RESOLVING_IDENTITY)
        try:
            repository = self._resolve_identity()
        except ZenvpushError as e:
            return self._fail(e, "identity")
        self.report.repository = repository.full_name
        self._emit({"step": "identity", "status": "ok", "detail": repository.full_name})

        self._enter(RunStage.VALIDATING_CREDENTIAL)
        try:
            login = self.client.verify_token()
        except ZenvpushError as e:
            return self._fail(e, "auth")
        self._emit({"step": "auth", "status": "ok", "detail": login})

        self._enter(RunStage.PARSING)
        try:
            entries = parse_secrets_file(secrets_file)
        except ZenvpushError as e:
            return self._fail(e, "parse")
        self._emit({"step": "parse", "status": "ok", "detail": str(secrets_file),
                    "count": len(entries)})

        if not entries:
            self.report.nothing_to_do = True
            self._enter(RunStage.DONE)
            logger.info("[push] No secrets found to push")
            self._emit({"step": "done", "status": "done", "success": True,
                        "nothing_to_do": True, "failed": 0})
            return self.report

        self._enter(RunStage.PUBLISHING)
        self._publish_all(repository, entries)

        self._enter(RunStage.DONE)
        failed = self.report.failed
        logger.info(
            f"[push] Secrets sync to {repository.full_name}: "
            f"{len(self.report.succeeded)}/{len(entries)}"
            + (f"; failed: {', '.join(failed)}" if failed else ""),
            extra={"repository": repository.full_name},
        )
        self._emit({"step": "done", "status": "done", "success": self.report.success,
                    "failed": len(failed), "total": len(entries)})
        return self.report
