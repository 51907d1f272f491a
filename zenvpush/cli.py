"""
zenvpush CLI — push a secrets file to the origin repository's Actions secrets.

Usage:
    zenvpush --secrets-file secrets.env [--env-file .env] [--repo owner/name]
             [--strict] [--json-lines] [--log-level INFO]

Exit codes:
    0  all secrets pushed, or some failed without --strict
    1  pre-flight failure (no git repo, no origin, bad token, unreadable file)
    2  usage error (click)
    3  --strict and at least one secret failed
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .config import PushSettings, load_env_file
from .errors import ConfigError
from .github import GitHubClient
from .logging_config import setup_logging
from .orchestrator import PushOrchestrator

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 3


def _make_emitter(jsonl: bool):
    def emit(data: Dict[str, Any]) -> None:
        """Output a JSON line, or a human-readable progress line."""
        if jsonl:
            print(json.dumps(data, default=str), flush=True)
            return

        step = data.get("step", "")
        status = data.get("status", "")
        detail = data.get("detail") or ""
        error = data.get("error", "")
        if status == "failed":
            click.secho(f"❌ {step}: {error}", fg="red", bold=True, err=True)
        elif step == "identity":
            click.secho("Detected repository: ", fg="green", bold=True, nl=False)
            click.echo(detail)
        elif step == "auth":
            click.secho("GitHub token verified successfully! ✅", fg="green", bold=True)
        elif step == "secrets":
            click.echo(f"\n🔐 Pushing secrets ({data.get('progress')})")
        elif step == "secret" and status == "running":
            pass  # suppress in human mode
        elif step == "secret" and status == "progress":
            if data.get("ok"):
                click.secho(f"  ✅ {detail} ({data.get('progress')})", fg="green")
            else:
                click.secho(f"  ❌ {detail} ({data.get('progress')}): {error}", fg="red")
        elif step == "done":
            if data.get("nothing_to_do"):
                click.secho("No secrets found to push.", fg="yellow")
            elif data.get("success"):
                click.secho(
                    "\nAll secrets have been successfully pushed to your GitHub repository! 🚀",
                    fg="green", bold=True,
                )
            else:
                click.secho(
                    f"\n⚠️  Finished with {data.get('failed', 0)} of "
                    f"{data.get('total', 0)} secret(s) failed",
                    fg="yellow",
                )

    return emit


@click.command("zenvpush")
@click.option("--secrets-file", "-s", required=True,
              type=click.Path(dir_okay=False, path_type=Path),
              help="File of KEY=VALUE secrets to push")
@click.option("--env-file", "-e", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Environment file to load (default: ./.env if present)")
@click.option("--repo", "repo", default=None,
              help="owner/name to push to instead of the origin remote")
@click.option("--strict", is_flag=True,
              help="Exit with status 3 if any secret failed to push")
@click.option("--json-lines", "jsonl", is_flag=True,
              help="Output progress as JSON lines")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Log level (default: LOG_LEVEL or WARNING)")
def main(
    secrets_file: Path,
    env_file: Optional[Path],
    repo: Optional[str],
    strict: bool,
    jsonl: bool,
    log_level: Optional[str],
) -> None:
    """Push your environment secrets to your GitHub repository."""
    emit = _make_emitter(jsonl)

    try:
        load_env_file(env_file)
    except ConfigError as e:
        emit({"step": "config", "status": "failed", "error": e.message})
        raise SystemExit(EXIT_FATAL)

    setup_logging(level=log_level)

    try:
        settings = PushSettings.from_env(repository=repo)
    except ConfigError as e:
        emit({"step": "config", "status": "failed", "error": e.message})
        raise SystemExit(EXIT_FATAL)

    with GitHubClient(
        settings.credential, api_url=settings.api_url, timeout=settings.timeout
    ) as client:
        orchestrator = PushOrchestrator(settings, client, on_event=emit)
        report = orchestrator.run(secrets_file)

    if report.fatal:
        raise SystemExit(EXIT_FATAL)

    if report.failed and not jsonl:
        click.echo(f"  Succeeded: {', '.join(report.succeeded) or '-'}")
        click.echo(f"  Failed:    {', '.join(report.failed)}")

    if strict and not report.success:
        raise SystemExit(EXIT_PARTIAL)
