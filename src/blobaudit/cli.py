# src/blobaudit/cli.py
"""blobaudit Command Line Interface.

Entry point for the blobaudit CLI tool.

Usage:
    blobaudit audit "https://<account>.blob.core.windows.net" <container> --mi
    blobaudit audit "<connection-string>" <container> --cs [--prefix p] [--dryrun] [--cooldown ms]
    blobaudit audit --settings audit.yaml

Exit codes: 0 scan completed, 1 configuration error (nothing scanned),
2 listing failed partway (partial counters are still printed).
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Any, NoReturn

import typer
from pydantic import ValidationError

from blobaudit import __version__
from blobaudit.core.config import AuditSettings, load_settings
from blobaudit.engine.auditor import Auditor, AuditSummary
from blobaudit.errors import ConfigurationError, ScanAbortedError
from blobaudit.storage.auth import create_provider

__all__ = ["app"]

INVALID_AUTH_MODE_MESSAGE = "Invalid auth mode. Use --mi or --cs"

# Exit codes
EXIT_CONFIG_ERROR = 1
EXIT_SCAN_ABORTED = 2


class OutputFormat(StrEnum):
    """Summary output format."""

    CONSOLE = "console"
    JSON = "json"


app = typer.Typer(
    name="blobaudit",
    help="Audit blobs for last access time tracking and move untracked blobs to the Cold tier.",
    no_args_is_help=True,
)


def _fail(message: str, code: int = EXIT_CONFIG_ERROR) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"blobaudit version {__version__}")
        raise typer.Exit()


def _load_env_file(env_file: Path | None) -> None:
    """Load a .env file into the environment. Variables already set win.

    Without an explicit path, the nearest .env at or above the working
    directory is used; having none is fine.
    """
    from dotenv import find_dotenv, load_dotenv

    if env_file is None:
        found = find_dotenv(usecwd=True)
        if found:
            load_dotenv(found, override=False)
        return

    if not env_file.is_file():
        _fail(f"Error: .env file not found: {env_file}")
    load_dotenv(env_file, override=False)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Do not read any .env file (--env-file included).",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Read this .env file instead of searching for one.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log at DEBUG level.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit one JSON object per log line.",
    ),
) -> None:
    """Audit blobs for last access time tracking."""
    from blobaudit.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_env_file(env_file)


def _resolve_auth_flag(mi: bool, cs: bool) -> str | None:
    """Map the --mi/--cs flags to an auth mode. Both set is invalid."""
    if mi and cs:
        _fail(INVALID_AUTH_MODE_MESSAGE)
    if mi:
        return "managed_identity"
    if cs:
        return "connection_string"
    return None


def _load_audit_settings(settings_path: Path | None, overrides: dict[str, Any]) -> AuditSettings:
    """Load settings, turning every configuration failure into exit code 1."""
    try:
        return load_settings(settings_path, overrides)
    except FileNotFoundError as e:
        _fail(f"Error: {e}")
    except ValidationError as e:
        if any(error["loc"] and error["loc"][0] == "auth_mode" for error in e.errors()):
            _fail(INVALID_AUTH_MODE_MESSAGE)
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"]) or "settings"
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None


def _echo_summary(summary: AuditSummary, output_format: OutputFormat, *, aborted: bool = False) -> None:
    if output_format is OutputFormat.JSON:
        typer.echo(
            json.dumps(
                {
                    "event": "summary",
                    **summary.counters(),
                    "dry_run": summary.dry_run,
                    "aborted": aborted,
                    "duration_seconds": round(summary.duration_seconds, 3),
                }
            )
        )
        return

    typer.echo("")
    typer.echo("Aborted. Counts cover blobs processed before the failure." if aborted else "Done.")
    typer.echo(f"Scanned: {summary.scanned}")
    typer.echo(f"Missing LastAccess: {summary.missing_last_access}")
    typer.echo(f"Tier changed to Cold: {summary.tier_changed}")
    typer.echo(f"Skipped: {summary.skipped}")
    typer.echo(f"Errors: {summary.errors}")


@app.command()
def audit(
    endpoint: str | None = typer.Argument(
        None,
        help="Account URL (with --mi) or connection string (with --cs).",
        show_default=False,
    ),
    container: str | None = typer.Argument(
        None,
        help="Container to scan.",
        show_default=False,
    ),
    mi: bool = typer.Option(
        False,
        "--mi",
        help="Authenticate with Managed Identity / DefaultAzureCredential.",
    ),
    cs: bool = typer.Option(
        False,
        "--cs",
        help="Authenticate with a connection string.",
    ),
    prefix: str | None = typer.Option(
        None,
        "--prefix",
        help="Only scan blobs whose name starts with this prefix.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dryrun",
        help="Report blobs that would change tier without changing them.",
    ),
    cooldown: int | None = typer.Option(
        None,
        "--cooldown",
        help="Pause this many milliseconds after each tier change.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="YAML settings file (command-line values take precedence).",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.CONSOLE,
        "--format",
        "-f",
        help="Summary format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Scan a container and move blobs without last access time to Cold."""
    overrides: dict[str, Any] = {
        "endpoint": endpoint,
        "container": container,
        "auth_mode": _resolve_auth_flag(mi, cs),
        "prefix": prefix,
        "cooldown_ms": cooldown,
    }
    # Flags can only switch dry-run on; leave the settings file value alone otherwise
    if dry_run:
        overrides["dry_run"] = True

    settings_path = settings.expanduser() if settings is not None else None
    audit_settings = _load_audit_settings(settings_path, overrides)

    # The service client is only built when the auditor opens the container,
    # so a malformed endpoint surfaces from run() before any blob is listed
    try:
        provider = create_provider(audit_settings.auth_mode, audit_settings.endpoint)
        summary = Auditor(provider).run(audit_settings)
    except ConfigurationError as e:
        _fail(str(e))
    except ScanAbortedError as e:
        typer.secho(f"Scan aborted: {e.cause}", fg=typer.colors.RED, err=True)
        _echo_summary(e.summary, output_format, aborted=True)
        raise typer.Exit(EXIT_SCAN_ABORTED) from None

    _echo_summary(summary, output_format)


if __name__ == "__main__":
    app()
