# src/blobaudit/core/logging.py
"""Logging setup for blobaudit.

structlog formats both its own events and stdlib records (the Azure SDK
logs through stdlib), so every line on stdout has one shape:

    console:  [MISSING] logs/app.log | no x-ms-last-access-time header -> set tier Cold
    json:     {"event": "[MISSING]", "blob": "logs/app.log", "action": "set tier Cold", ...}

Console mode renders the auditor's per-blob and progress events from
CONSOLE_TEMPLATES. Anything without a template falls through to
structlog's ConsoleRenderer.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter
from structlog.typing import EventDict, Processor

# Setting the parent is enough: the SDK's child loggers are left at NOTSET.
_NOISY_LOGGERS: tuple[str, ...] = ("azure", "urllib3")

CONSOLE_TEMPLATES: Mapping[str, str] = {
    "Starting audit": "Container: {container} | Prefix: {prefix} | DryRun: {dry_run} | CooldownMs: {cooldown_ms}",
    "[OK]": "[OK] {blob} | lastAccessHeader={last_access_time}",
    "[MISSING]": "[MISSING] {blob} | no x-ms-last-access-time header -> {action}",
    "[ERROR]": "[ERROR] {blob} | {operation} {status_code} {error_code} | {message}",
    "--- Progress ---": (
        "--- Progress: scanned={scanned}, missingLastAccess={missing_last_access}, "
        "tierChanged={tier_changed}, skipped={skipped}, errors={errors} ---"
    ),
    "Scan aborted": "[ABORTED] {operation} {status_code} {error_code} | {message}",
}


class _Fields(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return "-"


class AuditConsoleRenderer:
    """Render templated events as plain lines, others via ConsoleRenderer.

    None values and keys a template names but the event lacks render as "-",
    e.g. the status code of a transport failure that never got a response.
    """

    def __init__(self, templates: Mapping[str, str] = CONSOLE_TEMPLATES) -> None:
        self._templates = templates
        self._fallback = structlog.dev.ConsoleRenderer(colors=False)

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> str:
        template = self._templates.get(str(event_dict.get("event")))
        if template is None:
            return self._fallback(logger, method_name, event_dict)
        return template.format_map(_Fields({k: v for k, v in event_dict.items() if v is not None}))


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib logging to stdout.

    Args:
        json_output: One JSON object per line instead of console lines.
        level: Root log level name (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())

    pre_chain: list[Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    render: list[Processor]
    if json_output:
        render = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render = [AuditConsoleRenderer()]

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Loggers are module globals; caching would pin them to the first configuration
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processors=[ProcessorFormatter.remove_processors_meta, *render],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; picks up whatever configure_logging() set, even if created first."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
