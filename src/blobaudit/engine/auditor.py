# src/blobaudit/engine/auditor.py
"""The audit loop.

For every blob in a container (optionally under a prefix):
1. Fetch its properties.
2. If x-ms-last-access-time is present, leave it alone.
3. If absent, move it to the Cold tier (unless dry-run), then pause for
   the configured cooldown.

Blobs are handled strictly one at a time. A failed request is recorded
against that blob and the scan moves on; nothing is retried.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from blobaudit.core.config import AuditSettings
from blobaudit.core.logging import get_logger
from blobaudit.engine.pacing import DEFAULT_PACER, Pacer
from blobaudit.errors import BlobRequestError, ScanAbortedError
from blobaudit.storage.auth import ContainerProvider
from blobaudit.storage.blobs import COLD_TIER, LAST_ACCESS_TIME_HEADER, BlobStore

logger = get_logger(__name__)

PROGRESS_INTERVAL = 1000


@dataclass(frozen=True, slots=True)
class AuditSummary:
    """Final (or checkpoint) counter values for a run.

    skipped is reported for compatibility with existing reports. No code
    path increments it.
    """

    scanned: int
    missing_last_access: int
    tier_changed: int
    skipped: int
    errors: int
    dry_run: bool = False
    duration_seconds: float = 0.0

    def counters(self) -> dict[str, int]:
        """The five counters as a dict, in report order."""
        return {
            "scanned": self.scanned,
            "missing_last_access": self.missing_last_access,
            "tier_changed": self.tier_changed,
            "skipped": self.skipped,
            "errors": self.errors,
        }


@dataclass(slots=True)
class AuditCounters:
    """Running counters, owned by a single scan loop. Only ever incremented."""

    scanned: int = 0
    missing_last_access: int = 0
    tier_changed: int = 0
    skipped: int = 0
    errors: int = 0

    def snapshot(self, *, dry_run: bool = False, duration_seconds: float = 0.0) -> AuditSummary:
        return AuditSummary(
            scanned=self.scanned,
            missing_last_access=self.missing_last_access,
            tier_changed=self.tier_changed,
            skipped=self.skipped,
            errors=self.errors,
            dry_run=dry_run,
            duration_seconds=duration_seconds,
        )


def has_last_access_time(header_value: str | None) -> bool:
    """Whitespace-only header values count as missing."""
    return header_value is not None and bool(header_value.strip())


class Auditor:
    """Scans one container and cold-tiers blobs without last access time.

    Args:
        provider: Resolves the configured container to a BlobStore.
        pacer: Strategy for the post-tier-change cooldown.
        progress_interval: Emit a progress line every N scanned blobs.
    """

    def __init__(
        self,
        provider: ContainerProvider,
        *,
        pacer: Pacer = DEFAULT_PACER,
        progress_interval: int = PROGRESS_INTERVAL,
    ) -> None:
        if progress_interval < 1:
            raise ValueError(f"progress_interval must be >= 1, got {progress_interval}")
        self._provider = provider
        self._pacer = pacer
        self._progress_interval = progress_interval

    def run(self, settings: AuditSettings) -> AuditSummary:
        """Audit every blob in the configured container.

        Returns:
            Summary of the five counters once listing is exhausted.

        Raises:
            ConfigurationError: If the provider cannot open the container.
            ScanAbortedError: If listing itself fails. Carries the counters
                reached so far. Per-blob failures are counted in errors and
                never raised.
        """
        store = self._provider.get_container(settings.container)

        logger.info(
            "Starting audit",
            container=store.container_name,
            prefix=settings.prefix or "(none)",
            dry_run=settings.dry_run,
            cooldown_ms=settings.cooldown_ms,
        )

        counters = AuditCounters()
        start_time = time.perf_counter()

        try:
            for blob_name in store.list_blob_names(settings.prefix):
                counters.scanned += 1
                self._audit_blob(store, blob_name, counters, settings)

                if counters.scanned % self._progress_interval == 0:
                    logger.info("--- Progress ---", **counters.snapshot().counters())
        except BlobRequestError as e:
            # Only listing gets here; _audit_blob keeps its own failures
            partial = counters.snapshot(
                dry_run=settings.dry_run,
                duration_seconds=time.perf_counter() - start_time,
            )
            logger.error(
                "Scan aborted",
                operation=e.operation,
                status_code=e.status_code,
                error_code=e.error_code,
                message=e.message,
                **partial.counters(),
            )
            raise ScanAbortedError(e, partial) from e

        summary = counters.snapshot(
            dry_run=settings.dry_run,
            duration_seconds=time.perf_counter() - start_time,
        )
        logger.info("Audit complete", duration_seconds=round(summary.duration_seconds, 3), **summary.counters())
        return summary

    def _audit_blob(
        self,
        store: BlobStore,
        blob_name: str,
        counters: AuditCounters,
        settings: AuditSettings,
    ) -> None:
        # EXTERNAL SYSTEM: any BlobRequestError is this blob's failure only
        try:
            properties = store.get_properties(blob_name)
            last_access = properties.try_get_header(LAST_ACCESS_TIME_HEADER)

            if has_last_access_time(last_access):
                logger.info("[OK]", blob=blob_name, last_access_time=last_access)
                return

            counters.missing_last_access += 1
            action = f"would set tier {COLD_TIER} (dry run)" if settings.dry_run else f"set tier {COLD_TIER}"
            logger.info("[MISSING]", blob=blob_name, action=action, dry_run=settings.dry_run)

            if settings.dry_run:
                return

            store.set_tier(blob_name, COLD_TIER)
            counters.tier_changed += 1
            self._pacer.pause(settings.cooldown_ms)
        except BlobRequestError as e:
            counters.errors += 1
            logger.warning(
                "[ERROR]",
                blob=blob_name,
                operation=e.operation,
                status_code=e.status_code,
                error_code=e.error_code,
                message=e.message,
            )
