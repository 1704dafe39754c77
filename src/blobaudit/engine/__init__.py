"""Audit engine: the scan loop and its pacing strategy."""

from blobaudit.engine.auditor import AuditCounters, Auditor, AuditSummary
from blobaudit.engine.pacing import DEFAULT_PACER, Pacer, RecordingPacer, SystemPacer

__all__ = [
    "DEFAULT_PACER",
    "AuditCounters",
    "AuditSummary",
    "Auditor",
    "Pacer",
    "RecordingPacer",
    "SystemPacer",
]
