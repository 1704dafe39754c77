# src/blobaudit/engine/pacing.py
"""Pacing abstraction for the post-tier-change cooldown.

The cooldown is a proactive rate limit: after each successful tier change
the scan loop pauses so a long scan does not run into storage throttling.
Routing the pause through a Pacer keeps that delay out of tests.

Production code uses SystemPacer (the default).
Tests inject RecordingPacer to observe pauses without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Pacer(Protocol):
    """Blocks the calling loop for a requested duration."""

    def pause(self, milliseconds: int) -> None:
        """Pause for the given number of milliseconds.

        Args:
            milliseconds: Duration to pause. Zero or less is a no-op.
        """
        ...


class SystemPacer:
    """Production pacer backed by time.sleep()."""

    def pause(self, milliseconds: int) -> None:
        if milliseconds > 0:
            time.sleep(milliseconds / 1000)


class RecordingPacer:
    """Pacer that records requested pauses instead of sleeping.

    Example:
        pacer = RecordingPacer()
        auditor = Auditor(provider, pacer=pacer)
        summary = auditor.run(settings)
        assert pacer.total_ms == summary.tier_changed * settings.cooldown_ms
    """

    def __init__(self) -> None:
        self.pauses: list[int] = []

    def pause(self, milliseconds: int) -> None:
        if milliseconds > 0:
            self.pauses.append(milliseconds)

    @property
    def total_ms(self) -> int:
        """Sum of all recorded pauses in milliseconds."""
        return sum(self.pauses)


# Default pacer for production use
DEFAULT_PACER: Pacer = SystemPacer()
