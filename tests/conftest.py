# tests/conftest.py
"""Shared test fixtures.

Storage fakes live in tests.fixtures.storage; fixtures here wire them up
with settings the way the CLI would.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
import structlog
from structlog.stdlib import ProcessorFormatter

from blobaudit.core.config import AuditSettings
from blobaudit.engine.pacing import RecordingPacer

TEST_CONNECTION_STRING = "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=key;EndpointSuffix=core.windows.net"
TEST_CONTAINER = "test-container"


@pytest.fixture(autouse=True)
def _clear_blobaudit_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BLOBAUDIT_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("BLOBAUDIT_"):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() so handlers never outlive a captured stream."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, ProcessorFormatter):
            root.removeHandler(handler)


@pytest.fixture
def pacer() -> RecordingPacer:
    return RecordingPacer()


@pytest.fixture
def make_settings() -> Callable[..., AuditSettings]:
    """Factory for AuditSettings with connection string defaults."""

    def _make(**overrides: Any) -> AuditSettings:
        values: dict[str, Any] = {
            "endpoint": TEST_CONNECTION_STRING,
            "container": TEST_CONTAINER,
            "auth_mode": "connection_string",
        }
        values.update(overrides)
        return AuditSettings(**values)

    return _make
