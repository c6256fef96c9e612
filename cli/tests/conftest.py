"""Shared fixtures for CLI tests.

The CLI installs a root logging handler on every invocation and the SQL
toolkit is a process-wide singleton; both are reset around each test so
that tests stay independent of each other.
"""

from __future__ import annotations

import logging

import pytest

from shift_engine.sql_toolkit import reset_toolkit


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "SQLSHIFT_DEFAULT_SOURCE_ENGINE",
        "SQLSHIFT_DEFAULT_TARGET_ENGINE",
        "SQLSHIFT_AUTO_DETECT_CANDIDATES",
        "SQLSHIFT_LOG_LEVEL",
        "SQLSHIFT_STRUCTURED_LOGGING",
        "SQLSHIFT_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    reset_toolkit()
    yield
    reset_toolkit()
    root.handlers[:] = handlers
    root.setLevel(level)
