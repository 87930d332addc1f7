"""
Pytest fixtures for the procurement reconciliation test suite.

Provides:
- Logging reset and context cleanup around every test
- A captured_logs fixture returning structured JSON records
- A deterministic clock

Record builders live in tests/builders.py.

No database is needed: services are exercised through the in-memory
gateway and repository.
"""

import json
import logging
from io import StringIO

import pytest

from procurement_kernel.domain.clock import DeterministicClock
from procurement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    reset_logging,
)
from tests.builders import BASE_TIME


# ---------------------------------------------------------------------------
# Logging fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Each test starts with an unconfigured logger tree and empty context."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def captured_logs():
    """Capture structured JSON log records emitted under procurement_kernel.

    Usage:
        def test_something(captured_logs):
            ...
            records = captured_logs()
            assert any(r["message"] == "refund_breakdown_calculated" for r in records)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("procurement_kernel")
    root.addHandler(handler)
    previous_level = root.level
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        return [
            json.loads(line)
            for line in stream.getvalue().strip().splitlines()
            if line
        ]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# ---------------------------------------------------------------------------
# Clock fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(BASE_TIME)
