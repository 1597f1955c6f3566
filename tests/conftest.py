"""
Pytest fixtures for the cash-flow forecasting test suite.

Provides:
- Structured logging configured once per session, plus log capture
- A deterministic clock pinned to 2025-01-15 12:00 UTC
- The PKR rate table used across scenarios (USD 280, EUR 300)

Record factories live in tests/factories.py.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from cashflow_kernel.domain.clock import DeterministicClock
from cashflow_kernel.domain.values import CurrencyRateTable
from cashflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tests.factories import RATES_UPDATED


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cashflow logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            engine.project(...)
            logs = captured_logs()
            assert any(r["message"] == "projection_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cashflow")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def rates():
    return CurrencyRateTable.of("PKR", last_updated=RATES_UPDATED, USD="280", EUR="300")
