# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging and datetime utilities."""

import logging
from datetime import datetime, timedelta, timezone

import structlog

from src.core.config.settings import Settings
from src.utils.datetime import elapsed_ms, ensure_utc
from src.utils.logging import bind_context, clear_context, setup_logging


class TestLoggingContext:
    """Tests for bind_context and clear_context."""

    def teardown_method(self) -> None:
        clear_context()

    def test_bind_and_unbind_single_key(self) -> None:
        bind_context(cycle_id="abc", actor="admin")

        clear_context("cycle_id")

        assert structlog.contextvars.get_contextvars() == {"actor": "admin"}

    def test_clear_all(self) -> None:
        bind_context(cycle_id="abc")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_root_handler(self) -> None:
        settings = Settings(log_level="INFO")

        setup_logging(settings)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.INFO
        assert logging.getLogger("sqlalchemy").level == logging.WARNING


class TestDatetimeUtils:
    """Tests for datetime helpers."""

    def test_ensure_utc_assumes_naive_is_utc(self) -> None:
        naive = datetime(2025, 6, 1, 8, 0)

        assert ensure_utc(naive) == datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)

    def test_elapsed_ms(self) -> None:
        start = datetime(2025, 6, 1, tzinfo=timezone.utc)

        assert elapsed_ms(start, start + timedelta(seconds=1.5)) == 1500
        assert elapsed_ms(start + timedelta(seconds=1), start) == 0
