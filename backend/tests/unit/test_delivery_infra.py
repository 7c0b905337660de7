"""Tests for the infrastructure adapters behind the delivery ports."""

from __future__ import annotations

import logging
import threading
from datetime import timezone

import pytest

from dueworker.config.settings import Settings
from dueworker.infra.clock import SystemClock
from dueworker.infra.delivery.logging_executor import LoggingDeliveryExecutor
from dueworker.infra.tasks.cancellation import EventCancellationToken
from dueworker.logging_config import LOG_FORMAT, setup_logging
from dueworker.wiring.bootstrap import build_delivery_executor, build_tick_command
from tests.unit.delivery_fakes import make_item


class TestLoggingDeliveryExecutor:
    def test_logs_the_send(self, caplog):
        executor = LoggingDeliveryExecutor()
        with caplog.at_level(logging.INFO, logger="dueworker.infra.delivery.logging_executor"):
            executor.send(make_item("a1", tenant_id="acme"))

        messages = [r.getMessage() for r in caplog.records]
        assert any("a1" in m and "acme" in m for m in messages)

    def test_simulated_latency_uses_sleep(self):
        slept = []
        executor = LoggingDeliveryExecutor(0.25, sleep=slept.append)

        executor.send(make_item())

        assert slept == [0.25]

    def test_no_latency_no_sleep(self):
        slept = []
        LoggingDeliveryExecutor(sleep=slept.append).send(make_item())
        assert slept == []

    def test_rejects_negative_latency(self):
        with pytest.raises(ValueError):
            LoggingDeliveryExecutor(-1)


class TestEventCancellationToken:
    def test_cancel_sets_flag_once(self, caplog):
        token = EventCancellationToken()
        assert not token.is_cancelled()

        with caplog.at_level(logging.INFO, logger="dueworker.infra.tasks.cancellation"):
            token.cancel("SIGTERM")
            token.cancel("SIGTERM")

        assert token.is_cancelled()
        assert len(caplog.records) == 1

    def test_shares_external_event(self):
        event = threading.Event()
        token = EventCancellationToken(event)
        event.set()
        assert token.is_cancelled()


class TestSystemClock:
    def test_returns_aware_utc(self):
        assert SystemClock().now().tzinfo == timezone.utc


class TestBootstrap:
    def test_log_backend(self):
        settings = Settings(_env_file=None, delivery_simulated_latency_seconds=0.5)
        assert isinstance(build_delivery_executor(settings), LoggingDeliveryExecutor)

    def test_command_falls_back_to_settings(self):
        settings = Settings(
            _env_file=None,
            scheduler_max_workers=3,
            delivery_timeout_seconds=12,
            tick_deadline_seconds=50,
        )
        cmd = build_tick_command(settings)
        assert cmd.max_workers == 3
        assert cmd.delivery_timeout_seconds == 12
        assert cmd.deadline_seconds == 50
        assert cmd.correlation_id

    def test_command_overrides_win(self):
        settings = Settings(_env_file=None)
        cmd = build_tick_command(
            settings, max_workers=5, delivery_timeout_seconds=2, correlation_id="abc"
        )
        assert (cmd.max_workers, cmd.delivery_timeout_seconds, cmd.correlation_id) == (5, 2, "abc")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_workers": 0},
            {"delivery_timeout_seconds": 0},
            {"deadline_seconds": 0},
        ],
        ids=["workers", "timeout", "deadline"],
    )
    def test_explicit_zero_is_rejected_not_replaced(self, overrides):
        settings = Settings(_env_file=None, tick_deadline_seconds=30)
        with pytest.raises(ValueError):
            build_tick_command(settings, **overrides)


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_configures_root_level_and_format(self):
        level = setup_logging(Settings(_env_file=None, log_level="debug"))

        root = logging.getLogger()
        assert level == logging.DEBUG
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].formatter._fmt == LOG_FORMAT

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging(Settings(_env_file=None, log_level="chatty")) == logging.INFO

    def test_repeated_calls_do_not_stack_handlers(self):
        settings = Settings(_env_file=None)
        setup_logging(settings)
        setup_logging(settings)
        assert len(logging.getLogger().handlers) == 1
