"""Tests for the Celery tick task and its plain-function core."""

from __future__ import annotations

import pytest

from dueworker.domain.delivery.models import ItemStatus
from dueworker.tasks import delivery_tasks
from dueworker.use_cases.delivery.run_tick import RunTickUseCase
from tests.unit.delivery_fakes import (
    FailingListStore,
    FixedClock,
    InMemoryDueItemStore,
    RecordingExecutor,
    make_item,
)


@pytest.fixture
def wire(monkeypatch):
    """Replace the SQL wiring with in-memory fakes; returns the store setter."""

    def _wire(store):
        def _build(settings, session_factory):
            return RunTickUseCase(store=store, executor=RecordingExecutor(), clock=FixedClock())

        monkeypatch.setattr(delivery_tasks, "build_run_tick_use_case", _build)
        return store

    return _wire


class TestRunTickOnce:
    def test_returns_json_safe_summary(self, wire):
        store = wire(
            InMemoryDueItemStore([make_item("a1", tenant_id="a"), make_item("b1", tenant_id="b")])
        )

        payload = delivery_tasks.run_tick_once(correlation_id="corr-1")

        assert payload["processed_count"] == 2
        assert payload["errors"] == []
        assert payload["fatal_error"] is None
        assert payload["correlation_id"] == "corr-1"
        assert store.get("b1").status == ItemStatus.DELIVERED

    def test_fatal_error_is_reported_not_raised(self, wire):
        wire(FailingListStore([make_item("a1")]))

        payload = delivery_tasks.run_tick_once()

        assert payload["processed_count"] == 0
        assert "failed to list tenants" in payload["fatal_error"]

    def test_generates_correlation_id_when_missing(self, wire):
        wire(InMemoryDueItemStore())

        payload = delivery_tasks.run_tick_once()

        assert payload["correlation_id"]

    def test_worker_override_is_honoured(self, wire):
        store = wire(
            InMemoryDueItemStore([make_item(f"i{n}", tenant_id=f"t{n}") for n in range(3)])
        )

        payload = delivery_tasks.run_tick_once(max_workers=3)

        assert payload["processed_count"] == 3
        assert all(i.status == ItemStatus.DELIVERED for i in store.items.values())


class TestRunDeliveryTickTask:
    def test_registered_name(self):
        assert (
            delivery_tasks.run_delivery_tick.name
            == "dueworker.tasks.delivery_tasks.run_delivery_tick"
        )

    def test_eager_apply_uses_task_id_as_correlation_id(self, wire):
        wire(InMemoryDueItemStore([make_item("a1")]))

        result = delivery_tasks.run_delivery_tick.apply(task_id="task-123")

        assert result.successful()
        assert result.result["processed_count"] == 1
        assert result.result["correlation_id"] == "task-123"
