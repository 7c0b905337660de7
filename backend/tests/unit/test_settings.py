"""
Tests for Settings validators.
"""
import pytest
from pydantic import ValidationError

from dueworker.config.settings import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettingsDefaults:
    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "CELERY_BROKER_URL", "CELERY_RESULT_BACKEND"):
            monkeypatch.delenv(name, raising=False)
        s = _settings()
        assert s.scheduler_max_workers == 1
        assert s.delivery_timeout_seconds == 30.0
        assert s.tick_deadline_seconds is None
        assert s.delivery_backend == "log"
        assert s.database_url.startswith("sqlite:///")
        assert s.database_url.endswith("data/dueworker.db")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SCHEDULER_MAX_WORKERS", "8")
        monkeypatch.setenv("TICK_DEADLINE_SECONDS", "45")
        s = _settings()
        assert s.scheduler_max_workers == 8
        assert s.tick_deadline_seconds == 45.0

    def test_backend_is_normalised(self):
        assert _settings(delivery_backend="  LOG ").delivery_backend == "log"


class TestSettingsValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"scheduler_max_workers": 0},
            {"scheduler_tick_interval_seconds": 0},
            {"delivery_timeout_seconds": 0},
            {"tick_deadline_seconds": -5},
            {"delivery_simulated_latency_seconds": -0.1},
            {"delivery_backend": "carrier-pigeon"},
        ],
        ids=["workers", "interval", "timeout", "deadline", "latency", "backend"],
    )
    def test_rejects_invalid(self, overrides):
        with pytest.raises(ValidationError):
            _settings(**overrides)
