from pydantic import ValidationError
import pytest

from ledger.config import Settings


def test_blank_sentry_dsn_is_disabled():
    assert Settings(SENTRY_DSN="   ").SENTRY_DSN is None
    assert Settings(SENTRY_DSN=" https://key@sentry.example/1 ").SENTRY_DSN == "https://key@sentry.example/1"


def test_sweep_interval_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(EXPORT_SWEEP_INTERVAL_MINUTES=0)


def test_database_url_comes_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")

    assert Settings().database_url == "sqlite:///./other.db"


def test_scheduler_toggle_reads_only_the_prefixed_name(monkeypatch):
    monkeypatch.delenv("LEDGER_SCHEDULER_ENABLED", raising=False)
    monkeypatch.setenv("SCHEDULER_ENABLED", "1")
    assert Settings().SCHEDULER_ENABLED is False

    monkeypatch.setenv("LEDGER_SCHEDULER_ENABLED", "1")
    assert Settings().SCHEDULER_ENABLED is True
