from datetime import UTC, datetime, timedelta, timezone

from ledger.utils import time as time_utils


def test_ensure_utc_normalizes_naive_and_offset_values():
    naive = datetime(2026, 1, 2, 3, 4, 5)
    recife = datetime(2026, 1, 2, 0, 4, 5, tzinfo=timezone(timedelta(hours=-3)))

    assert time_utils.ensure_utc(naive) == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert time_utils.ensure_utc(recife) == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert time_utils.ensure_utc(None) is None


def test_time_helpers_exported():
    assert time_utils.__all__ == ["utcnow", "ensure_utc"]
    assert time_utils.utcnow().tzinfo is UTC
