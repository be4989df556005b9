"""Tests for time utilities."""

from datetime import datetime, timezone

from zapcrm.infra.time import from_epoch_ms, utc_now


class TestUtcNow:
    """Tests for utc_now()."""

    def test_returns_utc_datetime(self):
        assert utc_now().tzinfo == timezone.utc

    def test_returns_current_time(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestFromEpochMs:
    def test_converts_milliseconds(self):
        assert from_epoch_ms(1700000000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
