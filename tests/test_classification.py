"""Unit tests for freshness classification."""

import datetime as dt

import pytest

from relief_map.classification import Freshness, classify, to_epoch_ms

HOUR_MS = 60 * 60 * 1000


class TestToEpochMs:
    def test_iso_string_with_zone(self):
        assert to_epoch_ms("1970-01-01T00:00:01Z") == 1000

    def test_naive_string_is_utc(self):
        assert to_epoch_ms("2024-01-01T00:00:00") == to_epoch_ms("2024-01-01T00:00:00Z")

    def test_datetime_and_date(self):
        aware = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
        assert to_epoch_ms(aware) == to_epoch_ms("2024-01-01T00:00:00Z")
        assert to_epoch_ms(dt.date(2024, 1, 1)) == to_epoch_ms("2024-01-01T00:00:00Z")

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345, ["2024-01-01"], "now", "Today", " NOW "])
    def test_unparseable_values(self, value):
        assert to_epoch_ms(value) is None


class TestClassify:
    def test_scenario_stale_after_threshold(self):
        """A day-old critical record with a 4h threshold is stale."""
        result = classify("2024-01-01T00:00:00Z", "critical", to_epoch_ms("2024-01-02T00:00:00Z"), 4 * HOUR_MS)
        assert result == Freshness(True, "stale")

    def test_scenario_fresh_keeps_status(self):
        result = classify("2024-01-01T00:00:00Z", "critical", to_epoch_ms("2024-01-01T00:01:00Z"), 4 * HOUR_MS)
        assert result.is_stale is False
        assert result.display_status == "critical"

    @pytest.mark.parametrize("status", [None, "", "  "])
    def test_missing_status_is_normal(self, status):
        now = to_epoch_ms("2024-01-01T00:00:00Z")
        assert classify("2024-01-01T00:00:00Z", status, now, HOUR_MS) == Freshness(False, "normal")

    def test_unknown_status_is_kept(self):
        now = to_epoch_ms("2024-01-01T00:00:00Z")
        assert classify("2024-01-01T00:00:00Z", "urgent-ish", now, HOUR_MS).display_status == "urgent-ish"

    @pytest.mark.parametrize("updated_at", [None, "", "yesterday-ish", 42, "now", "today"])
    def test_unparseable_timestamp_is_stale(self, updated_at):
        result = classify(updated_at, "critical", to_epoch_ms("2024-01-01T00:00:00Z"), 10**15)
        assert result == Freshness(True, "stale")

    def test_zero_threshold(self):
        now = to_epoch_ms("2024-01-01T00:00:00Z")
        assert classify("2024-01-01T00:00:00Z", "surplus", now, 0).is_stale is False
        assert classify("2023-12-31T23:59:59Z", "surplus", now, 0).is_stale is True

    def test_future_timestamp_is_fresh(self):
        now = to_epoch_ms("2024-01-01T00:00:00Z")
        assert classify("2024-06-01T00:00:00Z", None, now, 0).is_stale is False

    def test_huge_threshold_makes_everything_fresh(self):
        now = to_epoch_ms("2024-01-01T00:00:00Z")
        assert classify("1990-01-01T00:00:00Z", "critical", now, 10**15).is_stale is False

    def test_monotonic_in_threshold(self):
        """Raising the threshold never turns a fresh record stale."""
        now = to_epoch_ms("2024-01-10T00:00:00Z")
        stamps = ["2024-01-09T23:00:00Z", "2024-01-08T00:00:00Z", "2023-01-01T00:00:00Z", "garbage", None]
        thresholds = [0, HOUR_MS, 24 * HOUR_MS, 7 * 24 * HOUR_MS, 10**15]
        for stamp in stamps:
            flags = [classify(stamp, "critical", now, t).is_stale for t in thresholds]
            for before, after in zip(flags, flags[1:]):
                assert not (before is False and after is True)
