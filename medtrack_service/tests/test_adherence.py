from datetime import date

import pytest

from medtrack.services.adherence import logs_in_window, summarize, summarize_recent, summarize_window, to_stats

from conftest import make_log


@pytest.fixture
def mixed_logs():
    return [
        make_log("1", status="taken", takenAt="2024-06-15T08:00:00"),
        make_log("2", status="taken", takenAt="2024-06-14T08:00:00"),
        make_log("3", status="missed", scheduledTime="2024-06-13T08:00:00"),
        make_log("4", status="skipped", scheduledTime="2024-03-01T08:00:00"),
        make_log("5", status="pending", createdAt="2023-12-01T08:00:00"),
    ]


def test_summarize_counts_and_rate(mixed_logs):
    s = summarize(mixed_logs)

    assert (s.total, s.taken, s.missed, s.skipped, s.pending) == (5, 2, 1, 1, 1)
    assert s.rate == pytest.approx(0.4)


@pytest.mark.parametrize("payload", [[], None, {"logs": "nope"}, "garbage", 42])
def test_empty_or_malformed_payload_is_zero(payload):
    s = summarize(payload)
    assert s.total == 0
    assert s.rate == 0.0


def test_raw_dict_items_are_parsed_and_bad_ones_dropped():
    payload = [
        {"_id": "a", "medicationId": "m1", "status": "TAKEN", "takenAt": "2024-06-15T08:00:00"},
        {"_id": "b", "status": "taken"},  # no medication reference
        {"_id": "c", "medicationId": "m1", "status": "late"},
    ]
    s = summarize(payload)
    assert (s.total, s.taken, s.rate) == (1, 1, 1.0)


def test_rate_bounds(mixed_logs):
    for n in range(len(mixed_logs) + 1):
        assert 0.0 <= summarize(mixed_logs[:n]).rate <= 1.0


def test_window_uses_effective_date(mixed_logs):
    in_june = logs_in_window(mixed_logs, date(2024, 6, 13), date(2024, 6, 15))
    assert [g.id for g in in_june] == ["1", "2", "3"]
    assert summarize_window(mixed_logs, date(2024, 6, 14), date(2024, 6, 15)).rate == 1.0


def test_recent_90_days(mixed_logs):
    s = summarize_recent(mixed_logs, date(2024, 6, 15))
    # 2024-03-01 is 106 days back, 2023-12-01 further still
    assert (s.total, s.taken, s.missed) == (3, 2, 1)


def test_to_stats_shape(mixed_logs):
    stats = to_stats(summarize(mixed_logs))
    assert stats.model_dump(by_alias=True) == {"total": 5, "taken": 2, "missed": 1, "adherenceRate": pytest.approx(0.4)}
