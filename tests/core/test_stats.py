from __future__ import annotations

from datetime import UTC

from mcp_activity_tracker.core.models import (
    Activity,
    Category,
    LogEntry,
    MessagePayload,
    PresencePayload,
    StatusPayload,
    VoicePayload,
    VoiceTransition,
)
from mcp_activity_tracker.core.stats import (
    busiest_hour,
    category_counts,
    compute_statistics,
    day_hour_heatmap,
    hour_histogram,
    top_activities,
    voice_minutes,
)

DAY0 = 1_767_225_600_000  # Thursday 2026-01-01T00:00:00Z
HOUR = 3_600_000
MINUTE = 60_000


def _status(ts: int, subject_id: str = "u1") -> LogEntry:
    return LogEntry(subject_id, subject_id, ts, StatusPayload(status_value="online"))


def _voice(ts: int, transition: VoiceTransition, subject_id: str = "u1") -> LogEntry:
    return LogEntry(
        subject_id,
        subject_id,
        ts,
        VoicePayload(
            channel_id="c1",
            channel_name="c1",
            transition=transition,
            guild_id="g1",
            guild_name="g1",
        ),
    )


def _presence(ts: int, *names: str) -> LogEntry:
    return LogEntry("u1", "u1", ts, PresencePayload(activities=tuple(Activity(name=n) for n in names)))


def test_histogram_and_busiest_hour() -> None:
    entries = [_status(DAY0 + h * HOUR) for h in (3, 3, 3, 9)]
    hours = hour_histogram(entries, tz=UTC)
    assert hours[3] == 3
    assert hours[9] == 1
    assert sum(hours) == 4
    assert busiest_hour(hours) == 3


def test_busiest_hour_tie_goes_to_lowest_hour() -> None:
    hours = [0] * 24
    hours[20] = 2
    hours[7] = 2
    assert busiest_hour(hours) == 7


def test_busiest_hour_empty() -> None:
    assert busiest_hour([0] * 24) is None


def test_category_counts_are_zero_filled() -> None:
    entries = [_status(DAY0), _status(DAY0), _voice(DAY0, VoiceTransition.JOIN)]
    counts = category_counts(entries)
    assert counts == {
        Category.PRESENCE: 0,
        Category.VOICE: 1,
        Category.MESSAGE: 0,
        Category.STATUS: 2,
    }


def test_heatmap_uses_sunday_zero() -> None:
    thursday_10 = DAY0 + 10 * HOUR
    sunday_23 = DAY0 + 3 * 24 * HOUR + 23 * HOUR
    heat = day_hour_heatmap([_status(thursday_10), _status(thursday_10), _status(sunday_23)], tz=UTC)
    assert heat == {(4, 10): 2, (0, 23): 1}


def test_voice_minutes_join_leave() -> None:
    entries = [_voice(0, VoiceTransition.JOIN), _voice(600_000, VoiceTransition.LEAVE)]
    assert voice_minutes(entries) == 10


def test_voice_minutes_unmatched_leave_contributes_nothing() -> None:
    assert voice_minutes([_voice(600_000, VoiceTransition.LEAVE)]) == 0


def test_voice_minutes_second_join_wins() -> None:
    entries = [
        _voice(0, VoiceTransition.JOIN),
        _voice(5 * MINUTE, VoiceTransition.JOIN),
        _voice(8 * MINUTE, VoiceTransition.LEAVE),
    ]
    assert voice_minutes(entries) == 3


def test_voice_minutes_move_does_not_close_session() -> None:
    entries = [
        _voice(0, VoiceTransition.JOIN),
        _voice(2 * MINUTE, VoiceTransition.MOVE),
        _voice(7 * MINUTE, VoiceTransition.LEAVE),
        _voice(9 * MINUTE, VoiceTransition.MOVE),
        _voice(12 * MINUTE, VoiceTransition.LEAVE),
    ]
    assert voice_minutes(entries) == 7


def test_voice_minutes_keep_one_open_join_across_subjects() -> None:
    entries = [
        _voice(0, VoiceTransition.JOIN, "a"),
        _voice(MINUTE, VoiceTransition.JOIN, "b"),
        _voice(10 * MINUTE, VoiceTransition.LEAVE, "a"),
    ]
    assert voice_minutes(entries) == 9


def test_voice_minutes_leave_after_close_adds_nothing() -> None:
    entries = [
        _voice(0, VoiceTransition.JOIN, "a"),
        _voice(MINUTE, VoiceTransition.JOIN, "b"),
        _voice(4 * MINUTE, VoiceTransition.LEAVE, "a"),
        _voice(11 * MINUTE, VoiceTransition.LEAVE, "b"),
    ]
    assert voice_minutes(entries) == 3


def test_voice_minutes_sorts_by_timestamp() -> None:
    entries = [_voice(600_000, VoiceTransition.LEAVE), _voice(0, VoiceTransition.JOIN)]
    assert voice_minutes(entries) == 10


def test_top_activities_ranked() -> None:
    entries = [_presence(0, "Chess", "Spotify"), _presence(1, "Chess"), _presence(2, "Anki")]
    assert top_activities(entries) == [("Chess", 2), ("Anki", 1), ("Spotify", 1)]
    assert top_activities(entries, limit=1) == [("Chess", 2)]


def test_compute_statistics_report() -> None:
    entries = [
        _status(DAY0 + 3 * HOUR, "u1"),
        _voice(DAY0 + 3 * HOUR, VoiceTransition.JOIN, "u2"),
        _voice(DAY0 + 3 * HOUR + 30 * MINUTE, VoiceTransition.LEAVE, "u2"),
        LogEntry("u2", "u2", DAY0 + 9 * HOUR, MessagePayload(content="hi", channel_id="c1")),
    ]
    report = compute_statistics(entries, tz=UTC)
    assert report.total_entries == 4
    assert report.unique_subjects == 2
    assert report.busiest_hour == 3
    assert report.total_voice_minutes == 30
    assert report.category_counts[Category.MESSAGE] == 1
    assert report.heatmap == {(4, 3): 3, (4, 9): 1}


def test_compute_statistics_empty() -> None:
    report = compute_statistics([], tz=UTC)
    assert report.total_entries == 0
    assert report.busiest_hour is None
    assert report.hour_counts == [0] * 24
    assert report.heatmap == {}
    assert report.total_voice_minutes == 0
