"""Follow-up schedule derivation from call summaries."""

from datetime import datetime
from urllib.parse import parse_qs, urlparse

from touchbase.calendar import (
    ScheduleOutcome,
    build_calendar_link,
    derive_schedule,
    schedule_from_summary,
)

SCHEDULED_SUMMARY = (
    "Alex was thrilled to hear from Sam and agreed to catch up properly. "
    "Follow-up call: 15-06-2025 14:30"
)


def test_marker_means_no_call_scheduled():
    summary = "Alex was busy and did not want to pick a time. <NO CALL SCHEDULED>"
    assert derive_schedule(summary) is ScheduleOutcome.NO_CALL_SCHEDULED


def test_marker_wins_over_a_date():
    summary = "Talked about 01-01-2024 10:00. <NO CALL SCHEDULED>"
    assert derive_schedule(summary) is ScheduleOutcome.NO_CALL_SCHEDULED


def test_parses_day_month_year_time():
    assert derive_schedule(SCHEDULED_SUMMARY) == datetime(2025, 6, 15, 14, 30)


def test_unparseable_summaries():
    assert derive_schedule("They chatted for a while.") is ScheduleOutcome.UNPARSEABLE
    assert derive_schedule("") is ScheduleOutcome.UNPARSEABLE
    assert derive_schedule(None) is ScheduleOutcome.UNPARSEABLE
    assert derive_schedule("Call on 2025-06-15 14:30") is ScheduleOutcome.UNPARSEABLE


def test_impossible_dates_are_unparseable():
    assert derive_schedule("Call on 31-02-2025 10:00") is ScheduleOutcome.UNPARSEABLE
    assert derive_schedule("Call on 15-06-2025 25:00") is ScheduleOutcome.UNPARSEABLE


def test_calendar_link_is_a_thirty_minute_utc_event():
    link = build_calendar_link(datetime(2025, 6, 15, 14, 30), "Alex", SCHEDULED_SUMMARY)

    query = parse_qs(urlparse(link).query)
    assert link.startswith("https://calendar.google.com/calendar/render?")
    assert query["action"] == ["TEMPLATE"]
    assert query["text"] == ["Chat with Alex"]
    assert query["dates"] == ["20250615T143000/20250615T150000"]
    assert query["details"] == [SCHEDULED_SUMMARY]
    assert query["ctz"] == ["UTC"]


def test_schedule_from_summary():
    schedule = schedule_from_summary(SCHEDULED_SUMMARY, "Alex")

    assert schedule.outcome is ScheduleOutcome.SCHEDULED
    assert schedule.start == datetime(2025, 6, 15, 14, 30)
    assert schedule.end == datetime(2025, 6, 15, 15, 0)
    assert "Chat+with+Alex" in schedule.calendar_url


def test_schedule_without_date_has_no_link():
    schedule = schedule_from_summary("<NO CALL SCHEDULED>", "Alex")

    assert schedule.outcome is ScheduleOutcome.NO_CALL_SCHEDULED
    assert schedule.start is None
    assert schedule.calendar_url is None
