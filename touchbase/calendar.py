"""
Follow-up scheduling derived from a completed call's summary.

The assistant is prompted to end its summary with either the date and time
the friend agreed to (``DD-MM-YYYY HH:MM``) or the marker
``<NO CALL SCHEDULED>``. From a parsed date we build a 30-minute
Google Calendar invite link.
"""

import re
from datetime import datetime, timedelta
from enum import Enum
from urllib.parse import urlencode

from pydantic import BaseModel

NO_CALL_SCHEDULED_MARKER = "<NO CALL SCHEDULED>"
SCHEDULE_PATTERN = re.compile(r"(\d{2})-(\d{2})-(\d{4}) (\d{2}):(\d{2})")

CALENDAR_BASE_URL = "https://calendar.google.com/calendar/render"
CALENDAR_TIMEZONE = "UTC"
EVENT_DURATION = timedelta(minutes=30)


class ScheduleOutcome(str, Enum):
    SCHEDULED = "scheduled"
    NO_CALL_SCHEDULED = "no_call_scheduled"
    UNPARSEABLE = "unparseable"


class CallSchedule(BaseModel):
    """Result of reading a summary for a follow-up call."""

    outcome: ScheduleOutcome
    start: datetime | None = None
    end: datetime | None = None
    calendar_url: str | None = None


def derive_schedule(summary: str | None) -> datetime | ScheduleOutcome:
    """
    Find the agreed follow-up time in a call summary.

    Returns:
        A naive local datetime, ScheduleOutcome.NO_CALL_SCHEDULED when the
        marker is present, or ScheduleOutcome.UNPARSEABLE otherwise.
    """
    if not summary:
        return ScheduleOutcome.UNPARSEABLE

    if NO_CALL_SCHEDULED_MARKER in summary:
        return ScheduleOutcome.NO_CALL_SCHEDULED

    match = SCHEDULE_PATTERN.search(summary)
    if not match:
        return ScheduleOutcome.UNPARSEABLE

    day, month, year, hour, minute = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day, hour, minute)
    except ValueError:
        # Matches the shape but not the calendar, e.g. 31-02-2025
        return ScheduleOutcome.UNPARSEABLE


def _format_calendar_time(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%S")


def build_calendar_link(start: datetime, friend_name: str, summary: str) -> str:
    """Google Calendar template link for a 30-minute chat starting at ``start``."""
    end = start + EVENT_DURATION
    params = {
        "action": "TEMPLATE",
        "text": f"Chat with {friend_name}",
        "dates": f"{_format_calendar_time(start)}/{_format_calendar_time(end)}",
        "details": summary,
        "ctz": CALENDAR_TIMEZONE,
    }
    return f"{CALENDAR_BASE_URL}?{urlencode(params)}"


def schedule_from_summary(summary: str | None, friend_name: str) -> CallSchedule:
    result = derive_schedule(summary)
    if isinstance(result, ScheduleOutcome):
        return CallSchedule(outcome=result)

    return CallSchedule(
        outcome=ScheduleOutcome.SCHEDULED,
        start=result,
        end=result + EVENT_DURATION,
        calendar_url=build_calendar_link(result, friend_name, summary or ""),
    )
