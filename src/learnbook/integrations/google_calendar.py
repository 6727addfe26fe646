"""Google Calendar export for study tasks.

Events are written to a dedicated "LearnBook Schedule" calendar, created
on first use. Required scope:
https://www.googleapis.com/auth/calendar.app.created
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Mapping
from zoneinfo import ZoneInfo

import requests
import structlog

from learnbook.integrations.google_api import (
    DEFAULT_TIMEOUT,
    IntegrationError,
    auth_headers,
)

logger = structlog.get_logger(__name__)

CALENDAR_API = "https://www.googleapis.com/calendar/v3"
CALENDAR_SUMMARY = "LearnBook Schedule"
CALENDAR_DESCRIPTION = "Study plan synced from LearnBook"

TASK_REMINDER_MINUTES = 10
TODO_REMINDER_MINUTES = 720


def _pick(item: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key, so camelCase API payloads and DB rows both work."""
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return default


def get_or_create_calendar(access_token: str) -> str:
    """Return the LearnBook calendar id, creating the calendar if needed.

    Raises:
        IntegrationError: If the calendar cannot be created
    """
    try:
        list_response = requests.get(
            f"{CALENDAR_API}/users/me/calendarList",
            headers=auth_headers(access_token),
            timeout=DEFAULT_TIMEOUT,
        )
        if list_response.ok:
            for calendar in list_response.json().get("items", []):
                if calendar.get("summary") == CALENDAR_SUMMARY:
                    return calendar["id"]

        create_response = requests.post(
            f"{CALENDAR_API}/calendars",
            headers=auth_headers(access_token, json_body=True),
            json={"summary": CALENDAR_SUMMARY, "description": CALENDAR_DESCRIPTION},
            timeout=DEFAULT_TIMEOUT,
        )
    except requests.RequestException as e:
        raise IntegrationError(f"Calendar API unreachable: {e}") from e

    if not create_response.ok:
        raise IntegrationError(
            "Failed to create LearnBook calendar", status_code=create_response.status_code
        )

    calendar_id = create_response.json()["id"]
    logger.info("calendar_created", calendar_id=calendar_id)
    return calendar_id


def create_calendar_event(
    access_token: str, event: dict[str, Any], calendar_id: str | None = None
) -> dict[str, Any]:
    """Insert an event into the LearnBook calendar.

    Pass ``calendar_id`` when exporting several events to skip the lookup.

    Raises:
        IntegrationError: If the event cannot be created
    """
    if calendar_id is None:
        calendar_id = get_or_create_calendar(access_token)

    try:
        response = requests.post(
            f"{CALENDAR_API}/calendars/{calendar_id}/events",
            headers=auth_headers(access_token, json_body=True),
            json=event,
            timeout=DEFAULT_TIMEOUT,
        )
    except requests.RequestException as e:
        raise IntegrationError(f"Calendar API unreachable: {e}") from e

    if not response.ok:
        raise IntegrationError(
            "Failed to create calendar event", status_code=response.status_code
        )

    logger.info("calendar_event_created", summary=event.get("summary"))
    return response.json()


def parse_time_slot(time_slot: str) -> tuple[int, int]:
    """Parse the start of a slot like "4:00 PM - 4:45 PM" into (hour, minute).

    A slot without AM/PM is read as 24-hour time.

    Raises:
        ValueError: If the slot has no parsable start time
    """
    parts = time_slot.strip().split()
    if not parts:
        raise ValueError(f"Empty time slot: {time_slot!r}")

    hour_text, _, minute_text = parts[0].partition(":")
    hours = int(hour_text)
    minutes = int(minute_text or 0)

    period = parts[1].upper() if len(parts) > 1 else ""
    if period == "PM" and hours != 12:
        hours += 12
    if period == "AM" and hours == 12:
        hours = 0

    return hours, minutes


def convert_task_to_event(
    task: Mapping[str, Any],
    task_date: str,
    time_zone: str = "UTC",
) -> dict[str, Any]:
    """Build a timed Calendar event from a timetable task."""
    hours, minutes = parse_time_slot(_pick(task, "timeSlot", "time_slot", default=""))
    duration = int(_pick(task, "durationMinutes", "duration_minutes", default=30))

    tz = ZoneInfo(time_zone)
    day = date.fromisoformat(task_date)
    start = datetime(day.year, day.month, day.day, hours, minutes, tzinfo=tz)
    end = start + timedelta(minutes=duration)

    chapter_name = _pick(task, "chapterName", "chapter_name", default="Study")
    task_type = _pick(task, "taskType", "task_type", default="study")
    description = _pick(task, "description", "task_description", default="")

    return {
        "summary": f"Study: {chapter_name}",
        "description": f"Task: {task_type}\n{description}",
        "start": {"dateTime": start.isoformat(), "timeZone": time_zone},
        "end": {"dateTime": end.isoformat(), "timeZone": time_zone},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": TASK_REMINDER_MINUTES}],
        },
    }


def convert_todo_to_event(todo: Mapping[str, Any]) -> dict[str, Any]:
    """Build an all-day Calendar event from a to-do item."""
    task_date = date.fromisoformat(_pick(todo, "task_date", "taskDate"))
    # All-day end dates are exclusive
    end_date = task_date + timedelta(days=1)
    status = "Completed" if _pick(todo, "completed", default=False) else "Pending"

    return {
        "summary": f"Todo: {_pick(todo, 'task_description', 'taskDescription', default='Study Task')}",
        "description": f"Type: {_pick(todo, 'task_type', 'taskType', default='General')}\nStatus: {status}",
        "start": {"date": task_date.isoformat()},
        "end": {"date": end_date.isoformat()},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": TODO_REMINDER_MINUTES}],
        },
    }
