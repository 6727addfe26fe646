"""Google export endpoints: Calendar events and Drive notes."""

from datetime import date
from typing import Any
from zoneinfo import ZoneInfoNotFoundError

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from learnbook.db.profiles_repository import save_google_tokens
from learnbook.integrations.google_api import GoogleTokenExpiredError
from learnbook.integrations.google_calendar import (
    convert_task_to_event,
    convert_todo_to_event,
    create_calendar_event,
    get_or_create_calendar,
)
from learnbook.integrations.google_drive import create_google_doc
from learnbook.integrations.google_tokens import get_valid_google_token
from learnbook.web.deps import get_user_id
from learnbook.web.schemas import (
    CalendarExportRequest,
    DriveNotesRequest,
    GoogleTokensSave,
    envelope,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/google", tags=["google"])


def _require_token(user_id: str) -> str:
    token = get_valid_google_token(user_id)
    if token is None:
        raise GoogleTokenExpiredError()
    return token


@router.put("/tokens")
def store_tokens(body: GoogleTokensSave, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    """Store the OAuth tokens obtained by the client's Google sign-in."""
    save_google_tokens(user_id, body.access_token, body.refresh_token, body.expires_at)
    return envelope({"connected": True})


@router.post("/calendar/tasks")
def export_to_calendar(
    body: CalendarExportRequest,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    """Add timetable tasks and to-dos to the user's LearnBook calendar."""
    task_date = body.date or date.today().isoformat()
    try:
        events = [convert_task_to_event(t, task_date, body.time_zone) for t in body.tasks]
        events += [convert_todo_to_event(t) for t in body.todos]
    except (ValueError, TypeError, ZoneInfoNotFoundError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid task for calendar export: {e}",
        ) from e

    if not events:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to export",
        )

    token = _require_token(user_id)
    calendar_id = get_or_create_calendar(token)
    created = [create_calendar_event(token, event, calendar_id) for event in events]

    logger.info("calendar_export_done", user_id=user_id, events=len(created))
    return envelope(
        [{"id": e.get("id"), "htmlLink": e.get("htmlLink")} for e in created],
        message=f"Added {len(created)} events to Google Calendar",
    )


@router.post("/drive/notes")
def export_to_drive(body: DriveNotesRequest, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    """Save notes as a Google Doc."""
    token = _require_token(user_id)
    doc = create_google_doc(token, body.title, body.content, in_folder=body.in_folder)
    return envelope({"id": doc["id"], "name": doc.get("name"), "webViewLink": doc["webViewLink"]})
