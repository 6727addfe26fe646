"""Chapter progress and saved notes endpoints."""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from learnbook.db import progress_repository as progress
from learnbook.web.deps import get_user_id
from learnbook.web.schemas import NotesSave, ProgressUpdate, envelope

router = APIRouter(prefix="/api", tags=["progress"])


@router.get("/progress")
def list_progress(user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    return envelope([asdict(p) for p in progress.get_progress(user_id)])


@router.put("/progress/{chapter_id}")
def update_progress(
    chapter_id: str,
    body: ProgressUpdate,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    record = progress.update_progress(user_id, chapter_id, body.model_dump(exclude_unset=True))
    return envelope(asdict(record))


@router.post("/progress/{chapter_id}/complete")
def complete_chapter(chapter_id: str, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    return envelope(asdict(progress.mark_complete(user_id, chapter_id)))


@router.get("/notes/{chapter_id}")
def read_notes(chapter_id: str, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    notes = progress.get_notes(user_id, chapter_id)
    if notes is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No saved notes for chapter '{chapter_id}'",
        )
    return envelope(asdict(notes))


@router.put("/notes/{chapter_id}")
def save_notes(
    chapter_id: str,
    body: NotesSave,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    saved = progress.save_notes(
        user_id,
        chapter_id,
        subject=body.subject,
        chapter_name=body.chapter_name,
        notes_data=body.notes_data,
    )
    return envelope(asdict(saved))
