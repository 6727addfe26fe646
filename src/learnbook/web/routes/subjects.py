"""Subject and chapter endpoints."""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from learnbook.db import subjects_repository as subjects
from learnbook.web.deps import get_user_id
from learnbook.web.schemas import (
    ChapterProgressUpdate,
    ChaptersReplace,
    SubjectCreate,
    SubjectUpdate,
    envelope,
)

router = APIRouter(prefix="/api", tags=["subjects"])


def _not_found(kind: str, item_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{kind} '{item_id}' not found",
    )


@router.get("/subjects")
def list_subjects(user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    """All subjects of the user with their chapters."""
    return envelope([asdict(s) for s in subjects.list_subjects_with_chapters(user_id)])


@router.post("/subjects", status_code=status.HTTP_201_CREATED)
def create_subject(body: SubjectCreate, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    subject = subjects.add_subject(
        user_id,
        name=body.name,
        code=body.code,
        description=body.description,
        is_custom=body.is_custom,
    )
    return envelope(asdict(subject))


@router.patch("/subjects/{subject_id}")
def edit_subject(
    subject_id: str,
    body: SubjectUpdate,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    if not subjects.update_subject(user_id, subject_id, body.model_dump(exclude_unset=True)):
        raise _not_found("Subject", subject_id)
    return envelope(asdict(subjects.get_subject(user_id, subject_id)))


@router.delete("/subjects/{subject_id}")
def delete_subject(subject_id: str, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    """Delete a subject and its chapters."""
    if not subjects.remove_subject(user_id, subject_id):
        raise _not_found("Subject", subject_id)
    return envelope({"id": subject_id})


@router.get("/subjects/{subject_id}/chapters")
def list_chapters(subject_id: str, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    subject = subjects.get_subject(user_id, subject_id)
    if subject is None:
        raise _not_found("Subject", subject_id)
    return envelope([asdict(c) for c in subject.chapters])


@router.put("/subjects/{subject_id}/chapters")
def replace_chapters(
    subject_id: str,
    body: ChaptersReplace,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    """Replace the chapter list of a subject."""
    if subjects.get_subject(user_id, subject_id) is None:
        raise _not_found("Subject", subject_id)
    chapters = subjects.replace_chapters(subject_id, [c.model_dump() for c in body.chapters])
    return envelope([asdict(c) for c in chapters])


@router.patch("/chapters/{chapter_id}")
def edit_chapter(
    chapter_id: str,
    body: ChapterProgressUpdate,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    if not subjects.update_chapter_progress(user_id, chapter_id, body.progress, body.status):
        raise _not_found("Chapter", chapter_id)
    return envelope({"id": chapter_id, "progress": body.progress, "status": body.status})


@router.delete("/chapters/{chapter_id}")
def delete_chapter(chapter_id: str, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    if not subjects.delete_chapter(user_id, chapter_id):
        raise _not_found("Chapter", chapter_id)
    return envelope({"id": chapter_id})
