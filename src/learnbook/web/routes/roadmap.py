"""Stored roadmap endpoints."""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from learnbook.db import roadmap_repository as roadmap
from learnbook.web.deps import get_user_id
from learnbook.web.schemas import RoadmapReplace, RoadmapStatusUpdate, envelope

router = APIRouter(prefix="/api/roadmap", tags=["roadmap"])


@router.get("")
def list_roadmap(user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    return envelope([asdict(i) for i in roadmap.list_roadmap(user_id)])


@router.put("")
def replace_roadmap(body: RoadmapReplace, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    """Replace the stored roadmap, e.g. with /api/ai/generate-roadmap output."""
    items = roadmap.replace_roadmap(user_id, body.items)
    return envelope([asdict(i) for i in items])


@router.patch("/{item_id}")
def update_status(
    item_id: str,
    body: RoadmapStatusUpdate,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    if not roadmap.update_roadmap_status(user_id, item_id, body.status):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Roadmap item '{item_id}' not found",
        )
    return envelope({"id": item_id, "status": body.status})
