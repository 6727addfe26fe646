"""Profile and study settings endpoints."""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from learnbook.db.profiles_repository import (
    get_profile,
    get_settings,
    update_settings,
    upsert_profile,
)
from learnbook.web.deps import get_user_id
from learnbook.web.schemas import ProfileUpdate, SettingsUpdate, envelope

router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/profile")
def read_profile(user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    profile = get_profile(user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile '{user_id}' not found",
        )
    return envelope(asdict(profile))


@router.put("/profile")
def write_profile(body: ProfileUpdate, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    """Create the profile or update the fields sent."""
    profile = upsert_profile(user_id, body.model_dump(exclude_unset=True))
    return envelope(asdict(profile))


@router.get("/settings")
def read_settings(user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    return envelope(asdict(get_settings(user_id)))


@router.put("/settings")
def write_settings(body: SettingsUpdate, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    settings = update_settings(user_id, body.model_dump(exclude_unset=True))
    return envelope(asdict(settings))
