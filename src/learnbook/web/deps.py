"""Request dependencies shared by route handlers."""

from __future__ import annotations

from typing import Any

from fastapi import Header

from learnbook.core.planner import Chapter, LearningContext
from learnbook.web.schemas import ChapterBody, LearningContextBody

USER_ID_HEADER = "X-User-Id"


def get_user_id(x_user_id: str = Header(..., alias=USER_ID_HEADER, min_length=1)) -> str:
    """Caller identity; authentication happens in front of this service."""
    return x_user_id


def to_context(body: LearningContextBody, nested: LearningContextBody | None = None) -> LearningContext:
    """Learning context from a body's own fields, overlaid by a nested ``context``."""
    data = body.model_dump(
        include=set(LearningContextBody.model_fields), by_alias=True, exclude_none=True
    )
    if nested is not None:
        data.update(nested.model_dump(by_alias=True, exclude_none=True, exclude_unset=True))
    return LearningContext.from_dict(data)


def to_chapter(body: ChapterBody | dict[str, Any] | str, index: int = 0) -> Chapter:
    """Chapter from a request body, a loose dict or a bare chapter name."""
    if isinstance(body, str):
        return Chapter.from_dict({"name": body}, index)
    if isinstance(body, dict):
        return Chapter.from_dict(body, index)
    return Chapter.from_dict(body.model_dump(by_alias=True), index)
