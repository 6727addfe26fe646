"""Curriculum lookup endpoint."""

from typing import Any

from fastapi import APIRouter

from learnbook.core.curriculum import CurriculumRequest, lookup_curriculum
from learnbook.web.schemas import CurriculumRequestBody, envelope

router = APIRouter(prefix="/api", tags=["curriculum"])


@router.post("/curriculum")
def curriculum(body: CurriculumRequestBody) -> dict[str, Any]:
    """Subjects, chapters or topics for a board and grade."""
    result = lookup_curriculum(CurriculumRequest(**body.model_dump()))
    return envelope(result.data, source=result.source)
