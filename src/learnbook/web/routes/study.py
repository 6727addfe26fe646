"""Study material endpoints: chapter summaries and videos."""

from typing import Any

from fastapi import APIRouter

from learnbook.core.study_notes import generate_study_summary
from learnbook.core.videos import recommend_videos
from learnbook.web.schemas import SummarizeRequestBody, VideoRequestBody, envelope

router = APIRouter(prefix="/api", tags=["study"])


@router.post("/summarize")
def summarize(body: SummarizeRequestBody) -> dict[str, Any]:
    """Exam-focused summary of a chapter."""
    result = generate_study_summary(
        subject=body.subject,
        chapter=body.chapter,
        concepts=body.concepts,
        board=body.board,
        class_grade=body.class_grade,
    )
    return envelope(result.data, source=result.source)


@router.post("/youtube")
def youtube_videos(body: VideoRequestBody) -> dict[str, Any]:
    """Video recommendations for a chapter."""
    result = recommend_videos(
        subject=body.subject,
        chapter=body.chapter,
        board=body.board,
        class_grade=body.class_grade,
        country=body.country,
    )
    return envelope(result.data, source=result.source, message=result.message)
