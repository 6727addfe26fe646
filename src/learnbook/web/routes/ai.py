"""AI planning endpoints under /api/ai."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Header, HTTPException

from learnbook.core.chapter_intelligence import generate_chapter_intelligence
from learnbook.core.notebook_bundle import generate_notebook_bundle
from learnbook.core.planner import generate_roadmap, generate_syllabus, generate_timetable
from learnbook.core.resources import curate_resources
from learnbook.db.roadmap_repository import replace_roadmap
from learnbook.web.deps import USER_ID_HEADER, to_chapter, to_context
from learnbook.web.schemas import (
    ChapterIntelligenceRequestBody,
    CurateResourcesRequestBody,
    NotebookBundleRequestBody,
    RoadmapRequestBody,
    SyllabusRequestBody,
    TimetableRequestBody,
    envelope,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/syllabus")
def syllabus(body: SyllabusRequestBody) -> dict[str, Any]:
    """Most important chapters of a subject."""
    result = generate_syllabus(to_context(body.context))
    return envelope([c.to_dict() for c in result.data], source=result.source)


@router.post("/chapter-intelligence")
def chapter_intelligence(body: ChapterIntelligenceRequestBody) -> dict[str, Any]:
    if body.chapter is not None:
        chapter = to_chapter(body.chapter)
    elif body.chapter_name:
        chapter = to_chapter(
            {
                "name": body.chapter_name,
                "description": body.description,
                "concepts": body.concepts,
                "prerequisites": body.prerequisites,
            }
        )
    else:
        raise HTTPException(status_code=400, detail="chapter or chapterName is required")

    result = generate_chapter_intelligence(
        to_context(body, body.context),
        chapter,
        [to_chapter(c, i) for i, c in enumerate(body.all_chapters)],
    )
    return envelope(result.data, source=result.source)


@router.post("/curate-resources")
def curate(body: CurateResourcesRequestBody) -> dict[str, Any]:
    result = curate_resources(body.topic, body.subject, body.grade, body.learning_style)
    return envelope(result.data, source=result.source)


@router.post("/generate-roadmap")
def roadmap(
    body: RoadmapRequestBody,
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> dict[str, Any]:
    """Dated roadmap over the given chapters, or over a fresh syllabus.

    Responds with ``{chapters, roadmap}``. With ``save`` and a user id the
    generated items replace the user's stored roadmap.
    """
    context = to_context(body, body.context)
    fell_back = False

    if body.chapters:
        chapters = [to_chapter(c, i) for i, c in enumerate(body.chapters)]
    else:
        syllabus_result = generate_syllabus(context)
        chapters = syllabus_result.data
        fell_back = syllabus_result.is_fallback

    result = generate_roadmap(context, chapters)

    if body.save and x_user_id:
        replace_roadmap(x_user_id, result.data)

    return envelope(
        {"chapters": [c.to_dict() for c in chapters], "roadmap": result.data},
        source="fallback" if fell_back or result.is_fallback else result.source,
    )


@router.post("/timetable")
def timetable(body: TimetableRequestBody) -> dict[str, Any]:
    day = date.fromisoformat(body.date) if body.date else None
    result = generate_timetable(to_context(body.context), to_chapter(body.chapter), day)
    return envelope(result.data, source=result.source)


@router.post("/notebooklm-bundle")
def notebooklm_bundle(body: NotebookBundleRequestBody) -> dict[str, Any]:
    result = generate_notebook_bundle(
        to_context(body.context),
        to_chapter(body.chapter),
        [r.model_dump() for r in body.resources],
    )
    return envelope(result.data, source=result.source)
