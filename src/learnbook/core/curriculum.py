"""Curriculum lookup: subjects, chapters and topics.

Subjects and chapters are grounded on a web search for the official
syllabus, whose results are pasted into the prompt. Topics come straight
from the model. Successful subject/chapter lookups are cached for the
configured TTL (24h) keyed by the request parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from learnbook.config import load_app_config
from learnbook.core.cache import TTLCache
from learnbook.core.planner import default_chapters
from learnbook.core.results import ServiceResult
from learnbook.integrations.google_search import search_web
from learnbook.llm.client import AIClient, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_array

logger = structlog.get_logger(__name__)

SEARCH_TYPES = ("subjects", "chapters", "topics")

NO_RESULTS_TEXT = "No web search results found."
SEARCH_UNAVAILABLE_TEXT = "Web search unavailable."

DEFAULT_SUBJECTS = [
    {"id": "mathematics", "name": "Mathematics", "code": "", "description": "Algebra, geometry, calculus, statistics"},
    {"id": "physics", "name": "Physics", "code": "", "description": "Mechanics, electricity, optics, modern physics"},
    {"id": "chemistry", "name": "Chemistry", "code": "", "description": "Physical, organic and inorganic chemistry"},
    {"id": "biology", "name": "Biology", "code": "", "description": "Cell biology, genetics, ecology, human physiology"},
    {"id": "english", "name": "English", "code": "", "description": "Reading, writing, literature, grammar"},
    {"id": "computer-science", "name": "Computer Science", "code": "", "description": "Programming, algorithms, data handling"},
]


class CurriculumError(ValueError):
    """Invalid curriculum lookup request."""


@dataclass
class CurriculumRequest:
    """Parameters of a curriculum lookup."""

    search_type: str
    board: str = ""
    class_grade: str = ""
    country: str = ""
    education_level: str = "school"
    subject: str | None = None
    course_program: str | None = None
    chapter_name: str | None = None

    def cache_key(self) -> str:
        return TTLCache.make_key(
            self.search_type,
            self.country,
            self.education_level,
            self.board,
            self.class_grade,
            self.subject,
            self.course_program,
        )


# Global lookup cache
_cache: TTLCache | None = None


def get_curriculum_cache() -> TTLCache:
    """Get the process-wide curriculum cache."""
    global _cache
    if _cache is None:
        _cache = TTLCache(ttl_seconds=load_app_config().cache.ttl_seconds)
    return _cache


def reset_curriculum_cache() -> None:
    """Drop the cache (for testing)."""
    global _cache
    _cache = None


def build_search_query(board: str, class_grade: str, subject_or_course: str | None = None) -> str:
    """Query for the official syllabus of a board/grade (and subject)."""
    if subject_or_course:
        return (
            f'"{board}" "{subject_or_course}" "{class_grade}" '
            "official syllabus curriculum chapters topics 2024 2025"
        )
    return f'"{board}" "{class_grade}" official syllabus subjects list curriculum 2024 2025'


def search_official_syllabus(
    board: str,
    class_grade: str,
    subject_or_course: str | None = None,
) -> str:
    """Search the web and format the hits as numbered source blocks."""
    query = build_search_query(board, class_grade, subject_or_course)
    logger.info("syllabus_search", query=query)

    try:
        results = search_web(query, 5)
    except Exception as e:
        logger.error("syllabus_search_failed", error=str(e))
        return SEARCH_UNAVAILABLE_TEXT

    if not results:
        return NO_RESULTS_TEXT

    return "\n\n---\n\n".join(
        f"[Source {i}] {r.title}\n{r.snippet}\nURL: {r.link}\nDomain: {r.display_link}"
        for i, r in enumerate(results, start=1)
    )


def default_topics(chapter_name: str) -> list[dict[str, Any]]:
    name = chapter_name or "this chapter"
    return [
        {
            "id": "topic-1",
            "name": f"Introduction to {name}",
            "description": f"Basic ideas and definitions of {name}",
            "keyPoints": ["Definitions", "Key terms"],
            "difficulty": "easy",
            "estimatedMinutes": 20,
        },
        {
            "id": "topic-2",
            "name": f"Core Concepts of {name}",
            "description": "The main results and how they are derived",
            "keyPoints": ["Main results", "Worked examples"],
            "difficulty": "medium",
            "estimatedMinutes": 40,
        },
        {
            "id": "topic-3",
            "name": "Practice and Applications",
            "description": "Solving typical exam problems",
            "keyPoints": ["Problem solving", "Common question types"],
            "difficulty": "medium",
            "estimatedMinutes": 30,
        },
    ]


def _fallback_chapters(subject: str | None) -> list[dict[str, Any]]:
    return [
        {
            "id": ch.id,
            "name": ch.name,
            "chapterNumber": ch.order,
            "description": ch.description,
            "concepts": ch.concepts,
            "estimatedHours": ch.estimated_hours,
        }
        for ch in default_chapters(subject or "")
    ]


def _build_prompt(request: CurriculumRequest) -> str:
    if request.search_type == "subjects":
        search_results = search_official_syllabus(
            request.board, request.class_grade, request.course_program
        )
        if request.education_level == "college" and request.course_program:
            return get_prompt(
                "curriculum/subjects_college",
                board=request.board,
                course_program=request.course_program,
                class_grade=request.class_grade,
                country=request.country,
                search_results=search_results,
            )
        return get_prompt(
            "curriculum/subjects_school",
            board=request.board,
            class_grade=request.class_grade,
            education_level=request.education_level,
            country=request.country,
            search_results=search_results,
        )

    if request.search_type == "chapters":
        search_results = search_official_syllabus(
            request.board, request.class_grade, request.subject
        )
        program_line = f"Program: {request.course_program}" if request.course_program else ""
        return get_prompt(
            "curriculum/chapters",
            board=request.board,
            class_grade=request.class_grade,
            subject=request.subject or "",
            program_line=program_line,
            search_results=search_results,
        )

    return get_prompt(
        "curriculum/topics",
        board=request.board,
        class_grade=request.class_grade,
        subject=request.subject or "",
        chapter_name=request.chapter_name or "",
    )


def _fallback(request: CurriculumRequest) -> list[dict[str, Any]]:
    if request.search_type == "subjects":
        return [dict(s) for s in DEFAULT_SUBJECTS]
    if request.search_type == "chapters":
        return _fallback_chapters(request.subject)
    return default_topics(request.chapter_name or "")


def lookup_curriculum(
    request: CurriculumRequest,
    client: AIClient | None = None,
    cache: TTLCache | None = None,
) -> ServiceResult:
    """Look up subjects, chapters or topics.

    Args:
        request: Lookup parameters
        client: AI client (defaults to the global one)
        cache: Lookup cache (defaults to the global one)

    Returns:
        ServiceResult with a list of dicts; ``source`` is "cache",
        "ai" or "fallback"

    Raises:
        CurriculumError: If search_type is unknown
        LLMRateLimitError: If every provider is rate limited
        LLMError: If every provider fails
    """
    if request.search_type not in SEARCH_TYPES:
        raise CurriculumError("Invalid searchType. Use: subjects, chapters, or topics")

    cacheable = request.search_type in ("subjects", "chapters")
    if cache is None:
        cache = get_curriculum_cache()
    key = request.cache_key()

    if cacheable:
        cached = cache.get(key)
        if cached is not None:
            logger.info("curriculum_cache_hit", search_type=request.search_type)
            return ServiceResult(cached, source="cache")

    prompt = _build_prompt(request)
    logger.info(
        "curriculum_generating",
        search_type=request.search_type,
        board=request.board,
        class_grade=request.class_grade,
        prompt_preview=prompt[:300],
    )

    text = (client or get_ai_client()).generate(prompt)
    items = extract_json_array(text)

    if not items:
        logger.warning(
            "curriculum_parse_failed",
            search_type=request.search_type,
            preview=text[:500],
        )
        return ServiceResult(_fallback(request), source="fallback")

    if cacheable:
        cache.set(key, items)

    logger.info("curriculum_generated", search_type=request.search_type, count=len(items))
    return ServiceResult(items)
