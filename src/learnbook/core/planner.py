"""Study planning: syllabus, roadmap and daily timetable.

Responsibilities:
- Generate a chapter syllabus for a learning context
- Schedule chapters into a dated roadmap starting today
- Split a day's available time into study/practice/revision tasks

Each generator asks the AI chain first. When the call fails or the reply
holds no usable JSON, a deterministic plan is built instead. Rate limits
are re-raised so the caller can retry later:

Roadmap:
- ceil(estimated_hours / 2) days per chapter (2 study hours per day)
- the last chapter is a milestone
- priority: weight > 0.8 high, > 0.5 medium, else low

Timetable:
- study 50% of the time, at most 60 min
- practice 30%, at most 45 min
- revision 20%, at most 30 min
- a task is only added while time remains
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Literal

import structlog

from learnbook.core.results import ServiceResult
from learnbook.llm.client import AIClient, LLMError, LLMRateLimitError, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_array

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

HOURS_PER_DAY = 2

HIGH_PRIORITY_WEIGHT = 0.8
MEDIUM_PRIORITY_WEIGHT = 0.5

# (task_type, share of available time, cap in minutes, time slot)
TIMETABLE_SPLIT = [
    ("study", 0.5, 60, "9:00 AM - 10:00 AM"),
    ("practice", 0.3, 45, "4:00 PM - 4:45 PM"),
    ("revision", 0.2, 30, "8:00 PM - 8:30 PM"),
]

Priority = Literal["high", "medium", "low"]


def _as_float(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_str_list(value: Any) -> list[str]:
    """Model output lists; a bare string becomes a one-item list."""
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _dict_items(items: list[Any] | None) -> list[dict[str, Any]]:
    """Objects of a parsed model array; stray strings and numbers are dropped."""
    return [item for item in items or [] if isinstance(item, dict)]


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LearningContext:
    """Who is studying what, and how much time they have."""

    country: str = "India"
    education_level: str = "school"
    board: str = "CBSE"
    class_grade: str = "Class 12"
    subject: str = "Mathematics"
    exam_date: str | None = None
    daily_available_time: int = 120
    weak_topics: list[str] = field(default_factory=list)
    strong_topics: list[str] = field(default_factory=list)
    learning_style: str = "visual"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearningContext:
        """Build from a camelCase request payload; missing keys keep defaults."""
        defaults = cls()
        return cls(
            country=data.get("country") or defaults.country,
            education_level=data.get("educationLevel") or defaults.education_level,
            board=data.get("board") or defaults.board,
            class_grade=data.get("classGrade") or defaults.class_grade,
            subject=data.get("subject") or defaults.subject,
            exam_date=data.get("examDate"),
            daily_available_time=_as_int(
                data.get("dailyAvailableTime"), defaults.daily_available_time
            ),
            weak_topics=_as_str_list(data.get("weakTopics")),
            strong_topics=_as_str_list(data.get("strongTopics")),
            learning_style=data.get("learningStyle") or defaults.learning_style,
        )


@dataclass
class Chapter:
    """A syllabus chapter as the planner sees it."""

    id: str
    name: str
    order: int = 1
    importance_weight: float = 0.5
    prerequisites: list[str] = field(default_factory=list)
    concepts: list[str] = field(default_factory=list)
    estimated_hours: float = 5
    description: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = 0) -> Chapter:
        """Build from model output or a request body (camelCase keys).

        Fields the model got wrong (e.g. "6 hours" for estimatedHours) keep
        their defaults instead of failing the whole syllabus.
        """
        order = data.get("order")
        if order is None:
            order = data.get("chapterNumber")
        description = data.get("description")

        return cls(
            id=str(data.get("id") or f"ch{index + 1}"),
            name=str(data.get("name") or f"Chapter {index + 1}"),
            order=_as_int(order, index + 1),
            importance_weight=_as_float(data.get("importanceWeight"), 0.5),
            prerequisites=_as_str_list(data.get("prerequisites")),
            concepts=_as_str_list(data.get("concepts")),
            estimated_hours=_as_float(data.get("estimatedHours"), 5),
            description=str(description) if description is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "importanceWeight": self.importance_weight,
            "prerequisites": self.prerequisites,
            "concepts": self.concepts,
            "estimatedHours": self.estimated_hours,
            "description": self.description,
        }


# =============================================================================
# STATIC DEFAULTS
# =============================================================================


def default_chapters(subject: str) -> list[Chapter]:
    """Hand-written syllabus used when generation fails."""
    if "math" in (subject or "").lower():
        return [
            Chapter(
                id="ch1_calculus",
                name="Calculus - Differentiation",
                order=1,
                importance_weight=0.9,
                concepts=["Limits", "Derivatives", "Chain Rule", "Applications"],
                estimated_hours=15,
                description="Introduction to differential calculus and its applications",
            ),
            Chapter(
                id="ch2_integration",
                name="Calculus - Integration",
                order=2,
                importance_weight=0.9,
                prerequisites=["ch1_calculus"],
                concepts=["Indefinite Integrals", "Definite Integrals", "Integration by Parts"],
                estimated_hours=15,
                description="Integral calculus and various integration techniques",
            ),
            Chapter(
                id="ch3_vectors",
                name="Vectors and 3D Geometry",
                order=3,
                importance_weight=0.7,
                concepts=["Vector Operations", "Dot Product", "Cross Product", "3D Lines and Planes"],
                estimated_hours=12,
                description="Vector algebra and three-dimensional geometry",
            ),
            Chapter(
                id="ch4_probability",
                name="Probability",
                order=4,
                importance_weight=0.8,
                concepts=[
                    "Probability Basics",
                    "Conditional Probability",
                    "Bayes Theorem",
                    "Distributions",
                ],
                estimated_hours=10,
                description="Probability theory and its applications",
            ),
        ]

    return [
        Chapter(
            id="ch1",
            name="Introduction",
            order=1,
            importance_weight=0.7,
            concepts=["Fundamentals", "Key Terms"],
            estimated_hours=5,
            description="Introduction to the subject",
        ),
        Chapter(
            id="ch2",
            name="Core Concepts",
            order=2,
            importance_weight=0.9,
            prerequisites=["ch1"],
            concepts=["Main Topic 1", "Main Topic 2"],
            estimated_hours=10,
            description="Core concepts and theories",
        ),
        Chapter(
            id="ch3",
            name="Applications",
            order=3,
            importance_weight=0.8,
            prerequisites=["ch2"],
            concepts=["Practical Applications", "Problem Solving"],
            estimated_hours=8,
            description="Real-world applications",
        ),
    ]


def priority_for(weight: float) -> Priority:
    if weight > HIGH_PRIORITY_WEIGHT:
        return "high"
    if weight > MEDIUM_PRIORITY_WEIGHT:
        return "medium"
    return "low"


def default_roadmap(chapters: list[Chapter], start: date | None = None) -> list[dict[str, Any]]:
    """Schedule chapters back to back at two study hours per day.

    Each chapter ends on the day the next one starts.
    """
    current = start or date.today()
    items = []

    for index, chapter in enumerate(chapters):
        start_date = current
        current = current + timedelta(days=math.ceil(chapter.estimated_hours / HOURS_PER_DAY))
        items.append(
            {
                "chapterId": chapter.id,
                "chapterName": chapter.name,
                "startDate": start_date.isoformat(),
                "endDate": current.isoformat(),
                "isMilestone": index == len(chapters) - 1,
                "isRevision": False,
                "priority": priority_for(chapter.importance_weight),
            }
        )

    return items


def default_timetable(chapter: Chapter, available_minutes: int) -> list[dict[str, Any]]:
    """Split the day into study, practice and revision blocks."""
    tasks: list[dict[str, Any]] = []
    remaining = available_minutes

    for task_type, share, cap, time_slot in TIMETABLE_SPLIT:
        minutes = min(math.floor(available_minutes * share), cap)
        if minutes <= 0 or remaining <= 0:
            continue
        tasks.append(
            {
                "id": f"task_{len(tasks) + 1}",
                "chapterId": chapter.id,
                "chapterName": chapter.name,
                "taskType": task_type,
                "durationMinutes": minutes,
                "timeSlot": time_slot,
                "completed": False,
            }
        )
        remaining -= minutes

    return tasks


# =============================================================================
# GENERATORS
# =============================================================================


def generate_syllabus(
    context: LearningContext,
    client: AIClient | None = None,
) -> ServiceResult:
    """Generate the 3-4 most important chapters for the context's subject.

    Returns:
        ServiceResult with a list of Chapter
    """
    prompt = get_prompt(
        "planner/syllabus",
        country=context.country,
        education_level=context.education_level,
        board=context.board,
        class_grade=context.class_grade,
        subject=context.subject,
    )

    try:
        text = (client or get_ai_client()).generate(prompt)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("syllabus_generation_failed", subject=context.subject, error=str(e))
        return ServiceResult(default_chapters(context.subject), source="fallback")

    raw = _dict_items(extract_json_array(text))
    if not raw:
        logger.warning("syllabus_parse_failed", subject=context.subject, preview=text[:200])
        return ServiceResult(default_chapters(context.subject), source="fallback")

    chapters = [Chapter.from_dict(item, i) for i, item in enumerate(raw)]
    logger.info("syllabus_generated", subject=context.subject, chapters=len(chapters))
    return ServiceResult(chapters)


def generate_roadmap(
    context: LearningContext,
    chapters: list[Chapter],
    client: AIClient | None = None,
    today: date | None = None,
) -> ServiceResult:
    """Generate a dated roadmap over the given chapters, starting today.

    Returns:
        ServiceResult with a list of roadmap item dicts (camelCase keys)
    """
    today = today or date.today()
    prompt = get_prompt(
        "planner/roadmap",
        daily_available_time=context.daily_available_time,
        exam_date=context.exam_date or "Not set",
        weak_topics=", ".join(context.weak_topics) or "None specified",
        strong_topics=", ".join(context.strong_topics) or "None specified",
        chapters_json=json.dumps([c.to_dict() for c in chapters], indent=2),
        today=today.isoformat(),
    )

    try:
        text = (client or get_ai_client()).generate(prompt)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("roadmap_generation_failed", error=str(e))
        return ServiceResult(default_roadmap(chapters, today), source="fallback")

    items = [
        item
        for item in _dict_items(extract_json_array(text))
        if item.get("startDate") and item.get("endDate")
    ]
    if not items:
        logger.warning("roadmap_parse_failed", preview=text[:200])
        return ServiceResult(default_roadmap(chapters, today), source="fallback")

    logger.info("roadmap_generated", items=len(items))
    return ServiceResult(items)


def generate_timetable(
    context: LearningContext,
    chapter: Chapter,
    day: date | None = None,
    client: AIClient | None = None,
) -> ServiceResult:
    """Plan today's tasks for one chapter within the available time."""
    day = day or date.today()
    prompt = get_prompt(
        "planner/timetable",
        date=day.isoformat(),
        daily_available_time=context.daily_available_time,
        chapter_name=chapter.name,
        chapter_id=chapter.id,
        concepts=", ".join(chapter.concepts),
    )

    try:
        text = (client or get_ai_client()).generate(prompt, fast=True)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("timetable_generation_failed", chapter=chapter.name, error=str(e))
        return ServiceResult(
            default_timetable(chapter, context.daily_available_time), source="fallback"
        )

    tasks = _dict_items(extract_json_array(text))
    if not tasks:
        logger.warning("timetable_parse_failed", chapter=chapter.name, preview=text[:200])
        return ServiceResult(
            default_timetable(chapter, context.daily_available_time), source="fallback"
        )

    return ServiceResult(tasks)
