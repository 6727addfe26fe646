"""Pydantic schemas for the Web API.

Request bodies accept the camelCase field names the web client sends;
snake_case names are accepted too.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# ENVELOPES
# =============================================================================


class SuccessEnvelope(BaseModel):
    """``{"success": true, "data": ...}`` with optional source/message."""

    success: Literal[True] = True
    data: Any = None
    source: str | None = None
    message: str | None = None


class ErrorEnvelope(BaseModel):
    """``{"success": false, "error": "..."}``."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[False] = False
    error: str
    can_retry: bool | None = Field(default=None, serialization_alias="canRetry")


def envelope(data: Any, source: str | None = None, message: str | None = None) -> dict[str, Any]:
    """Success envelope without unset optional keys."""
    return SuccessEnvelope(data=data, source=source, message=message).model_dump(exclude_none=True)


def error_envelope(error: str, can_retry: bool | None = None) -> dict[str, Any]:
    return ErrorEnvelope(error=error, can_retry=can_retry).model_dump(
        by_alias=True, exclude_none=True
    )


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    providers: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# AI FEATURE REQUESTS
# =============================================================================


class CurriculumRequestBody(CamelModel):
    """Body of POST /api/curriculum."""

    search_type: str
    country: str = ""
    education_level: str = "school"
    board: str = ""
    class_grade: str = ""
    subject: str | None = None
    course_program: str | None = None
    chapter_name: str | None = None


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatContextBody(CamelModel):
    subject: str | None = None
    chapter: str | None = None
    board: str | None = None
    class_grade: str | None = None


class ChatRequestBody(CamelModel):
    """Body of POST /api/chat."""

    messages: list[ChatTurn] = Field(..., min_length=1)
    context: ChatContextBody | None = None


class SummarizeRequestBody(CamelModel):
    subject: str
    chapter: str
    concepts: list[str] = Field(default_factory=list)
    board: str = ""
    class_grade: str = ""


class VideoRequestBody(CamelModel):
    subject: str
    chapter: str
    board: str = ""
    class_grade: str = ""
    country: str | None = None


class ChapterBody(CamelModel):
    """A syllabus chapter as sent by the client."""

    id: str
    name: str
    order: int = 1
    importance_weight: float = 0.5
    prerequisites: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    estimated_hours: float = 5
    description: str | None = None


class LearningContextBody(CamelModel):
    country: str | None = None
    education_level: str | None = None
    board: str | None = None
    class_grade: str | None = None
    subject: str | None = None
    exam_date: str | None = None
    daily_available_time: int | None = Field(default=None, ge=0)
    weak_topics: list[str] = Field(default_factory=list)
    strong_topics: list[str] = Field(default_factory=list)
    learning_style: str | None = None


class ChapterIntelligenceRequestBody(LearningContextBody):
    """Body of POST /api/ai/chapter-intelligence.

    Either nested (``context`` + ``chapter``) or flat, with the learning
    context and ``chapterName``/``description``/``concepts`` at the top level.
    Nested values win over flat ones.
    """

    context: LearningContextBody | None = None
    chapter: ChapterBody | None = None
    chapter_name: str | None = None
    description: str | None = None
    concepts: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    all_chapters: list[str | dict[str, Any]] = Field(default_factory=list)


class CurateResourcesRequestBody(CamelModel):
    topic: str
    subject: str
    grade: str = ""
    learning_style: str | None = None


class SyllabusRequestBody(CamelModel):
    context: LearningContextBody = Field(default_factory=LearningContextBody)


class RoadmapRequestBody(LearningContextBody):
    """Body of POST /api/ai/generate-roadmap.

    The learning context may be flat or nested under ``context``. Without
    ``chapters`` a syllabus is generated first.
    """

    context: LearningContextBody | None = None
    chapters: list[ChapterBody] = Field(default_factory=list)
    save: bool = False


class TimetableRequestBody(CamelModel):
    context: LearningContextBody = Field(default_factory=LearningContextBody)
    chapter: ChapterBody
    date: str | None = None


class ResourceLink(BaseModel):
    title: str = ""
    url: str


class NotebookBundleRequestBody(CamelModel):
    context: LearningContextBody = Field(default_factory=LearningContextBody)
    chapter: ChapterBody
    resources: list[ResourceLink] = Field(default_factory=list)


# =============================================================================
# PERSISTENCE REQUESTS
# =============================================================================


class ProfileUpdate(CamelModel):
    full_name: str | None = None
    country: str | None = None
    education_level: Literal["school", "college"] | None = None
    board: str | None = None
    class_grade: str | None = None
    course_program: str | None = None


class SettingsUpdate(CamelModel):
    daily_available_time: int | None = Field(default=None, ge=0)
    exam_date: str | None = None
    weak_topics: list[str] | None = None
    strong_topics: list[str] | None = None
    learning_style: Literal["visual", "reading", "auditory", "kinesthetic"] | None = None


class SubjectCreate(CamelModel):
    name: str = Field(..., min_length=1)
    code: str | None = None
    description: str | None = None
    is_custom: bool = False


class SubjectUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = None
    description: str | None = None
    is_custom: bool | None = None


class ChapterCreate(CamelModel):
    chapter_number: int
    name: str = Field(..., min_length=1)
    description: str | None = None
    concepts: list[str] = Field(default_factory=list)
    estimated_hours: float | None = None


class ChaptersReplace(CamelModel):
    chapters: list[ChapterCreate]


class ChapterProgressUpdate(CamelModel):
    progress: int | None = Field(default=None, ge=0, le=100)
    status: Literal["not_started", "in_progress", "completed", "revision"] | None = None


class TaskCreate(CamelModel):
    task_date: str
    task_description: str | None = None
    task_type: Literal["study", "revision", "practice"] = "study"
    duration_minutes: int = Field(default=30, gt=0)
    time_slot: str | None = None
    chapter_id: str | None = None


class TaskToggle(CamelModel):
    completed: bool


class ProgressUpdate(CamelModel):
    status: Literal["not_started", "in_progress", "completed", "revision"] | None = None
    completion_percentage: int | None = Field(default=None, ge=0, le=100)
    time_spent: int | None = Field(default=None, ge=0)
    notes: str | None = None


class NotesSave(CamelModel):
    subject: str
    chapter_name: str
    notes_data: dict[str, Any]


class RoadmapReplace(CamelModel):
    items: list[dict[str, Any]]


class RoadmapStatusUpdate(CamelModel):
    status: Literal["pending", "in_progress", "completed"]


# =============================================================================
# GOOGLE EXPORT REQUESTS
# =============================================================================


class GoogleTokensSave(CamelModel):
    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    expires_at: str | None = None


class CalendarExportRequest(CamelModel):
    """Tasks to schedule on one date, and/or to-dos as all-day events."""

    date: str | None = None
    time_zone: str = "UTC"
    tasks: list[dict[str, Any]] = Field(default_factory=list)
    todos: list[dict[str, Any]] = Field(default_factory=list)


class DriveNotesRequest(CamelModel):
    title: str = Field(..., min_length=1)
    content: str
    in_folder: bool = True
