"""Exam-focused study summaries for a chapter."""

from __future__ import annotations

from typing import Any

import structlog

from learnbook.core.results import ServiceResult
from learnbook.llm.client import AIClient, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

SUMMARY_KEYS = (
    "overview",
    "keyPoints",
    "formulas",
    "importantTerms",
    "commonMistakes",
    "examTips",
    "practiceQuestions",
)


def default_summary(
    subject: str,
    chapter: str,
    concepts: list[str],
    board: str,
    class_grade: str,
) -> dict[str, Any]:
    """Static summary assembled from the request fields."""
    key_points = [f"Understand {c} and where it is used" for c in concepts[:5]]
    if not key_points:
        key_points = [f"Learn the core definitions and results of {chapter}"]

    return {
        "overview": (
            f"{chapter} is a key chapter of {subject} for {class_grade} ({board}). "
            "Focus on the definitions, the main results and the standard problem types."
        ),
        "keyPoints": key_points,
        "formulas": [],
        "importantTerms": [
            {"term": c, "definition": f"A core concept of {chapter}."} for c in concepts[:5]
        ],
        "commonMistakes": [
            "Memorising results without understanding the conditions they need",
            "Skipping units and signs in worked answers",
        ],
        "examTips": [
            "Revise the solved examples before attempting past papers",
            "Write every step; partial credit is common",
        ],
        "practiceQuestions": [
            {
                "question": f"Explain the main idea of {chapter} in your own words.",
                "hint": "Start from the definitions.",
            }
        ],
    }


def _normalise(summary: dict[str, Any]) -> dict[str, Any]:
    """Make sure every section is present; lists default to empty."""
    result = dict(summary)
    result.setdefault("overview", "")
    for key in SUMMARY_KEYS[1:]:
        if not isinstance(result.get(key), list):
            result[key] = []
    return result


def generate_study_summary(
    subject: str,
    chapter: str,
    concepts: list[str] | None = None,
    board: str = "",
    class_grade: str = "",
    client: AIClient | None = None,
) -> ServiceResult:
    """Generate a study summary for a chapter.

    Returns:
        ServiceResult with the summary dict (overview, keyPoints, formulas,
        importantTerms, commonMistakes, examTips, practiceQuestions)

    Raises:
        LLMRateLimitError: If every provider is rate limited
        LLMError: If every provider fails
    """
    concepts = concepts or []
    prompt = get_prompt(
        "study/summary",
        subject=subject,
        chapter=chapter,
        board=board,
        class_grade=class_grade,
        concepts=", ".join(concepts) or "General overview",
    )

    text = (client or get_ai_client()).generate(prompt)
    summary = extract_json_object(text)

    if summary is None:
        logger.warning("summary_parse_failed", chapter=chapter, preview=text[:200])
        return ServiceResult(
            default_summary(subject, chapter, concepts, board, class_grade),
            source="fallback",
        )

    logger.info("summary_generated", chapter=chapter)
    return ServiceResult(_normalise(summary))
