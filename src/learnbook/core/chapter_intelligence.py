"""Why a chapter matters, what breaks without it, how deep to study it."""

from __future__ import annotations

from typing import Any

import structlog

from learnbook.core.planner import Chapter, LearningContext
from learnbook.core.results import ServiceResult
from learnbook.llm.client import AIClient, LLMError, LLMRateLimitError, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

DEPTHS = ("light", "medium", "deep")


def default_intelligence(context: LearningContext, chapter: Chapter) -> dict[str, Any]:
    return {
        "whyItMatters": (
            f"{chapter.name} is a foundational topic in {context.subject} "
            "that builds understanding for advanced concepts."
        ),
        "whatBreaksIfSkipped": (
            "Skipping this chapter may cause difficulty in understanding dependent topics."
        ),
        "recommendedDepth": "medium",
        "keyTakeaways": chapter.concepts[:4],
    }


def generate_chapter_intelligence(
    context: LearningContext,
    chapter: Chapter,
    all_chapters: list[Chapter] | None = None,
    client: AIClient | None = None,
) -> ServiceResult:
    """Analyse a chapter within its syllabus.

    Returns:
        ServiceResult with {whyItMatters, whatBreaksIfSkipped,
        recommendedDepth, keyTakeaways}
    """
    prompt = get_prompt(
        "planner/chapter_intelligence",
        class_grade=context.class_grade,
        subject=context.subject,
        chapter_name=chapter.name,
        description=chapter.description or "No description",
        concepts=", ".join(chapter.concepts),
        prerequisites=", ".join(chapter.prerequisites) or "None",
        other_chapters=", ".join(c.name for c in all_chapters or []),
    )

    try:
        text = (client or get_ai_client()).generate(prompt, fast=True)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("chapter_intelligence_failed", chapter=chapter.name, error=str(e))
        return ServiceResult(default_intelligence(context, chapter), source="fallback")

    data = extract_json_object(text)
    if data is None:
        logger.warning("chapter_intelligence_parse_failed", chapter=chapter.name)
        return ServiceResult(default_intelligence(context, chapter), source="fallback")

    fallback = default_intelligence(context, chapter)
    depth = str(data.get("recommendedDepth", "")).lower()
    takeaways = data.get("keyTakeaways")

    return ServiceResult(
        {
            "whyItMatters": data.get("whyItMatters") or fallback["whyItMatters"],
            "whatBreaksIfSkipped": data.get("whatBreaksIfSkipped") or fallback["whatBreaksIfSkipped"],
            "recommendedDepth": depth if depth in DEPTHS else "medium",
            "keyTakeaways": takeaways if isinstance(takeaways, list) else fallback["keyTakeaways"],
        }
    )
