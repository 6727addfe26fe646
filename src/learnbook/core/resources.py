"""Curated learning resources for a topic.

Web and YouTube-site results are gathered through Custom Search, then the
model picks the three best for the student's learning style. If ranking
fails the first two videos and first two articles are returned as-is.
"""

from __future__ import annotations

from typing import Any

import structlog

from learnbook.core.results import ServiceResult
from learnbook.integrations.google_search import (
    SearchResult,
    search_educational_resources,
    search_youtube_resources,
)
from learnbook.llm.client import AIClient, LLMError, LLMRateLimitError, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_array

logger = structlog.get_logger(__name__)


def _format_web(results: list[SearchResult]) -> str:
    return "\n".join(
        f"{i}. {r.title} ({r.display_link}): {r.snippet}" for i, r in enumerate(results, start=1)
    )


def _format_youtube(results: list[SearchResult]) -> str:
    return "\n".join(f"{i}. {r.title}: {r.snippet}" for i, r in enumerate(results, start=1))


def raw_resources(
    web_results: list[SearchResult],
    youtube_results: list[SearchResult],
) -> list[dict[str, Any]]:
    """Unranked pick: two videos then two articles."""
    videos = [
        {"title": r.title, "url": r.link, "type": "video", "source": "YouTube"}
        for r in youtube_results[:2]
    ]
    articles = [
        {"title": r.title, "url": r.link, "type": "article", "source": r.display_link}
        for r in web_results[:2]
    ]
    return videos + articles


def curate_resources(
    topic: str,
    subject: str,
    grade: str,
    learning_style: str | None = None,
    client: AIClient | None = None,
) -> ServiceResult:
    """Find and rank resources for a topic.

    Returns:
        ServiceResult with {"resources": [...]} plus "allResults" when the
        model ranked them
    """
    web_results = search_educational_resources(topic, subject, grade)
    youtube_results = search_youtube_resources(topic, subject)

    prompt = get_prompt(
        "resources/curate",
        topic=topic,
        subject=subject,
        grade=grade,
        web_results=_format_web(web_results),
        youtube_results=_format_youtube(youtube_results),
        learning_style=learning_style or "visual",
    )

    try:
        text = (client or get_ai_client()).generate(prompt, fast=True)
        ranked = extract_json_array(text)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("resource_ranking_failed", topic=topic, error=str(e))
        ranked = None

    if ranked:
        return ServiceResult(
            {
                "resources": ranked,
                "allResults": {
                    "web": [r.to_dict() for r in web_results],
                    "youtube": [r.to_dict() for r in youtube_results],
                },
            }
        )

    logger.info("resources_fallback", topic=topic)
    return ServiceResult(
        {"resources": raw_resources(web_results, youtube_results)},
        source="fallback",
    )
