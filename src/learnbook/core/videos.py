"""Video recommendations for a chapter.

Three tiers, first one that yields results wins:
1. YouTube Data API search (when a key is configured)
2. AI-suggested search queries turned into YouTube search links
3. Three hand-written search links
"""

from __future__ import annotations

from typing import Any

import structlog

from learnbook.core.results import ServiceResult
from learnbook.integrations import youtube
from learnbook.llm.client import AIClient, LLMError, LLMRateLimitError, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_array

logger = structlog.get_logger(__name__)

DEFAULT_COUNTRY = "India"
MISSING_KEY_MESSAGE = "Add YOUTUBE_API_KEY to .env for direct video results"


def build_queries(subject: str, chapter: str, board: str, class_grade: str) -> list[str]:
    return [
        f"{chapter} {subject} {board} class {class_grade}",
        f"{chapter} {subject} explanation",
    ]


def suggestions_to_videos(suggestions: list[Any]) -> list[dict[str, Any]]:
    """Turn {searchQuery, channel, description} suggestions into search links."""
    videos = []
    for suggestion in suggestions:
        if not isinstance(suggestion, dict) or not suggestion.get("searchQuery"):
            continue
        query = str(suggestion["searchQuery"])
        videos.append(
            {
                "title": query,
                "channel": suggestion.get("channel") or "YouTube Search",
                "url": youtube.search_url(query),
                "thumbnail": None,
                "description": suggestion.get("description", ""),
                "isSearchLink": True,
            }
        )
    return videos


def fallback_videos(subject: str, chapter: str, board: str, class_grade: str) -> list[dict[str, Any]]:
    return [
        {
            "title": f"{chapter} - {subject} Full Lecture",
            "channel": "YouTube Search",
            "url": youtube.search_url(f"{chapter} {subject} {board} {class_grade}"),
            "description": f"Search for {chapter} lectures",
            "isSearchLink": True,
        },
        {
            "title": f"{chapter} - Quick Revision",
            "channel": "YouTube Search",
            "url": youtube.search_url(f"{chapter} {subject} revision one shot"),
            "description": "Quick revision videos",
            "isSearchLink": True,
        },
        {
            "title": f"{chapter} - Solved Problems",
            "channel": "YouTube Search",
            "url": youtube.search_url(f"{chapter} {subject} solved problems numericals"),
            "description": "Practice problems with solutions",
            "isSearchLink": True,
        },
    ]


def recommend_videos(
    subject: str,
    chapter: str,
    board: str = "",
    class_grade: str = "",
    country: str | None = None,
    client: AIClient | None = None,
) -> ServiceResult:
    """Recommend videos for a chapter.

    Raises:
        LLMRateLimitError: If the suggestion tier is rate limited
    """
    if youtube.is_configured():
        for query in build_queries(subject, chapter, board, class_grade):
            results = youtube.search_youtube(query, 6)
            if results:
                logger.info("videos_from_api", query=query, count=len(results))
                return ServiceResult([v.to_dict() for v in results], source="youtube_api")

    prompt = get_prompt(
        "videos/suggestions",
        subject=subject,
        chapter=chapter,
        board=board,
        class_grade=class_grade,
        country=country or DEFAULT_COUNTRY,
    )

    try:
        text = (client or get_ai_client()).generate(prompt, fast=True)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("video_suggestions_failed", chapter=chapter, error=str(e))
        text = ""

    videos = suggestions_to_videos(extract_json_array(text) or [])
    if videos:
        return ServiceResult(videos, source="ai_suggestions", message=MISSING_KEY_MESSAGE)

    logger.info("videos_fallback", chapter=chapter)
    return ServiceResult(
        fallback_videos(subject, chapter, board, class_grade),
        source="fallback",
    )
