"""Google Custom Search client.

Search failures never propagate: missing credentials, HTTP errors and
network errors are logged and produce an empty result list.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import requests
import structlog

from learnbook.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


@dataclass
class SearchResult:
    """A single web search hit."""

    title: str
    link: str
    snippet: str
    display_link: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["displayLink"] = data.pop("display_link")
        return data


def search_web(query: str, num_results: int = 5) -> list[SearchResult]:
    """Run a Custom Search query.

    Args:
        query: Search query string
        num_results: Maximum number of results (API caps this at 10)

    Returns:
        List of SearchResult, empty on any failure
    """
    config = load_app_config().search
    api_key, engine_id = config.get_credentials()

    if not api_key or not engine_id:
        logger.warning("search_not_configured")
        return []

    params = {
        "key": api_key,
        "cx": engine_id,
        "q": query,
        "num": str(num_results),
    }

    try:
        response = requests.get(SEARCH_URL, params=params, timeout=config.timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("search_failed", query=query, error=str(e))
        return []

    results = [
        SearchResult(
            title=item.get("title", ""),
            link=item.get("link", ""),
            snippet=item.get("snippet", ""),
            display_link=item.get("displayLink", ""),
        )
        for item in data.get("items", [])
    ]

    logger.info("search_completed", query=query, count=len(results))
    return results


def search_educational_resources(topic: str, subject: str, grade: str) -> list[SearchResult]:
    """Search tutorials and explanations for a topic."""
    return search_web(f"{topic} {subject} {grade} tutorial explanation", 5)


def search_youtube_resources(topic: str, subject: str) -> list[SearchResult]:
    """Search YouTube pages through the web index."""
    return search_web(f"{topic} {subject} site:youtube.com tutorial", 3)
