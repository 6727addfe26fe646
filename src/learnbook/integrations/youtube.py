"""YouTube Data API v3 search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests
import structlog

from learnbook.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"


@dataclass
class YouTubeVideo:
    """A video returned by the search API."""

    video_id: str
    title: str
    channel: str
    url: str
    thumbnail: str | None
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "channel": self.channel,
            "url": self.url,
            "thumbnail": self.thumbnail,
            "description": self.description,
        }


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def search_url(query: str) -> str:
    """YouTube results page for a free-text query."""
    return f"https://www.youtube.com/results?search_query={quote(query, safe='')}"


def _best_thumbnail(thumbnails: dict[str, Any]) -> str | None:
    for size in ("high", "medium", "default"):
        url = thumbnails.get(size, {}).get("url")
        if url:
            return url
    return None


def is_configured() -> bool:
    return load_app_config().search.get_youtube_key() is not None


def search_youtube(query: str, max_results: int = 6) -> list[YouTubeVideo]:
    """Search embeddable English videos.

    Returns:
        Videos found, empty when the key is missing or the API errors
    """
    config = load_app_config().search
    api_key = config.get_youtube_key()
    if api_key is None:
        logger.info("youtube_not_configured")
        return []

    params = {
        "part": "snippet",
        "type": "video",
        "maxResults": max_results,
        "q": query,
        "key": api_key,
        "relevanceLanguage": "en",
        "videoEmbeddable": "true",
    }

    try:
        response = requests.get(YOUTUBE_SEARCH_URL, params=params, timeout=config.timeout)
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("youtube_search_failed", query=query, error=str(e))
        return []

    if "error" in data:
        logger.error("youtube_api_error", query=query, error=data["error"])
        return []

    videos = []
    for item in data.get("items", []):
        video_id = item.get("id", {}).get("videoId")
        if not video_id:
            continue
        snippet = item.get("snippet", {})
        videos.append(
            YouTubeVideo(
                video_id=video_id,
                title=snippet.get("title", ""),
                channel=snippet.get("channelTitle", ""),
                url=watch_url(video_id),
                thumbnail=_best_thumbnail(snippet.get("thumbnails", {})),
                description=snippet.get("description", ""),
            )
        )

    logger.info("youtube_search_completed", query=query, count=len(videos))
    return videos
