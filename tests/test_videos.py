"""Tests for tiered video recommendations."""

from unittest.mock import patch

import pytest

from learnbook.core.videos import (
    MISSING_KEY_MESSAGE,
    build_queries,
    fallback_videos,
    recommend_videos,
    suggestions_to_videos,
)
from learnbook.integrations.youtube import YouTubeVideo
from learnbook.llm.client import LLMError, LLMRateLimitError

VIDEO = YouTubeVideo(
    video_id="abc123",
    title="Light - Reflection | Class 10",
    channel="Physics Wallah",
    url="https://www.youtube.com/watch?v=abc123",
    thumbnail="https://i.ytimg.com/vi/abc123/hqdefault.jpg",
    description="Full chapter",
)


class TestHelpers:
    """Tests for query and link building."""

    def test_build_queries(self):
        assert build_queries("Science", "Light", "CBSE", "10") == [
            "Light Science CBSE class 10",
            "Light Science explanation",
        ]

    def test_suggestions_become_search_links(self):
        videos = suggestions_to_videos(
            [
                {"searchQuery": "light reflection class 10", "channel": "Vedantu"},
                {"channel": "no query"},
                "not a dict",
            ]
        )

        assert len(videos) == 1
        assert videos[0]["url"] == (
            "https://www.youtube.com/results?search_query=light%20reflection%20class%2010"
        )
        assert videos[0]["channel"] == "Vedantu"
        assert videos[0]["isSearchLink"] is True

    def test_missing_channel_defaults(self):
        videos = suggestions_to_videos([{"searchQuery": "optics"}])
        assert videos[0]["channel"] == "YouTube Search"

    def test_fallback_videos(self):
        videos = fallback_videos("Science", "Light", "CBSE", "Class 10")
        assert len(videos) == 3
        assert all(v["isSearchLink"] for v in videos)
        assert videos[0]["title"] == "Light - Science Full Lecture"
        assert "search_query=Light%20Science%20CBSE%20Class%2010" in videos[0]["url"]


class TestRecommendVideos:
    """Tests for recommend_videos tiers."""

    @patch("learnbook.core.videos.youtube.search_youtube", return_value=[VIDEO])
    @patch("learnbook.core.videos.youtube.is_configured", return_value=True)
    def test_api_results_first(self, mock_configured, mock_search, fake_ai):
        result = recommend_videos("Science", "Light", "CBSE", "10", client=fake_ai)

        assert result.source == "youtube_api"
        assert result.data[0]["videoId"] == "abc123"
        fake_ai.generate.assert_not_called()
        assert mock_search.call_args[0] == ("Light Science CBSE class 10", 6)

    @patch("learnbook.core.videos.youtube.search_youtube", side_effect=[[], [VIDEO]])
    @patch("learnbook.core.videos.youtube.is_configured", return_value=True)
    def test_second_query_tried(self, mock_configured, mock_search, fake_ai):
        result = recommend_videos("Science", "Light", "CBSE", "10", client=fake_ai)

        assert result.source == "youtube_api"
        assert mock_search.call_count == 2

    @patch("learnbook.core.videos.youtube.search_youtube", return_value=[])
    @patch("learnbook.core.videos.youtube.is_configured", return_value=True)
    def test_empty_api_falls_to_suggestions(self, mock_configured, mock_search, fake_ai):
        fake_ai.generate.return_value = '[{"searchQuery": "light class 10"}]'

        result = recommend_videos("Science", "Light", client=fake_ai)

        assert result.source == "ai_suggestions"

    def test_suggestions_without_key(self, fake_ai):
        fake_ai.generate.return_value = (
            'Here you go: [{"searchQuery": "light one shot", "channel": "Magnet Brains",'
            ' "description": "Whole chapter"}]'
        )

        result = recommend_videos("Science", "Light", "CBSE", "Class 10", client=fake_ai)

        assert result.source == "ai_suggestions"
        assert result.message == MISSING_KEY_MESSAGE
        assert result.data[0]["title"] == "light one shot"
        assert fake_ai.generate.call_args[1] == {"fast": True}
        assert "India" in fake_ai.generate.call_args[0][0]

    def test_unparseable_suggestions_fall_back(self, fake_ai):
        fake_ai.generate.return_value = "no idea"

        result = recommend_videos("Science", "Light", client=fake_ai)

        assert result.is_fallback
        assert len(result.data) == 3

    def test_ai_error_falls_back(self, fake_ai):
        fake_ai.generate.side_effect = LLMError("down")

        result = recommend_videos("Science", "Light", client=fake_ai)

        assert result.is_fallback

    def test_rate_limit_propagates(self, fake_ai):
        fake_ai.generate.side_effect = LLMRateLimitError("429")

        with pytest.raises(LLMRateLimitError):
            recommend_videos("Science", "Light", client=fake_ai)
