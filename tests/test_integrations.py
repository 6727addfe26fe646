"""Tests for Google Search, YouTube, Calendar, Drive and OAuth token helpers."""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from learnbook.db.profiles_repository import get_google_tokens, save_google_tokens
from learnbook.integrations.google_api import GoogleTokenExpiredError, IntegrationError
from learnbook.integrations.google_calendar import (
    CALENDAR_SUMMARY,
    convert_task_to_event,
    convert_todo_to_event,
    create_calendar_event,
    get_or_create_calendar,
    parse_time_slot,
)
from learnbook.integrations.google_drive import (
    MULTIPART_BOUNDARY,
    build_multipart_body,
    create_google_doc,
)
from learnbook.integrations.google_search import SearchResult, search_web
from learnbook.integrations.google_tokens import (
    get_valid_google_token,
    is_token_expired,
    refresh_google_token,
)
from learnbook.integrations.youtube import is_configured, search_url, search_youtube


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload if payload is not None else {}
    if not response.ok:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return response


SEARCH_ENV = {"GOOGLE_SEARCH_API_KEY": "search-key", "GOOGLE_SEARCH_ENGINE_ID": "cx-1"}


class TestGoogleSearch:
    """Tests for search_web."""

    def test_not_configured(self):
        with patch("learnbook.integrations.google_search.requests.get") as mock_get:
            assert search_web("optics") == []
        mock_get.assert_not_called()

    def test_results(self):
        payload = {
            "items": [
                {
                    "title": "Optics",
                    "link": "https://example.edu/optics",
                    "snippet": "Lenses and mirrors",
                    "displayLink": "example.edu",
                }
            ]
        }
        with patch.dict(os.environ, SEARCH_ENV):
            with patch(
                "learnbook.integrations.google_search.requests.get",
                return_value=_response(200, payload),
            ) as mock_get:
                results = search_web("optics", 3)

        assert results == [
            SearchResult("Optics", "https://example.edu/optics", "Lenses and mirrors", "example.edu")
        ]
        assert results[0].to_dict()["displayLink"] == "example.edu"
        params = mock_get.call_args[1]["params"]
        assert params["cx"] == "cx-1"
        assert params["num"] == "3"

    def test_http_error_is_empty(self):
        with patch.dict(os.environ, SEARCH_ENV):
            with patch(
                "learnbook.integrations.google_search.requests.get",
                return_value=_response(403),
            ):
                assert search_web("optics") == []

    def test_network_error_is_empty(self):
        with patch.dict(os.environ, SEARCH_ENV):
            with patch(
                "learnbook.integrations.google_search.requests.get",
                side_effect=requests.ConnectionError("offline"),
            ):
                assert search_web("optics") == []


class TestYouTube:
    """Tests for the YouTube Data API client."""

    def test_search_url_encodes_query(self):
        assert search_url("a&b c/d") == "https://www.youtube.com/results?search_query=a%26b%20c%2Fd"

    def test_not_configured(self):
        assert not is_configured()
        assert search_youtube("optics") == []

    def test_results(self):
        payload = {
            "items": [
                {
                    "id": {"videoId": "v1"},
                    "snippet": {
                        "title": "Optics",
                        "channelTitle": "Khan Academy",
                        "description": "Lenses",
                        "thumbnails": {"medium": {"url": "https://i.ytimg.com/m.jpg"}},
                    },
                },
                {"id": {"channelId": "c1"}, "snippet": {}},
            ]
        }
        with patch.dict(os.environ, {"YOUTUBE_API_KEY": "yt-key"}):
            with patch(
                "learnbook.integrations.youtube.requests.get",
                return_value=_response(200, payload),
            ) as mock_get:
                videos = search_youtube("optics", 4)

        assert len(videos) == 1
        assert videos[0].url == "https://www.youtube.com/watch?v=v1"
        assert videos[0].thumbnail == "https://i.ytimg.com/m.jpg"
        assert videos[0].to_dict()["videoId"] == "v1"
        params = mock_get.call_args[1]["params"]
        assert params["maxResults"] == 4
        assert params["videoEmbeddable"] == "true"

    def test_api_error_body(self):
        with patch.dict(os.environ, {"YOUTUBE_API_KEY": "yt-key"}):
            with patch(
                "learnbook.integrations.youtube.requests.get",
                return_value=_response(403, {"error": {"message": "quota"}}),
            ):
                assert search_youtube("optics") == []


class TestCalendarConversion:
    """Tests for task and to-do event building."""

    def test_parse_time_slot(self):
        assert parse_time_slot("9:00 AM - 10:00 AM") == (9, 0)
        assert parse_time_slot("4:45 PM - 5:30 PM") == (16, 45)
        assert parse_time_slot("12:15 AM") == (0, 15)
        assert parse_time_slot("12:30 PM") == (12, 30)
        assert parse_time_slot("18:00") == (18, 0)

    def test_parse_time_slot_invalid(self):
        with pytest.raises(ValueError):
            parse_time_slot("")
        with pytest.raises(ValueError):
            parse_time_slot("morning")

    def test_task_event(self):
        event = convert_task_to_event(
            {
                "chapterName": "Optics",
                "taskType": "practice",
                "durationMinutes": 45,
                "timeSlot": "4:00 PM - 4:45 PM",
            },
            "2026-10-19",
            "Asia/Kolkata",
        )

        assert event["summary"] == "Study: Optics"
        assert event["description"].startswith("Task: practice")
        assert event["start"] == {
            "dateTime": "2026-10-19T16:00:00+05:30",
            "timeZone": "Asia/Kolkata",
        }
        assert event["end"]["dateTime"] == "2026-10-19T16:45:00+05:30"
        assert event["reminders"]["overrides"] == [{"method": "popup", "minutes": 10}]

    def test_task_event_snake_case(self):
        event = convert_task_to_event(
            {"chapter_name": "Sets", "time_slot": "9:00 AM", "duration_minutes": 30},
            "2026-10-19",
        )
        assert event["start"]["dateTime"] == "2026-10-19T09:00:00+00:00"
        assert event["end"]["dateTime"] == "2026-10-19T09:30:00+00:00"

    def test_todo_event_is_all_day(self):
        event = convert_todo_to_event(
            {
                "task_date": "2026-12-31",
                "task_description": "Revise optics",
                "task_type": "revision",
                "completed": True,
            }
        )

        assert event["summary"] == "Todo: Revise optics"
        assert event["start"] == {"date": "2026-12-31"}
        assert event["end"] == {"date": "2027-01-01"}
        assert "Status: Completed" in event["description"]
        assert event["reminders"]["overrides"][0]["minutes"] == 720


class TestCalendarApi:
    """Tests for calendar lookup and event insertion."""

    def test_existing_calendar_reused(self):
        listing = _response(200, {"items": [{"id": "cal-1", "summary": CALENDAR_SUMMARY}]})
        with patch("learnbook.integrations.google_calendar.requests.get", return_value=listing):
            with patch("learnbook.integrations.google_calendar.requests.post") as mock_post:
                assert get_or_create_calendar("token") == "cal-1"
        mock_post.assert_not_called()

    def test_calendar_created(self):
        with patch(
            "learnbook.integrations.google_calendar.requests.get",
            return_value=_response(200, {"items": []}),
        ):
            with patch(
                "learnbook.integrations.google_calendar.requests.post",
                return_value=_response(200, {"id": "cal-new"}),
            ) as mock_post:
                assert get_or_create_calendar("token") == "cal-new"

        assert mock_post.call_args[1]["json"]["summary"] == CALENDAR_SUMMARY
        assert mock_post.call_args[1]["headers"]["Authorization"] == "Bearer token"

    def test_event_failure(self):
        listing = _response(200, {"items": [{"id": "cal-1", "summary": CALENDAR_SUMMARY}]})
        with patch("learnbook.integrations.google_calendar.requests.get", return_value=listing):
            with patch(
                "learnbook.integrations.google_calendar.requests.post",
                return_value=_response(400),
            ):
                with pytest.raises(IntegrationError) as exc_info:
                    create_calendar_event("token", {"summary": "x"})

        assert exc_info.value.status_code == 400

    def test_known_calendar_skips_lookup(self):
        with patch("learnbook.integrations.google_calendar.requests.get") as mock_get:
            with patch(
                "learnbook.integrations.google_calendar.requests.post",
                return_value=_response(200, {"id": "evt-1"}),
            ) as mock_post:
                event = create_calendar_event("token", {"summary": "x"}, calendar_id="cal-9")

        assert event == {"id": "evt-1"}
        mock_get.assert_not_called()
        assert mock_post.call_args[0][0].endswith("/calendars/cal-9/events")


class TestDrive:
    """Tests for Google Docs export."""

    def test_multipart_body(self):
        body = build_multipart_body({"name": "Notes"}, "Hello")
        assert body.startswith(f"\r\n--{MULTIPART_BOUNDARY}\r\n")
        assert '{"name": "Notes"}' in body
        assert body.endswith(f"Hello\r\n--{MULTIPART_BOUNDARY}--")

    def test_expired_token(self):
        with patch(
            "learnbook.integrations.google_drive.requests.get",
            return_value=_response(400),
        ):
            with pytest.raises(GoogleTokenExpiredError) as exc_info:
                create_google_doc("stale", "Notes", "Body")

        assert exc_info.value.status_code == 401

    def test_doc_created_in_folder(self):
        get_responses = [
            _response(200, {"expires_in": 3000}),
            _response(200, {"files": [{"id": "folder-1"}]}),
        ]
        with patch(
            "learnbook.integrations.google_drive.requests.get",
            side_effect=get_responses,
        ):
            with patch(
                "learnbook.integrations.google_drive.requests.post",
                return_value=_response(200, {"id": "doc-1", "name": "Notes"}),
            ) as mock_post:
                result = create_google_doc("token", "Notes", "Body")

        assert result["webViewLink"] == "https://docs.google.com/document/d/doc-1/edit"
        body = mock_post.call_args[1]["data"].decode("utf-8")
        assert '"parents": ["folder-1"]' in body
        assert mock_post.call_args[1]["params"] == {"uploadType": "multipart"}

    def test_upload_error_message(self):
        with patch(
            "learnbook.integrations.google_drive.requests.get",
            return_value=_response(200, {}),
        ):
            with patch(
                "learnbook.integrations.google_drive.requests.post",
                return_value=_response(403, {"error": {"message": "Insufficient permissions"}}),
            ):
                with pytest.raises(IntegrationError, match="Insufficient permissions"):
                    create_google_doc("token", "Notes", "Body", in_folder=False)


class TestGoogleTokens:
    """Tests for token expiry and refresh."""

    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_expiry_buffer(self):
        assert not is_token_expired((self.now + timedelta(minutes=10)).isoformat(), now=self.now)
        assert is_token_expired((self.now + timedelta(minutes=4)).isoformat(), now=self.now)
        assert is_token_expired("2026-10-19T11:00:00Z", now=self.now)

    def test_missing_or_bad_expiry(self):
        assert is_token_expired(None)
        assert is_token_expired("not a date")

    def test_naive_expiry_is_utc(self):
        assert not is_token_expired("2026-10-19T13:00:00", now=self.now)

    def test_refresh_not_configured(self):
        with patch("learnbook.integrations.google_tokens.requests.post") as mock_post:
            assert refresh_google_token("refresh") is None
        mock_post.assert_not_called()

    def test_refresh(self):
        env = {"GOOGLE_CLIENT_ID": "id", "GOOGLE_CLIENT_SECRET": "secret"}
        with patch.dict(os.environ, env):
            with patch(
                "learnbook.integrations.google_tokens.requests.post",
                return_value=_response(200, {"access_token": "fresh", "expires_in": 3600}),
            ) as mock_post:
                access_token, expires_at = refresh_google_token("refresh")

        assert access_token == "fresh"
        assert not is_token_expired(expires_at)
        assert mock_post.call_args[1]["data"]["grant_type"] == "refresh_token"

    def test_refresh_rejected(self):
        env = {"GOOGLE_CLIENT_ID": "id", "GOOGLE_CLIENT_SECRET": "secret"}
        with patch.dict(os.environ, env):
            with patch(
                "learnbook.integrations.google_tokens.requests.post",
                return_value=_response(400),
            ):
                assert refresh_google_token("refresh") is None

    def test_valid_token_returned(self, db):
        expires = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
        save_google_tokens("u1", "live", refresh_token="r", expires_at=expires)

        assert get_valid_google_token("u1") == "live"

    def test_expired_token_refreshed_and_saved(self, db):
        save_google_tokens("u1", "old", refresh_token="r", expires_at="2020-01-01T00:00:00+00:00")

        with patch(
            "learnbook.integrations.google_tokens.refresh_google_token",
            return_value=("new", "2099-01-01T00:00:00+00:00"),
        ):
            assert get_valid_google_token("u1") == "new"

        tokens = get_google_tokens("u1")
        assert tokens.access_token == "new"
        assert tokens.refresh_token == "r"

    def test_expired_without_refresh(self, db):
        save_google_tokens("u1", "old", expires_at="2020-01-01T00:00:00+00:00")
        assert get_valid_google_token("u1") is None

    def test_never_connected(self, db):
        assert get_valid_google_token("u1") is None
