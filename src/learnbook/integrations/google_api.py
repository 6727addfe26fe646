"""Shared helpers for Google REST APIs (Calendar, Drive, OAuth)."""

from __future__ import annotations

from typing import Any

import requests

DEFAULT_TIMEOUT = 15


class IntegrationError(Exception):
    """A third-party API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class GoogleTokenExpiredError(IntegrationError):
    """The Google access token is no longer valid."""

    def __init__(self):
        super().__init__(
            "Your session has expired. Please sign out and sign in again with Google.",
            status_code=401,
        )


def auth_headers(access_token: str, json_body: bool = False) -> dict[str, str]:
    """Bearer headers for a Google API call."""
    headers = {"Authorization": f"Bearer {access_token}"}
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


def error_message(response: requests.Response, default: str) -> str:
    """Pull ``error.message`` out of a Google error body if there is one."""
    try:
        data: Any = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return default
