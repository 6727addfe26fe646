"""Stored Google OAuth tokens: expiry checks and refresh."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import requests
import structlog

from learnbook.config import load_app_config
from learnbook.db.profiles_repository import get_google_tokens, save_google_tokens

logger = structlog.get_logger(__name__)

EXPIRY_BUFFER = timedelta(minutes=5)


def _parse_expiry(expires_at: str | datetime | None) -> datetime | None:
    if expires_at is None:
        return None
    if isinstance(expires_at, datetime):
        value = expires_at
    else:
        try:
            value = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
        except ValueError:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def is_token_expired(
    expires_at: str | datetime | None,
    now: datetime | None = None,
) -> bool:
    """True if the token expired or expires within five minutes.

    A missing or unparseable expiry counts as expired.
    """
    expiry = _parse_expiry(expires_at)
    if expiry is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now >= expiry - EXPIRY_BUFFER


def refresh_google_token(refresh_token: str) -> tuple[str, str] | None:
    """Exchange a refresh token for a new access token.

    Returns:
        (access_token, expires_at ISO string), or None if refresh is not
        configured or Google refuses it
    """
    oauth = load_app_config().oauth
    client_id, client_secret = oauth.get_client()
    if not client_id or not client_secret:
        logger.warning("google_refresh_not_configured")
        return None

    try:
        response = requests.post(
            oauth.token_url,
            data={
                "client_id": client_id,
                "client_secret": client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=oauth.timeout,
        )
    except requests.RequestException as e:
        logger.warning("google_refresh_failed", error=str(e))
        return None

    if not response.ok:
        logger.warning("google_refresh_rejected", status=response.status_code)
        return None

    data = response.json()
    access_token = data.get("access_token")
    if not access_token:
        return None

    expires_in = int(data.get("expires_in", 3600))
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return access_token, expires_at.isoformat()


def get_valid_google_token(user_id: str) -> str | None:
    """Return a usable access token for the user, refreshing it if needed.

    Returns None when the user never connected Google or the refresh failed;
    the caller should then ask the user to sign in again.
    """
    tokens = get_google_tokens(user_id)
    if tokens is None:
        return None

    if not is_token_expired(tokens.expires_at):
        return tokens.access_token

    if tokens.refresh_token:
        refreshed = refresh_google_token(tokens.refresh_token)
        if refreshed:
            access_token, expires_at = refreshed
            save_google_tokens(user_id, access_token, expires_at=expires_at)
            logger.info("google_token_refreshed", user_id=user_id)
            return access_token

    return None
