"""Google Drive export of study notes as Google Docs.

Required scope: https://www.googleapis.com/auth/drive.file
"""

from __future__ import annotations

import json
from typing import Any

import requests
import structlog

from learnbook.integrations.google_api import (
    DEFAULT_TIMEOUT,
    GoogleTokenExpiredError,
    IntegrationError,
    auth_headers,
    error_message,
)

logger = structlog.get_logger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_API = "https://www.googleapis.com/upload/drive/v3/files"
TOKEN_INFO_URL = "https://www.googleapis.com/oauth2/v1/tokeninfo"

FOLDER_NAME = "LearnBook Notes"
FOLDER_MIME = "application/vnd.google-apps.folder"
DOC_MIME = "application/vnd.google-apps.document"

MULTIPART_BOUNDARY = "-------314159265358979323846"


def ensure_valid_token(access_token: str) -> str:
    """Return the token if Google still accepts it.

    Raises:
        GoogleTokenExpiredError: If tokeninfo rejects the token
    """
    try:
        response = requests.get(
            TOKEN_INFO_URL,
            params={"access_token": access_token},
            timeout=DEFAULT_TIMEOUT,
        )
    except requests.RequestException as e:
        raise IntegrationError(f"Token check failed: {e}") from e

    if not response.ok:
        raise GoogleTokenExpiredError()
    return access_token


def build_multipart_body(metadata: dict[str, Any], content: str) -> str:
    """Encode metadata + plain-text content as multipart/related."""
    delimiter = f"\r\n--{MULTIPART_BOUNDARY}\r\n"
    close_delimiter = f"\r\n--{MULTIPART_BOUNDARY}--"
    return (
        delimiter
        + "Content-Type: application/json\r\n\r\n"
        + json.dumps(metadata)
        + delimiter
        + "Content-Type: text/plain\r\n\r\n"
        + content
        + close_delimiter
    )


def get_or_create_folder(access_token: str) -> str:
    """Return the id of the "LearnBook Notes" folder, creating it if needed."""
    query = f"name='{FOLDER_NAME}' and mimeType='{FOLDER_MIME}' and trashed=false"

    try:
        search = requests.get(
            DRIVE_API,
            headers=auth_headers(access_token),
            params={"q": query},
            timeout=DEFAULT_TIMEOUT,
        )
        if search.ok:
            files = search.json().get("files", [])
            if files:
                return files[0]["id"]

        create = requests.post(
            DRIVE_API,
            headers=auth_headers(access_token, json_body=True),
            json={"name": FOLDER_NAME, "mimeType": FOLDER_MIME},
            timeout=DEFAULT_TIMEOUT,
        )
    except requests.RequestException as e:
        raise IntegrationError(f"Drive API unreachable: {e}") from e

    if not create.ok:
        raise IntegrationError("Failed to create LearnBook folder", status_code=create.status_code)

    folder_id = create.json()["id"]
    logger.info("drive_folder_created", folder_id=folder_id)
    return folder_id


def create_google_doc(
    access_token: str,
    title: str,
    content: str,
    in_folder: bool = True,
) -> dict[str, Any]:
    """Upload text as a new Google Doc.

    Args:
        access_token: User's Google OAuth access token
        title: Document name
        content: Plain-text body
        in_folder: Save inside "LearnBook Notes" instead of the Drive root

    Returns:
        Drive file resource plus ``webViewLink``

    Raises:
        GoogleTokenExpiredError: If the token is no longer valid
        IntegrationError: If Drive rejects the upload
    """
    token = ensure_valid_token(access_token)
    parents = [get_or_create_folder(token)] if in_folder else []

    metadata = {"name": title, "mimeType": DOC_MIME, "parents": parents}
    body = build_multipart_body(metadata, content)

    try:
        response = requests.post(
            DRIVE_UPLOAD_API,
            params={"uploadType": "multipart"},
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}",
            },
            data=body.encode("utf-8"),
            timeout=DEFAULT_TIMEOUT,
        )
    except requests.RequestException as e:
        raise IntegrationError(f"Drive API unreachable: {e}") from e

    if not response.ok:
        message = error_message(response, "Unknown error")
        raise IntegrationError(f"Drive API error: {message}", status_code=response.status_code)

    result = response.json()
    result["webViewLink"] = f"https://docs.google.com/document/d/{result['id']}/edit"
    logger.info("drive_doc_created", file_id=result["id"], title=title)
    return result
