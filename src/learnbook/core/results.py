"""Result type shared by the feature services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

Source = Literal["ai", "cache", "fallback", "youtube_api", "ai_suggestions"]


@dataclass
class ServiceResult:
    """Payload of a feature service plus where it came from.

    ``source`` lets the HTTP layer tell the client whether it got model
    output, a cached value or a static default.
    """

    data: Any
    source: Source = "ai"
    message: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"
