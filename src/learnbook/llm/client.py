"""AI client with provider fallback and rate-limit retry.

Provides a single interface for text generation over two providers:
- gemini: primary (more accurate), tried once per request
- groq: fallback, wrapped in exponential backoff for rate limits

Callers only see ``generate(prompt) -> str`` and ``chat(messages) -> str``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, TypeVar

import structlog

from learnbook.config.app_config import AIConfig, load_app_config

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from a provider."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        """Get total token count."""
        return self.usage.get("total_tokens", 0)


# =============================================================================
# ERRORS
# =============================================================================


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to the provider."""

    pass


class LLMResponseError(LLMError):
    """Provider answered but the response is unusable."""

    pass


class LLMRateLimitError(LLMError):
    """Provider returned HTTP 429."""

    pass


class LLMAuthError(LLMError):
    """Provider rejected the API key."""

    pass


class LLMNotConfiguredError(LLMError):
    """Provider has no usable API key."""

    pass


# =============================================================================
# RETRY
# =============================================================================


def is_rate_limit_error(error: Exception) -> bool:
    """Check if an error represents an upstream rate limit."""
    if isinstance(error, LLMRateLimitError):
        return True
    message = str(error).lower()
    return "rate limit" in message or "429" in message


def generate_with_retry(
    call: Callable[[], T],
    retries: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``call`` with exponential backoff on rate-limit errors.

    Only rate limits are retried. The delay before retry ``i`` is
    ``base_delay * 2**i``. Once attempts are exhausted the last rate-limit
    error is re-raised unchanged; any other error propagates immediately.

    Args:
        call: Zero-argument callable performing one provider request
        retries: Total number of attempts (>= 1)
        base_delay: Initial delay in seconds
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever ``call`` returns
    """
    attempts = max(1, retries)
    for attempt in range(attempts):
        try:
            return call()
        except LLMError as e:
            if is_rate_limit_error(e) and attempt < attempts - 1:
                delay = base_delay * (2**attempt)
                logger.warning(
                    "rate_limit_retrying",
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    delay_s=delay,
                )
                sleep(delay)
                continue
            raise
    raise LLMError("Max retries exceeded")


# =============================================================================
# AI CLIENT
# =============================================================================


class AIClient:
    """Primary/fallback text generation client.

    Tries the primary provider once when it is configured. Any primary
    failure (429, non-2xx, empty body, network) falls through to the
    fallback provider, which is retried on rate limits. When both fail, a
    rate limit is surfaced as ``LLMRateLimitError`` so callers can pass a
    429 through; anything else becomes ``LLMError``.
    """

    def __init__(
        self,
        primary: Any | None = None,
        fallback: Any | None = None,
        config: AIConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize AI client.

        Args:
            primary: Primary provider (defaults to Gemini from config)
            fallback: Fallback provider (defaults to Groq from config)
            config: Chain settings (loads app config if not provided)
            sleep: Sleep function used between retries
        """
        # providers imports Message and the error types from this module
        from learnbook.llm.providers import build_provider

        app_config = load_app_config()
        self.config = config or app_config.ai
        self.primary = primary or build_provider(self.config.primary)
        self.fallback = fallback or build_provider(self.config.fallback)
        self._sleep = sleep

        logger.info(
            "ai_client_initialized",
            primary=self.primary.name,
            primary_configured=self.primary.is_configured(),
            fallback=self.fallback.name,
            fallback_configured=self.fallback.is_configured(),
        )

    def _complete(self, messages: list[Message], max_tokens: int | None) -> str:
        if self.primary.is_configured():
            try:
                logger.info("ai_primary_attempt", provider=self.primary.name)
                response = self.primary.complete(messages, max_tokens=max_tokens)
                logger.info(
                    "ai_primary_success",
                    provider=self.primary.name,
                    latency_ms=response.latency_ms,
                )
                return response.content
            except LLMRateLimitError as e:
                logger.warning(
                    "ai_primary_rate_limited",
                    provider=self.primary.name,
                    fallback=self.fallback.name,
                    error=str(e),
                )
            except LLMError as e:
                logger.warning(
                    "ai_primary_failed",
                    provider=self.primary.name,
                    fallback=self.fallback.name,
                    error=str(e),
                )
        else:
            logger.info(
                "ai_primary_not_configured",
                provider=self.primary.name,
                fallback=self.fallback.name,
            )

        try:
            response = generate_with_retry(
                lambda: self.fallback.complete(messages),
                retries=self.config.max_retries,
                base_delay=self.config.retry_base_delay,
                sleep=self._sleep,
            )
        except LLMError as e:
            logger.error(
                "ai_all_providers_failed",
                rate_limited=is_rate_limit_error(e),
                error=str(e),
            )
            if is_rate_limit_error(e):
                if isinstance(e, LLMRateLimitError):
                    raise
                raise LLMRateLimitError(str(e)) from e
            raise LLMError(f"AI generation failed: {e}") from e

        logger.info(
            "ai_fallback_success",
            provider=self.fallback.name,
            latency_ms=response.latency_ms,
        )
        return response.content

    def generate(self, prompt: str, fast: bool = False) -> str:
        """Generate text for a single prompt.

        Args:
            prompt: Full prompt text
            fast: Use the smaller primary token budget

        Returns:
            Raw model text

        Raises:
            LLMRateLimitError: If every provider is rate limited
            LLMError: If every provider fails
        """
        max_tokens = self.config.fast_max_tokens if fast else None
        logger.debug("ai_generate", prompt_preview=prompt[:300], fast=fast)
        return self._complete([Message(role="user", content=prompt)], max_tokens)

    def chat(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
    ) -> str:
        """Chat completion over a message history.

        Args:
            messages: Conversation so far (user/assistant turns)
            system_prompt: Optional system message prepended to the history

        Returns:
            Assistant reply text
        """
        all_messages = list(messages)
        if system_prompt:
            all_messages = [Message(role="system", content=system_prompt)] + all_messages
        return self._complete(all_messages, None)

    def status(self) -> dict[str, Any]:
        """Report which providers are configured."""
        return {
            "primary": {
                "name": self.primary.name,
                "model": self.primary.model,
                "configured": self.primary.is_configured(),
            },
            "fallback": {
                "name": self.fallback.name,
                "model": self.fallback.model,
                "configured": self.fallback.is_configured(),
            },
        }


# Global client instance
_ai_client: AIClient | None = None


def get_ai_client() -> AIClient:
    """Get the global AI client instance."""
    global _ai_client
    if _ai_client is None:
        _ai_client = AIClient()
    return _ai_client


def reset_ai_client() -> None:
    """Reset the AI client (for testing)."""
    global _ai_client
    _ai_client = None
