"""Text-generation provider adapters.

Supported providers:
- gemini: Google Generative Language REST API (generateContent)
- groq: Groq chat completions (OpenAI-compatible API)

Both expose ``complete(messages, max_tokens=None) -> LLMResponse`` and
translate transport failures into the LLMError hierarchy.
"""

from __future__ import annotations

import time
from typing import Any

import openai
import requests
import structlog
from openai import OpenAI

from learnbook.config.app_config import ProviderConfig, get_provider_config
from learnbook.llm.client import (
    LLMAuthError,
    LLMConnectionError,
    LLMError,
    LLMNotConfiguredError,
    LLMRateLimitError,
    LLMResponse,
    LLMResponseError,
    Message,
)

logger = structlog.get_logger(__name__)

RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again in a moment."


# =============================================================================
# GEMINI
# =============================================================================


class GeminiProvider:
    """Gemini generateContent over plain HTTPS."""

    name = "gemini"

    def __init__(self, config: ProviderConfig, session: requests.Session | None = None):
        self.config = config
        self.model = config.default_model
        self._session = session or requests.Session()

    def is_configured(self) -> bool:
        return self.config.is_configured()

    @staticmethod
    def _to_payload(messages: list[Message]) -> tuple[list[dict[str, Any]], str]:
        """Split messages into Gemini contents and a system instruction."""
        system_parts = []
        contents = []
        for m in messages:
            if m.role == "system":
                system_parts.append(m.content)
                continue
            role = "model" if m.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": m.content}]})
        return contents, "\n\n".join(system_parts)

    def complete(self, messages: list[Message], max_tokens: int | None = None) -> LLMResponse:
        api_key = self.config.get_api_key()
        if not self.is_configured():
            raise LLMNotConfiguredError("GEMINI_API_KEY not configured")

        contents, system_instruction = self._to_payload(messages)
        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": max_tokens or self.config.max_tokens,
            },
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        url = f"{self.config.base_url}/models/{self.model}:generateContent"
        start_time = time.time()

        try:
            response = self._session.post(
                url,
                params={"key": api_key},
                json=body,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise LLMConnectionError(f"Could not reach Gemini: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if response.status_code == 429:
            raise LLMRateLimitError("Gemini rate limit exceeded (429)")
        if response.status_code in (401, 403):
            raise LLMAuthError(f"Gemini rejected the API key ({response.status_code})")
        if not response.ok:
            raise LLMResponseError(f"Gemini error ({response.status_code})")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMResponseError("Gemini returned no candidate text") from e

        if not text:
            raise LLMResponseError("Gemini returned no candidate text")

        usage_meta = data.get("usageMetadata", {})
        usage = {
            "prompt_tokens": usage_meta.get("promptTokenCount", 0),
            "completion_tokens": usage_meta.get("candidatesTokenCount", 0),
            "total_tokens": usage_meta.get("totalTokenCount", 0),
        }

        logger.debug(
            "llm_response",
            provider=self.name,
            model=self.model,
            tokens=usage["total_tokens"],
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=text,
            model=self.model,
            provider=self.name,
            usage=usage,
            latency_ms=latency_ms,
        )


# =============================================================================
# GROQ
# =============================================================================


class GroqProvider:
    """Groq chat completions via the OpenAI SDK."""

    name = "groq"

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.model = config.default_model
        self._client: OpenAI | None = None

    def is_configured(self) -> bool:
        return self.config.is_configured()

    def _get_client(self) -> OpenAI:
        if not self.is_configured():
            raise LLMNotConfiguredError(
                "GROQ_API_KEY not configured. Please add your Groq API key to .env"
            )
        if self._client is None:
            # Retries are handled by generate_with_retry
            self._client = OpenAI(
                base_url=self.config.base_url,
                api_key=self.config.get_api_key(),
                timeout=self.config.timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, messages: list[Message], max_tokens: int | None = None) -> LLMResponse:
        client = self._get_client()

        request_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature,
            "max_completion_tokens": max_tokens or self.config.max_tokens,
            "top_p": 1,
            "reasoning_effort": "medium",
        }

        start_time = time.time()

        try:
            response = client.chat.completions.create(**request_kwargs)
        except openai.RateLimitError as e:
            logger.warning("groq_rate_limited", error=str(e))
            raise LLMRateLimitError(RATE_LIMIT_MESSAGE) from e
        except openai.AuthenticationError as e:
            raise LLMAuthError(
                "Invalid Groq API key. Please check your configuration."
            ) from e
        except openai.APIConnectionError as e:
            raise LLMConnectionError(f"Could not reach Groq at {self.config.base_url}: {e}") from e
        except openai.APIStatusError as e:
            logger.error("groq_api_error", status=e.status_code, error=str(e))
            raise LLMError(f"Groq API error: {e.status_code}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("No response from Groq API")

        content = response.choices[0].message.content or ""

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.name,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.name,
            usage=usage,
            latency_ms=latency_ms,
        )


PROVIDER_CLASSES = {
    "gemini": GeminiProvider,
    "groq": GroqProvider,
}


def build_provider(name: str):
    """Build a provider from app configuration.

    Raises:
        LLMError: If the provider is unknown or missing from config
    """
    provider_cls = PROVIDER_CLASSES.get(name)
    config = get_provider_config(name)
    if provider_cls is None or config is None:
        raise LLMError(f"Unknown provider: {name}")
    return provider_cls(config)
