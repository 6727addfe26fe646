"""Tests for the AI client fallback chain and rate-limit retry."""

import pytest

from learnbook.config.app_config import AIConfig
from learnbook.llm.client import (
    AIClient,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    Message,
    generate_with_retry,
    get_ai_client,
    is_rate_limit_error,
    reset_ai_client,
)


def _client(primary, fallback, sleeps=None, **config):
    recorder = sleeps if sleeps is not None else []
    return AIClient(
        primary=primary,
        fallback=fallback,
        config=AIConfig(**config),
        sleep=recorder.append,
    )


class TestIsRateLimitError:
    """Tests for rate-limit detection."""

    def test_rate_limit_error_type(self):
        assert is_rate_limit_error(LLMRateLimitError("slow down"))

    def test_message_mentions_429(self):
        assert is_rate_limit_error(LLMError("upstream said 429"))

    def test_message_mentions_rate_limit(self):
        assert is_rate_limit_error(LLMError("Rate limit reached for model"))

    def test_other_errors(self):
        assert not is_rate_limit_error(LLMError("bad gateway"))


class TestGenerateWithRetry:
    """Tests for exponential backoff."""

    def test_returns_first_success(self):
        sleeps = []
        result = generate_with_retry(lambda: "ok", sleep=sleeps.append)
        assert result == "ok"
        assert sleeps == []

    def test_retries_rate_limits_with_doubling_delay(self):
        calls = []
        sleeps = []

        def call():
            calls.append(1)
            if len(calls) < 3:
                raise LLMRateLimitError("429")
            return "done"

        result = generate_with_retry(call, retries=3, base_delay=1.0, sleep=sleeps.append)

        assert result == "done"
        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_reraises_last_rate_limit(self):
        sleeps = []

        def call():
            raise LLMRateLimitError("still limited")

        with pytest.raises(LLMRateLimitError, match="still limited"):
            generate_with_retry(call, retries=3, base_delay=0.5, sleep=sleeps.append)

        assert sleeps == [0.5, 1.0]

    def test_other_errors_not_retried(self):
        calls = []
        sleeps = []

        def call():
            calls.append(1)
            raise LLMResponseError("empty body")

        with pytest.raises(LLMResponseError):
            generate_with_retry(call, retries=3, sleep=sleeps.append)

        assert len(calls) == 1
        assert sleeps == []

    def test_single_attempt(self):
        def call():
            raise LLMRateLimitError("429")

        with pytest.raises(LLMRateLimitError):
            generate_with_retry(call, retries=1, sleep=lambda s: None)


class TestAIClient:
    """Tests for primary/fallback selection."""

    def test_primary_success_skips_fallback(self, make_provider):
        primary = make_provider("gemini", replies=["from gemini"])
        fallback = make_provider("groq", replies=["from groq"])

        assert _client(primary, fallback).generate("hi") == "from gemini"
        fallback.complete.assert_not_called()

    def test_primary_not_configured_uses_fallback(self, make_provider):
        primary = make_provider("gemini", configured=False, replies=[])
        fallback = make_provider("groq", replies=["from groq"])

        assert _client(primary, fallback).generate("hi") == "from groq"
        primary.complete.assert_not_called()

    def test_primary_rate_limit_falls_through(self, make_provider):
        primary = make_provider("gemini", replies=[LLMRateLimitError("429")])
        fallback = make_provider("groq", replies=["from groq"])

        assert _client(primary, fallback).generate("hi") == "from groq"
        assert primary.complete.call_count == 1

    def test_primary_error_falls_through(self, make_provider):
        primary = make_provider("gemini", replies=[LLMResponseError("no candidates")])
        fallback = make_provider("groq", replies=["from groq"])

        assert _client(primary, fallback).generate("hi") == "from groq"

    def test_fallback_retried_on_rate_limit(self, make_provider):
        sleeps = []
        primary = make_provider("gemini", configured=False, replies=[])
        fallback = make_provider(
            "groq",
            replies=[LLMRateLimitError("429"), "second try"],
        )

        result = _client(primary, fallback, sleeps=sleeps, retry_base_delay=2.0).generate("hi")

        assert result == "second try"
        assert sleeps == [2.0]

    def test_all_rate_limited_surfaces_rate_limit(self, make_provider):
        primary = make_provider("gemini", replies=[LLMRateLimitError("429")])
        fallback = make_provider("groq", replies=[LLMRateLimitError("429")] * 3)

        with pytest.raises(LLMRateLimitError):
            _client(primary, fallback).generate("hi")

        assert fallback.complete.call_count == 3

    def test_rate_limit_message_becomes_rate_limit_error(self, make_provider):
        primary = make_provider("gemini", configured=False, replies=[])
        fallback = make_provider("groq", replies=[LLMError("status 429 from upstream")] * 3)

        with pytest.raises(LLMRateLimitError):
            _client(primary, fallback).generate("hi")

    def test_other_failure_wrapped(self, make_provider):
        primary = make_provider("gemini", replies=[LLMResponseError("bad")])
        fallback = make_provider("groq", replies=[LLMResponseError("worse")])

        with pytest.raises(LLMError, match="AI generation failed: worse") as exc_info:
            _client(primary, fallback).generate("hi")

        assert not isinstance(exc_info.value, LLMRateLimitError)

    def test_fast_budget_only_for_primary(self, make_provider):
        primary = make_provider("gemini", replies=["short"])
        fallback = make_provider("groq", replies=[])

        _client(primary, fallback, fast_max_tokens=1024).generate("hi", fast=True)

        _, kwargs = primary.complete.call_args
        assert kwargs["max_tokens"] == 1024

    def test_generate_sends_single_user_message(self, make_provider):
        primary = make_provider("gemini", replies=["ok"])
        fallback = make_provider("groq", replies=[])

        _client(primary, fallback).generate("prompt text")

        messages = primary.complete.call_args[0][0]
        assert messages == [Message(role="user", content="prompt text")]

    def test_chat_prepends_system_prompt(self, make_provider):
        primary = make_provider("gemini", replies=["reply"])
        fallback = make_provider("groq", replies=[])
        history = [
            Message(role="user", content="What is a vector?"),
            Message(role="assistant", content="A quantity with direction."),
            Message(role="user", content="Example?"),
        ]

        assert _client(primary, fallback).chat(history, system_prompt="Be a tutor") == "reply"

        sent = primary.complete.call_args[0][0]
        assert sent[0] == Message(role="system", content="Be a tutor")
        assert sent[1:] == history

    def test_chat_without_system_prompt(self, make_provider):
        primary = make_provider("gemini", replies=["reply"])
        fallback = make_provider("groq", replies=[])
        history = [Message(role="user", content="hello")]

        _client(primary, fallback).chat(history)

        assert primary.complete.call_args[0][0] == history

    def test_status(self, make_provider):
        primary = make_provider("gemini", configured=False, replies=[])
        fallback = make_provider("groq", replies=[])

        status = _client(primary, fallback).status()

        assert status["primary"] == {
            "name": "gemini",
            "model": "gemini-model",
            "configured": False,
        }
        assert status["fallback"]["configured"] is True


class TestGlobalClient:
    """Tests for the module-level client."""

    def test_singleton(self):
        assert get_ai_client() is get_ai_client()

    def test_reset(self):
        first = get_ai_client()
        reset_ai_client()
        assert get_ai_client() is not first

    def test_default_providers_from_config(self):
        client = get_ai_client()
        assert client.primary.name == "gemini"
        assert client.fallback.name == "groq"
        assert client.status()["primary"]["configured"] is False
