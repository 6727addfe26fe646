"""Shared pytest fixtures.

Every test runs in an empty working directory with no provider or Google
keys in the environment, so nothing reaches the network unless a test
sets a key and mocks the transport.
"""

from unittest.mock import MagicMock

import pytest

from learnbook.config import clear_config_cache
from learnbook.core.curriculum import reset_curriculum_cache
from learnbook.db.database import init_db
from learnbook.llm.client import LLMResponse
from learnbook.llm.client import reset_ai_client
from learnbook.prompts.registry import clear_cache as clear_prompt_cache

ENV_KEYS = [
    "GEMINI_API_KEY",
    "GROQ_API_KEY",
    "GOOGLE_SEARCH_API_KEY",
    "GOOGLE_SEARCH_ENGINE_ID",
    "YOUTUBE_API_KEY",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Clean environment, working directory and module-level singletons."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    clear_config_cache()
    reset_ai_client()
    reset_curriculum_cache()
    clear_prompt_cache()
    yield
    clear_config_cache()
    reset_ai_client()
    reset_curriculum_cache()


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database."""
    db_path = tmp_path / "db" / "test.db"
    init_db(db_path)
    return db_path


@pytest.fixture
def fake_ai():
    """AI client double whose replies the test sets on ``generate``/``chat``."""
    client = MagicMock()
    client.generate.return_value = ""
    client.chat.return_value = ""
    client.status.return_value = {
        "primary": {"name": "gemini", "model": "gemini-2.5-flash-lite", "configured": False},
        "fallback": {"name": "groq", "model": "openai/gpt-oss-120b", "configured": False},
    }
    return client


@pytest.fixture
def make_provider():
    """Factory for provider doubles.

    ``replies`` is a list of strings (returned as responses) or exceptions
    (raised), consumed one per call.
    """

    def factory(name="fake", configured=True, replies=None):
        pending = list(replies or [])
        provider = MagicMock()
        provider.name = name
        provider.model = f"{name}-model"
        provider.is_configured.return_value = configured

        def complete(messages, max_tokens=None):
            reply = pending.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return LLMResponse(content=reply, model=provider.model, provider=name)

        provider.complete.side_effect = complete
        return provider

    return factory
