"""LearnBook AI tutor chat."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from learnbook.llm.client import AIClient, Message, get_ai_client
from learnbook.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)


@dataclass
class ChatContext:
    """What the student is currently looking at."""

    subject: str | None = None
    chapter: str | None = None
    board: str | None = None
    class_grade: str | None = None


def build_system_prompt(context: ChatContext | None = None) -> str:
    context_block = ""
    if context is not None and (context.subject or context.chapter):
        context_block = get_prompt(
            "chat/context",
            subject=context.subject or "Not specified",
            chapter=context.chapter or "Not specified",
            board=context.board or "Not specified",
            class_grade=context.class_grade or "Not specified",
        )
    return get_prompt("chat/system", context_block=context_block)


def to_messages(history: list[dict[str, Any]]) -> list[Message]:
    """Map client turns to user/assistant messages; other roles become assistant."""
    return [
        Message(
            role="user" if turn.get("role") == "user" else "assistant",
            content=str(turn.get("content", "")),
        )
        for turn in history
    ]


def tutor_reply(
    history: list[dict[str, Any]],
    context: ChatContext | None = None,
    client: AIClient | None = None,
) -> dict[str, str]:
    """Answer the last user turn.

    Returns:
        {"role": "assistant", "content": reply}

    Raises:
        LLMRateLimitError: If every provider is rate limited
        LLMError: If every provider fails
    """
    messages = to_messages(history)
    logger.info("tutor_chat", turns=len(messages), subject=context.subject if context else None)

    content = (client or get_ai_client()).chat(messages, system_prompt=build_system_prompt(context))
    return {"role": "assistant", "content": content}
