"""NotebookLM study bundles: sources, study prompts and a context prompt."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

import structlog

from learnbook.core.planner import Chapter, LearningContext
from learnbook.core.results import ServiceResult
from learnbook.llm.client import AIClient, LLMError, LLMRateLimitError, get_ai_client
from learnbook.prompts.registry import get_prompt
from learnbook.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

NOTEBOOKLM_NEW_URL = "https://notebooklm.google.com/notebook/new"


def notebooklm_url(title: str, context_prompt: str) -> str:
    return f"{NOTEBOOKLM_NEW_URL}?{urlencode({'title': title, 'context': context_prompt})}"


def default_bundle(
    context: LearningContext,
    chapter: Chapter,
    resources: list[dict[str, str]],
) -> dict[str, Any]:
    first_concept = chapter.concepts[0] if chapter.concepts else chapter.name
    return {
        "sources": [r["url"] for r in resources if r.get("url")],
        "studyPrompts": [
            f"What are the key concepts in {chapter.name}?",
            f"Explain {first_concept} in simple terms.",
            f"How does {chapter.name} relate to other topics?",
        ],
        "contextPrompt": (
            f"I am a {context.class_grade} student from {context.board} studying "
            f"{context.subject}. Please explain concepts at my level."
        ),
    }


def generate_notebook_bundle(
    context: LearningContext,
    chapter: Chapter,
    resources: list[dict[str, str]] | None = None,
    client: AIClient | None = None,
) -> ServiceResult:
    """Build a bundle to paste into a new NotebookLM notebook.

    The returned dict always carries ``notebookLMUrl``.
    """
    resources = resources or []
    prompt = get_prompt(
        "study/notebooklm_bundle",
        chapter_name=chapter.name,
        class_grade=context.class_grade,
        board=context.board,
        concepts=", ".join(chapter.concepts),
        resources="\n".join(f"- {r.get('title', '')}: {r.get('url', '')}" for r in resources),
    )

    source = "ai"
    try:
        text = (client or get_ai_client()).generate(prompt, fast=True)
        bundle = extract_json_object(text)
    except LLMRateLimitError:
        raise
    except LLMError as e:
        logger.warning("notebook_bundle_failed", chapter=chapter.name, error=str(e))
        bundle = None

    if bundle is None:
        bundle = default_bundle(context, chapter, resources)
        source = "fallback"

    bundle["notebookLMUrl"] = notebooklm_url(chapter.name, str(bundle.get("contextPrompt", "")))
    return ServiceResult(bundle, source=source)
