"""Tests for prompt template loading."""

import pytest

from learnbook.prompts.registry import get_prompt, list_prompts

EXPECTED_PROMPTS = [
    "chat/context",
    "chat/system",
    "curriculum/chapters",
    "curriculum/subjects_college",
    "curriculum/subjects_school",
    "curriculum/topics",
    "planner/chapter_intelligence",
    "planner/roadmap",
    "planner/syllabus",
    "planner/timetable",
    "resources/curate",
    "study/notebooklm_bundle",
    "study/summary",
    "videos/suggestions",
]


class TestPromptRegistry:
    """Tests for get_prompt and list_prompts."""

    def test_all_templates_present(self):
        assert list_prompts() == EXPECTED_PROMPTS

    def test_substitutes_named_variables(self):
        prompt = get_prompt(
            "curriculum/topics",
            board="CBSE",
            class_grade="Class 10",
            subject="Science",
            chapter_name="Light",
        )
        assert "Board: CBSE" in prompt
        assert "Chapter: Light" in prompt
        assert "{board}" not in prompt

    def test_keeps_json_example_braces(self):
        prompt = get_prompt(
            "curriculum/topics",
            board="CBSE",
            class_grade="Class 10",
            subject="Science",
            chapter_name="Light",
        )
        assert '"keyPoints"' in prompt
        assert "[\n  {" in prompt

    def test_unknown_prompt(self):
        with pytest.raises(FileNotFoundError, match="Prompt not found"):
            get_prompt("missing/prompt")

    def test_uncached_load(self):
        assert get_prompt("chat/system", use_cache=False, context_block="CTX")

    def test_substituted_values_not_expanded_again(self):
        prompt = get_prompt(
            "planner/roadmap",
            daily_available_time=60,
            exam_date="Not set",
            weak_topics="{today}",
            strong_topics="None specified",
            chapters_json="[]",
            today="2026-10-19",
        )
        assert "{today}" in prompt
        assert "2026-10-19" in prompt

    def test_unknown_placeholder_left_alone(self):
        prompt = get_prompt("chat/system", use_cache=False)
        assert "{context_block}" in prompt
