"""Tests for syllabus, roadmap and timetable planning."""

from datetime import date

import pytest

from learnbook.core.planner import (
    Chapter,
    LearningContext,
    default_chapters,
    default_roadmap,
    default_timetable,
    generate_roadmap,
    generate_syllabus,
    generate_timetable,
    priority_for,
)
from learnbook.llm.client import LLMError, LLMRateLimitError


class TestLearningContext:
    """Tests for LearningContext.from_dict."""

    def test_defaults(self):
        context = LearningContext.from_dict({})
        assert context.country == "India"
        assert context.board == "CBSE"
        assert context.class_grade == "Class 12"
        assert context.subject == "Mathematics"
        assert context.daily_available_time == 120
        assert context.learning_style == "visual"

    def test_camel_case_keys(self):
        context = LearningContext.from_dict(
            {
                "board": "ICSE",
                "classGrade": "Class 9",
                "subject": "Physics",
                "dailyAvailableTime": 90,
                "weakTopics": ["Optics"],
                "examDate": "2027-03-01",
            }
        )
        assert context.board == "ICSE"
        assert context.class_grade == "Class 9"
        assert context.daily_available_time == 90
        assert context.weak_topics == ["Optics"]
        assert context.exam_date == "2027-03-01"

    def test_zero_daily_time_kept(self):
        assert LearningContext.from_dict({"dailyAvailableTime": 0}).daily_available_time == 0

    def test_unusable_values_keep_defaults(self):
        context = LearningContext.from_dict(
            {"dailyAvailableTime": "two hours", "weakTopics": "Optics", "strongTopics": 5}
        )
        assert context.daily_available_time == 120
        assert context.weak_topics == ["Optics"]
        assert context.strong_topics == []


class TestChapter:
    """Tests for Chapter parsing."""

    def test_from_dict_fills_gaps(self):
        chapter = Chapter.from_dict({"name": "Optics"}, index=2)
        assert chapter.id == "ch3"
        assert chapter.order == 3
        assert chapter.importance_weight == 0.5
        assert chapter.estimated_hours == 5

    def test_chapter_number_as_order(self):
        chapter = Chapter.from_dict({"id": "x", "name": "Sets", "chapterNumber": 7})
        assert chapter.order == 7

    def test_malformed_model_fields_keep_defaults(self):
        """Model output with wrong types must not fail the whole syllabus."""
        chapter = Chapter.from_dict(
            {
                "id": "ch1",
                "name": "Optics",
                "estimatedHours": "6 hours",
                "importanceWeight": "high",
                "prerequisites": 3,
                "concepts": "Lenses",
                "order": None,
            },
            index=1,
        )
        assert chapter.estimated_hours == 5
        assert chapter.importance_weight == 0.5
        assert chapter.prerequisites == []
        assert chapter.concepts == ["Lenses"]
        assert chapter.order == 2

    def test_numeric_strings_parsed(self):
        chapter = Chapter.from_dict({"name": "Optics", "estimatedHours": "6", "importanceWeight": "0.8"})
        assert chapter.estimated_hours == 6.0
        assert chapter.importance_weight == 0.8

    def test_zero_values_kept(self):
        chapter = Chapter.from_dict({"name": "Optics", "estimatedHours": 0, "importanceWeight": 0})
        assert chapter.estimated_hours == 0
        assert chapter.importance_weight == 0.0

    def test_to_dict_camel_case(self):
        data = Chapter(id="c", name="N", estimated_hours=3).to_dict()
        assert data["estimatedHours"] == 3
        assert data["importanceWeight"] == 0.5


class TestDefaults:
    """Tests for the deterministic plans."""

    def test_math_chapters(self):
        chapters = default_chapters("Applied Mathematics")
        assert [c.id for c in chapters] == [
            "ch1_calculus",
            "ch2_integration",
            "ch3_vectors",
            "ch4_probability",
        ]

    def test_generic_chapters(self):
        chapters = default_chapters("History")
        assert [c.name for c in chapters] == ["Introduction", "Core Concepts", "Applications"]

    def test_priority_thresholds(self):
        assert priority_for(0.9) == "high"
        assert priority_for(0.8) == "medium"
        assert priority_for(0.6) == "medium"
        assert priority_for(0.5) == "low"

    def test_roadmap_days_and_milestone(self):
        chapters = [
            Chapter(id="a", name="A", importance_weight=0.9, estimated_hours=15),
            Chapter(id="b", name="B", importance_weight=0.7, estimated_hours=4),
            Chapter(id="c", name="C", importance_weight=0.2, estimated_hours=1),
        ]

        items = default_roadmap(chapters, start=date(2026, 1, 1))

        assert [(i["startDate"], i["endDate"]) for i in items] == [
            ("2026-01-01", "2026-01-09"),
            ("2026-01-09", "2026-01-11"),
            ("2026-01-11", "2026-01-12"),
        ]
        assert [i["priority"] for i in items] == ["high", "medium", "low"]
        assert [i["isMilestone"] for i in items] == [False, False, True]
        assert not any(i["isRevision"] for i in items)

    def test_timetable_full_day(self):
        chapter = Chapter(id="ch1", name="Optics")

        tasks = default_timetable(chapter, 120)

        assert [(t["taskType"], t["durationMinutes"]) for t in tasks] == [
            ("study", 60),
            ("practice", 36),
            ("revision", 24),
        ]
        assert tasks[0]["id"] == "task_1"
        assert all(t["chapterId"] == "ch1" and not t["completed"] for t in tasks)

    def test_timetable_caps(self):
        tasks = default_timetable(Chapter(id="c", name="C"), 300)
        assert [t["durationMinutes"] for t in tasks] == [60, 45, 30]

    def test_timetable_short_day(self):
        tasks = default_timetable(Chapter(id="c", name="C"), 4)
        assert [t["durationMinutes"] for t in tasks] == [2, 1]

    def test_timetable_no_time(self):
        assert default_timetable(Chapter(id="c", name="C"), 0) == []


class TestGenerateSyllabus:
    """Tests for generate_syllabus."""

    def test_parses_model_chapters(self, fake_ai):
        fake_ai.generate.return_value = (
            '[{"id": "ch1", "name": "Electrostatics", "importanceWeight": 0.9,'
            ' "estimatedHours": 12, "concepts": ["Coulomb"]}]'
        )

        result = generate_syllabus(LearningContext(subject="Physics"), client=fake_ai)

        assert result.source == "ai"
        assert result.data[0].name == "Electrostatics"
        assert result.data[0].estimated_hours == 12
        assert "Physics" in fake_ai.generate.call_args[0][0]

    def test_ai_failure_falls_back(self, fake_ai):
        fake_ai.generate.side_effect = LLMError("down")

        result = generate_syllabus(LearningContext(subject="Mathematics"), client=fake_ai)

        assert result.is_fallback
        assert result.data[0].id == "ch1_calculus"

    def test_rate_limit_propagates(self, fake_ai):
        fake_ai.generate.side_effect = LLMRateLimitError("429")

        with pytest.raises(LLMRateLimitError):
            generate_syllabus(LearningContext(), client=fake_ai)

    def test_malformed_chapter_fields(self, fake_ai):
        fake_ai.generate.return_value = (
            '[{"id": "ch1", "name": "Optics", "estimatedHours": "6 hours",'
            ' "importanceWeight": "high", "prerequisites": 3}]'
        )

        result = generate_syllabus(LearningContext(subject="Physics"), client=fake_ai)

        assert result.source == "ai"
        assert result.data[0].estimated_hours == 5
        assert result.data[0].prerequisites == []

    def test_non_object_items_fall_back(self, fake_ai):
        fake_ai.generate.return_value = '[1, "Optics", null]'
        result = generate_syllabus(LearningContext(subject="Art"), client=fake_ai)
        assert result.is_fallback

    def test_unparseable_falls_back(self, fake_ai):
        fake_ai.generate.return_value = "I don't know"
        result = generate_syllabus(LearningContext(subject="Art"), client=fake_ai)
        assert result.is_fallback
        assert result.data[0].id == "ch1"


class TestGenerateRoadmap:
    """Tests for generate_roadmap."""

    def test_model_items_returned(self, fake_ai):
        fake_ai.generate.return_value = (
            '[{"chapterId": "ch1", "chapterName": "A", "startDate": "2026-10-19",'
            ' "endDate": "2026-10-25", "isMilestone": true, "isRevision": false,'
            ' "priority": "high"}]'
        )

        result = generate_roadmap(
            LearningContext(exam_date="2027-02-01"),
            [Chapter(id="ch1", name="A")],
            client=fake_ai,
            today=date(2026, 10, 19),
        )

        assert result.source == "ai"
        assert result.data[0]["chapterId"] == "ch1"
        prompt = fake_ai.generate.call_args[0][0]
        assert "2026-10-19" in prompt
        assert "2027-02-01" in prompt

    def test_failure_uses_deterministic_schedule(self, fake_ai):
        fake_ai.generate.side_effect = LLMError("down")

        result = generate_roadmap(
            LearningContext(),
            [Chapter(id="ch1", name="A", estimated_hours=3)],
            client=fake_ai,
            today=date(2026, 10, 19),
        )

        assert result.is_fallback
        assert result.data == [
            {
                "chapterId": "ch1",
                "chapterName": "A",
                "startDate": "2026-10-19",
                "endDate": "2026-10-21",
                "isMilestone": True,
                "isRevision": False,
                "priority": "low",
            }
        ]

    def test_rate_limit_propagates(self, fake_ai):
        fake_ai.generate.side_effect = LLMRateLimitError("429")

        with pytest.raises(LLMRateLimitError):
            generate_roadmap(LearningContext(), [Chapter(id="ch1", name="A")], client=fake_ai)

    def test_undated_and_non_object_items_dropped(self, fake_ai):
        fake_ai.generate.return_value = (
            '["ch1", {"chapterId": "ch1"},'
            ' {"chapterId": "ch2", "startDate": "2026-10-19", "endDate": "2026-10-20"}]'
        )

        result = generate_roadmap(LearningContext(), [Chapter(id="ch1", name="A")], client=fake_ai)

        assert result.source == "ai"
        assert [i["chapterId"] for i in result.data] == ["ch2"]


class TestGenerateTimetable:
    """Tests for generate_timetable."""

    def test_uses_fast_generation(self, fake_ai):
        fake_ai.generate.return_value = '[{"id": "task_1", "taskType": "study"}]'

        result = generate_timetable(
            LearningContext(),
            Chapter(id="ch1", name="Optics", concepts=["Lenses"]),
            day=date(2026, 10, 19),
            client=fake_ai,
        )

        assert result.data == [{"id": "task_1", "taskType": "study"}]
        assert fake_ai.generate.call_args[1] == {"fast": True}
        assert "Lenses" in fake_ai.generate.call_args[0][0]

    def test_fallback_split(self, fake_ai):
        fake_ai.generate.return_value = "nothing"

        result = generate_timetable(
            LearningContext(daily_available_time=60),
            Chapter(id="ch1", name="Optics"),
            client=fake_ai,
        )

        assert result.is_fallback
        assert [t["durationMinutes"] for t in result.data] == [30, 18, 12]

    def test_rate_limit_propagates(self, fake_ai):
        fake_ai.generate.side_effect = LLMRateLimitError("429")

        with pytest.raises(LLMRateLimitError):
            generate_timetable(LearningContext(), Chapter(id="ch1", name="Optics"), client=fake_ai)
