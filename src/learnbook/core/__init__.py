"""Feature services.

Modules:
- cache: process-local TTL cache for curriculum lookups
- curriculum: subjects/chapters/topics lookup grounded on web search
- study_notes: exam-focused chapter summaries
- videos: YouTube recommendations with AI and static fallbacks
- chapter_intelligence: why a chapter matters and how deep to go
- resources: ranked learning resources for a topic
- planner: syllabus, roadmap and daily timetable generation
- notebook_bundle: NotebookLM study bundles
- tutor_chat: the LearnBook AI tutor conversation

Every AI-backed service extracts JSON from the model text and substitutes
a static payload when nothing usable comes back.
"""

__all__ = [
    "cache",
    "curriculum",
    "study_notes",
    "videos",
    "chapter_intelligence",
    "resources",
    "planner",
    "notebook_bundle",
    "tutor_chat",
]
