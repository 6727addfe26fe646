"""Route handlers for the Web API."""

from learnbook.web.routes.ai import router as ai_router
from learnbook.web.routes.chat import router as chat_router
from learnbook.web.routes.curriculum import router as curriculum_router
from learnbook.web.routes.google import router as google_router
from learnbook.web.routes.health import router as health_router
from learnbook.web.routes.profile import router as profile_router
from learnbook.web.routes.progress import router as progress_router
from learnbook.web.routes.roadmap import router as roadmap_router
from learnbook.web.routes.study import router as study_router
from learnbook.web.routes.subjects import router as subjects_router
from learnbook.web.routes.tasks import router as tasks_router

__all__ = [
    "ai_router",
    "chat_router",
    "curriculum_router",
    "google_router",
    "health_router",
    "profile_router",
    "progress_router",
    "roadmap_router",
    "study_router",
    "subjects_router",
    "tasks_router",
]
