"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from learnbook.llm.client import get_ai_client
from learnbook.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Check API health and which AI providers are configured."""
    return HealthResponse(
        status="ok",
        version="0.1.0",
        timestamp=datetime.now(timezone.utc).isoformat(),
        providers=get_ai_client().status(),
    )
