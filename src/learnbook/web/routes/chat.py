"""Tutor chat endpoint."""

from typing import Any

from fastapi import APIRouter

from learnbook.core.tutor_chat import ChatContext, tutor_reply
from learnbook.web.schemas import ChatRequestBody, envelope

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat")
def chat(body: ChatRequestBody) -> dict[str, Any]:
    """Reply to the conversation as LearnBook AI."""
    context = ChatContext(**body.context.model_dump()) if body.context else None
    reply = tutor_reply([turn.model_dump() for turn in body.messages], context)
    return envelope(reply)
