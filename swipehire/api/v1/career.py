from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from swipehire.api.deps import SSE_HEADERS
from swipehire.core.config import settings
from swipehire.core.rate_limit import rate_limit
from swipehire.schemas.chat import CareerChatRequest
from swipehire.services.career_chat_service import stream_career_chat
from swipehire.services.llm import llm_enabled

router = APIRouter()


@router.post("/career/chat/stream")
@rate_limit(settings.chat_rate_limit)
async def career_chat_stream(request: Request, payload: CareerChatRequest):
    _ = request
    if not llm_enabled():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The career advisor is not configured.",
        )
    gen = stream_career_chat(
        payload.message,
        user_id=payload.user_id,
        history=payload.chat_history,
        profile=payload.profile,
        conversation_id=payload.conversation_id,
    )
    return StreamingResponse(gen, media_type="text/event-stream", headers=SSE_HEADERS)
