"""Chat completion proxy.

POST /api/v1/chat — forward a conversation to the completion API with the
GPT's instructions and retrieved context as the system prompt.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from gptbuilder.api.deps import get_origin, options_response
from gptbuilder.config import settings
from gptbuilder.llm.completion import complete_chat
from gptbuilder.schemas.chat import ChatErrorResponse, ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.options("")
async def chat_options() -> Response:
    """CORS preflight."""
    return options_response()


@router.post("", response_model=ChatResponse)
async def chat(
    chat_request: ChatRequest,
    origin: str = Depends(get_origin),
):
    """Send the conversation to the completion API and return the reply."""
    if not settings.openrouter_api_key:
        logger.error("OPENROUTER_API_KEY environment variable not set")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ChatErrorResponse(
                error="Server configuration error",
                details="API key not configured",
            ).model_dump(exclude_none=True),
        )

    if not chat_request.messages:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Messages array is required and cannot be empty"},
        )

    try:
        result = await complete_chat(
            messages=[turn.model_dump(exclude_unset=True) for turn in chat_request.messages],
            instructions=chat_request.instructions,
            context=chat_request.context,
            model=chat_request.model,
            referer=origin,
        )
    except Exception as e:
        timestamp = datetime.now(timezone.utc).isoformat()
        logger.exception("Chat API error at %s", timestamp)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ChatErrorResponse(
                error="Failed to process chat request",
                details=str(e),
                timestamp=timestamp,
            ).model_dump(),
        )

    return ChatResponse(**result)
