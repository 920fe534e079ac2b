"""
Chat Routes

FastAPI endpoints for the natural language chat interface.
"""

import logging

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from stella.models.api import ChatRequest, ChatResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
async def chat(chat_request: ChatRequest):
    """
    Answer one question.

    Returns 200 for conversational, data and clarification answers, and 502
    when the database rejected or failed the statement.
    """
    from stella.api.main import app_state

    query = chat_request.text
    logger.info(f"Chat request received: {query[:100]}")

    pipeline = app_state.get("pipeline")
    if pipeline is None:
        logger.error("Chat request rejected: pipeline not initialized")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ErrorResponse(
                content="The assistant is not ready yet. Please try again later."
            ).model_dump(),
        )

    result = await pipeline.run(
        query=query,
        history=chat_request.history,
        mentions=chat_request.resolved_mentions(),
    )
    response = ChatResponse.from_result(result, conversation_id=chat_request.conversation_id)

    logger.info(
        "Chat request completed",
        extra={
            "conversation_id": chat_request.conversation_id,
            "type": response.type,
            "function_used": response.function_used,
        },
    )

    if result.kind == "error":
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=response.model_dump(by_alias=True, exclude_none=True),
        )
    return response


@router.options("/chat")
async def chat_preflight() -> Response:
    """Preflight for clients that send OPTIONS without CORS headers."""
    return Response(status_code=status.HTTP_200_OK)
