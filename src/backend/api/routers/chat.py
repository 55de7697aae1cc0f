"""
Chat API routes.

``POST /api/chat`` runs one user turn: paging, sorting and filtering
commands refine the session's current SQL; anything else is answered by
the model. ``DELETE /api/chat/{session_id}`` forgets a session.
"""

import logging
import uuid

from api.dependencies import get_assistant_clients
from api.session_manager import clear_assistant, get_assistant, store_assistant
from config.settings import get_settings
from entities.assistant import AssistantClients, DataAssistant
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from models import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


def _sanitized_error_response(error: Exception) -> JSONResponse:
    """Build a sanitized 500 response with a correlation ID.

    Logs the full exception server-side and returns a generic message
    to the client so internal details are never leaked.
    """
    correlation_id = uuid.uuid4().hex[:12]
    logger.error("Chat error [%s]: %s", correlation_id, error, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "An internal error occurred. Please try again.",
            "correlation_id": correlation_id,
        },
    )


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    clients: AssistantClients = Depends(get_assistant_clients),
) -> ChatResponse | JSONResponse:
    """Run one chat turn for a new or existing session."""
    assistant = get_assistant(request.session_id)
    if assistant is None:
        session_id = request.session_id or uuid.uuid4().hex
        assistant = DataAssistant(
            clients,
            page_size=get_settings().default_page_size,
            session_id=session_id,
        )
        # Cache before the first await so concurrent requests share this assistant
        store_assistant(session_id, assistant)
        logger.info("Started session %s", session_id)

    try:
        response = await assistant.handle_message(request.message)
    except Exception as e:
        return _sanitized_error_response(e)

    store_assistant(assistant.session_id, assistant)
    return response


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str) -> None:
    """Forget a session's conversation and current query."""
    if not clear_assistant(session_id):
        logger.info("No cached session for session_id=%s", session_id)
