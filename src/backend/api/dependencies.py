"""
FastAPI dependencies for shared resources.
"""

import logging
from typing import TYPE_CHECKING

from fastapi import HTTPException, Request

if TYPE_CHECKING:
    from entities.assistant import AssistantClients

logger = logging.getLogger(__name__)


def get_assistant_clients(request: Request) -> "AssistantClients":
    """
    Get the assistant clients from app state.

    Raises HTTPException 503 if not initialized.
    """
    clients = getattr(request.app.state, "clients", None)
    if clients is None:
        raise HTTPException(status_code=503, detail="Assistant clients not initialized")
    return clients
