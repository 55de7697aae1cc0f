"""
FastAPI server for the conversational SQL assistant.

This module handles application setup, lifespan management, and middleware configuration.
Route handlers are organized in the routers/ package.

Each chat session is served by a DataAssistant:
- Paging, sorting and filtering commands refine the session's current SQL
- Other questions are answered by the model with the database schema as context
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from api.routers import chat_router
from config.settings import get_settings
from dotenv import load_dotenv
from entities.assistant import create_assistant_clients
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

# Configure logging - use force=True to prevent duplicate handlers
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, force=True)

# Reduce noise from Azure SDK and other libraries
logging.getLogger("azure").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
# Reduce agent_framework verbosity (it logs all message content at INFO level)
logging.getLogger("agent_framework").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Builds the shared assistant clients on startup. Assistants themselves
    are created per session by the chat router.
    """
    logger.info("SQL chat assistant API starting")

    settings = get_settings()
    if not settings.azure_ai_project_endpoint:
        logger.warning("AZURE_AI_PROJECT_ENDPOINT not set; chat endpoints will return 503")
        application.state.clients = None
    elif not settings.azure_sql_server:
        logger.warning("AZURE_SQL_SERVER not set; chat endpoints will return 503")
        application.state.clients = None
    else:
        application.state.clients = create_assistant_clients(settings)

    yield

    logger.info("Application shutdown complete")


app = FastAPI(title="SQL Chat Assistant", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint."""
    clients_ready = getattr(app.state, "clients", None) is not None
    return {"status": "healthy", "clients_ready": clients_ready}


if __name__ == "__main__":
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)  # noqa: S104
