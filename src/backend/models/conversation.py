"""
Conversation models.

A chat session is an ordered sequence of turns. Only user turns are
forwarded to the model as history; any turn may carry the SQL that was
current when it was recorded.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    """Author of a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChatTurn(BaseModel):
    """A single message in a chat session."""

    role: ChatRole = Field(description="Who wrote the message")
    content: str = Field(default="", description="Free text of the message")
    sql_query: str | None = Field(
        default=None, description="SQL associated with this turn, if any"
    )
    created_on: datetime = Field(default_factory=_utc_now)


class AiChatResponse(BaseModel):
    """Parsed model output: a one-line answer and an optional SELECT."""

    answer: str = Field(default="", description="Natural-language answer")
    sql: str = Field(default="", description="Proposed SELECT query, or empty string")
