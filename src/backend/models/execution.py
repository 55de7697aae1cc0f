"""
Chat response models.

These models represent the payload returned to the client after a
user turn has been refined or answered and the SQL executed.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    message: str = Field(min_length=1, description="The user's utterance")
    session_id: str | None = Field(
        default=None, description="Existing session to continue (None starts a new one)"
    )


class ChatResponse(BaseModel):
    """
    Structured response for one user turn.

    Contains the assistant text, the SQL that is now current, and the
    rows it returned.
    """

    text: str = Field(default="", description="Assistant message shown to the user")

    sql_query: str = Field(default="", description="The SQL query that was executed")

    columns: list[str] = Field(
        default_factory=list, description="Column names from the result set"
    )

    rows: list[dict] = Field(
        default_factory=list, description="List of row dictionaries from the query result"
    )

    row_count: int = Field(default=0, ge=0, description="Number of rows returned")

    intent: str = Field(
        default="no_op", description="Kind of the refinement intent that was applied"
    )

    source: Literal["refinement", "ai", "none"] = Field(
        default="none", description="Where the SQL for this turn came from"
    )

    page_size: int | None = Field(
        default=None, description="Rows per page for the session after this turn"
    )

    error: str | None = Field(default=None, description="User-facing error message")

    error_kind: str | None = Field(
        default=None,
        description="Machine-readable failure kind (e.g., 'ai_timeout', 'execution')",
    )

    session_id: str | None = Field(default=None, description="Session this turn belongs to")
