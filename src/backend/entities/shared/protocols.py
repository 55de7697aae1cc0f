"""Protocol interfaces for I/O boundaries.

These protocols enable dependency injection for testability.
Production implementations wrap Azure clients; test fakes
return canned data with zero network or filesystem access.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from models import AiChatResponse, ChatTurn


@runtime_checkable
class AiChatService(Protocol):
    """Turns a question plus schema and history into an answer and SQL.

    Implementations raise ``AiServiceError`` subclasses on failure.
    """

    async def ask(
        self,
        question: str,
        history: Sequence[ChatTurn],
        schema_summary: str,
    ) -> AiChatResponse:
        """Ask the model for an answer and an optional SELECT query.

        Args:
            question: Natural-language question from the user.
            history: Earlier turns of the session.
            schema_summary: Formatted database schema block.

        Returns:
            The parsed model response.
        """
        ...


@runtime_checkable
class SqlExecutor(Protocol):
    """Executes read-only SQL against the database.

    Returns a dict with keys: ``success``, ``columns``, ``rows``,
    ``row_count``, ``error``.
    """

    async def execute(self, query: str) -> dict[str, Any]:
        """Execute a SQL query.

        Args:
            query: SELECT statement to run.

        Returns:
            Execution result dict with rows, columns, and status.
        """
        ...


@runtime_checkable
class SchemaProvider(Protocol):
    """Supplies the formatted schema summary embedded in model prompts."""

    async def get_schema_summary(self) -> str:
        """Return the schema summary text.

        Returns:
            One block per table with columns and relationships.
        """
        ...
