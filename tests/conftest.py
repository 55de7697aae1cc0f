"""Shared test fixtures for the SQL chat assistant."""

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

# Ensure src/backend/ is on the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src" / "backend"))

from config.settings import Settings
from entities.assistant import AssistantClients
from models import AiChatResponse, ChatTurn

# ---------------------------------------------------------------------------
# Protocol fakes
# ---------------------------------------------------------------------------


class FakeChatService:
    """In-memory fake satisfying the ``AiChatService`` protocol.

    Returns canned responses in order (the last one repeats) or raises a
    preset error, and records every ``ask`` call for assertions.
    """

    def __init__(
        self,
        responses: list[AiChatResponse] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.responses: list[AiChatResponse] = responses or [AiChatResponse()]
        self.error: Exception | None = error
        self.calls: list[tuple[str, list[ChatTurn], str]] = []

    async def ask(
        self,
        question: str,
        history: Sequence[ChatTurn],
        schema_summary: str,
    ) -> AiChatResponse:
        """Return the next canned response or raise the preset error."""
        self.calls.append((question, list(history), schema_summary))
        if self.error:
            raise self.error
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        return self.responses[index]


class FakeSqlExecutor:
    """In-memory fake satisfying the ``SqlExecutor`` protocol.

    Returns canned rows/columns or an error, and records every call.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        columns: list[str] | None = None,
        error: str | None = None,
    ) -> None:
        self.rows: list[dict[str, Any]] = rows or []
        self.columns: list[str] = columns or []
        self.error: str | None = error
        self.calls: list[str] = []

    async def execute(self, query: str) -> dict[str, Any]:
        """Return a success/failure dict mimicking ``execute_query`` output."""
        self.calls.append(query)

        if self.error:
            return {
                "success": False,
                "error": self.error,
                "columns": [],
                "rows": [],
                "row_count": 0,
            }

        return {
            "success": True,
            "columns": self.columns,
            "rows": self.rows,
            "row_count": len(self.rows),
            "error": None,
        }


class FakeSchemaProvider:
    """In-memory fake satisfying the ``SchemaProvider`` protocol."""

    def __init__(self, summary: str = "TABLE: Sales.Customers\n", error: Exception | None = None) -> None:
        self.summary = summary
        self.error = error
        self.calls = 0

    async def get_schema_summary(self) -> str:
        """Return the canned summary or raise the preset error."""
        self.calls += 1
        if self.error:
            raise self.error
        return self.summary


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Return a ``Settings`` instance populated with safe test defaults."""
    return Settings(
        azure_ai_project_endpoint="https://test.services.ai.azure.com/api/projects/test",
        azure_sql_server="test-server.database.windows.net",
        azure_sql_database="TestDB",
        azure_ai_model_deployment_name="test-model",
    )


@pytest.fixture
def fake_chat_service() -> FakeChatService:
    """Return a ``FakeChatService`` that answers with no SQL."""
    return FakeChatService()


@pytest.fixture
def fake_sql_executor() -> FakeSqlExecutor:
    """Return an empty ``FakeSqlExecutor`` instance."""
    return FakeSqlExecutor()


@pytest.fixture
def fake_schema_provider() -> FakeSchemaProvider:
    """Return a ``FakeSchemaProvider`` with a one-table summary."""
    return FakeSchemaProvider()


@pytest.fixture
def fake_clients(
    fake_chat_service: FakeChatService,
    fake_sql_executor: FakeSqlExecutor,
    fake_schema_provider: FakeSchemaProvider,
) -> AssistantClients:
    """Bundle the fakes into ``AssistantClients``."""
    return AssistantClients(
        chat_service=fake_chat_service,
        sql_executor=fake_sql_executor,
        schema_provider=fake_schema_provider,
    )
