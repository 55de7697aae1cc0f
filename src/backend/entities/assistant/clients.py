"""Assistant client container and Protocol adapters for dependency injection.

``AssistantClients`` bundles every I/O dependency the assistant needs.
Production code constructs it via ``create_assistant_clients()`` from
real Azure clients; tests construct it from in-memory fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from agent_framework_azure_ai import AzureAIClient
from azure.identity.aio import DefaultAzureCredential
from config.settings import Settings
from entities.chat_service import AgentChatService, create_chat_agent
from entities.shared.protocols import AiChatService, SchemaProvider, SqlExecutor
from entities.shared.schema_provider import SqlServerSchemaProvider
from entities.shared.sql_client import AzureSqlClient, error_result

logger = logging.getLogger(__name__)


class SqlExecutorAdapter:
    """``SqlExecutor`` backed by ``AzureSqlClient``.

    Each ``execute()`` call opens and closes a fresh database connection.

    Args:
        server: Azure SQL server hostname.
        database: Database name.
    """

    def __init__(self, server: str, database: str) -> None:
        self._server = server
        self._database = database

    async def execute(self, query: str) -> dict[str, Any]:
        """Execute a read-only SQL query.

        Args:
            query: SQL SELECT statement.

        Returns:
            Result dict with ``success``, ``columns``, ``rows``,
            ``row_count``, and ``error`` keys.
        """
        try:
            async with AzureSqlClient(server=self._server, database=self._database) as client:
                return await client.execute_query(query)
        except Exception as exc:
            logger.exception("SQL execution error")
            return error_result(str(exc))


@dataclass(frozen=True)
class AssistantClients:
    """Immutable bundle of the assistant's I/O dependencies.

    Args:
        chat_service: Generates answers and SQL from questions.
        sql_executor: Runs read-only SQL.
        schema_provider: Supplies the schema summary for prompts.
    """

    chat_service: AiChatService
    sql_executor: SqlExecutor
    schema_provider: SchemaProvider


def create_assistant_clients(settings: Settings) -> AssistantClients:
    """Build ``AssistantClients`` from application ``Settings``.

    Args:
        settings: Centralised application configuration.

    Returns:
        Fully-initialised clients for ``DataAssistant``.
    """
    credential = (
        DefaultAzureCredential(managed_identity_client_id=settings.azure_client_id)
        if settings.azure_client_id
        else DefaultAzureCredential()
    )

    llm = AzureAIClient(
        project_endpoint=settings.azure_ai_project_endpoint,
        credential=credential,
        model_deployment_name=settings.azure_ai_model_deployment_name,
        use_latest_version=True,
    )
    chat_service = AgentChatService(
        create_chat_agent(llm),
        timeout_seconds=settings.ai_request_timeout_seconds,
        max_history_messages=settings.max_history_messages,
        max_message_length=settings.max_message_length,
    )

    def _sql_client() -> AzureSqlClient:
        return AzureSqlClient(server=settings.azure_sql_server, database=settings.azure_sql_database)

    schema_provider = SqlServerSchemaProvider(
        client_factory=_sql_client,
        exclude_exact=settings.schema_exclude_exact,
        exclude_like=settings.schema_exclude_like,
    )

    logger.info(
        "Assistant clients created (model=%s, database=%s)",
        settings.azure_ai_model_deployment_name,
        settings.azure_sql_database,
    )
    return AssistantClients(
        chat_service=chat_service,
        sql_executor=SqlExecutorAdapter(settings.azure_sql_server, settings.azure_sql_database),
        schema_provider=schema_provider,
    )
