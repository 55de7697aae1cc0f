"""Shared utilities for the assistant: SQL access, schema summary, history and AI errors."""

from .protocols import AiChatService, SchemaProvider, SqlExecutor
from .schema_provider import SqlServerSchemaProvider
from .sql_client import AzureSqlClient

__all__ = [
    "AiChatService",
    "AzureSqlClient",
    "SchemaProvider",
    "SqlExecutor",
    "SqlServerSchemaProvider",
]
