"""
Azure SQL Database client for executing read-only queries.

This module provides a reusable async client for executing SELECT queries
against Azure SQL Database using Azure AD authentication.
"""

import logging
import struct
from typing import Any

import aioodbc
from azure.identity import DefaultAzureCredential
from config.settings import get_settings
from entities.query_validator import validate_select

logger = logging.getLogger(__name__)

SQL_COPT_SS_ACCESS_TOKEN = 1256


def get_azure_sql_token(client_id: str | None = None) -> bytes:
    """
    Get an Azure AD token for SQL Database authentication.

    Args:
        client_id: Client id of a user-assigned managed identity, if any.

    Returns:
        Token bytes formatted for pyodbc
    """
    # User-assigned managed identity in Container Apps; locally the
    # credential chain falls back to CLI/VS Code credentials
    logger.info("Getting SQL token, AZURE_CLIENT_ID=%s", client_id)

    if client_id:
        credential = DefaultAzureCredential(managed_identity_client_id=client_id)
    else:
        credential = DefaultAzureCredential()

    token = credential.get_token("https://database.windows.net/.default")
    logger.info("Token acquired, expires_on=%s", token.expires_on)

    token_bytes = token.token.encode("utf-16-le")
    return struct.pack(f"<I{len(token_bytes)}s", len(token_bytes), token_bytes)


def to_json_value(value: Any) -> Any:
    """Convert a driver value into something JSON can carry.

    Spatial columns arrive as raw bytes and are rendered as a hex
    literal; dates, decimals and GUIDs become their string form.
    """
    if value is None or isinstance(value, (int, float, str, bool)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex().upper()
    return str(value)


def error_result(error: str) -> dict[str, Any]:
    """Build the failure shape shared by every executor."""
    return {"success": False, "error": error, "columns": [], "rows": [], "row_count": 0}


class AzureSqlClient:
    """
    Async context manager for read-only Azure SQL Database operations.

    Usage:
        async with AzureSqlClient() as client:
            result = await client.execute_query("SELECT TOP 10 * FROM Sales.Orders")
    """

    def __init__(self, server: str | None = None, database: str | None = None):
        """
        Initialize the SQL client.

        Args:
            server: Azure SQL server hostname. Defaults to the AZURE_SQL_SERVER setting.
            database: Database name. Defaults to the AZURE_SQL_DATABASE setting.
        """
        settings = get_settings()
        self.server = server or settings.azure_sql_server
        self.database = database or settings.azure_sql_database
        self._client_id = settings.azure_client_id
        self._connection: aioodbc.Connection | None = None

    async def __aenter__(self):
        """Establish the database connection."""
        if not self.server:
            raise ValueError("AZURE_SQL_SERVER environment variable is required")

        connection_string = (
            f"DRIVER={{ODBC Driver 18 for SQL Server}};"
            f"SERVER={self.server};"
            f"DATABASE={self.database};"
        )

        self._connection = await aioodbc.connect(
            dsn=connection_string,
            attrs_before={SQL_COPT_SS_ACCESS_TOKEN: get_azure_sql_token(self._client_id)},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()

    async def fetch_rows(self, query: str) -> list[dict[str, Any]]:
        """
        Run a trusted catalog query and return its rows.

        Unlike ``execute_query`` errors propagate to the caller.

        Args:
            query: The SQL query to execute

        Returns:
            One dictionary per row keyed by column name.
        """
        if not self._connection:
            raise RuntimeError("Database connection not established. Use 'async with' context manager.")

        async with self._connection.cursor() as cursor:
            await cursor.execute(query)
            columns = [column[0] for column in cursor.description] if cursor.description else []
            raw_rows = await cursor.fetchall()
        return [dict(zip(columns, row, strict=False)) for row in raw_rows]

    async def execute_query(self, query: str) -> dict[str, Any]:
        """
        Validate and execute a SELECT query and return results.

        Args:
            query: The SQL query to execute

        Returns:
            A dictionary containing:
            - success: Whether the query executed successfully
            - columns: List of column names in the result
            - rows: List of dictionaries, one per row
            - row_count: Number of rows returned
            - error: Error message if the query failed
        """
        logger.info("Executing SQL query: %s", query[:200])

        is_valid, violations = validate_select(query)
        if not is_valid:
            return error_result("; ".join(violations))

        if not self._connection:
            return error_result("Database connection not established. Use 'async with' context manager.")

        try:
            async with self._connection.cursor() as cursor:
                await cursor.execute(query)

                columns = [column[0] for column in cursor.description] if cursor.description else []
                raw_rows = await cursor.fetchall()

                rows = [
                    {col: to_json_value(row[i]) for i, col in enumerate(columns)}
                    for row in raw_rows
                ]

                logger.info("Query executed successfully. Returned %d rows.", len(rows))

                return {
                    "success": True,
                    "columns": columns,
                    "rows": rows,
                    "row_count": len(rows),
                    "error": None,
                }

        except Exception as e:
            logger.error("SQL execution error: %s", e)
            return error_result(str(e))
