"""Schema summary for the model prompt, read from the SQL Server catalog.

The summary lists every user table with its columns, flags and
outgoing foreign keys:

    TABLE: Sales.Customers
      Description: Main entity for customers
      - CustomerID (int) [PK, NOT NULL]
      - CustomerName (nvarchar(100)) [NOT NULL] – Customer's full name
      Relationships:
        - BuyingGroupID → Sales.BuyingGroups.BuyingGroupID
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from models import SchemaColumn, SchemaForeignKey, SchemaTable

from .sql_client import AzureSqlClient

logger = logging.getLogger(__name__)

# Lengths at or above this are rendered without a size (MAX types report -1)
_MAX_SHOWN_LENGTH = 8000

TABLES_QUERY = """
SELECT
    s.name AS schema_name,
    t.name AS table_name,
    CAST(ep.value AS nvarchar(4000)) AS description
FROM sys.tables t
JOIN sys.schemas s ON t.schema_id = s.schema_id
LEFT JOIN sys.extended_properties ep
    ON ep.major_id = t.object_id
    AND ep.minor_id = 0
    AND ep.name = 'MS_Description'
WHERE t.is_ms_shipped = 0
ORDER BY s.name, t.name
"""

COLUMNS_QUERY = """
SELECT
    s.name AS schema_name,
    t.name AS table_name,
    c.name AS column_name,
    ty.name AS data_type,
    c.max_length,
    c.is_nullable,
    c.is_identity,
    CAST(ISNULL(pk.is_primary_key, 0) AS bit) AS is_primary_key,
    c.column_id AS ordinal_position,
    CAST(ep.value AS nvarchar(4000)) AS description
FROM sys.tables t
JOIN sys.schemas s ON t.schema_id = s.schema_id
JOIN sys.columns c ON c.object_id = t.object_id
JOIN sys.types ty ON ty.user_type_id = c.user_type_id
LEFT JOIN sys.extended_properties ep
    ON ep.major_id = t.object_id
    AND ep.minor_id = c.column_id
    AND ep.name = 'MS_Description'
LEFT JOIN (
    SELECT i.object_id, ic.column_id, i.is_primary_key
    FROM sys.indexes i
    JOIN sys.index_columns ic
        ON ic.object_id = i.object_id AND ic.index_id = i.index_id
    WHERE i.is_primary_key = 1
) pk
    ON pk.object_id = t.object_id AND pk.column_id = c.column_id
WHERE t.is_ms_shipped = 0
ORDER BY s.name, t.name, c.column_id
"""

FOREIGN_KEYS_QUERY = """
SELECT
    schP.name AS from_schema,
    tP.name AS from_table,
    colP.name AS from_column,
    schR.name AS to_schema,
    tR.name AS to_table,
    colR.name AS to_column
FROM sys.foreign_keys fk
JOIN sys.foreign_key_columns fkc ON fkc.constraint_object_id = fk.object_id
JOIN sys.tables tP ON tP.object_id = fk.parent_object_id
JOIN sys.schemas schP ON schP.schema_id = tP.schema_id
JOIN sys.columns colP
    ON colP.object_id = fk.parent_object_id AND colP.column_id = fkc.parent_column_id
JOIN sys.tables tR ON tR.object_id = fk.referenced_object_id
JOIN sys.schemas schR ON schR.schema_id = tR.schema_id
JOIN sys.columns colR
    ON colR.object_id = fk.referenced_object_id AND colR.column_id = fkc.referenced_column_id
WHERE fk.is_ms_shipped = 0
ORDER BY schP.name, tP.name, colP.name
"""


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a SQL LIKE pattern (``%`` and ``_`` wildcards) to a regex."""
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def filter_tables(
    tables: Iterable[SchemaTable],
    exclude_exact: Sequence[str] = (),
    exclude_like: Sequence[str] = (),
) -> list[SchemaTable]:
    """Drop tables excluded by configuration.

    Args:
        tables: Tables read from the catalog.
        exclude_exact: Names to drop, as ``Table`` or ``Schema.Table``
            (case-insensitive).
        exclude_like: SQL LIKE patterns matched against the table name.

    Returns:
        The remaining tables in their original order.
    """
    exact = {name.strip().lower() for name in exclude_exact if name.strip()}
    like = [_like_to_regex(p.strip()) for p in exclude_like if p.strip()]

    kept = []
    for table in tables:
        if table.name.lower() in exact or table.full_name.lower() in exact:
            continue
        if any(rx.match(table.name) for rx in like):
            continue
        kept.append(table)
    return kept


def _format_column(column: SchemaColumn) -> str:
    flags = []
    if column.is_primary_key:
        flags.append("PK")
    if column.is_identity:
        flags.append("IDENTITY")
    flags.append("NULL" if column.is_nullable else "NOT NULL")

    type_text = column.data_type
    if column.max_length is not None and 0 < column.max_length < _MAX_SHOWN_LENGTH:
        type_text += f"({column.max_length})"

    line = f"  - {column.name} ({type_text}) [{', '.join(flags)}]"
    if column.description and column.description.strip():
        line += f" – {column.description.strip()}"
    return line


def format_schema_summary(
    tables: Iterable[SchemaTable],
    columns: Iterable[SchemaColumn],
    foreign_keys: Iterable[SchemaForeignKey] = (),
) -> str:
    """Render catalog metadata as the text block embedded in the prompt.

    Tables are ordered by schema then name, columns by ordinal position.
    Columns and foreign keys of tables not in ``tables`` are ignored.
    """
    columns_by_table: dict[tuple[str, str], list[SchemaColumn]] = {}
    for column in columns:
        columns_by_table.setdefault((column.schema_name, column.table_name), []).append(column)

    fks_by_table: dict[tuple[str, str], list[SchemaForeignKey]] = {}
    for fk in foreign_keys:
        fks_by_table.setdefault((fk.from_schema, fk.from_table), []).append(fk)

    lines: list[str] = []
    for table in sorted(tables, key=lambda t: (t.schema_name, t.name)):
        key = (table.schema_name, table.name)
        lines.append(f"TABLE: {table.full_name}")
        if table.description and table.description.strip():
            lines.append(f"  Description: {table.description.strip()}")

        for column in sorted(columns_by_table.get(key, []), key=lambda c: c.ordinal_position):
            lines.append(_format_column(column))

        table_fks = fks_by_table.get(key, [])
        if table_fks:
            lines.append("  Relationships:")
            for fk in table_fks:
                lines.append(
                    f"    - {fk.from_column} → {fk.to_schema}.{fk.to_table}.{fk.to_column}"
                )
        lines.append("")

    return "\n".join(lines)


# ── Catalog row mapping ──────────────────────────────────────────────


def _table_from_row(row: dict[str, Any]) -> SchemaTable:
    return SchemaTable(
        schema_name=row["schema_name"],
        name=row["table_name"],
        description=row.get("description") or "",
    )


def _column_from_row(row: dict[str, Any]) -> SchemaColumn:
    return SchemaColumn(
        schema_name=row["schema_name"],
        table_name=row["table_name"],
        name=row["column_name"],
        data_type=row["data_type"],
        max_length=row.get("max_length"),
        ordinal_position=row.get("ordinal_position") or 0,
        is_nullable=bool(row.get("is_nullable")),
        is_primary_key=bool(row.get("is_primary_key")),
        is_identity=bool(row.get("is_identity")),
        description=row.get("description") or "",
    )


def _foreign_key_from_row(row: dict[str, Any]) -> SchemaForeignKey:
    return SchemaForeignKey(**{field: row[field] for field in SchemaForeignKey.model_fields})


class SqlServerSchemaProvider:
    """``SchemaProvider`` that reads the catalog once and caches the summary.

    Args:
        client_factory: Returns an async context manager exposing
            ``fetch_rows(query)``; defaults to ``AzureSqlClient``.
        exclude_exact: Table names left out of the summary.
        exclude_like: LIKE patterns for table names left out of the summary.
    """

    def __init__(
        self,
        client_factory: Callable[[], Any] = AzureSqlClient,
        exclude_exact: Sequence[str] = (),
        exclude_like: Sequence[str] = (),
    ) -> None:
        self._client_factory = client_factory
        self._exclude_exact = list(exclude_exact)
        self._exclude_like = list(exclude_like)
        self._cached_summary: str | None = None
        self._lock = asyncio.Lock()

    async def get_schema_summary(self) -> str:
        """Return the formatted schema, loading it on first use."""
        if self._cached_summary:
            return self._cached_summary

        async with self._lock:
            if self._cached_summary:
                return self._cached_summary

            async with self._client_factory() as client:
                table_rows = await client.fetch_rows(TABLES_QUERY)
                column_rows = await client.fetch_rows(COLUMNS_QUERY)
                fk_rows = await client.fetch_rows(FOREIGN_KEYS_QUERY)

            tables = filter_tables(
                (_table_from_row(r) for r in table_rows),
                self._exclude_exact,
                self._exclude_like,
            )
            self._cached_summary = format_schema_summary(
                tables,
                (_column_from_row(r) for r in column_rows),
                (_foreign_key_from_row(r) for r in fk_rows),
            )
            logger.info(
                "Loaded schema summary: %d tables (%d excluded)",
                len(tables),
                len(table_rows) - len(tables),
            )
            return self._cached_summary

    def invalidate(self) -> None:
        """Drop the cached summary so the next call reloads the catalog."""
        self._cached_summary = None
