"""Pure-function SQL clause editing for paging, sorting and filtering.

Every function takes SQL text and returns SQL text. Nothing here parses
the statement into a tree: clauses are located by keyword, and only
keywords at parenthesis depth 0 outside quoted literals/identifiers
count, so subqueries and ``OVER (ORDER BY ...)`` windows are left alone.

Supported shape::

    SELECT <list> FROM ... [WHERE ...] [GROUP BY ...] [HAVING ...]
        [ORDER BY ...] [OFFSET n ROWS FETCH NEXT m ROWS ONLY]

All functions are total: blank input is returned unchanged and no
function raises on malformed SQL.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# SQL Server paging clause. Values are captured for extract_paging().
_PAGING_RE = re.compile(
    r"OFFSET\s+(\d+)\s+ROWS\s+FETCH\s+NEXT\s+(\d+)\s+ROWS\s+ONLY",
    re.IGNORECASE,
)
_ORDER_BY_RE = re.compile(r"\bORDER\s+BY\b", re.IGNORECASE)
_WHERE_RE = re.compile(r"\bWHERE\b", re.IGNORECASE)
_OR_RE = re.compile(r"\bOR\b", re.IGNORECASE)
# Clauses that may follow WHERE; a new condition goes in front of them.
_AFTER_WHERE_RE = re.compile(r"\b(?:GROUP\s+BY|HAVING|ORDER\s+BY|OFFSET)\b", re.IGNORECASE)
_TRAILING_TERMINATOR_RE = re.compile(r"[\s;]+$")
_NUMERIC_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?$")

# Opening character -> closing character for regions that hide keywords
_QUOTE_PAIRS = {"'": "'", '"': '"', "[": "]"}

# ORDER BY that makes OFFSET/FETCH legal without changing the row order
STABLE_NO_OP_ORDER = "ORDER BY (SELECT NULL)"


@dataclass(frozen=True, slots=True)
class PagingState:
    """Result window requested by a query.

    Attributes:
        offset: Rows skipped before the window starts.
        fetch: Rows in the window.
        has_paging: Whether the SQL carried an OFFSET/FETCH clause.
    """

    offset: int
    fetch: int
    has_paging: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_blank(sql: str | None) -> bool:
    return sql is None or not sql.strip()


def _trim(sql: str) -> str:
    """Strip surrounding whitespace and any trailing statement terminator."""
    return _TRAILING_TERMINATOR_RE.sub("", sql).strip()


def _top_level_mask(sql: str) -> list[bool]:
    """Flag each character that sits at depth 0 outside quotes.

    Args:
        sql: The SQL text to scan.

    Returns:
        A list the same length as ``sql``; ``True`` where a keyword
        starting at that index belongs to the outer statement.
    """
    mask: list[bool] = []
    depth = 0
    closer: str | None = None

    for ch in sql:
        if closer is not None:
            mask.append(False)
            if ch == closer:
                closer = None
            continue
        if ch in _QUOTE_PAIRS:
            mask.append(False)
            closer = _QUOTE_PAIRS[ch]
            continue
        if ch == "(":
            mask.append(False)
            depth += 1
            continue
        if ch == ")":
            mask.append(False)
            depth = max(depth - 1, 0)
            continue
        mask.append(depth == 0)

    return mask


def _top_level_starts(sql: str, pattern: re.Pattern[str]) -> list[int]:
    """Return start offsets of ``pattern`` matches in the outer statement."""
    mask = _top_level_mask(sql)
    return [m.start() for m in pattern.finditer(sql) if mask[m.start()]]


def _first_top_level(sql: str, pattern: re.Pattern[str], start: int = 0) -> int:
    """Index of the first outer-statement match at or after ``start``, or -1."""
    for idx in _top_level_starts(sql, pattern):
        if idx >= start:
            return idx
    return -1


def _last_top_level(sql: str, pattern: re.Pattern[str]) -> int:
    """Index of the last outer-statement match, or -1."""
    starts = _top_level_starts(sql, pattern)
    return starts[-1] if starts else -1


def _has_order_by(sql: str) -> bool:
    return _last_top_level(sql, _ORDER_BY_RE) >= 0


def _paging_clause(offset: int, fetch: int) -> str:
    return f"OFFSET {offset} ROWS FETCH NEXT {fetch} ROWS ONLY"


def _quote_value(value: str) -> str:
    """Render a filter value as a SQL literal.

    Numbers pass through untouched and values already wrapped in single
    quotes are kept as typed. Anything else is wrapped in single quotes
    with embedded quotes doubled.
    """
    stripped = value.strip()
    if _NUMERIC_RE.match(stripped):
        return stripped
    if len(stripped) > 1 and stripped.startswith("'") and stripped.endswith("'"):
        return stripped
    if len(stripped) > 1 and stripped.startswith('"') and stripped.endswith('"'):
        stripped = stripped[1:-1]
    inner = stripped.strip("'").replace("'", "''")
    return f"'{inner}'"


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------


def extract_paging(sql: str, default_fetch: int = 100) -> PagingState:
    """Read the OFFSET/FETCH window from a SQL statement.

    Args:
        sql: The SQL statement to inspect.
        default_fetch: Page size reported when the SQL has no paging clause.

    Returns:
        ``PagingState(offset, fetch, True)`` when the clause is present,
        otherwise ``PagingState(0, default_fetch, False)``.
    """
    if _is_blank(sql):
        return PagingState(0, default_fetch, False)

    match = _PAGING_RE.search(sql)
    if match is None:
        return PagingState(0, default_fetch, False)

    return PagingState(int(match.group(1)), int(match.group(2)), True)


def remove_paging(sql: str) -> str:
    """Strip the OFFSET/FETCH clause and any trailing terminator.

    Idempotent: applying it twice gives the same result as once.
    """
    if _is_blank(sql):
        return sql
    return _trim(_PAGING_RE.sub("", sql))


def remove_order_and_paging(sql: str) -> str:
    """Remove paging, then truncate at the last top-level ORDER BY.

    Note:
        A top-level ``ORDER BY`` that is part of the statement text but
        not a clause (it cannot occur in valid SQL outside quotes or
        parentheses) would be taken as the clause start.
    """
    if _is_blank(sql):
        return sql

    no_paging = remove_paging(sql)
    idx_order = _last_top_level(no_paging, _ORDER_BY_RE)
    if idx_order >= 0:
        return _trim(no_paging[:idx_order])
    return _trim(no_paging)


def remove_where_keep_order_and_paging(sql: str) -> str:
    """Remove the WHERE clause, keeping everything that follows it.

    GROUP BY, HAVING, ORDER BY and paging after the WHERE condition are
    preserved. SQL without a top-level WHERE is returned unchanged.
    """
    if _is_blank(sql):
        return sql

    idx_where = _first_top_level(sql, _WHERE_RE)
    if idx_where < 0:
        return sql

    idx_tail = _first_top_level(sql, _AFTER_WHERE_RE, start=idx_where)
    base_sql = sql[:idx_where].strip()
    tail = sql[idx_tail:].strip() if idx_tail >= 0 else ""

    return _trim(f"{base_sql} {tail}")


def remove_all_filters_and_sorting(sql: str) -> str:
    """Remove WHERE, ORDER BY and paging."""
    if _is_blank(sql):
        return sql
    return remove_order_and_paging(remove_where_keep_order_and_paging(sql))


def _ensure_order_by(sql: str) -> str:
    """Append a no-op ORDER BY when the statement has none.

    OFFSET/FETCH is only legal after an ORDER BY clause.
    """
    if _has_order_by(sql):
        return sql
    return f"{sql} {STABLE_NO_OP_ORDER}"


def apply_paging(sql: str, offset: int, fetch: int) -> str:
    """Replace any paging clause with ``OFFSET offset ROWS FETCH NEXT fetch ROWS ONLY``.

    Args:
        sql: The SQL statement to page.
        offset: Rows to skip (>= 0).
        fetch: Rows to return (> 0).

    Returns:
        The SQL with exactly one paging clause, preceded by an ORDER BY.
    """
    if _is_blank(sql):
        return sql

    base_sql = _ensure_order_by(remove_paging(sql))
    return f"{base_sql} {_paging_clause(offset, fetch)}"


def apply_first_page(sql: str, fetch: int) -> str:
    """Apply paging for the first page (offset 0)."""
    return apply_paging(sql, 0, fetch)


def apply_page_size(sql: str, new_fetch: int) -> str:
    """Change the page size while keeping the current page index.

    With existing paging ``(offset=40, fetch=20)`` the user is on page
    index 2; a new size of 10 yields ``offset=20``. Without paging the
    first page is applied.

    Args:
        sql: The SQL statement to re-page.
        new_fetch: The new number of rows per page.

    Returns:
        The re-paged SQL.
    """
    if _is_blank(sql):
        return sql

    state = extract_paging(sql, default_fetch=new_fetch)
    if not state.has_paging:
        return apply_paging(sql, 0, new_fetch)

    page_index = state.offset // state.fetch if state.fetch > 0 else 0
    return apply_paging(sql, page_index * new_fetch, new_fetch)


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def apply_sort(
    sql: str,
    column: str,
    direction: str = "ASC",
    keep_offset: int | None = None,
    keep_fetch: int | None = None,
) -> str:
    """Replace ordering with ``ORDER BY column direction``.

    Existing ORDER BY and paging are removed. Paging is re-appended only
    when both ``keep_offset`` and ``keep_fetch`` are given; otherwise the
    sorted query is returned unpaged.

    Args:
        sql: The SQL statement to sort.
        column: Column expression to order by.
        direction: ``"ASC"`` or ``"DESC"``.
        keep_offset: Offset to restore after sorting.
        keep_fetch: Page size to restore after sorting.

    Returns:
        The sorted SQL.
    """
    if _is_blank(sql) or _is_blank(column):
        return sql

    base_sql = remove_order_and_paging(sql)
    sorted_sql = f"{base_sql} ORDER BY {column.strip()} {direction.strip().upper()}"

    if keep_offset is not None and keep_fetch is not None:
        sorted_sql += f" {_paging_clause(keep_offset, keep_fetch)}"

    return sorted_sql


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def apply_filter(sql: str, column: str, operator: str, value: str) -> str:
    """Add ``column operator value`` to the WHERE clause.

    The condition is joined with ``AND`` when a WHERE clause exists, or
    introduces one otherwise. Anything after the filter position
    (GROUP BY, HAVING, ORDER BY, paging) is reattached unchanged.
    An existing condition with a top-level ``OR`` is parenthesised so
    the new condition applies to all of it.

    Args:
        sql: The SQL statement to filter.
        column: Column expression on the left-hand side.
        operator: One of ``=``, ``>``, ``<``, ``>=``, ``<=``.
        value: Raw literal; quoted when non-numeric and not already quoted.

    Returns:
        The filtered SQL.
    """
    if _is_blank(sql) or _is_blank(column):
        return sql

    condition = f"{column.strip()} {operator.strip()} {_quote_value(value or '')}"
    body = _trim(sql)

    idx_where = _first_top_level(body, _WHERE_RE)
    idx_tail = _first_top_level(body, _AFTER_WHERE_RE, start=max(idx_where, 0))

    head = body[:idx_tail].strip() if idx_tail >= 0 else body
    tail = body[idx_tail:].strip() if idx_tail >= 0 else ""

    if idx_where >= 0:
        select_part = head[:idx_where].strip()
        existing = head[idx_where + len("WHERE") :].strip()
        if not existing:
            head = f"{select_part} WHERE {condition}"
        else:
            if _first_top_level(existing, _OR_RE) >= 0:
                existing = f"({existing})"
            head = f"{select_part} WHERE {existing} AND {condition}"
    else:
        head = f"{head} WHERE {condition}"

    return f"{head} {tail}".strip()
