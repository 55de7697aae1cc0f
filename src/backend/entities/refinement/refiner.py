"""Turn-level refinement: classify, resolve, transform.

Composes the command interpreter, the column resolver and the clause
transformer for one user turn. The caller owns the current SQL and the
session page size and passes both in; nothing is kept between calls.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from entities.clause_transformer import (
    apply_filter,
    apply_first_page,
    apply_page_size,
    apply_paging,
    apply_sort,
    extract_paging,
    remove_all_filters_and_sorting,
    remove_order_and_paging,
    remove_where_keep_order_and_paging,
)
from entities.column_resolver import find_projected_column
from entities.command_interpreter import classify
from models import (
    ChangePageSize,
    ClearAll,
    ClearFilters,
    ClearSorting,
    Filter,
    FirstPage,
    GoToPage,
    Intent,
    NextPage,
    NoOp,
    PreviousPage,
    Sort,
)

logger = logging.getLogger(__name__)

_PLAIN_IDENTIFIER_RE = re.compile(r"^[A-Za-z_@#][\w@#$]*(?:\.[A-Za-z_@#][\w@#$]*)*$")
# One or more dotted parts, each plain, [bracketed] or "quoted"
_DELIMITED_IDENTIFIER_RE = re.compile(
    r"^(?:(?:[A-Za-z_][\w]*|\[(?:[^\]]|\]\])+\]|\"[^\"]+\")\.)*"
    r"(?:\[(?:[^\]]|\]\])+\]|\"[^\"]+\")$"
)


@dataclass(frozen=True, slots=True)
class RefinementOutcome:
    """Result of applying one utterance to the current SQL.

    Attributes:
        intent: The classified intent.
        sql: The SQL after the refinement (unchanged when not handled).
        page_size: The caller's page size after the refinement.
        handled: Whether the intent was applied. ``False`` means the caller
            should fall back to the model.
    """

    intent: Intent
    sql: str
    page_size: int
    handled: bool


def quote_identifier(name: str) -> str:
    """Return ``name`` in a form that is valid as a column reference.

    Plain (optionally dotted) identifiers and names that are already
    bracketed or quoted pass through; anything else, such as a name with
    a space, is wrapped in brackets with ``]`` escaped as ``]]``.

    Example:
        ``"Order Date"`` becomes ``"[Order Date]"``; ``"o.Name"`` is unchanged.
    """
    cleaned = name.strip()
    if _PLAIN_IDENTIFIER_RE.match(cleaned) or _DELIMITED_IDENTIFIER_RE.match(cleaned):
        return cleaned
    return "[" + cleaned.replace("]", "]]") + "]"


def _resolve_sort_target(sql: str, column: str) -> str:
    match = find_projected_column(sql, column)
    return quote_identifier(match.name if match is not None else column)


def _resolve_filter_target(sql: str, column: str) -> str:
    """Pick the left-hand side of a WHERE condition.

    SQL Server does not allow SELECT aliases in WHERE, so the projected
    expression is used instead of the output name.
    """
    match = find_projected_column(sql, column)
    return match.expression if match is not None else quote_identifier(column)


def apply_intent(sql: str | None, intent: Intent, page_size: int) -> RefinementOutcome:
    """Apply an already-classified intent to the current SQL.

    Args:
        sql: The current SQL query (may be empty).
        intent: The intent to apply.
        page_size: The caller's current rows per page; used as the page
            size when the SQL carries no paging clause yet.

    Returns:
        A ``RefinementOutcome`` with the next SQL and page size.
    """
    current = sql or ""
    if isinstance(intent, NoOp) or not current.strip():
        return RefinementOutcome(intent=intent, sql=current, page_size=page_size, handled=False)

    state = extract_paging(current, default_fetch=page_size)
    new_page_size = page_size

    if isinstance(intent, NextPage):
        new_fetch = intent.page_size or state.fetch
        next_sql = apply_paging(current, state.offset + state.fetch, new_fetch)
        new_page_size = new_fetch
    elif isinstance(intent, PreviousPage):
        step = intent.page_size or state.fetch
        next_sql = apply_paging(current, max(state.offset - step, 0), step)
        new_page_size = step
    elif isinstance(intent, GoToPage):
        # Pages are 1-based for the user; page 0 is treated as page 1
        page_index = max(intent.page_number - 1, 0)
        next_sql = apply_paging(current, page_index * state.fetch, state.fetch)
    elif isinstance(intent, FirstPage):
        next_sql = apply_first_page(current, state.fetch)
    elif isinstance(intent, ChangePageSize):
        next_sql = apply_page_size(current, intent.page_size)
        new_page_size = intent.page_size
    elif isinstance(intent, Sort):
        column = _resolve_sort_target(current, intent.column)
        next_sql = apply_sort(current, column, intent.direction)
    elif isinstance(intent, Filter):
        column = _resolve_filter_target(current, intent.column)
        next_sql = apply_filter(current, column, intent.operator, intent.value)
    elif isinstance(intent, ClearSorting):
        next_sql = remove_order_and_paging(current)
        if state.has_paging:
            next_sql = apply_first_page(next_sql, state.fetch)
    elif isinstance(intent, ClearFilters):
        next_sql = remove_where_keep_order_and_paging(current)
    elif isinstance(intent, ClearAll):
        next_sql = remove_all_filters_and_sorting(current)
    else:
        return RefinementOutcome(intent=intent, sql=current, page_size=page_size, handled=False)

    logger.info("Applied %s refinement (page_size=%d)", intent.kind.value, new_page_size)
    return RefinementOutcome(intent=intent, sql=next_sql, page_size=new_page_size, handled=True)


def refine(sql: str | None, utterance: str, page_size: int) -> RefinementOutcome:
    """Classify ``utterance`` and apply it to ``sql``.

    Args:
        sql: The current SQL query (may be empty).
        utterance: The user's free-text command.
        page_size: The caller's current rows per page.

    Returns:
        A ``RefinementOutcome``; ``handled`` is ``False`` for utterances
        that are not refinement commands or when there is no SQL to refine.
    """
    return apply_intent(sql, classify(utterance), page_size)
