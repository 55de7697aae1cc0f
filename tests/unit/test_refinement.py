"""Unit tests for ``refine()`` and ``apply_intent()``.

Each test plays one user turn against a current SQL query and checks the
next query and page size, end to end through interpreter, resolver and
transformer.
"""

from __future__ import annotations

import pytest
from entities.clause_transformer import STABLE_NO_OP_ORDER, PagingState, extract_paging
from entities.refinement import apply_intent, quote_identifier, refine
from models import NextPage, NoOp, Sort

BASE = "SELECT Id, Name FROM Customers"
FIRST_PAGE = f"{BASE} ORDER BY Id OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"


# ── Paging turns ─────────────────────────────────────────────────────────


class TestPagingTurns:
    """Paging commands against a paged query."""

    def test_next_page(self) -> None:
        outcome = refine(FIRST_PAGE, "next page", 100)

        assert outcome.handled is True
        assert outcome.intent == NextPage()
        assert outcome.sql == f"{BASE} ORDER BY Id OFFSET 10 ROWS FETCH NEXT 10 ROWS ONLY"
        assert outcome.page_size == 10

    def test_next_with_count_changes_fetch(self) -> None:
        outcome = refine(FIRST_PAGE, "next 25", 10)

        assert extract_paging(outcome.sql) == PagingState(10, 25, True)
        assert outcome.page_size == 25

    def test_next_page_without_paging_uses_session_page_size(self) -> None:
        outcome = refine(BASE, "next page", 50)

        assert outcome.sql == f"{BASE} {STABLE_NO_OP_ORDER} OFFSET 50 ROWS FETCH NEXT 50 ROWS ONLY"

    def test_previous_page(self) -> None:
        sql = f"{BASE} ORDER BY Id OFFSET 30 ROWS FETCH NEXT 10 ROWS ONLY"

        outcome = refine(sql, "previous page", 10)

        assert extract_paging(outcome.sql) == PagingState(20, 10, True)

    def test_previous_page_stops_at_zero(self) -> None:
        outcome = refine(FIRST_PAGE, "prev", 10)
        assert extract_paging(outcome.sql) == PagingState(0, 10, True)

    def test_go_to_page_is_one_based(self) -> None:
        outcome = refine(FIRST_PAGE, "page 3", 10)
        assert extract_paging(outcome.sql) == PagingState(20, 10, True)

    def test_first_page(self) -> None:
        sql = f"{BASE} ORDER BY Id OFFSET 70 ROWS FETCH NEXT 10 ROWS ONLY"

        outcome = refine(sql, "first page", 10)

        assert outcome.sql == FIRST_PAGE

    def test_change_page_size_updates_session_size(self) -> None:
        sql = f"{BASE} ORDER BY Id OFFSET 40 ROWS FETCH NEXT 20 ROWS ONLY"

        outcome = refine(sql, "page size 10", 20)

        assert extract_paging(outcome.sql) == PagingState(20, 10, True)
        assert outcome.page_size == 10


# ── Sort / filter turns ──────────────────────────────────────────────────


class TestSortAndFilterTurns:
    """Sort and filter commands resolve column names against the SELECT list."""

    def test_sort_by_name_desc_drops_paging(self) -> None:
        outcome = refine(FIRST_PAGE, "sort by name desc", 10)

        assert outcome.intent == Sort(column="name", direction="DESC")
        assert outcome.sql == f"{BASE} ORDER BY Name DESC"

    def test_sort_uses_alias(self) -> None:
        sql = "SELECT e.BirthDate AS Birth, e.Name FROM Employees e"

        outcome = refine(sql, "sort by birth date", 10)

        assert outcome.sql == f"{sql} ORDER BY Birth ASC"

    def test_sort_unknown_column_uses_user_text(self) -> None:
        outcome = apply_intent(BASE, Sort(column="Salary"), 10)
        assert outcome.sql == f"{BASE} ORDER BY Salary ASC"

    def test_filter_uses_expression_not_alias(self) -> None:
        sql = "SELECT c.CustomerName AS Name, c.City FROM Sales.Customers c"

        outcome = refine(sql, "filter name = acme", 10)

        assert outcome.sql == f"{sql} WHERE c.CustomerName = 'acme'"

    def test_filter_keeps_paging(self) -> None:
        outcome = refine(FIRST_PAGE, "filter Id > 5", 10)

        assert outcome.sql == (
            f"{BASE} WHERE Id > 5 ORDER BY Id OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"
        )

    def test_sort_by_bracketed_column_without_alias(self) -> None:
        sql = "SELECT o.[Order Date], c.Name FROM Orders o JOIN Customers c ON c.Id = o.CustomerId"

        outcome = refine(sql, "sort by order date desc", 10)

        assert outcome.sql == f"{sql} ORDER BY [Order Date] DESC"

    def test_sort_by_quoted_alias_with_space(self) -> None:
        sql = 'SELECT e.BirthDate AS "Birth Date", e.Name FROM Employees e'

        outcome = refine(sql, "sort by birth date", 10)

        assert outcome.sql == f"{sql} ORDER BY [Birth Date] ASC"

    def test_unresolved_sort_column_with_space_is_bracketed(self) -> None:
        outcome = refine("SELECT * FROM Employees", "sort by birth date", 10)

        assert outcome.sql == "SELECT * FROM Employees ORDER BY [birth date] ASC"

    def test_unresolved_bracketed_filter_column(self) -> None:
        outcome = refine("SELECT * FROM Orders", "filter [Order Date] >= '2024-01-01'", 10)

        assert outcome.sql == "SELECT * FROM Orders WHERE [Order Date] >= '2024-01-01'"


# ── quote_identifier ─────────────────────────────────────────────────────


class TestQuoteIdentifier:
    """Column references placed in ORDER BY / WHERE stay valid SQL."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Name", "Name"),
            ("o.CustomerID", "o.CustomerID"),
            ("[Order Date]", "[Order Date]"),
            ("o.[Order Date]", "o.[Order Date]"),
            ('"Birth Date"', '"Birth Date"'),
            ("Order Date", "[Order Date]"),
            ("2024 Sales", "[2024 Sales]"),
            ("odd]name", "[odd]]name]"),
        ],
    )
    def test_quote_identifier(self, name: str, expected: str) -> None:
        assert quote_identifier(name) == expected


# ── Clear turns ──────────────────────────────────────────────────────────


class TestClearTurns:
    """Clear and reset commands."""

    def test_clear_sorting_restarts_at_first_page(self) -> None:
        sql = f"{BASE} ORDER BY Id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"

        outcome = refine(sql, "clear sorting", 10)

        assert outcome.sql == f"{BASE} {STABLE_NO_OP_ORDER} OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"

    def test_clear_sorting_without_paging(self) -> None:
        outcome = refine(f"{BASE} ORDER BY Name", "clear sorting", 10)
        assert outcome.sql == BASE

    def test_clear_filters(self) -> None:
        sql = f"{BASE} WHERE Name = 'acme' ORDER BY Id"

        outcome = refine(sql, "clear filters", 10)

        assert outcome.sql == f"{BASE} ORDER BY Id"

    def test_reset_all(self) -> None:
        sql = f"{BASE} WHERE Name = 'acme' ORDER BY Id OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"

        outcome = refine(sql, "reset all filters and sorting", 10)

        assert outcome.sql == BASE


# ── Not handled ──────────────────────────────────────────────────────────


class TestNotHandled:
    """Turns the refiner leaves to the model."""

    def test_question_is_not_handled(self) -> None:
        outcome = refine(FIRST_PAGE, "how many customers live in Texas?", 10)

        assert outcome.handled is False
        assert outcome.intent == NoOp()
        assert outcome.sql == FIRST_PAGE
        assert outcome.page_size == 10

    def test_command_without_current_sql(self) -> None:
        outcome = refine(None, "next page", 10)

        assert outcome.handled is False
        assert outcome.sql == ""
