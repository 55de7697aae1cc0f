"""
Intent models produced by the command interpreter.

Each recognised user command maps to exactly one variant. Variants are
discriminated by their ``kind`` literal so an ``Intent`` can be validated
from a plain dict and matched on with ``isinstance`` or ``kind``.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class IntentKind(str, Enum):
    """Tag of each recognised action."""

    NO_OP = "no_op"
    NEXT_PAGE = "next_page"
    PREVIOUS_PAGE = "previous_page"
    GO_TO_PAGE = "go_to_page"
    FIRST_PAGE = "first_page"
    CHANGE_PAGE_SIZE = "change_page_size"
    SORT = "sort"
    FILTER = "filter"
    CLEAR_SORTING = "clear_sorting"
    CLEAR_FILTERS = "clear_filters"
    CLEAR_ALL = "clear_all"


SortDirection = Literal["ASC", "DESC"]
FilterOperator = Literal["=", ">", "<", ">=", "<="]


class _IntentBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class NoOp(_IntentBase):
    """Input that is not a recognised refinement command."""

    kind: Literal[IntentKind.NO_OP] = IntentKind.NO_OP


class NextPage(_IntentBase):
    """Advance one page, optionally switching to a new page size."""

    kind: Literal[IntentKind.NEXT_PAGE] = IntentKind.NEXT_PAGE
    page_size: int | None = Field(default=None, gt=0, description="Rows for the new page")


class PreviousPage(_IntentBase):
    """Step back one page, optionally switching to a new page size."""

    kind: Literal[IntentKind.PREVIOUS_PAGE] = IntentKind.PREVIOUS_PAGE
    page_size: int | None = Field(default=None, gt=0, description="Rows for the new page")


class GoToPage(_IntentBase):
    """Jump to a page number as typed by the user."""

    kind: Literal[IntentKind.GO_TO_PAGE] = IntentKind.GO_TO_PAGE
    page_number: int = Field(ge=0, description="Page number as typed by the user")


class FirstPage(_IntentBase):
    """Return to the first page."""

    kind: Literal[IntentKind.FIRST_PAGE] = IntentKind.FIRST_PAGE


class ChangePageSize(_IntentBase):
    """Change rows per page while keeping the current page index."""

    kind: Literal[IntentKind.CHANGE_PAGE_SIZE] = IntentKind.CHANGE_PAGE_SIZE
    page_size: int = Field(gt=0, description="New rows per page")


class Sort(_IntentBase):
    """Order the results by a single column."""

    kind: Literal[IntentKind.SORT] = IntentKind.SORT
    column: str = Field(min_length=1, description="Column text as typed by the user")
    direction: SortDirection = "ASC"


class Filter(_IntentBase):
    """Add a ``column op value`` condition to the WHERE clause."""

    kind: Literal[IntentKind.FILTER] = IntentKind.FILTER
    column: str = Field(min_length=1, description="Column text as typed by the user")
    operator: FilterOperator = "="
    value: str = Field(description="Raw literal: numeric or (optionally quoted) text")


class ClearSorting(_IntentBase):
    """Drop the ORDER BY clause."""

    kind: Literal[IntentKind.CLEAR_SORTING] = IntentKind.CLEAR_SORTING


class ClearFilters(_IntentBase):
    """Drop the WHERE clause."""

    kind: Literal[IntentKind.CLEAR_FILTERS] = IntentKind.CLEAR_FILTERS


class ClearAll(_IntentBase):
    """Drop filters, sorting and paging."""

    kind: Literal[IntentKind.CLEAR_ALL] = IntentKind.CLEAR_ALL


Intent = Annotated[
    Union[
        NoOp,
        NextPage,
        PreviousPage,
        GoToPage,
        FirstPage,
        ChangePageSize,
        Sort,
        Filter,
        ClearSorting,
        ClearFilters,
        ClearAll,
    ],
    Field(discriminator="kind"),
]
"""Closed union of every intent variant, discriminated on ``kind``."""
