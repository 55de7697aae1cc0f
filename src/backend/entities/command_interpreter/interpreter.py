"""Pure-function classification of refinement commands.

Maps free-text utterances ("next 20", "sort by birthdate desc",
"filter name = acme") onto the closed set of ``Intent`` variants.

Classification is a fixed-priority cascade: the first tier that matches
wins. Commands share vocabulary ("next" also appears in "sort the next
column", "filters" in "reset all filters"), so the tier order below is
part of the contract and must not be rearranged.

No I/O and no framework dependencies, so it can be unit-tested without mocking.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

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

# ── Phrase tables ────────────────────────────────────────────────────────

RESET_PHRASES = ("reset all", "reset query", "start over", "clear all")
CLEAR_SORTING_PHRASES = ("clear sorting", "reset sorting", "clear sort", "reset sort")
CLEAR_FILTER_PHRASES = ("clear filters", "reset filters", "remove filters")
FIRST_PAGE_PHRASES = ("first page", "go to first page", "start page", "back to start")
NEXT_PAGE_PHRASES = ("next page", "next", "show more", "more")
PREVIOUS_PAGE_PHRASES = ("previous page", "previous", "prev", "back one page")

# Words dropped between "sort" and the column ("sort the results by name")
SORT_FILLER_WORDS = ("them", "it", "results", "records", "rows", "list", "the")

# ── Patterns ─────────────────────────────────────────────────────────────

_NEXT_N_RE = re.compile(r"\bnext\s+(\d+)", re.IGNORECASE)
_PREV_N_RE = re.compile(r"\b(?:previous|prev)\s+(\d+)", re.IGNORECASE)
# "per page 20" is a page size, not a page number; group 1 marks those
_PAGE_N_RE = re.compile(r"\b(per\s+)?page\s+(\d+)", re.IGNORECASE)
_PAGE_SIZE_RE = re.compile(r"(?:page\s+size|per\s+page|show)\s+(\d+)", re.IGNORECASE)

_SORT_TRIGGER_RE = re.compile(r"order by|sort by", re.IGNORECASE)
_COLUMN_CHARS = r"[A-Za-z0-9_.\[\]\s]+"
_SORT_COLUMN_RES = (
    re.compile(rf"order by\s+({_COLUMN_CHARS})", re.IGNORECASE),
    re.compile(rf"sort by\s+({_COLUMN_CHARS})", re.IGNORECASE),
    re.compile(rf"sort\s+({_COLUMN_CHARS})", re.IGNORECASE),
)
_FILLER_RES = tuple(
    re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE) for word in SORT_FILLER_WORDS
)
_TRAILING_DIRECTION_RE = re.compile(
    r"(?:\s+(?:in\s+)?(?:asc|desc|ascending|descending)(?:\s+order)?)+\s*$",
    re.IGNORECASE,
)
_LEADING_BY_RE = re.compile(r"^by(?:\s+|$)", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

# Column is a bracketed name (spaces allowed, optional prefix) or a plain token.
# Two-character operators first so ">=" is not read as ">" followed by "=5"
_FILTER_RE = re.compile(
    r"(?:filter by|filter)\s+((?:\w+\.)*\[[^\]]+\]|[\w.\[\]]+)\s*(>=|<=|=|>|<)\s*"
    r"('[^']*'|\"[^\"]*\"|[^\s'\"].*)",
    re.IGNORECASE,
)


# ── Helpers ──────────────────────────────────────────────────────────────


def _contains_any(lower: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in lower for phrase in phrases)


def _positive_int(raw: str) -> int | None:
    """Parse a page size or number; ``None`` sends the text to the next tier."""
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def normalize_sort_column(name: str) -> str:
    """Clean the column text captured from a sort phrase.

    Drops a leading ``by``, trailing direction words ("desc",
    "in ascending order") and collapses runs of whitespace.

    Args:
        name: Raw text captured after ``sort``/``order by``.

    Returns:
        The cleaned column text, possibly empty.
    """
    cleaned = name.strip()
    cleaned = _LEADING_BY_RE.sub("", cleaned).strip()
    cleaned = _TRAILING_DIRECTION_RE.sub("", cleaned).strip()
    # A bare direction word ("sort desc") leaves nothing to sort by
    if cleaned.lower() in {"asc", "desc", "ascending", "descending"}:
        return ""
    return _WHITESPACE_RE.sub(" ", cleaned)


# ── Tiers (in priority order) ────────────────────────────────────────────


def _match_reset(text: str, lower: str) -> Intent | None:
    return ClearAll() if _contains_any(lower, RESET_PHRASES) else None


def _match_clear(text: str, lower: str) -> Intent | None:
    if _contains_any(lower, CLEAR_SORTING_PHRASES):
        return ClearSorting()
    if _contains_any(lower, CLEAR_FILTER_PHRASES):
        return ClearFilters()
    return None


def _match_first_page(text: str, lower: str) -> Intent | None:
    return FirstPage() if _contains_any(lower, FIRST_PAGE_PHRASES) else None


def _match_next_page(text: str, lower: str) -> Intent | None:
    match = _NEXT_N_RE.search(text)
    if match:
        size = _positive_int(match.group(1))
        if size is not None:
            return NextPage(page_size=size)
    return NextPage() if _contains_any(lower, NEXT_PAGE_PHRASES) else None


def _match_previous_page(text: str, lower: str) -> Intent | None:
    match = _PREV_N_RE.search(text)
    if match:
        size = _positive_int(match.group(1))
        if size is not None:
            return PreviousPage(page_size=size)
    return PreviousPage() if _contains_any(lower, PREVIOUS_PAGE_PHRASES) else None


def _match_go_to_page(text: str, lower: str) -> Intent | None:
    for match in _PAGE_N_RE.finditer(text):
        if match.group(1):
            continue
        try:
            return GoToPage(page_number=int(match.group(2)))
        except ValueError:
            return None
    return None


def _match_page_size(text: str, lower: str) -> Intent | None:
    match = _PAGE_SIZE_RE.search(text)
    if match is None:
        return None
    size = _positive_int(match.group(1))
    return ChangePageSize(page_size=size) if size is not None else None


def _match_sort(text: str, lower: str) -> Intent | None:
    """Sort tier.

    A recognised sort phrase with no extractable column yields ``NoOp``
    rather than falling through to the filter tier.
    """
    if not (_SORT_TRIGGER_RE.search(lower) or lower.lstrip().startswith("sort ")):
        return None

    # Plain substring test: "description" also reads as descending
    direction = "DESC" if "desc" in lower else "ASC"

    cleaned = text
    for filler in _FILLER_RES:
        cleaned = filler.sub("", cleaned).strip()

    for pattern in _SORT_COLUMN_RES:
        match = pattern.search(cleaned)
        if match:
            column = normalize_sort_column(match.group(1))
            if column:
                return Sort(column=column, direction=direction)
            break

    logger.debug("Sort phrase without a usable column: %s", text[:100])
    return NoOp()


def _match_filter(text: str, lower: str) -> Intent | None:
    match = _FILTER_RE.search(text)
    if match is None:
        return None
    value = match.group(3).strip()
    if not value:
        return None
    return Filter(column=match.group(1), operator=match.group(2), value=value)


_TIERS: tuple[Callable[[str, str], Intent | None], ...] = (
    _match_reset,
    _match_clear,
    _match_first_page,
    _match_next_page,
    _match_previous_page,
    _match_go_to_page,
    _match_page_size,
    _match_sort,
    _match_filter,
)


def classify(text: str | None) -> Intent:
    """Classify a user utterance into a refinement intent.

    Never raises: blank or unrecognised input yields ``NoOp``.

    Args:
        text: The raw user utterance.

    Returns:
        The intent of the first matching tier, or ``NoOp``.
    """
    if not text or not text.strip():
        return NoOp()

    lower = text.lower()
    for tier in _TIERS:
        intent = tier(text, lower)
        if intent is not None:
            logger.debug("Classified %r as %s", text[:100], intent.kind.value)
            return intent

    return NoOp()
