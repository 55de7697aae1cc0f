"""Pure-function column name resolution against a SELECT list.

Maps a loosely typed column reference ("birth date", "nam") to the
output name of a column the current query actually projects. The
projection list is re-read on every call because it can change from
one turn to the next.

This module has no external dependencies and holds no state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_SELECT_RE = re.compile(r"\bSELECT\s", re.IGNORECASE)
_FROM_RE = re.compile(r"\sFROM\s", re.IGNORECASE)
_ALIAS_RE = re.compile(
    r"^(?P<expr>.+?)\s+AS\s+(?P<alias>\[[^\]]+\]|\"[^\"]+\"|[A-Za-z0-9_]+)\s*$",
    re.IGNORECASE | re.DOTALL,
)
_DISTINCT_RE = re.compile(r"^\s*DISTINCT\s+", re.IGNORECASE)
_TOP_RE = re.compile(r"^\s*TOP\s*(?:\(\s*\d+\s*\)|\d+)\s*(?:PERCENT\s+)?", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ProjectedColumn:
    """A single SELECT-list entry.

    Attributes:
        expression: The projected expression (without alias, DISTINCT or TOP).
        name: Effective output name: the alias, or the last dotted part of
            the expression with brackets removed.
    """

    expression: str
    name: str


def normalize_column_name(name: str | None) -> str:
    """Lower-case and drop spaces, underscores and brackets.

    Example:
        ``"[Birth_Date]"`` and ``"birth date"`` both become ``"birthdate"``.
    """
    if not name or not name.strip():
        return ""
    return (
        name.lower()
        .replace(" ", "")
        .replace("_", "")
        .replace("[", "")
        .replace("]", "")
    )


def extract_select_list(sql: str | None) -> str | None:
    """Return the text between the first SELECT and the first FROM.

    Nested selects inside the list are not supported: the first FROM
    ends the list.
    """
    if not sql:
        return None

    select_match = _SELECT_RE.search(sql)
    if select_match is None:
        return None

    from_match = _FROM_RE.search(sql, select_match.end() - 1)
    if from_match is None:
        return None

    select_list = sql[select_match.end() : from_match.start()]
    return select_list if select_list.strip() else None


def _split_top_level(select_list: str) -> list[str]:
    """Split on commas that are not inside parentheses or quotes."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    closer: str | None = None

    for ch in select_list:
        if closer is not None:
            current.append(ch)
            if ch == closer:
                closer = None
            continue
        if ch in "'\"[":
            closer = "]" if ch == "[" else ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)

    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def parse_projected_columns(select_list: str | None) -> list[ProjectedColumn]:
    """Parse a SELECT list into expression/name pairs.

    Args:
        select_list: Text between SELECT and FROM.

    Returns:
        One ``ProjectedColumn`` per list entry, in projection order.
    """
    if not select_list or not select_list.strip():
        return []

    result: list[ProjectedColumn] = []
    for index, part in enumerate(_split_top_level(select_list)):
        item = part
        if index == 0:
            item = _DISTINCT_RE.sub("", item)
            item = _TOP_RE.sub("", item).strip()
            item = _DISTINCT_RE.sub("", item).strip()

        alias_match = _ALIAS_RE.match(item)
        if alias_match:
            result.append(
                ProjectedColumn(
                    expression=alias_match.group("expr").strip(),
                    name=alias_match.group("alias").strip().strip('"'),
                )
            )
            continue

        # [o].[Order Date] -> Order Date
        if item.endswith("]") and "[" in item:
            bracketed = item[item.rfind("[") + 1 : -1].strip()
            if bracketed:
                result.append(ProjectedColumn(expression=item, name=bracketed))
            continue

        tokens = item.split()
        if not tokens:
            continue

        last_token = tokens[-1]
        # e.BirthDate -> BirthDate
        if "." in last_token:
            last_token = last_token.split(".")[-1]
        last_token = last_token.strip("[]")
        if last_token:
            result.append(ProjectedColumn(expression=item, name=last_token))

    return result


def find_projected_column(sql: str | None, user_column_name: str | None) -> ProjectedColumn | None:
    """Find the projected column that best matches the user's text.

    Matching tiers, first hit wins:

    1. Exact match after normalisation.
    2. Normalised substring match in either direction.

    Args:
        sql: The current SQL query.
        user_column_name: Column reference as typed by the user.

    Returns:
        The matching ``ProjectedColumn``, or ``None`` when nothing matches.
    """
    if not sql or not sql.strip() or not user_column_name or not user_column_name.strip():
        return None

    columns = parse_projected_columns(extract_select_list(sql))
    if not columns:
        return None

    norm_user = normalize_column_name(user_column_name)
    candidates = [(col, normalize_column_name(col.name)) for col in columns]
    candidates = [(col, norm) for col, norm in candidates if norm]

    for col, norm in candidates:
        if norm == norm_user:
            return col

    for col, norm in candidates:
        if norm_user in norm or norm in norm_user:
            return col

    return None


def resolve(sql: str | None, user_column_name: str) -> str:
    """Resolve a user-typed column reference to a projected column name.

    Falls back to the user's original text when no projected column
    matches, so an invalid reference surfaces as a SQL error rather than
    being guessed further.

    Args:
        sql: The current SQL query.
        user_column_name: Column reference as typed by the user.

    Returns:
        The projected column's output name, or ``user_column_name``.
    """
    column = find_projected_column(sql, user_column_name)
    return column.name if column is not None else user_column_name
