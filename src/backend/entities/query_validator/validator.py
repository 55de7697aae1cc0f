"""Pure read-only guard for SQL sent to the database.

Only single SELECT statements (optionally introduced by a CTE) pass.
Keywords are matched as whole words outside string literals and
bracketed identifiers, so columns like ``CreatedOn`` or a filter value
of ``'delete me'`` are not rejected.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

FORBIDDEN_KEYWORDS = [
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "TRUNCATE",
    "CREATE",
    "EXEC",
    "EXECUTE",
    "MERGE",
    "GRANT",
    "REVOKE",
]

_LITERAL_RE = re.compile(r"'(?:[^']|'')*'|\[[^\]]*\]|\"[^\"]*\"")
_LINE_COMMENT_RE = re.compile(r"--[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_KEYWORD_RES = {kw: re.compile(rf"\b{kw}\b") for kw in FORBIDDEN_KEYWORDS}


def _strip_literals(sql: str) -> str:
    """Blank out comments, string literals and quoted identifiers."""
    without_comments = _BLOCK_COMMENT_RE.sub(" ", _LINE_COMMENT_RE.sub(" ", sql))
    return _LITERAL_RE.sub("''", without_comments)


def validate_select(sql: str) -> tuple[bool, list[str]]:
    """Check that ``sql`` is a single read-only SELECT statement.

    Args:
        sql: The SQL query to check.

    Returns:
        Tuple of (is_valid, list of violations).
    """
    violations: list[str] = []
    if not sql or not sql.strip():
        return False, ["Query is empty"]

    code = _strip_literals(sql).strip()
    code_upper = code.upper()

    if not (code_upper.startswith("SELECT") or code_upper.startswith("WITH")):
        violations.append("Only SELECT queries are allowed. Query must start with SELECT.")

    for keyword, pattern in _KEYWORD_RES.items():
        if pattern.search(code_upper):
            violations.append(f"Query contains forbidden keyword: {keyword}")

    if ";" in code.rstrip().rstrip(";"):
        violations.append("Multiple statements detected (semicolon found within query)")

    if violations:
        logger.warning("Rejected query: %s", "; ".join(violations))
    return len(violations) == 0, violations
