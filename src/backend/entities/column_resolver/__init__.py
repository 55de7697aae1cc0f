"""Column Resolver package for matching user column text to projected columns."""

from .resolver import (
    ProjectedColumn,
    extract_select_list,
    find_projected_column,
    normalize_column_name,
    parse_projected_columns,
    resolve,
)

__all__ = [
    "ProjectedColumn",
    "extract_select_list",
    "find_projected_column",
    "normalize_column_name",
    "parse_projected_columns",
    "resolve",
]
