"""Clause Transformer package for editing paging, sorting and filtering in SQL text."""

from .transformer import (
    STABLE_NO_OP_ORDER,
    PagingState,
    apply_filter,
    apply_first_page,
    apply_page_size,
    apply_paging,
    apply_sort,
    extract_paging,
    remove_all_filters_and_sorting,
    remove_order_and_paging,
    remove_paging,
    remove_where_keep_order_and_paging,
)

__all__ = [
    "STABLE_NO_OP_ORDER",
    "PagingState",
    "apply_filter",
    "apply_first_page",
    "apply_page_size",
    "apply_paging",
    "apply_sort",
    "extract_paging",
    "remove_all_filters_and_sorting",
    "remove_order_and_paging",
    "remove_paging",
    "remove_where_keep_order_and_paging",
]
