"""
Shared models for entities.

These models are used across the interpreter, the refinement pipeline,
the assistant and the API. All models are re-exported here.
"""

from .conversation import AiChatResponse, ChatRole, ChatTurn
from .execution import ChatRequest, ChatResponse
from .intent import (
    ChangePageSize,
    ClearAll,
    ClearFilters,
    ClearSorting,
    Filter,
    FilterOperator,
    FirstPage,
    GoToPage,
    Intent,
    IntentKind,
    NextPage,
    NoOp,
    PreviousPage,
    Sort,
    SortDirection,
)
from .schema import SchemaColumn, SchemaForeignKey, SchemaTable

__all__ = [
    # Intents (command interpreter output)
    "Intent",
    "IntentKind",
    "SortDirection",
    "FilterOperator",
    "NoOp",
    "NextPage",
    "PreviousPage",
    "GoToPage",
    "FirstPage",
    "ChangePageSize",
    "Sort",
    "Filter",
    "ClearSorting",
    "ClearFilters",
    "ClearAll",
    # Conversation
    "ChatRole",
    "ChatTurn",
    "AiChatResponse",
    # Execution (chat responses)
    "ChatRequest",
    "ChatResponse",
    # Schema (catalog metadata)
    "SchemaTable",
    "SchemaColumn",
    "SchemaForeignKey",
]
