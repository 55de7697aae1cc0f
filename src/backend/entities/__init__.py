"""
Entities package.

Each subdirectory is one stage of a chat turn:
- command_interpreter/: Classifies refinement utterances into intents
- column_resolver/: Matches user column text to the projected SELECT columns
- clause_transformer/: Rewrites paging, ORDER BY and WHERE in SQL text
- refinement/: Composes the three stages above for one turn
- query_validator/: Read-only guard applied before execution
- chat_service/: Asks the model for an answer and SQL
- assistant/: DataAssistant, the per-session conversation loop

Shared models are available at the package level.
"""

from models import ChatResponse

__all__ = ["ChatResponse"]
