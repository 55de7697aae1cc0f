"""DataAssistant: runs chat sessions over the refiner and the model.

Usage:
    from entities.assistant import DataAssistant, create_assistant_clients

    assistant = DataAssistant(create_assistant_clients(settings))
"""

from .assistant import REFINEMENT_MESSAGES, DataAssistant, should_page
from .clients import AssistantClients, SqlExecutorAdapter, create_assistant_clients

__all__ = [
    "REFINEMENT_MESSAGES",
    "AssistantClients",
    "DataAssistant",
    "SqlExecutorAdapter",
    "create_assistant_clients",
    "should_page",
]
