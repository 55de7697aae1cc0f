"""Chat Service package for model-generated answers and SQL."""

from .service import (
    AgentChatService,
    build_messages,
    build_system_prompt,
    create_chat_agent,
    load_prompt,
    parse_ai_response,
    strip_code_fences,
)

__all__ = [
    "AgentChatService",
    "build_messages",
    "build_system_prompt",
    "create_chat_agent",
    "load_prompt",
    "parse_ai_response",
    "strip_code_fences",
]
