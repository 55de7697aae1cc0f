"""Model-backed SQL generation for questions the refiner cannot handle.

Builds the prompt (rules + schema, recent user history, the previous
SQL), calls the chat agent and parses its JSON answer. Every failure is
raised as an ``AiServiceError`` subclass so the caller can tell a
timeout from a content-filter block from unparsable output.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agent_framework import ChatAgent, ChatMessage, Role
from entities.shared.ai_errors import (
    AiEmptyResponseError,
    AiResponseFormatError,
    AiServiceError,
    translate_ai_error,
)
from entities.shared.history import latest_sql, recent_user_messages
from models import AiChatResponse, ChatTurn

if TYPE_CHECKING:
    from agent_framework_azure_ai import AzureAIClient

logger = logging.getLogger(__name__)

SCHEMA_TOKEN = "%{{schema_summary}}%"
PREVIOUS_QUERY_PREFIX = "This is the previous query you generated:\n"


def load_prompt() -> str:
    """Load the system prompt template from prompt.md in this folder."""
    prompt_path = Path(__file__).parent / "prompt.md"
    if not prompt_path.exists():
        raise FileNotFoundError(f"Prompt not found: {prompt_path}")
    return prompt_path.read_text(encoding="utf-8")


def build_system_prompt(schema_summary: str, template: str | None = None) -> str:
    """Embed the schema summary into the system prompt template."""
    prompt_template = template if template is not None else load_prompt()
    return prompt_template.replace(SCHEMA_TOKEN, schema_summary.strip())


def build_messages(
    question: str,
    history: Sequence[ChatTurn],
    schema_summary: str,
    *,
    max_history_messages: int = 3,
    max_message_length: int = 800,
    template: str | None = None,
) -> list[ChatMessage]:
    """Assemble the message list for one model call.

    Order: system prompt, recent user messages, the previous SQL (if
    any), then the question.

    Args:
        question: The user's current question.
        history: Earlier turns of the session (excluding ``question``).
        schema_summary: Formatted database schema block.
        max_history_messages: Number of earlier user messages to include.
        max_message_length: Messages at or above this length are skipped.
        template: Prompt template override (defaults to prompt.md).

    Returns:
        Messages ready for ``ChatAgent.run``.
    """
    messages = [
        ChatMessage(role=Role.SYSTEM, text=build_system_prompt(schema_summary, template)),
    ]

    for text in recent_user_messages(history, max_history_messages, max_message_length):
        messages.append(ChatMessage(role=Role.USER, text=text))

    previous_sql = latest_sql(history)
    if previous_sql:
        messages.append(ChatMessage(role=Role.USER, text=PREVIOUS_QUERY_PREFIX + previous_sql))

    messages.append(ChatMessage(role=Role.USER, text=question))
    return messages


def strip_code_fences(raw: str) -> str:
    """Remove markdown fences the model was told not to emit.

    When fences are present the outermost ``{...}`` span is returned;
    without braces the fence markers are simply dropped.
    """
    if not raw or "```" not in raw:
        return raw

    first_brace = raw.find("{")
    last_brace = raw.rfind("}")
    if first_brace >= 0 and last_brace > first_brace:
        return raw[first_brace : last_brace + 1].strip()

    return raw.replace("```json", "").replace("```", "").strip()


def parse_ai_response(raw: str | None) -> AiChatResponse:
    """Parse the model's ``{"answer": ..., "sql": ...}`` output.

    Args:
        raw: Text returned by the model.

    Returns:
        The parsed response; missing or null keys become empty strings.

    Raises:
        AiEmptyResponseError: If the text is empty.
        AiResponseFormatError: If the text is not a JSON object.
    """
    text = (raw or "").strip()
    if not text:
        raise AiEmptyResponseError(AiEmptyResponseError.user_message)

    text = strip_code_fences(text)

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AiResponseFormatError(f"AI response is not valid JSON: {exc}", raw=text) from exc

    if not isinstance(parsed, dict):
        raise AiResponseFormatError("AI response is not a JSON object", raw=text)

    answer = parsed.get("answer") or ""
    sql = parsed.get("sql") or ""
    return AiChatResponse(answer=str(answer), sql=str(sql).strip())


class AgentChatService:
    """``AiChatService`` backed by an agent_framework ``ChatAgent``.

    Args:
        agent: Chat agent used for completions.
        timeout_seconds: Upper bound on a single model call.
        max_history_messages: Number of earlier user messages to include.
        max_message_length: Messages at or above this length are skipped.
    """

    def __init__(
        self,
        agent: ChatAgent,
        *,
        timeout_seconds: float = 60.0,
        max_history_messages: int = 3,
        max_message_length: int = 800,
    ) -> None:
        self._agent = agent
        self._timeout_seconds = timeout_seconds
        self._max_history_messages = max_history_messages
        self._max_message_length = max_message_length
        self._template = load_prompt()

    async def ask(
        self,
        question: str,
        history: Sequence[ChatTurn],
        schema_summary: str,
    ) -> AiChatResponse:
        """Ask the model for an answer and an optional SELECT query.

        Args:
            question: Natural-language question from the user.
            history: Earlier turns of the session.
            schema_summary: Formatted database schema block.

        Returns:
            The parsed model response.

        Raises:
            AiServiceError: A subclass describing the failure kind.
        """
        messages = build_messages(
            question,
            history,
            schema_summary,
            max_history_messages=self._max_history_messages,
            max_message_length=self._max_message_length,
            template=self._template,
        )

        logger.info(
            "Calling model with %d messages (question=%s)", len(messages), question[:100]
        )
        try:
            result = await asyncio.wait_for(self._agent.run(messages), self._timeout_seconds)
        except AiServiceError:
            raise
        except Exception as exc:
            error = translate_ai_error(exc)
            logger.warning("Model call failed (%s): %s", error.kind, exc)
            raise error from exc

        response = parse_ai_response(getattr(result, "text", None))
        logger.info("Model answered (sql=%s)", "yes" if response.sql else "no")
        return response


def create_chat_agent(client: AzureAIClient, instructions: str | None = None) -> ChatAgent:
    """Create the SQL assistant ChatAgent.

    The schema-bearing system prompt is sent with every request, so the
    agent itself only carries a short role statement.

    Args:
        client: Azure AI client for LLM access.
        instructions: Agent instructions override.

    Returns:
        Configured ChatAgent for SQL generation.
    """
    return ChatAgent(
        name="sql-assistant-agent",
        instructions=instructions or "You generate read-only SQL Server queries as JSON.",
        chat_client=client,
    )
