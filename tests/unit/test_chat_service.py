"""Unit tests for the chat service: prompt assembly, parsing and errors.

The ``ChatAgent`` is mocked; no network, no Azure credentials.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from agent_framework import Role
from azure.core.exceptions import ServiceRequestError
from entities.chat_service import (
    AgentChatService,
    build_messages,
    build_system_prompt,
    load_prompt,
    parse_ai_response,
    strip_code_fences,
)
from entities.shared.ai_errors import (
    AiContentFilterError,
    AiEmptyResponseError,
    AiNetworkError,
    AiResponseFormatError,
    AiServiceError,
    AiTimeoutError,
)
from models import AiChatResponse, ChatRole, ChatTurn

SCHEMA = "TABLE: Sales.Customers\n  - CustomerID (int) [PK, NOT NULL]"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────


def _turn(role: ChatRole, content: str, minutes: int, sql: str | None = None) -> ChatTurn:
    return ChatTurn(role=role, content=content, sql_query=sql, created_on=T0 + timedelta(minutes=minutes))


def _make_agent(response_text: str | None = "") -> MagicMock:
    """Return a mocked ``ChatAgent`` whose ``run()`` returns *response_text*."""
    agent = MagicMock()
    result = MagicMock()
    result.text = response_text
    agent.run = AsyncMock(return_value=result)
    return agent


# ── Prompt ───────────────────────────────────────────────────────────────


class TestPrompt:
    """Tests for the system prompt template."""

    def test_template_has_schema_token(self) -> None:
        assert "%{{schema_summary}}%" in load_prompt()

    def test_schema_is_embedded(self) -> None:
        prompt = build_system_prompt(SCHEMA)

        assert SCHEMA in prompt
        assert "%{{schema_summary}}%" not in prompt


# ── build_messages ───────────────────────────────────────────────────────


class TestBuildMessages:
    """Tests for ``build_messages``."""

    def test_first_question(self) -> None:
        messages = build_messages("list customers", [], SCHEMA)

        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert SCHEMA in messages[0].text
        assert messages[-1].text == "list customers"

    def test_history_and_previous_sql(self) -> None:
        history = [
            _turn(ChatRole.USER, "list customers", 0),
            _turn(ChatRole.ASSISTANT, "Here they are", 1, sql="SELECT * FROM Sales.Customers"),
        ]

        messages = build_messages("only in Texas", history, SCHEMA)

        texts = [m.text for m in messages[1:]]
        assert texts == [
            "list customers",
            "This is the previous query you generated:\nSELECT * FROM Sales.Customers",
            "only in Texas",
        ]

    def test_history_is_capped_and_long_messages_skipped(self) -> None:
        history = [_turn(ChatRole.USER, f"q{i}", i) for i in range(5)]
        history.append(_turn(ChatRole.USER, "x" * 800, 10))

        messages = build_messages("now", history, SCHEMA, max_history_messages=3, max_message_length=800)

        assert [m.text for m in messages[1:]] == ["q2", "q3", "q4", "now"]


# ── strip_code_fences / parse_ai_response ────────────────────────────────


class TestParseAiResponse:
    """Tests for ``parse_ai_response``."""

    def test_plain_json(self) -> None:
        result = parse_ai_response('{"answer": "Ten customers.", "sql": " SELECT 1 "}')
        assert result == AiChatResponse(answer="Ten customers.", sql="SELECT 1")

    def test_fenced_json(self) -> None:
        raw = 'Sure!\n```json\n{"answer": "ok", "sql": "SELECT 1"}\n```'
        assert parse_ai_response(raw) == AiChatResponse(answer="ok", sql="SELECT 1")

    def test_missing_and_null_keys_default_to_empty(self) -> None:
        assert parse_ai_response('{"answer": "hi", "sql": null}') == AiChatResponse(answer="hi", sql="")
        assert parse_ai_response("{}") == AiChatResponse()

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty(self, raw: str | None) -> None:
        with pytest.raises(AiEmptyResponseError):
            parse_ai_response(raw)

    def test_not_json(self) -> None:
        with pytest.raises(AiResponseFormatError) as exc_info:
            parse_ai_response("I cannot help with that.")

        assert exc_info.value.kind == "ai_invalid_json"
        assert exc_info.value.raw == "I cannot help with that."

    def test_json_array_is_rejected(self) -> None:
        with pytest.raises(AiResponseFormatError):
            parse_ai_response('["SELECT 1"]')

    def test_strip_code_fences_without_braces(self) -> None:
        assert strip_code_fences("```json\nnothing\n```") == "nothing"

    def test_strip_code_fences_leaves_plain_text(self) -> None:
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'


# ── AgentChatService ─────────────────────────────────────────────────────


class TestAgentChatService:
    """Tests for ``AgentChatService.ask``."""

    async def test_ask_returns_parsed_response(self) -> None:
        agent = _make_agent('{"answer": "Here you go.", "sql": "SELECT * FROM Sales.Customers"}')
        service = AgentChatService(agent)

        result = await service.ask("list customers", [], SCHEMA)

        assert result.sql == "SELECT * FROM Sales.Customers"
        sent = agent.run.call_args.args[0]
        assert sent[-1].text == "list customers"

    async def test_invalid_output(self) -> None:
        service = AgentChatService(_make_agent("not json"))

        with pytest.raises(AiResponseFormatError):
            await service.ask("q", [], SCHEMA)

    async def test_empty_output(self) -> None:
        service = AgentChatService(_make_agent(None))

        with pytest.raises(AiEmptyResponseError):
            await service.ask("q", [], SCHEMA)

    async def test_timeout(self) -> None:
        async def _slow(*_args, **_kwargs):
            await asyncio.sleep(1)

        agent = MagicMock()
        agent.run = _slow
        service = AgentChatService(agent, timeout_seconds=0.01)

        with pytest.raises(AiTimeoutError) as exc_info:
            await service.ask("q", [], SCHEMA)

        assert exc_info.value.kind == "ai_timeout"

    async def test_network_error(self) -> None:
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=ServiceRequestError("connection refused"))
        service = AgentChatService(agent)

        with pytest.raises(AiNetworkError):
            await service.ask("q", [], SCHEMA)

    async def test_content_filter(self) -> None:
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=RuntimeError("Request blocked by content_filter policy"))
        service = AgentChatService(agent)

        with pytest.raises(AiContentFilterError):
            await service.ask("q", [], SCHEMA)

    async def test_other_errors_are_generic(self) -> None:
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=RuntimeError("boom"))
        service = AgentChatService(agent)

        with pytest.raises(AiServiceError) as exc_info:
            await service.ask("q", [], SCHEMA)

        assert exc_info.value.kind == "ai_error"
