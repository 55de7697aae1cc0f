"""DataAssistant: owns one chat session and runs each user turn.

A turn is first offered to the refiner (paging, sorting, filtering of
the current SQL). Anything the refiner does not handle goes to the
model together with the schema and recent history. Whatever SQL comes
out is executed read-only and becomes the session's current query only
when execution succeeds.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from entities.clause_transformer import apply_first_page, extract_paging
from entities.refinement import RefinementOutcome, refine
from entities.shared.ai_errors import AiServiceError
from models import ChatResponse, ChatRole, ChatTurn, IntentKind

from .clients import AssistantClients

logger = logging.getLogger(__name__)

REFINEMENT_MESSAGES: dict[IntentKind, str] = {
    IntentKind.NEXT_PAGE: "Here is the next page.",
    IntentKind.PREVIOUS_PAGE: "Here is the previous page.",
    IntentKind.GO_TO_PAGE: "Here is the requested page.",
    IntentKind.FIRST_PAGE: "Back to the first page.",
    IntentKind.CHANGE_PAGE_SIZE: "Page size updated.",
    IntentKind.SORT: "Sorting applied.",
    IntentKind.FILTER: "Filter applied.",
    IntentKind.CLEAR_SORTING: "Sorting removed.",
    IntentKind.CLEAR_FILTERS: "Filters removed.",
    IntentKind.CLEAR_ALL: "Filters and sorting removed.",
}

SCHEMA_ERROR_MESSAGE = "Could not read the database schema. Please try again later."

_SELECT_TOP_RE = re.compile(r"^\s*SELECT\s+(?:DISTINCT\s+)?TOP\b", re.IGNORECASE)
_SELECT_DISTINCT_RE = re.compile(r"^\s*SELECT\s+DISTINCT\b", re.IGNORECASE)
_ORDER_BY_RE = re.compile(r"\bORDER\s+BY\b", re.IGNORECASE)


def should_page(sql: str) -> bool:
    """Return whether first-page paging can be added to a generated query.

    Queries that already page, use ``TOP`` (which SQL Server rejects in
    combination with OFFSET/FETCH) or are ``DISTINCT`` without an ORDER BY
    (where a placeholder ORDER BY is invalid) are executed as written.
    """
    if extract_paging(sql).has_paging:
        return False
    if _SELECT_TOP_RE.match(sql):
        return False
    return not (_SELECT_DISTINCT_RE.match(sql) and not _ORDER_BY_RE.search(sql))


class DataAssistant:
    """Runs the conversation for a single session.

    Args:
        clients: I/O dependencies (model, executor, schema provider).
        page_size: Initial rows per page for generated queries.
        session_id: Identifier echoed back in every response.
    """

    def __init__(
        self,
        clients: AssistantClients,
        page_size: int = 100,
        session_id: str | None = None,
    ) -> None:
        self.clients = clients
        self.session_id = session_id
        self.page_size = page_size
        self.current_sql: str | None = None
        self.turns: list[ChatTurn] = []
        self._initial_page_size = page_size
        self._turn_lock = asyncio.Lock()

        logger.info("DataAssistant initialized (session_id=%s)", session_id)

    def reset(self) -> None:
        """Forget the conversation and the current query."""
        self.turns.clear()
        self.current_sql = None
        self.page_size = self._initial_page_size

    async def handle_message(self, text: str) -> ChatResponse:
        """Process one user message.

        Turns of one session run one at a time, so each sees the SQL and
        page size left by the previous turn.

        Args:
            text: The user's utterance.

        Returns:
            The response for this turn, including rows when SQL ran.
        """
        async with self._turn_lock:
            history = list(self.turns)
            self.turns.append(ChatTurn(role=ChatRole.USER, content=text))

            if self.current_sql:
                outcome = refine(self.current_sql, text, self.page_size)
                if outcome.handled:
                    response = await self._run_refinement(outcome)
                    self._record_reply(response)
                    return response

            response = await self._ask_model(text, history)
            self._record_reply(response)
            return response

    # ── Refinement path ─────────────────────────────────────────────

    async def _run_refinement(self, outcome: RefinementOutcome) -> ChatResponse:
        kind = outcome.intent.kind
        logger.info("Refinement %s: %s", kind.value, outcome.sql[:200])

        result = await self.clients.sql_executor.execute(outcome.sql)
        if not result.get("success"):
            return self._execution_failure(result, outcome.sql, intent=kind.value, source="refinement")

        self.current_sql = outcome.sql
        self.page_size = outcome.page_size
        return self._success(
            result,
            text=REFINEMENT_MESSAGES.get(kind, "Done."),
            sql=outcome.sql,
            intent=kind.value,
            source="refinement",
        )

    # ── Model path ──────────────────────────────────────────────────

    async def _ask_model(self, text: str, history: list[ChatTurn]) -> ChatResponse:
        try:
            schema_summary = await self.clients.schema_provider.get_schema_summary()
        except Exception as exc:
            logger.exception("Schema loading failed")
            return self._failure(SCHEMA_ERROR_MESSAGE, error_kind="schema", detail=str(exc))

        try:
            answer = await self.clients.chat_service.ask(text, history, schema_summary)
        except AiServiceError as exc:
            logger.warning("AI request failed (%s): %s", exc.kind, exc)
            return self._failure(exc.user_message, error_kind=exc.kind, source="ai")

        if not answer.sql:
            return ChatResponse(
                text=answer.answer,
                source="ai",
                page_size=self.page_size,
                session_id=self.session_id,
            )

        sql = apply_first_page(answer.sql, self.page_size) if should_page(answer.sql) else answer.sql
        result = await self.clients.sql_executor.execute(sql)
        if not result.get("success"):
            return self._execution_failure(result, sql, source="ai", text=answer.answer)

        self.current_sql = sql
        return self._success(result, text=answer.answer, sql=sql, source="ai")

    # ── Response helpers ────────────────────────────────────────────

    def _success(
        self,
        result: dict[str, Any],
        *,
        text: str,
        sql: str,
        source: str,
        intent: str = "no_op",
    ) -> ChatResponse:
        return ChatResponse(
            text=text,
            sql_query=sql,
            columns=result.get("columns", []),
            rows=result.get("rows", []),
            row_count=result.get("row_count", 0),
            intent=intent,
            source=source,
            page_size=self.page_size,
            session_id=self.session_id,
        )

    def _execution_failure(
        self,
        result: dict[str, Any],
        sql: str,
        *,
        source: str,
        intent: str = "no_op",
        text: str = "",
    ) -> ChatResponse:
        error = result.get("error") or "Query execution failed."
        logger.warning("Execution failed, keeping previous SQL: %s", error)
        return ChatResponse(
            text=text or f"The query could not be executed: {error}",
            sql_query=sql,
            intent=intent,
            source=source,
            page_size=self.page_size,
            error=error,
            error_kind="execution",
            session_id=self.session_id,
        )

    def _failure(
        self,
        message: str,
        *,
        error_kind: str,
        source: str = "none",
        detail: str | None = None,
    ) -> ChatResponse:
        if detail:
            logger.debug("Failure detail (%s): %s", error_kind, detail)
        return ChatResponse(
            text=message,
            source=source,
            page_size=self.page_size,
            error=message,
            error_kind=error_kind,
            session_id=self.session_id,
        )

    def _record_reply(self, response: ChatResponse) -> None:
        executed = response.sql_query if response.sql_query and not response.error else None
        self.turns.append(
            ChatTurn(role=ChatRole.ASSISTANT, content=response.text, sql_query=executed)
        )
