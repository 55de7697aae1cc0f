"""Pure helpers over a session's chat turns."""

from collections.abc import Sequence

from models import ChatRole, ChatTurn


def latest_user_text(turns: Sequence[ChatTurn]) -> str | None:
    """Return the content of the most recent user turn, if any."""
    user_turns = [t for t in turns if t.role == ChatRole.USER]
    if not user_turns:
        return None
    return max(reversed(user_turns), key=lambda t: t.created_on).content


def latest_sql(turns: Sequence[ChatTurn]) -> str | None:
    """Return the most recent non-blank SQL attached to any turn.

    Args:
        turns: The session's turns in any order.

    Returns:
        The SQL of the newest turn that carries one, or ``None``.
    """
    with_sql = [t for t in turns if t.sql_query and t.sql_query.strip()]
    if not with_sql:
        return None
    return max(reversed(with_sql), key=lambda t: t.created_on).sql_query


def recent_user_messages(
    turns: Sequence[ChatTurn],
    max_messages: int,
    max_length: int,
) -> list[str]:
    """Select the user messages forwarded to the model as history.

    Only user turns are kept; blank messages and messages at or above
    ``max_length`` characters are dropped. The newest ``max_messages``
    are returned oldest first.

    Args:
        turns: The session's turns in any order.
        max_messages: Maximum number of messages to return.
        max_length: Exclusive upper bound on message length.

    Returns:
        Message texts in chronological order.
    """
    if max_messages <= 0:
        return []

    kept = [
        t
        for t in turns
        if t.role == ChatRole.USER and t.content and t.content.strip() and len(t.content) < max_length
    ]
    kept.sort(key=lambda t: t.created_on)
    return [t.content for t in kept[-max_messages:]]
