"""
Session management for DataAssistant instances.

Each chat session (identified by session_id) gets its own assistant that
holds the current SQL, the page size and the conversation turns.
"""

import logging
import time
from collections import OrderedDict
from threading import Lock
from typing import TYPE_CHECKING

from config.settings import get_settings

if TYPE_CHECKING:
    from entities.assistant import DataAssistant

logger = logging.getLogger(__name__)

# In-memory cache; multi-instance deployments need a shared store
_assistant_cache: OrderedDict[str, tuple["DataAssistant", float]] = OrderedDict()
_cache_lock = Lock()


def _ttl_seconds() -> int:
    return get_settings().session_ttl_seconds


def _max_sessions() -> int:
    return get_settings().max_session_cache_size


def get_assistant(session_id: str | None) -> "DataAssistant | None":
    """
    Get an existing assistant for the given session ID.

    Args:
        session_id: The chat session ID

    Returns:
        The cached assistant or None if not found/expired
    """
    if not session_id:
        return None

    with _cache_lock:
        entry = _assistant_cache.get(session_id)
        if entry is None:
            return None

        assistant, last_used = entry
        now = time.time()
        if now - last_used > _ttl_seconds():
            del _assistant_cache[session_id]
            logger.info("Session expired for session_id=%s", session_id)
            return None

        # Idle timeout restarts on every use
        _assistant_cache[session_id] = (assistant, now)
        _assistant_cache.move_to_end(session_id)
        logger.info("Retrieved cached assistant for session_id=%s", session_id)
        return assistant


def store_assistant(session_id: str, assistant: "DataAssistant") -> None:
    """
    Store an assistant in the session cache.

    Args:
        session_id: The chat session ID
        assistant: The assistant instance to cache
    """
    if not session_id:
        return

    with _cache_lock:
        _assistant_cache[session_id] = (assistant, time.time())
        _assistant_cache.move_to_end(session_id)
        logger.info(
            "Stored assistant for session_id=%s (cache size: %d)",
            session_id,
            len(_assistant_cache),
        )

        _cleanup_expired_sessions()

        max_sessions = _max_sessions()
        while len(_assistant_cache) > max_sessions:
            evicted_sid, _ = _assistant_cache.popitem(last=False)
            logger.info("Evicted LRU session: session_id=%s", evicted_sid)


def _cleanup_expired_sessions() -> None:
    """Remove expired sessions from cache (must hold lock)."""
    now = time.time()
    ttl = _ttl_seconds()
    expired = [
        sid for sid, (_, last_used) in _assistant_cache.items() if now - last_used > ttl
    ]
    for sid in expired:
        del _assistant_cache[sid]

    if expired:
        logger.info("Cleaned up %d expired sessions", len(expired))


def clear_assistant(session_id: str) -> bool:
    """Remove an assistant from the cache.

    Returns:
        True if a session was removed.
    """
    if not session_id:
        return False

    with _cache_lock:
        if session_id in _assistant_cache:
            del _assistant_cache[session_id]
            logger.info("Cleared assistant for session_id=%s", session_id)
            return True
    return False


def clear_all() -> None:
    """Drop every cached session."""
    with _cache_lock:
        _assistant_cache.clear()
