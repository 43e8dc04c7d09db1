"""
Chat session store. Keyed by session_id; history is not sent from frontend.

A Conversation always starts with the fixed system instruction and keeps at most
max_exchanges user/model pairs after it. Storage is an injected SessionStore:
in-process dict by default, Redis (native TTL) when REDIS_URL is set. Idle in-process
sessions are removed by SessionRegistry.sweep_expired, run on a schedule (see app.core.scheduler).
"""

import json
import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from typing import Any, Callable, Literal

from app.core.config import MAX_EXCHANGES, REDIS_URL, SESSION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "model"]

SYSTEM_INSTRUCTION = (
    "You are AU Smart Assistant, the information assistant of Assumption University Thailand. "
    "Answer questions about AU programs, admissions, campus life, fees, history and contact details."
)


@dataclass
class ChatMessage:
    role: Role
    content: str


def _system_message() -> ChatMessage:
    return ChatMessage(role="system", content=SYSTEM_INSTRUCTION)


@dataclass
class Conversation:
    messages: list[ChatMessage] = field(default_factory=lambda: [_system_message()])
    last_activity: float = 0.0

    def touch(self, now: float) -> None:
        self.last_activity = now

    def add_exchange(self, user_text: str, model_text: str, max_exchanges: int = MAX_EXCHANGES) -> None:
        """Append one user/model pair, then keep [system] + the most recent max_exchanges pairs."""
        self.messages.append(ChatMessage(role="user", content=user_text or ""))
        self.messages.append(ChatMessage(role="model", content=model_text or ""))
        limit = max_exchanges * 2 + 1
        if len(self.messages) > limit:
            window = self.messages[-(max_exchanges * 2):] if max_exchanges > 0 else []
            self.messages = [self.messages[0]] + window

    def history(self) -> list[ChatMessage]:
        """User/model turns, without the system instruction."""
        return list(self.messages[1:])

    def reset(self) -> None:
        self.messages = [self.messages[0] if self.messages else _system_message()]

    def stats(self) -> dict[str, int]:
        chars = sum(len(m.content) for m in self.messages)
        return {"message_count": len(self.messages), "estimated_tokens": math.ceil(chars / 4)}

    def to_dict(self) -> dict[str, Any]:
        return {"messages": [asdict(m) for m in self.messages], "last_activity": self.last_activity}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        messages = [ChatMessage(role=m["role"], content=m.get("content", "")) for m in data.get("messages") or []]
        if not messages or messages[0].role != "system":
            messages.insert(0, _system_message())
        return cls(messages=messages, last_activity=float(data.get("last_activity", 0.0)))


class SessionStore(ABC):
    """Storage backend for conversations."""

    # True when the backend expires idle sessions itself (no sweep needed)
    ttl_native: bool = False

    def set_ttl(self, ttl_seconds: int) -> None:
        """Idle timeout for TTL-native backends. No-op otherwise."""

    @abstractmethod
    def get(self, session_id: str) -> Conversation | None: ...

    @abstractmethod
    def put(self, session_id: str, conversation: Conversation) -> None: ...

    @abstractmethod
    def evict(self, session_id: str) -> bool:
        """Remove the session. Returns False when it was already absent."""

    @abstractmethod
    def list_ids(self) -> list[str]: ...


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._sessions: dict[str, Conversation] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Conversation | None:
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session_id: str, conversation: Conversation) -> None:
        with self._lock:
            self._sessions[session_id] = conversation

    def evict(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def list_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)


SESSION_PREFIX = "session:"


class RedisSessionStore(SessionStore):
    """Conversations as JSON under session:<id>; Redis expires idle keys via TTL."""

    ttl_native = True

    def __init__(self, redis_client, ttl_seconds: int = SESSION_TIMEOUT_SECONDS) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds

    def set_ttl(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds

    def _key(self, session_id: str) -> str:
        return f"{SESSION_PREFIX}{session_id}"

    def get(self, session_id: str) -> Conversation | None:
        data = self._redis.get(self._key(session_id))
        if data is None:
            return None
        try:
            return Conversation.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("[session_store:redis] corrupt session_id=%s: %s", session_id[:16], e)
            return None

    def put(self, session_id: str, conversation: Conversation) -> None:
        self._redis.setex(self._key(session_id), self._ttl, json.dumps(conversation.to_dict()))

    def evict(self, session_id: str) -> bool:
        return bool(self._redis.delete(self._key(session_id)))

    def list_ids(self) -> list[str]:
        ids = []
        for key in self._redis.scan_iter(match=f"{SESSION_PREFIX}*"):
            if isinstance(key, bytes):
                key = key.decode("utf-8")
            ids.append(key[len(SESSION_PREFIX):])
        return ids


class SessionRegistry:
    """Session lifecycle: create on first message, refresh on activity, evict when idle."""

    def __init__(
        self,
        store: SessionStore | None = None,
        timeout_seconds: int = SESSION_TIMEOUT_SECONDS,
        max_exchanges: int = MAX_EXCHANGES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store if store is not None else InMemorySessionStore()
        self.timeout_seconds = timeout_seconds
        self.max_exchanges = max_exchanges
        self._clock = clock
        self.store.set_ttl(timeout_seconds)

    def get_or_create(self, session_id: str) -> Conversation:
        conversation = self.store.get(session_id)
        if conversation is None:
            conversation = Conversation()
            logger.info("[session_store:get_or_create] new session_id=%s", session_id[:16])
        conversation.touch(self._clock())
        self.store.put(session_id, conversation)
        return conversation

    def save(self, session_id: str, conversation: Conversation) -> None:
        conversation.touch(self._clock())
        self.store.put(session_id, conversation)
        logger.info(
            "[session_store:save] session_id=%s messages=%d", session_id[:16], len(conversation.messages)
        )

    def record_exchange(self, session_id: str, conversation: Conversation, user_text: str, model_text: str) -> None:
        conversation.add_exchange(user_text, model_text, self.max_exchanges)
        self.save(session_id, conversation)

    def reset(self, session_id: str) -> bool:
        """Reset history to the system instruction. False (not found) for unknown ids."""
        if not session_id:
            return False
        conversation = self.store.get(session_id)
        if conversation is None:
            logger.info("[session_store:reset] session_id=%s not found", session_id[:16])
            return False
        conversation.reset()
        self.save(session_id, conversation)
        return True

    def evict(self, session_id: str) -> bool:
        return self.store.evict(session_id)

    def sweep_expired(self) -> int:
        """Remove every session idle for longer than timeout_seconds. Returns the count removed."""
        if self.store.ttl_native:
            return 0
        now = self._clock()
        removed = 0
        for session_id in self.store.list_ids():
            conversation = self.store.get(session_id)
            if conversation is None:
                continue
            if now - conversation.last_activity > self.timeout_seconds and self.store.evict(session_id):
                removed += 1
        if removed:
            logger.info("[session_store:sweep_expired] evicted=%d", removed)
        return removed

    def get_stats(self) -> dict[str, int]:
        return {
            "active_sessions": len(self.store.list_ids()),
            "timeout_seconds": self.timeout_seconds,
            "max_exchanges": self.max_exchanges,
        }


def _build_store(timeout_seconds: int) -> SessionStore:
    if REDIS_URL:
        import redis

        logger.info("[session_store] using Redis session store")
        return RedisSessionStore(redis.Redis.from_url(REDIS_URL), ttl_seconds=timeout_seconds)
    return InMemorySessionStore()


@lru_cache(maxsize=1)
def get_registry() -> SessionRegistry:
    """Process-wide session registry."""
    return SessionRegistry(_build_store(SESSION_TIMEOUT_SECONDS), timeout_seconds=SESSION_TIMEOUT_SECONDS)
