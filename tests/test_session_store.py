"""
Unit tests for conversation memory: Conversation, SessionRegistry, and the stores.
"""

import json
from unittest.mock import MagicMock

import pytest

from app.core.scheduler import run_sweep_job
from app.core.session_store import (
    SYSTEM_INSTRUCTION,
    Conversation,
    InMemorySessionStore,
    RedisSessionStore,
    SessionRegistry,
)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(InMemorySessionStore(), timeout_seconds=1800, max_exchanges=3, clock=clock)


class TestConversation:
    """Tests for Conversation history trimming and reset."""

    def test_starts_with_system_instruction(self) -> None:
        conv = Conversation()
        assert len(conv.messages) == 1
        assert conv.messages[0].role == "system"
        assert conv.messages[0].content == SYSTEM_INSTRUCTION

    @pytest.mark.parametrize("max_exchanges", [0, 1, 3, 10])
    def test_length_bounded_and_system_kept(self, max_exchanges: int) -> None:
        conv = Conversation()
        for i in range(25):
            conv.add_exchange(f"q{i}", f"a{i}", max_exchanges)
            assert len(conv.messages) <= 2 * max_exchanges + 1
            assert conv.messages[0].content == SYSTEM_INSTRUCTION

    def test_keeps_most_recent_window(self) -> None:
        conv = Conversation()
        for i in range(5):
            conv.add_exchange(f"q{i}", f"a{i}", 2)
        assert [m.content for m in conv.history()] == ["q3", "a3", "q4", "a4"]
        assert [m.role for m in conv.history()] == ["user", "model", "user", "model"]

    def test_reset_leaves_only_system(self) -> None:
        conv = Conversation()
        conv.add_exchange("hello", "hi", 5)
        conv.reset()
        assert len(conv.messages) == 1
        assert conv.messages[0].content == SYSTEM_INSTRUCTION

    def test_stats(self) -> None:
        conv = Conversation()
        conv.add_exchange("abcd", "efgh", 5)
        stats = conv.stats()
        assert stats["message_count"] == 3
        assert stats["estimated_tokens"] == -(-(len(SYSTEM_INSTRUCTION) + 8) // 4)

    def test_dict_round_trip_restores_missing_system(self) -> None:
        conv = Conversation.from_dict({"messages": [{"role": "user", "content": "hi"}], "last_activity": 5})
        assert conv.messages[0].role == "system"
        assert conv.messages[1].content == "hi"
        assert conv.last_activity == 5.0


class TestSessionRegistry:
    """Tests for SessionRegistry lifecycle."""

    def test_get_or_create_returns_same_conversation(self, registry: SessionRegistry) -> None:
        first = registry.get_or_create("s1")
        first.add_exchange("q", "a", 3)
        assert registry.get_or_create("s1") is first
        assert registry.get_stats()["active_sessions"] == 1

    def test_get_or_create_refreshes_activity(self, registry: SessionRegistry, clock: FakeClock) -> None:
        conv = registry.get_or_create("s1")
        assert conv.last_activity == 1_000.0
        clock.now = 1_500.0
        registry.get_or_create("s1")
        assert conv.last_activity == 1_500.0

    def test_record_exchange_trims(self, registry: SessionRegistry) -> None:
        conv = registry.get_or_create("s1")
        for i in range(10):
            registry.record_exchange("s1", conv, f"q{i}", f"a{i}")
        assert len(conv.messages) == 7

    def test_reset_unknown_session_reports_not_found(self, registry: SessionRegistry) -> None:
        assert registry.reset("missing") is False
        assert registry.reset("") is False

    def test_reset_existing_session(self, registry: SessionRegistry) -> None:
        conv = registry.get_or_create("s1")
        registry.record_exchange("s1", conv, "q", "a")
        assert registry.reset("s1") is True
        assert len(registry.get_or_create("s1").messages) == 1

    def test_evict_is_idempotent(self, registry: SessionRegistry) -> None:
        registry.get_or_create("s1")
        assert registry.evict("s1") is True
        assert registry.evict("s1") is False
        assert registry.evict("never-existed") is False

    def test_sweep_removes_only_idle_sessions(self, registry: SessionRegistry, clock: FakeClock) -> None:
        registry.get_or_create("old")
        clock.now += 1_000
        registry.get_or_create("recent")
        clock.now += 1_000  # old idle 2000s, recent idle 1000s
        assert registry.sweep_expired() == 1
        assert registry.store.get("old") is None
        assert registry.store.get("recent") is not None
        assert registry.sweep_expired() == 0

    def test_stats(self, registry: SessionRegistry) -> None:
        registry.get_or_create("a")
        registry.get_or_create("b")
        assert registry.get_stats() == {"active_sessions": 2, "timeout_seconds": 1800, "max_exchanges": 3}


class TestRedisSessionStore:
    """Tests for RedisSessionStore with a mocked redis client."""

    def test_put_uses_setex_with_ttl(self) -> None:
        client = MagicMock()
        store = RedisSessionStore(client, ttl_seconds=1800)
        store.put("abc", Conversation())
        key, ttl, payload = client.setex.call_args.args
        assert key == "session:abc"
        assert ttl == 1800
        assert json.loads(payload)["messages"][0]["role"] == "system"

    def test_get_missing_returns_none(self) -> None:
        client = MagicMock()
        client.get.return_value = None
        assert RedisSessionStore(client).get("abc") is None

    def test_get_decodes_conversation(self) -> None:
        conv = Conversation()
        conv.add_exchange("q", "a", 5)
        client = MagicMock()
        client.get.return_value = json.dumps(conv.to_dict()).encode("utf-8")
        loaded = RedisSessionStore(client).get("abc")
        assert [m.content for m in loaded.history()] == ["q", "a"]

    def test_get_corrupt_returns_none(self) -> None:
        client = MagicMock()
        client.get.return_value = b"not json"
        assert RedisSessionStore(client).get("abc") is None

    def test_evict_and_list_ids(self) -> None:
        client = MagicMock()
        client.delete.return_value = 0
        client.scan_iter.return_value = [b"session:a", b"session:b"]
        store = RedisSessionStore(client)
        assert store.evict("a") is False
        assert store.list_ids() == ["a", "b"]

    def test_registry_timeout_sets_redis_ttl(self) -> None:
        client = MagicMock()
        registry = SessionRegistry(RedisSessionStore(client, ttl_seconds=999), timeout_seconds=60)
        registry.get_or_create("abc")
        _, ttl, _ = client.setex.call_args.args
        assert ttl == 60

    def test_sweep_skipped_for_ttl_native_store(self) -> None:
        client = MagicMock()
        registry = SessionRegistry(RedisSessionStore(client), timeout_seconds=60)
        assert registry.sweep_expired() == 0
        client.scan_iter.assert_not_called()


def test_sweep_job_never_raises() -> None:
    registry = MagicMock()
    registry.sweep_expired.side_effect = RuntimeError("store down")
    assert run_sweep_job(registry) == 0
