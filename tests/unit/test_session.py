"""Unit tests for the chat session store."""

from datetime import datetime, timedelta, timezone

import pytest

from roomforge.inference import MessageRole
from roomforge.session import ChatMessage, SessionStore, page_context, session_key, trim_messages
from roomforge.settings import SessionSettings


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sessions(clock):
    return SessionStore(SessionSettings(max_messages=5, ttl_seconds=60), clock=clock)


def _msg(role: MessageRole, content: str) -> ChatMessage:
    return ChatMessage(role=role, content=content)


class TestSessionKey:
    def test_user_id_wins(self):
        assert session_key("42", "10.0.0.1") == "user_42"

    def test_ip_separators_replaced(self):
        assert session_key(None, "10.0.0.1") == "ip_10_0_0_1"
        assert session_key(None, "::1") == "ip___1"

    def test_anonymous_keys_are_unique(self):
        first, second = session_key(), session_key()

        assert first.startswith("anon_")
        assert first != second


class TestPageContext:
    def test_slug(self):
        assert page_context("/rooms/phong-tro-go-vap") == (
            "[CONTEXT] Entity: room Identifier: phong-tro-go-vap Type: slug"
        )

    def test_numeric_and_uuid_ids(self):
        assert page_context("/posts/123").endswith("Type: id")
        assert page_context("/rooms/0b9e4c1e-2f7a-4c55-9a57-3f1d2e8b6a10").endswith("Type: id")

    def test_unknown_route(self):
        assert page_context("/profile/settings") is None
        assert page_context("/rooms/") is None


class TestTrimMessages:
    def test_under_cap_unchanged(self):
        messages = [_msg(MessageRole.SYSTEM, "s"), _msg(MessageRole.USER, "u")]

        assert trim_messages(messages, 5) == messages

    def test_keeps_system_and_newest(self):
        messages = [
            _msg(MessageRole.SYSTEM, "locale"),
            _msg(MessageRole.USER, "u1"),
            _msg(MessageRole.ASSISTANT, "a1"),
            _msg(MessageRole.SYSTEM, "context"),
            _msg(MessageRole.USER, "u2"),
            _msg(MessageRole.ASSISTANT, "a2"),
        ]

        trimmed = trim_messages(messages, 4)

        assert [m.content for m in trimmed] == ["locale", "context", "u2", "a2"]

    def test_cap_below_system_count_keeps_only_system(self):
        messages = [_msg(MessageRole.SYSTEM, "a"), _msg(MessageRole.SYSTEM, "b"), _msg(MessageRole.USER, "u")]

        assert [m.content for m in trim_messages(messages, 1)] == ["a", "b"]


class TestSessionStore:
    @pytest.mark.asyncio
    async def test_new_session_has_locale_directive(self, sessions):
        session = await sessions.get_or_create(user_id="42")

        assert session.session_id == "user_42"
        assert session.is_first_message
        assert session.messages[0].role == MessageRole.SYSTEM
        assert session.messages[0].content.startswith("[LOCALE] vi-VN")

    @pytest.mark.asyncio
    async def test_same_identity_same_session(self, sessions):
        first = await sessions.get_or_create(user_id="42")
        await sessions.append(first.session_id, MessageRole.USER, "xin chào")

        second = await sessions.get_or_create(user_id="42", client_ip="10.0.0.9")

        assert second.session_id == first.session_id
        assert not second.is_first_message
        assert sessions.session_count == 1

    @pytest.mark.asyncio
    async def test_callers_get_copies(self, sessions):
        session = await sessions.get_or_create(user_id="42")
        session.messages.clear()

        fresh = await sessions.get("user_42")
        assert fresh.message_count == 1

    @pytest.mark.asyncio
    async def test_page_context_added_once(self, sessions):
        await sessions.get_or_create(user_id="42", current_page="/rooms/abc")
        session = await sessions.get_or_create(user_id="42", current_page="/rooms/abc")

        contexts = [m for m in session.messages if m.content.startswith("[CONTEXT]")]
        assert len(contexts) == 1
        assert "Identifier: abc" in session.system_context()

    @pytest.mark.asyncio
    async def test_message_cap(self, sessions):
        session = await sessions.get_or_create(user_id="42")
        for i in range(10):
            await sessions.append(session.session_id, MessageRole.USER, f"q{i}")

        stored = await sessions.get(session.session_id)

        assert stored.message_count == 5
        assert stored.messages[0].content.startswith("[LOCALE]")
        assert [m.content for m in stored.messages[1:]] == ["q6", "q7", "q8", "q9"]

    @pytest.mark.asyncio
    async def test_history_and_clear(self, sessions):
        session = await sessions.get_or_create(user_id="42", current_page="/rooms/abc")
        await sessions.append(session.session_id, MessageRole.USER, "phòng dưới 4 triệu")
        await sessions.append(session.session_id, MessageRole.ASSISTANT, "Có 3 phòng", envelope={"kind": "DATA"})

        history = await sessions.get_history(session.session_id)
        assert [m.content for m in history] == ["phòng dưới 4 triệu", "Có 3 phòng"]
        assert history[1].envelope == {"kind": "DATA"}

        assert await sessions.clear_history(session.session_id)
        cleared = await sessions.get(session.session_id)
        assert len(cleared.messages) == 1
        assert cleared.messages[0].content.startswith("[LOCALE]")
        assert await sessions.get_history(session.session_id) == []

    @pytest.mark.asyncio
    async def test_remember_query(self, sessions):
        session = await sessions.get_or_create(user_id="42")
        assert session.last_query is None

        await sessions.remember_query(session.session_id, "phòng dưới 4 triệu", "SELECT 1;")

        stored = await sessions.get(session.session_id)
        assert stored.last_query == {"question": "phòng dưới 4 triệu", "sql": "SELECT 1;"}
        assert session.last_query is None

        await sessions.clear_history(session.session_id)
        assert (await sessions.get(session.session_id)).last_query is None

    @pytest.mark.asyncio
    async def test_clear_unknown_session(self, sessions):
        assert not await sessions.clear_history("user_missing")

    @pytest.mark.asyncio
    async def test_expired_session_is_replaced(self, sessions, clock):
        session = await sessions.get_or_create(user_id="42")
        await sessions.append(session.session_id, MessageRole.USER, "xin chào")

        clock.advance(61)
        renewed = await sessions.get_or_create(user_id="42")

        assert renewed.is_first_message
        assert renewed.created_at == clock.now

    @pytest.mark.asyncio
    async def test_sweep_removes_idle_sessions(self, sessions, clock):
        await sessions.get_or_create(user_id="1")
        clock.advance(45)
        await sessions.get_or_create(user_id="2")
        clock.advance(30)

        removed = await sessions.sweep_expired()

        assert removed == 1
        assert await sessions.get("user_1") is None
        assert await sessions.get("user_2") is not None

    @pytest.mark.asyncio
    async def test_sweeper_lifecycle(self, sessions):
        sessions.start_sweeper()
        await sessions.stop_sweeper()
        await sessions.stop_sweeper()

    @pytest.mark.asyncio
    async def test_delete(self, sessions):
        await sessions.get_or_create(client_ip="10.0.0.1")

        assert await sessions.delete("ip_10_0_0_1")
        assert not await sessions.delete("ip_10_0_0_1")
