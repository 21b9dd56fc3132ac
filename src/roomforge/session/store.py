"""In-process chat session store with TTL eviction."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from uuid import uuid4

from roomforge.inference import MessageRole
from roomforge.session.models import LAST_QUERY_KEY, ChatMessage, ChatSession
from roomforge.settings.session import SessionSettings
from roomforge.utils.entity_route import parse_entity_path
from roomforge.vector_store.models import utc_now

logger = logging.getLogger(__name__)

_IP_SEPARATORS = re.compile(r"[:.]")
_ID_LIKE = re.compile(
    r"^(?:\d+|[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})$",
    re.IGNORECASE,
)

LOCALE_PREFIX = "[LOCALE]"
CONTEXT_PREFIX = "[CONTEXT]"


def session_key(user_id: Optional[str] = None, client_ip: Optional[str] = None) -> str:
    """Identity wins over address; callers with neither get a one-off key."""
    if user_id:
        return f"user_{user_id}"
    if client_ip:
        return f"ip_{_IP_SEPARATORS.sub('_', client_ip)}"
    return f"anon_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def locale_directive(locale: str) -> str:
    return (
        f"{LOCALE_PREFIX} {locale} Always answer in Vietnamese; "
        "format money as VND and dates as dd/mm/yyyy."
    )


def page_context(current_page: str) -> Optional[str]:
    """``/rooms/abc`` -> ``[CONTEXT] Entity: room Identifier: abc Type: slug``."""
    parsed = parse_entity_path(current_page)
    if parsed is None:
        return None
    entity, identifier = parsed
    kind = "id" if _ID_LIKE.match(identifier) else "slug"
    return f"{CONTEXT_PREFIX} Entity: {entity} Identifier: {identifier} Type: {kind}"


def trim_messages(messages: list[ChatMessage], cap: int) -> list[ChatMessage]:
    """Keep every system message plus the newest non-system ones, up to ``cap``."""
    system_count = sum(1 for m in messages if m.role == MessageRole.SYSTEM)
    if len(messages) <= cap:
        return list(messages)

    keep = max(cap - system_count, 0)
    non_system = [i for i, m in enumerate(messages) if m.role != MessageRole.SYSTEM]
    kept = set(non_system[len(non_system) - keep:]) if keep else set()
    return [
        m for i, m in enumerate(messages)
        if m.role == MessageRole.SYSTEM or i in kept
    ]


class SessionStore:
    """Store for short-lived chat sessions.

    The session map is shared between request handlers and the background
    expiry sweep; every read and write goes through one ``asyncio.Lock`` and
    callers receive copies.

    Example:
        ```python
        store = SessionStore(SessionSettings())
        store.start_sweeper()

        session = await store.get_or_create(user_id="42", current_page="/rooms/abc")
        await store.append(session.session_id, MessageRole.USER, "phòng dưới 4 triệu")

        await store.stop_sweeper()
        ```
    """

    def __init__(
        self,
        settings: Optional[SessionSettings] = None,
        locale: str = "vi-VN",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings or SessionSettings()
        self._locale = locale
        self._clock = clock
        self._sessions: dict[str, ChatSession] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    def _is_expired(self, session: ChatSession, now: datetime) -> bool:
        return now - session.last_activity > timedelta(seconds=self._settings.ttl_seconds)

    def _add_context(self, session: ChatSession, current_page: Optional[str]) -> None:
        if not current_page:
            return
        content = page_context(current_page)
        if content is None:
            return
        if any(m.content == content for m in session.messages):
            return
        session.messages.append(ChatMessage(role=MessageRole.SYSTEM, content=content))
        session.messages = trim_messages(session.messages, self._settings.max_messages)

    async def get_or_create(
        self,
        user_id: Optional[str] = None,
        client_ip: Optional[str] = None,
        current_page: Optional[str] = None,
    ) -> ChatSession:
        """Get the caller's live session or start a new one with the locale directive."""
        key = session_key(user_id, client_ip)
        now = self._clock()
        async with self._lock:
            session = self._sessions.get(key)
            if session is not None and self._is_expired(session, now):
                logger.debug(f"Session {key} expired, starting fresh")
                session = None

            if session is None:
                session = ChatSession(
                    session_id=key,
                    user_id=user_id,
                    client_ip=client_ip,
                    messages=[ChatMessage(role=MessageRole.SYSTEM, content=locale_directive(self._locale))],
                    created_at=now,
                    last_activity=now,
                )
                self._sessions[key] = session
                logger.info(f"Created session {key}")

            self._add_context(session, current_page)
            session.last_activity = now
            return session.model_copy(deep=True)

    async def get(self, session_id: str) -> Optional[ChatSession]:
        async with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session else None

    async def append(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        envelope: Optional[dict[str, Any]] = None,
    ) -> None:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.warning(f"Cannot append to unknown session {session_id}")
                return
            session.messages.append(ChatMessage(role=role, content=content, envelope=envelope))
            session.messages = trim_messages(session.messages, self._settings.max_messages)
            session.last_activity = self._clock()

    async def remember_query(self, session_id: str, question: str, sql: str) -> None:
        """Record the last answered data question so follow-ups can be expanded."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return
            session.flow_state[LAST_QUERY_KEY] = {"question": question, "sql": sql}

    async def get_history(self, session_id: str) -> list[ChatMessage]:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return []
            return session.get_messages(include_system=False)

    async def clear_history(self, session_id: str) -> bool:
        """Drop everything except the locale directive."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            session.messages = [
                m for m in session.messages
                if m.role == MessageRole.SYSTEM and m.content.startswith(LOCALE_PREFIX)
            ]
            session.flow_state = {}
            session.last_activity = self._clock()
            return True

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def sweep_expired(self) -> int:
        """Remove sessions idle longer than the TTL."""
        now = self._clock()
        async with self._lock:
            expired = [k for k, s in self._sessions.items() if self._is_expired(s, now)]
            for key in expired:
                del self._sessions[key]
        if expired:
            logger.info(f"Swept {len(expired)} expired sessions")
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.sweep_interval_seconds)
            try:
                await self.sweep_expired()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    def start_sweeper(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    @property
    def session_count(self) -> int:
        return len(self._sessions)
