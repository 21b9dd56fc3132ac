"""Caller role lookup."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomforge.schemas.pipeline import UserRole

logger = logging.getLogger(__name__)


def to_user_role(value: Optional[str]) -> UserRole:
    if not value:
        return UserRole.GUEST
    try:
        return UserRole(value.strip().lower())
    except ValueError:
        return UserRole.GUEST


@runtime_checkable
class RoleLookupProtocol(Protocol):
    async def get_role(self, user_id: str) -> Optional[UserRole]:
        ...


class SqlRoleLookup:
    """Reads ``users.role`` from the marketplace database."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_role(self, user_id: str) -> Optional[UserRole]:
        async with self._session_maker() as session:
            result = await session.execute(
                text("SELECT role FROM users WHERE id = :user_id LIMIT 1"),
                {"user_id": user_id},
            )
            value = result.scalar_one_or_none()
        return to_user_role(value) if value is not None else None


class MockRoleLookup:
    def __init__(self, roles: Optional[dict[str, UserRole]] = None, error: Optional[Exception] = None):
        self._roles = dict(roles or {})
        self._error = error
        self.lookups: list[str] = []

    async def get_role(self, user_id: str) -> Optional[UserRole]:
        self.lookups.append(user_id)
        if self._error is not None:
            raise self._error
        return self._roles.get(user_id)
