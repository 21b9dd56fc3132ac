"""Read-only SQL execution against the marketplace database."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol, Union, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomforge.core.exceptions import DatabaseError
from roomforge.settings.database import DatabaseSettings
from roomforge.utils.query_validator import ensure_read_only
from roomforge.utils.text import truncate

logger = logging.getLogger(__name__)

Rows = list[dict[str, Any]]


@runtime_checkable
class QueryExecutorProtocol(Protocol):
    async def execute_read_only(self, sql: str) -> Rows:
        """Run one read-only statement and return rows as dicts."""
        ...


class SqlQueryExecutor:
    """Executes statements inside a ``READ ONLY`` transaction that is always rolled back.

    The statement is re-checked with ``ensure_read_only`` here as well, so
    nothing reaches the database that is not a single SELECT.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        settings: Optional[DatabaseSettings] = None,
    ):
        self._session_maker = session_maker
        self._settings = settings or DatabaseSettings()

    async def execute_read_only(self, sql: str) -> Rows:
        statement = ensure_read_only(sql)

        async with self._session_maker() as session:
            try:
                conn = await session.connection()
                await conn.exec_driver_sql("SET TRANSACTION READ ONLY")
                await conn.exec_driver_sql(
                    f"SET LOCAL statement_timeout = {int(self._settings.statement_timeout_ms)}"
                )
                result = await conn.exec_driver_sql(statement)
                rows = [dict(row) for row in result.mappings().all()]
            except SQLAlchemyError as e:
                message = str(getattr(e, "orig", None) or e)
                logger.warning(f"Query failed: {message} | Query: {truncate(statement)}")
                raise DatabaseError(message, operation="execute_read_only") from e
            finally:
                await session.rollback()

        logger.debug(f"Query returned {len(rows)} rows")
        return rows


Handler = Callable[[str], Union[Rows, Exception]]


class MockQueryExecutor:
    """In-memory executor for tests.

    ``results`` are consumed in order; an ``Exception`` in the list is raised.
    A ``handler`` callable takes precedence and receives the SQL text.
    The same read-only boundary check as the real executor is applied.
    """

    def __init__(
        self,
        results: Optional[list[Union[Rows, Exception]]] = None,
        handler: Optional[Handler] = None,
    ):
        self._results = list(results or [])
        self._handler = handler
        self.executed: list[str] = []

    async def execute_read_only(self, sql: str) -> Rows:
        statement = ensure_read_only(sql)
        self.executed.append(sql)

        if self._handler is not None:
            outcome = self._handler(statement)
        elif self._results:
            outcome = self._results.pop(0)
        else:
            outcome = []

        if isinstance(outcome, Exception):
            raise outcome
        return [dict(row) for row in outcome]
