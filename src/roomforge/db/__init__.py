"""Relational database access."""

from roomforge.db.database import (
    close_db,
    create_engine,
    create_session_maker,
    get_engine,
    get_session_maker,
)
from roomforge.db.executor import MockQueryExecutor, QueryExecutorProtocol, SqlQueryExecutor

__all__ = [
    "MockQueryExecutor",
    "QueryExecutorProtocol",
    "SqlQueryExecutor",
    "close_db",
    "create_engine",
    "create_session_maker",
    "get_engine",
    "get_session_maker",
]
