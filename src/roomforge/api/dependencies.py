"""Component wiring and FastAPI dependencies."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Header, Request

from roomforge.agents import (
    Orchestrator,
    QuestionExpander,
    ResponseGenerator,
    ResultValidator,
    RoleLookupProtocol,
    SqlGenerationAgent,
    SqlRoleLookup,
)
from roomforge.chat.service import ChatService
from roomforge.db.database import close_db, get_engine, get_session_maker
from roomforge.db.executor import QueryExecutorProtocol, SqlQueryExecutor
from roomforge.embedding import EmbeddingClient, EmbeddingProtocol
from roomforge.inference import InferenceClient
from roomforge.knowledge import (
    FeedbackRecorder,
    KnowledgeService,
    PendingKnowledgeService,
    PendingKnowledgeStoreProtocol,
    SqlPendingKnowledgeStore,
    init_pending_tables,
)
from roomforge.prompts import STATIC_SCHEMA
from roomforge.session import SessionStore
from roomforge.settings import Settings, get_settings
from roomforge.utils.query_validator import RENTAL_TABLES, QueryValidator
from roomforge.vector_store import PgVectorStore, VectorStoreProtocol, init_vector_tables

logger = logging.getLogger(__name__)


class Container:
    """Long-lived components shared by every request."""

    def __init__(
        self,
        settings: Settings,
        sessions: SessionStore,
        knowledge: KnowledgeService,
        pending: PendingKnowledgeService,
        chat: ChatService,
        query_validator: QueryValidator,
        llm: Any = None,
        embedder: Any = None,
        uses_database: bool = False,
    ):
        self.settings = settings
        self.sessions = sessions
        self.knowledge = knowledge
        self.pending = pending
        self.chat = chat
        self.query_validator = query_validator
        self._llm = llm
        self._embedder = embedder
        self._uses_database = uses_database

    async def startup(self) -> None:
        if self._uses_database and self.settings.app.bootstrap_storage:
            await self.bootstrap_storage()
        self.sessions.start_sweeper()
        logger.info("RoomForge components started")

    async def bootstrap_storage(self) -> None:
        """Create the knowledge tables and ingest the static schema."""
        engine = get_engine()
        await init_vector_tables(engine, self.settings.embedding.dimension)
        await init_pending_tables(engine)
        count = await self.knowledge.ingest_schema(STATIC_SCHEMA)
        logger.info(f"Storage bootstrapped with {count} schema chunks")

    async def shutdown(self) -> None:
        await self.sessions.stop_sweeper()
        for client in (self._llm, self._embedder):
            close = getattr(client, "close", None)
            if close is not None:
                await close()
        if self._uses_database:
            await close_db()
        logger.info("RoomForge components stopped")


def build_container(
    settings: Optional[Settings] = None,
    llm: Any = None,
    embedder: Optional[EmbeddingProtocol] = None,
    store: Optional[VectorStoreProtocol] = None,
    executor: Optional[QueryExecutorProtocol] = None,
    pending_store: Optional[PendingKnowledgeStoreProtocol] = None,
    role_lookup: Optional[RoleLookupProtocol] = None,
) -> Container:
    """Wire the pipeline; anything not passed in is built from settings."""
    settings = settings or get_settings()
    uses_database = any(c is None for c in (store, executor, pending_store, role_lookup))
    session_maker = get_session_maker() if uses_database else None

    llm = llm or InferenceClient(settings.inference)
    embedder = embedder or EmbeddingClient(settings.embedding)
    store = store or PgVectorStore(session_maker)
    executor = executor or SqlQueryExecutor(session_maker, settings.database)
    pending_store = pending_store or SqlPendingKnowledgeStore(session_maker, settings.rag)
    role_lookup = role_lookup or SqlRoleLookup(session_maker)

    window = settings.session.history_window
    knowledge = KnowledgeService(store, embedder, settings.rag)
    pending = PendingKnowledgeService(pending_store, knowledge)
    query_validator = QueryValidator(
        max_limit=settings.generation.max_row_limit, allowed_tables=RENTAL_TABLES
    )
    sessions = SessionStore(settings.session, locale=settings.app.locale)

    chat = ChatService(
        sessions=sessions,
        orchestrator=Orchestrator(llm, knowledge, role_lookup, history_window=window),
        sql_agent=SqlGenerationAgent(
            llm, knowledge, executor, settings.generation,
            validator=query_validator, history_window=window,
        ),
        validator=ResultValidator(llm),
        responder=ResponseGenerator(llm, history_window=window),
        feedback=FeedbackRecorder(knowledge, pending, auto_persist=settings.generation.auto_persist),
        settings=settings.generation,
        expander=QuestionExpander(llm),
    )
    return Container(
        settings=settings,
        sessions=sessions,
        knowledge=knowledge,
        pending=pending,
        chat=chat,
        query_validator=query_validator,
        llm=llm,
        embedder=embedder,
        uses_database=uses_database,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller identity forwarded by the gateway; absent for guests."""
    return x_user_id or None


def get_admin_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    return x_user_id or "anonymous"


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
