from roomforge.knowledge.feedback import FeedbackRecorder, should_persist
from roomforge.knowledge.models import (
    PendingKnowledge,
    PendingKnowledgeRecord,
    PendingStatus,
    TeachResult,
    init_pending_tables,
)
from roomforge.knowledge.pending import (
    MockPendingKnowledgeStore,
    PendingKnowledgeService,
    PendingKnowledgeStoreProtocol,
    SqlPendingKnowledgeStore,
)
from roomforge.knowledge.service import KnowledgeService

__all__ = [
    "FeedbackRecorder",
    "KnowledgeService",
    "MockPendingKnowledgeStore",
    "PendingKnowledge",
    "PendingKnowledgeRecord",
    "PendingKnowledgeService",
    "PendingKnowledgeStoreProtocol",
    "PendingStatus",
    "SqlPendingKnowledgeStore",
    "TeachResult",
    "init_pending_tables",
    "should_persist",
]
