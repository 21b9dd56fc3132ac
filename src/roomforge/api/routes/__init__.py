"""API route exports."""

from roomforge.api.routes.chat import router as chat_router
from roomforge.api.routes.knowledge import router as knowledge_router
from roomforge.api.routes.pending import router as pending_router

__all__ = [
    "chat_router",
    "knowledge_router",
    "pending_router",
]
