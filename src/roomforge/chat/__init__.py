from roomforge.chat.service import ChatService

__all__ = ["ChatService"]
