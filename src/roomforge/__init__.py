"""RoomForge: retrieval-augmented natural-language-to-SQL chat for a rental marketplace."""

__version__ = "0.1.0"
