"""Infrastructure adapters for the Retention Sweeper."""

from retention_sweeper.adapters.file_store import FileMailbox, FileMessage, FileMessageStore

__all__ = [
    "FileMailbox",
    "FileMessage",
    "FileMessageStore",
]
