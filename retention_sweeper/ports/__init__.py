"""Port interfaces for the Retention Sweeper."""

from retention_sweeper.ports.store import (
    MailboxProtocol,
    MessageProtocol,
    MessageStoreProtocol,
)

__all__ = [
    "MailboxProtocol",
    "MessageProtocol",
    "MessageStoreProtocol",
]
