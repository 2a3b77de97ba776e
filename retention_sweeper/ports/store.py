"""Protocol interfaces for the message store consumed by the sweeper.

These protocols define the contract between the retention services and the
storage layer. Using typing.Protocol enables structural subtyping, so any
store exposing these members can be swept.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol


class MessageProtocol(Protocol):
    """A single stored message."""

    @property
    def id(self) -> str:
        """Identifier used in log lines."""
        ...

    @property
    def date(self) -> datetime:
        """Timestamp that determines the message's age.

        Naive values are treated as UTC.
        """
        ...

    def delete(self) -> None:
        """Remove the message from the store.

        Raises:
            StoreError: If the message could not be deleted. Any other
                exception is treated the same way by the sweeper.
        """
        ...


class MailboxProtocol(Protocol):
    """A mailbox holding zero or more messages."""

    @property
    def name(self) -> str:
        ...

    def get_messages(self) -> Sequence[MessageProtocol]:
        """List every message in the mailbox.

        Raises:
            StoreError: If the mailbox cannot be read.
        """
        ...


class MessageStoreProtocol(Protocol):
    """The message store as a whole."""

    def get_mailboxes(self) -> Sequence[MailboxProtocol]:
        """List every mailbox in the store.

        Raises:
            StoreError: If the store cannot be read.
        """
        ...
