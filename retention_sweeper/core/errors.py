"""Custom exceptions for the Retention Sweeper."""

from __future__ import annotations


class RetentionSweeperError(Exception):
    """Base exception for all retention sweeper errors."""

    pass


class StoreError(RetentionSweeperError):
    """Raised when a message store operation fails."""

    pass


class ScanError(RetentionSweeperError):
    """Raised when a retention pass cannot enumerate the store.

    Enumeration failures abort the whole pass. Failures to delete a single
    message never raise this; they are logged and skipped.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        mailbox: str | None = None,
    ) -> None:
        """Initialize with details about where enumeration failed.

        Args:
            message: Error description.
            stage: Either "mailboxes" or "messages".
            mailbox: Name of the mailbox being listed, if any.
        """
        self.stage = stage
        self.mailbox = mailbox
        super().__init__(message)


class ConfigurationError(RetentionSweeperError):
    """Raised when configuration is invalid."""

    pass
