"""Filesystem message store implementing MessageStoreProtocol.

Layout on disk:
    <root>/
        <mailbox>/          # one directory per mailbox
            <id>.eml        # one RFC 5322 message per file

A message's age comes from its ``Date:`` header. Files with a missing or
unparseable header fall back to the file's modification time.
"""

from __future__ import annotations

import logging
from datetime import datetime
from email.parser import BytesHeaderParser
from email.utils import parsedate_to_datetime
from pathlib import Path

from retention_sweeper.core.errors import StoreError
from retention_sweeper.core.utils import from_timestamp, to_aware_utc

logger = logging.getLogger(__name__)

MESSAGE_SUFFIX = ".eml"


def read_message_date(path: Path) -> datetime:
    """Determine the age-defining timestamp of a message file.

    Args:
        path: Path to the message file.

    Returns:
        Aware UTC datetime from the Date header, else from the file mtime.

    Raises:
        OSError: If the file cannot be read or stat'ed.
    """
    with path.open("rb") as fh:
        headers = BytesHeaderParser().parse(fh)

    raw_date = headers.get("Date")
    if raw_date:
        try:
            return to_aware_utc(parsedate_to_datetime(str(raw_date)))
        except (TypeError, ValueError):
            logger.debug("Unparseable Date header in %s: %r", path.name, raw_date)

    return from_timestamp(path.stat().st_mtime)


class FileMessage:
    """A message stored as a single file."""

    def __init__(self, path: Path, date: datetime) -> None:
        self._path = path
        self._date = date

    @property
    def id(self) -> str:
        return self._path.stem

    @property
    def date(self) -> datetime:
        return self._date

    @property
    def path(self) -> Path:
        return self._path

    def delete(self) -> None:
        try:
            self._path.unlink()
        except OSError as e:
            raise StoreError(f"Failed to delete message {self.id}: {e}") from e

    def __repr__(self) -> str:
        return f"FileMessage(id={self.id!r}, date={self._date.isoformat()!r})"


class FileMailbox:
    """A mailbox stored as a directory of message files."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    def get_messages(self) -> list[FileMessage]:
        """List messages, oldest filename first.

        Files that disappear between listing and reading (e.g. deleted by a
        user concurrently) are skipped.

        Raises:
            StoreError: If the directory or a message header cannot be read.
        """
        try:
            paths = sorted(
                p for p in self._path.iterdir() if p.suffix == MESSAGE_SUFFIX and p.is_file()
            )
        except OSError as e:
            raise StoreError(f"Failed to list mailbox {self.name}: {e}") from e

        messages: list[FileMessage] = []
        for path in paths:
            try:
                date = read_message_date(path)
            except FileNotFoundError:
                logger.debug("Message %s vanished while listing %s", path.stem, self.name)
                continue
            except OSError as e:
                raise StoreError(f"Failed to read message {path.stem} in {self.name}: {e}") from e
            messages.append(FileMessage(path, date))
        return messages

    def __repr__(self) -> str:
        return f"FileMailbox(name={self.name!r})"


class FileMessageStore:
    """Message store backed by a directory tree.

    Implements MessageStoreProtocol for use with RetentionScanner.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the store.

        Args:
            root: Directory holding one sub-directory per mailbox.
        """
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def get_mailboxes(self) -> list[FileMailbox]:
        """List mailboxes in name order.

        Raises:
            StoreError: If the root directory cannot be read.
        """
        try:
            return [FileMailbox(p) for p in sorted(self._root.iterdir()) if p.is_dir()]
        except OSError as e:
            raise StoreError(f"Failed to list mailboxes in {self._root}: {e}") from e
