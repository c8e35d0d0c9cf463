"""Exception hierarchy for the relay engine.

Every failure raised by a relay component derives from :class:`RelayError`.
The ``retryable`` flag tells the task queue whether re-running the same
action may succeed; filtering and duplicate-guard results are outcomes,
not exceptions, and never appear here.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay failures."""

    retryable = True


class DetailFetchError(RelayError):
    """Raised when the feed cannot be reached or answers with an error status."""


class DecodeError(RelayError):
    """Raised when an upstream payload is not the JSON shape we expect."""

    retryable = False


class StorageError(RelayError):
    """Raised when a store read or write fails."""

    def __init__(self, message: str, item_id: int | None = None) -> None:
        self.item_id = item_id
        super().__init__(message)


class RecordNotFoundError(StorageError):
    """Raised by single-key reads when no record exists for the id."""

    retryable = False

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Story record not found: {item_id}", item_id=item_id)


class UnrecordedMessageError(StorageError):
    """Raised when a message was posted but its record could not be saved.

    Not retryable: a retried Create would find no record and post again.
    """

    retryable = False

    def __init__(self, item_id: int, message_id: int, cause: Exception) -> None:
        self.message_id = message_id
        super().__init__(
            f"message {message_id} posted for item {item_id} but not recorded: {cause}",
            item_id=item_id,
        )


class ChannelError(RelayError):
    """Raised when the messaging channel rejects or fails a request."""

    def __init__(
        self,
        message: str,
        error_code: int | None = None,
        description: str | None = None,
    ) -> None:
        self.error_code = error_code
        self.description = description
        super().__init__(message)


class DeadlineExceeded(RelayError):
    """Raised when the wall-clock budget of a cycle or task is spent."""


class EmptySetError(ValueError):
    """Raised when min/max is requested from an empty id set."""


__all__ = [
    "ChannelError",
    "DeadlineExceeded",
    "DecodeError",
    "DetailFetchError",
    "EmptySetError",
    "RecordNotFoundError",
    "RelayError",
    "StorageError",
    "UnrecordedMessageError",
]
