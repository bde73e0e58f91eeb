class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str = "Resource", id: str = ""):
        super().__init__(f"{resource} not found: {id}" if id else f"{resource} not found")


class ConflictError(AppError):
    """Raised when a write collides with existing state."""

    def __init__(self, message: str = "Resource was modified by another writer"):
        super().__init__(message)


class OrderingConflictError(AppError):
    """The sequence source handed out a number that is not past the log's maximum.

    Fatal: the append is aborted and must be escalated, never retried silently.
    """

    def __init__(self, sequence_number: int, current_max: int):
        self.sequence_number = sequence_number
        self.current_max = current_max
        super().__init__(
            f"Sequence {sequence_number} is not greater than log maximum {current_max}"
        )


class ReplayGapError(AppError):
    """Raised when the history needed to rebuild a sequence is no longer available."""

    def __init__(self, note_id: str, sequence_number: int | None):
        target = "latest" if sequence_number is None else str(sequence_number)
        super().__init__(f"History for note {note_id} up to {target} has been pruned")


class IntegrityMismatchError(AppError):
    """A snapshot's stored Merkle root disagrees with the one recomputed from the log."""

    def __init__(self, note_id: str, sequence_number: int, expected: str | None, actual: str | None):
        self.note_id = note_id
        self.sequence_number = sequence_number
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Merkle root mismatch for note {note_id} at sequence {sequence_number}: "
            f"stored {expected}, recomputed {actual}"
        )


class SequenceSourceUnavailableError(AppError):
    """The sequence source could not be reached. Safe for the caller to retry."""

    def __init__(self, message: str = "Sequence source unavailable"):
        super().__init__(message)


class InvalidCausalLinkError(AppError):
    """Raised for self links or links that point backwards in sequence order."""

    def __init__(self, message: str = "Invalid causal link"):
        super().__init__(message)
