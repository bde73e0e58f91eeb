from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class Operation(StrEnum):
    INSERT = "insert"
    KEYSTROKE = "keystroke"
    DELETE = "delete"
    BACKSPACE = "backspace"
    PASTE = "paste"
    NOOP = "noop"

    @property
    def inserts(self) -> bool:
        return self in (Operation.INSERT, Operation.KEYSTROKE, Operation.PASTE)

    @property
    def deletes(self) -> bool:
        return self in (Operation.DELETE, Operation.BACKSPACE)


class Causality(StrEnum):
    HAPPENED_BEFORE = "happened-before"
    HAPPENED_AFTER = "happened-after"
    CONCURRENT = "concurrent"


@dataclass
class SequenceTicket:
    sequence_number: int
    vector_clock: dict[str, int]
    timestamp: int  # epoch milliseconds


@dataclass
class Interaction:
    note_id: UUID
    operation: Operation
    sequence_number: int
    position: int | None = None
    char: str | None = None
    text: str | None = None
    device_id: str | None = None
    vector_clock: dict[str, int] = field(default_factory=dict)
    timestamp: int = 0
    previous_hash: str | None = None
    event_hash: str | None = None
    id: int | None = field(default=None)

    @property
    def payload(self) -> str:
        """Text this event inserts; empty for deletes and noops."""
        if self.operation == Operation.PASTE:
            return self.text or ""
        if self.operation.inserts:
            return self.char or ""
        return ""

    @property
    def length(self) -> int:
        return len(self.payload) or 1


@dataclass
class Snapshot:
    note_id: UUID
    sequence_number: int
    content: str
    interaction_count: int
    merkle_root: str | None
    id: int | None = field(default=None)
    created_at: datetime | None = field(default=None)


@dataclass
class LedgerReport:
    valid: bool
    checked: int
    broken_at: int | None = None
    reason: str | None = None


@dataclass
class MaintenanceReport:
    created: list[Snapshot] = field(default_factory=list)
    skipped: list[UUID] = field(default_factory=list)
    halted: list[UUID] = field(default_factory=list)


@dataclass
class Branch:
    """A point where a run of deletions was followed by new writing."""

    divergence_sequence: int
    resumed_sequence: int
    deleted_text: str
    written_text: str
