import logging
from uuid import UUID

from eventstore.domain.branches import find_branches
from eventstore.domain.entities import Branch, Interaction, LedgerReport, Operation
from eventstore.domain.integrity import event_hash, verify_chain
from eventstore.domain.replay import replay
from eventstore.domain.repository import EventStoreRepository, SequenceSource
from shared.exceptions import ConflictError, OrderingConflictError, ReplayGapError

logger = logging.getLogger(__name__)

SYSTEM_DEVICE = "system"


async def append_event(
    repo: EventStoreRepository,
    source: SequenceSource,
    note_id: UUID,
    operation: Operation | str,
    char: str | None = None,
    position: int | None = None,
    device_id: str | None = None,
    text: str | None = None,
    observed_clock: dict[str, int] | None = None,
) -> Interaction:
    """Assign the next sequence number to an edit and chain it onto the ledger."""
    operation = Operation(operation)
    device_id = device_id or SYSTEM_DEVICE

    # the hash chain spans every note, so appends are serialised on the source's lock
    async with source.ledger_lock():
        ticket = await source.next(device_id, observed_clock)

        last = await repo.get_last_interaction()
        if last and ticket.sequence_number <= last.sequence_number:
            logger.critical(
                "Sequence source returned %s but the ledger is already at %s",
                ticket.sequence_number,
                last.sequence_number,
            )
            raise OrderingConflictError(ticket.sequence_number, last.sequence_number)

        interaction = Interaction(
            note_id=note_id,
            operation=operation,
            sequence_number=ticket.sequence_number,
            position=position,
            char=char,
            text=text,
            device_id=device_id,
            vector_clock=ticket.vector_clock,
            timestamp=ticket.timestamp,
            previous_hash=last.event_hash if last else None,
        )
        interaction.event_hash = event_hash(interaction, interaction.previous_hash)

        try:
            return await repo.save_interaction(interaction)
        except ConflictError:
            # another writer persisted this number first
            logger.critical("Sequence %s was already taken", ticket.sequence_number)
            raise OrderingConflictError(
                ticket.sequence_number, ticket.sequence_number
            ) from None


async def list_events(
    repo: EventStoreRepository,
    note_id: UUID,
    from_sequence: int | None = None,
    to_sequence: int | None = None,
) -> list[Interaction]:
    return await repo.get_interactions(note_id, from_sequence, to_sequence)


async def rebuild(
    repo: EventStoreRepository, note_id: UUID, up_to_sequence: int | None = None
) -> str:
    """Reconstruct a note's content from its nearest snapshot plus later events."""
    snapshot = await repo.get_latest_snapshot(note_id, at_or_below=up_to_sequence)

    if snapshot:
        content = snapshot.content
        from_sequence = snapshot.sequence_number + 1
    else:
        await _ensure_full_history(repo, note_id, up_to_sequence)
        content = ""
        from_sequence = None

    events = await repo.get_interactions(note_id, from_sequence, up_to_sequence)
    return replay(content, events)


async def verify_ledger(repo: EventStoreRepository) -> LedgerReport:
    report = verify_chain(await repo.get_ledger())
    if not report.valid:
        logger.error(
            "Ledger broken at sequence %s after %s events: %s",
            report.broken_at,
            report.checked,
            report.reason,
        )
    return report


async def _ensure_full_history(
    repo: EventStoreRepository, note_id: UUID, up_to_sequence: int | None
) -> None:
    """Replaying from empty is only valid while no covered event has been pruned."""
    if up_to_sequence is None:
        return
    later = await repo.get_earliest_snapshot_above(note_id, up_to_sequence)
    if later is None:
        return
    available = await repo.count_interactions(note_id, later.sequence_number)
    if available < later.interaction_count:
        raise ReplayGapError(str(note_id), up_to_sequence)


async def detect_branches(repo: EventStoreRepository, note_id: UUID) -> list[Branch]:
    """Points in a note's history where the writer deleted a run and wrote something else."""
    return find_branches(await repo.get_interactions(note_id))
