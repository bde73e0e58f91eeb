import logging
from collections.abc import Iterable, Sequence
from uuid import UUID

from eventstore.application.services import rebuild
from eventstore.domain.entities import Interaction, MaintenanceReport, Snapshot
from eventstore.domain.integrity import merkle_root_for
from eventstore.domain.repository import EventStoreRepository
from shared.config import settings
from shared.exceptions import IntegrityMismatchError, NotFoundError
from shared.locks import KeyedLocks

logger = logging.getLogger(__name__)

_snapshot_locks = KeyedLocks()


async def create_snapshot(repo: EventStoreRepository, note_id: UUID) -> Snapshot:
    """Checkpoint a note at its current maximum sequence.

    Returns the existing snapshot when it is already current. Raises
    IntegrityMismatchError if the previous snapshot no longer matches the log.
    """
    async with _snapshot_locks(note_id):
        sequence = await repo.get_max_sequence(note_id) or 0
        latest = await repo.get_latest_snapshot(note_id)
        if latest and latest.sequence_number >= sequence:
            return latest

        events = await repo.get_interactions(note_id, to_sequence=sequence)
        if latest:
            _check_integrity(latest, events)

        content = await rebuild(repo, note_id, sequence)
        saved = await repo.save_snapshot(
            Snapshot(
                note_id=note_id,
                sequence_number=sequence,
                content=content,
                interaction_count=len(events),
                merkle_root=merkle_root_for(events),
            )
        )
        logger.info("Created snapshot for note %s at seq %s", note_id, sequence)
        return saved


async def verify_snapshot(
    repo: EventStoreRepository, note_id: UUID, sequence: int | None = None
) -> Snapshot:
    snapshot = await repo.get_latest_snapshot(note_id, at_or_below=sequence)
    if not snapshot:
        raise NotFoundError("Snapshot", str(note_id))

    events = await repo.get_interactions(note_id, to_sequence=snapshot.sequence_number)
    _check_integrity(snapshot, events)
    return snapshot


async def maintain_snapshots(
    repo: EventStoreRepository,
    note_ids: Iterable[UUID],
    threshold: int | None = None,
) -> MaintenanceReport:
    """Snapshot every note whose newest event is too far past its last snapshot.

    Notes failing the integrity check are reported as halted and left alone.
    """
    threshold = settings.SNAPSHOT_THRESHOLD if threshold is None else threshold
    report = MaintenanceReport()

    for note_id in note_ids:
        current = await repo.get_max_sequence(note_id) or 0
        latest = await repo.get_latest_snapshot(note_id)
        last = latest.sequence_number if latest else 0

        if current - last <= threshold:
            report.skipped.append(note_id)
            continue

        try:
            report.created.append(await create_snapshot(repo, note_id))
        except IntegrityMismatchError:
            report.halted.append(note_id)

    logger.info(
        "Snapshot maintenance: %s created, %s skipped, %s halted",
        len(report.created),
        len(report.skipped),
        len(report.halted),
    )
    return report


def _check_integrity(snapshot: Snapshot, events: Sequence[Interaction]) -> None:
    covered = [e for e in events if e.sequence_number <= snapshot.sequence_number]
    actual = merkle_root_for(covered)
    if actual != snapshot.merkle_root:
        logger.error(
            "Integrity mismatch for note %s at seq %s",
            snapshot.note_id,
            snapshot.sequence_number,
        )
        raise IntegrityMismatchError(
            str(snapshot.note_id), snapshot.sequence_number, snapshot.merkle_root, actual
        )
