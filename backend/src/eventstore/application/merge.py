from uuid import UUID

from eventstore.application.services import rebuild
from eventstore.domain.entities import Interaction
from eventstore.domain.repository import EventStoreRepository
from eventstore.domain.transform import merge_streams, resolve_positions


async def merge_timelines(
    repo: EventStoreRepository,
    note_id: UUID,
    device_a: str,
    device_b: str,
    common_sequence: int,
) -> list[Interaction]:
    """Propose one serial order for two devices' edits made after ``common_sequence``.

    Applying the result in order to the content at ``common_sequence`` keeps
    both devices' edits where their authors put them. It is not persisted:
    callers append the operations again to give them canonical sequence numbers.
    """
    ops_a = await repo.get_device_interactions(note_id, device_a, common_sequence)
    ops_b = await repo.get_device_interactions(note_id, device_b, common_sequence)
    if not ops_a and not ops_b:
        return []

    base = await rebuild(repo, note_id, common_sequence)
    return merge_streams(resolve_positions(base, ops_a), resolve_positions(base, ops_b))
