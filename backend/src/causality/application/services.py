import logging
from uuid import UUID

from causality.domain.entities import CausalLink
from causality.domain.repository import CausalLinkRepository
from causality.domain.strength import causal_strength, contextual_overlap, semantic_similarity
from eventstore.application.services import rebuild
from eventstore.domain.repository import EventStoreRepository
from notes.domain.entities import Note
from notes.domain.repository import NoteRepository
from shared.config import settings
from shared.exceptions import InvalidCausalLinkError, NotFoundError

logger = logging.getLogger(__name__)

AUTO_DETECTED = "Auto-detected via content overlap"


async def upsert_link(
    repo: CausalLinkRepository,
    cause: Note,
    effect: Note,
    strength: float,
    context: str | None = None,
) -> CausalLink:
    if cause.id == effect.id:
        raise InvalidCausalLinkError("Cannot create causal link to self")
    if cause.sequence_number is None or effect.sequence_number is None:
        raise InvalidCausalLinkError("Both notes need a sequence number")
    if cause.sequence_number >= effect.sequence_number:
        raise InvalidCausalLinkError("Cause must precede effect in sequence")
    if not 0 < strength <= 1:
        raise InvalidCausalLinkError("Strength must be in (0, 1]")

    link = CausalLink(
        cause_note_id=cause.id,
        effect_note_id=effect.id,
        strength=round(strength, 2),
        context=context,
    )
    return await repo.upsert(link)


async def detect_causality(
    repo: CausalLinkRepository,
    notes: NoteRepository,
    events: EventStoreRepository,
    note_id: UUID,
) -> list[CausalLink]:
    """Score earlier notes as possible causes of ``note_id`` and keep the strong ones."""
    effect = await notes.get_by_id(note_id)
    if not effect or not effect.active:
        raise NotFoundError("Note", str(note_id))
    if effect.sequence_number is None:
        return []

    effect_text = await rebuild(events, effect.id)
    effect_events = await events.get_interactions(effect.id)
    effect_started_at = effect_events[0].timestamp if effect_events else None

    candidates = await notes.list_preceding(
        effect.sequence_number, settings.CAUSAL_CANDIDATE_LIMIT
    )

    links = []
    for cause in candidates:
        cause_events = await events.get_interactions(cause.id)
        semantic = semantic_similarity(await rebuild(events, cause.id), effect_text)
        contextual = contextual_overlap(
            (e.timestamp for e in cause_events),
            effect_started_at,
            settings.CAUSAL_CONTEXT_WINDOW_MS,
        )
        strength = causal_strength(
            cause.sequence_number, effect.sequence_number, semantic, contextual
        )
        logger.debug("Causal strength: %s -> %s = %.3f", cause.id, effect.id, strength)

        if strength > settings.CAUSAL_STRENGTH_THRESHOLD:
            link = await upsert_link(repo, cause, effect, strength, AUTO_DETECTED)
            logger.info("Linked %s -> %s (%.2f)", cause.id, effect.id, link.strength)
            links.append(link)

    return links


async def causal_ancestors(
    repo: CausalLinkRepository, notes: NoteRepository, note_id: UUID, depth: int = 3
) -> list[Note]:
    """Notes that fed into ``note_id``, up to ``depth`` links back."""
    found = await _walk(repo, notes, note_id, depth, upstream=True)
    return sorted(found.values(), key=lambda n: n.sequence_number or 0)


async def causal_descendants(
    repo: CausalLinkRepository, notes: NoteRepository, note_id: UUID, depth: int = 3
) -> list[Note]:
    """Notes that ``note_id`` influenced, up to ``depth`` links forward."""
    found = await _walk(repo, notes, note_id, depth, upstream=False)
    return sorted(found.values(), key=lambda n: n.sequence_number or 0)


async def _walk(
    repo: CausalLinkRepository,
    notes: NoteRepository,
    note_id: UUID,
    depth: int,
    upstream: bool,
) -> dict[UUID, Note]:
    found: dict[UUID, Note] = {}
    frontier = [note_id]

    for _ in range(depth):
        next_frontier = []
        for current in frontier:
            if upstream:
                neighbours = [link.cause_note_id for link in await repo.list_causes(current)]
            else:
                neighbours = [link.effect_note_id for link in await repo.list_effects(current)]

            for neighbour_id in neighbours:
                if neighbour_id in found or neighbour_id == note_id:
                    continue
                note = await notes.get_by_id(neighbour_id)
                if note and note.active:
                    found[neighbour_id] = note
                    next_frontier.append(neighbour_id)
        frontier = next_frontier

    return found
