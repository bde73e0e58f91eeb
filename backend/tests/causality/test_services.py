from uuid import uuid4

import pytest

from causality.application.services import (
    AUTO_DETECTED,
    causal_ancestors,
    causal_descendants,
    detect_causality,
    upsert_link,
)
from causality.infrastructure.link_repository import DbCausalLinkRepository
from eventstore.application.services import append_event
from notes.application.services import archive_note, create_note
from shared.exceptions import InvalidCausalLinkError, NotFoundError


@pytest.fixture
def link_repo(db):
    return DbCausalLinkRepository(db)


async def _write(event_repo, source, note_id, text):
    for position, char in enumerate(text):
        await append_event(event_repo, source, note_id, "keystroke", char=char, position=position)


async def _notes(note_repo, source, *titles):
    return [await create_note(note_repo, source, title=t) for t in titles]


async def test_upsert_link(link_repo, note_repo, source):
    cause, effect = await _notes(note_repo, source, "cause", "effect")

    link = await upsert_link(link_repo, cause, effect, 0.456, "manual")
    assert link.strength == 0.46
    assert link.context == "manual"

    updated = await upsert_link(link_repo, cause, effect, 0.8)
    assert updated.id == link.id
    assert updated.strength == 0.8
    assert len(await link_repo.list_effects(cause.id)) == 1


async def test_upsert_link_rejects_self(link_repo, note):
    with pytest.raises(InvalidCausalLinkError):
        await upsert_link(link_repo, note, note, 0.5)


async def test_upsert_link_rejects_backwards(link_repo, note_repo, source):
    earlier, later = await _notes(note_repo, source, "earlier", "later")
    with pytest.raises(InvalidCausalLinkError):
        await upsert_link(link_repo, later, earlier, 0.5)


@pytest.mark.parametrize("strength", [0.0, -0.1, 1.5])
async def test_upsert_link_rejects_strength(link_repo, note_repo, source, strength):
    cause, effect = await _notes(note_repo, source, "cause", "effect")
    with pytest.raises(InvalidCausalLinkError):
        await upsert_link(link_repo, cause, effect, strength)


async def test_detect_causality_links_similar_notes(link_repo, note_repo, event_repo, source):
    unrelated, cause, effect = await _notes(note_repo, source, "unrelated", "cause", "effect")
    await _write(event_repo, source, cause.id, "event sourcing basics")
    await _write(event_repo, source, effect.id, "event sourcing snapshots")

    links = await detect_causality(link_repo, note_repo, event_repo, effect.id)

    assert [link.cause_note_id for link in links] == [cause.id]
    assert links[0].effect_note_id == effect.id
    assert links[0].context == AUTO_DETECTED
    assert 0.3 < links[0].strength <= 1.0
    assert await link_repo.get(unrelated.id, effect.id) is None


async def test_detect_causality_is_repeatable(link_repo, note_repo, event_repo, source):
    cause, effect = await _notes(note_repo, source, "cause", "effect")
    await _write(event_repo, source, cause.id, "graph")
    await _write(event_repo, source, effect.id, "graph")

    first = await detect_causality(link_repo, note_repo, event_repo, effect.id)
    second = await detect_causality(link_repo, note_repo, event_repo, effect.id)

    assert [link.id for link in first] == [link.id for link in second]
    assert len(await link_repo.list_causes(effect.id)) == 1


async def test_detect_causality_skips_later_notes(link_repo, note_repo, event_repo, source):
    effect, later = await _notes(note_repo, source, "effect", "later")
    await _write(event_repo, source, effect.id, "same text")
    await _write(event_repo, source, later.id, "same text")

    assert await detect_causality(link_repo, note_repo, event_repo, effect.id) == []


async def test_detect_causality_unknown_note(link_repo, note_repo, event_repo):
    with pytest.raises(NotFoundError):
        await detect_causality(link_repo, note_repo, event_repo, uuid4())


async def test_ancestors_and_descendants(link_repo, note_repo, source):
    a, b, c, d = await _notes(note_repo, source, "a", "b", "c", "d")
    await upsert_link(link_repo, a, b, 0.9)
    await upsert_link(link_repo, b, c, 0.9)
    await upsert_link(link_repo, c, d, 0.9)

    ancestors = await causal_ancestors(link_repo, note_repo, d.id)
    assert [n.id for n in ancestors] == [a.id, b.id, c.id]

    ancestors = await causal_ancestors(link_repo, note_repo, d.id, depth=1)
    assert [n.id for n in ancestors] == [c.id]

    descendants = await causal_descendants(link_repo, note_repo, a.id, depth=2)
    assert [n.id for n in descendants] == [b.id, c.id]


async def test_chain_skips_archived_notes(link_repo, note_repo, source):
    a, b = await _notes(note_repo, source, "a", "b")
    await upsert_link(link_repo, a, b, 0.9)
    await archive_note(note_repo, a.id)

    assert await causal_ancestors(link_repo, note_repo, b.id) == []
