from uuid import UUID

from eventstore.domain.repository import SequenceSource
from notes.domain.entities import Note
from notes.domain.repository import NoteRepository
from shared.exceptions import NotFoundError


async def create_note(repo: NoteRepository, source: SequenceSource, title: str) -> Note:
    ticket = await source.next("system")
    note = Note(title=title, sequence_number=ticket.sequence_number)
    return await repo.create(note)


async def get_note(repo: NoteRepository, note_id: UUID) -> Note:
    note = await repo.get_by_id(note_id)
    if not note or not note.active:
        raise NotFoundError("Note", str(note_id))
    return note


async def list_notes(repo: NoteRepository) -> list[Note]:
    return await repo.list_active()


async def archive_note(repo: NoteRepository, note_id: UUID) -> None:
    await get_note(repo, note_id)
    await repo.archive(note_id)
