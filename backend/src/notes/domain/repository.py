from typing import Protocol
from uuid import UUID

from notes.domain.entities import Note


class NoteRepository(Protocol):
    async def get_by_id(self, note_id: UUID) -> Note | None: ...

    async def list_active(self) -> list[Note]: ...

    async def list_preceding(self, sequence_number: int, limit: int) -> list[Note]: ...

    async def create(self, note: Note) -> Note: ...

    async def archive(self, note_id: UUID) -> None: ...
