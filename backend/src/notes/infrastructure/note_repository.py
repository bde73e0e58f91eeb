from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notes.domain.entities import Note
from notes.infrastructure.models import NoteModel


class DbNoteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, note_id: UUID) -> Note | None:
        result = await self.session.execute(
            select(NoteModel).where(NoteModel.id == note_id)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def list_active(self) -> list[Note]:
        result = await self.session.execute(
            select(NoteModel)
            .where(NoteModel.deleted_at.is_(None))
            .order_by(NoteModel.sequence_number.asc())
        )
        return [_to_entity(m) for m in result.scalars().all()]

    async def list_preceding(self, sequence_number: int, limit: int) -> list[Note]:
        result = await self.session.execute(
            select(NoteModel)
            .where(
                NoteModel.deleted_at.is_(None),
                NoteModel.sequence_number < sequence_number,
            )
            .order_by(NoteModel.sequence_number.desc())
            .limit(limit)
        )
        return [_to_entity(m) for m in result.scalars().all()]

    async def create(self, note: Note) -> Note:
        model = NoteModel(title=note.title, sequence_number=note.sequence_number)
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _to_entity(model)

    async def archive(self, note_id: UUID) -> None:
        await self.session.execute(
            update(NoteModel)
            .where(NoteModel.id == note_id)
            .values(deleted_at=func.now())
        )
        await self.session.commit()


def _to_entity(model: NoteModel) -> Note:
    return Note(
        id=model.id,
        title=model.title,
        sequence_number=model.sequence_number,
        created_at=model.created_at,
        deleted_at=model.deleted_at,
    )
