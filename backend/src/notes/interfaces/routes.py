from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventstore.domain.repository import SequenceSource
from notes.application.services import archive_note, create_note, get_note, list_notes
from notes.infrastructure.note_repository import DbNoteRepository
from notes.interfaces.schemas import CreateNoteRequest, NoteResponse
from shared.dependencies import get_db, get_sequence_source

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.post("/", response_model=NoteResponse, status_code=201)
async def create(
    body: CreateNoteRequest,
    db: AsyncSession = Depends(get_db),
    source: SequenceSource = Depends(get_sequence_source),
):
    repo = DbNoteRepository(db)
    return await create_note(repo, source, title=body.title)


@router.get("/", response_model=list[NoteResponse])
async def list_all(db: AsyncSession = Depends(get_db)):
    repo = DbNoteRepository(db)
    return await list_notes(repo)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_one(note_id: UUID, db: AsyncSession = Depends(get_db)):
    repo = DbNoteRepository(db)
    return await get_note(repo, note_id)


@router.delete("/{note_id}", status_code=204)
async def delete(note_id: UUID, db: AsyncSession = Depends(get_db)):
    repo = DbNoteRepository(db)
    await archive_note(repo, note_id)
