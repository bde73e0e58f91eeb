from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from causality.application.services import (
    causal_ancestors,
    causal_descendants,
    detect_causality,
    upsert_link,
)
from causality.infrastructure.link_repository import DbCausalLinkRepository
from causality.interfaces.schemas import (
    CausalChainResponse,
    CausalLinkResponse,
    CreateCausalLinkRequest,
)
from eventstore.infrastructure.event_repository import DbEventStoreRepository
from notes.application.services import get_note
from notes.infrastructure.note_repository import DbNoteRepository
from shared.dependencies import get_db

router = APIRouter(prefix="/api", tags=["causality"])


@router.post("/causal-links", response_model=CausalLinkResponse, status_code=201)
async def create(body: CreateCausalLinkRequest, db: AsyncSession = Depends(get_db)):
    notes = DbNoteRepository(db)
    cause = await get_note(notes, body.cause_note_id)
    effect = await get_note(notes, body.effect_note_id)
    return await upsert_link(
        DbCausalLinkRepository(db), cause, effect, body.strength, body.context
    )


@router.post("/notes/{note_id}/causal-links/detect", response_model=list[CausalLinkResponse])
async def detect(note_id: UUID, db: AsyncSession = Depends(get_db)):
    return await detect_causality(
        DbCausalLinkRepository(db),
        DbNoteRepository(db),
        DbEventStoreRepository(db),
        note_id,
    )


@router.get("/notes/{note_id}/causal-links", response_model=CausalChainResponse)
async def chain(
    note_id: UUID,
    depth: int = Query(default=3, ge=1, le=10),
    db: AsyncSession = Depends(get_db),
):
    notes = DbNoteRepository(db)
    await get_note(notes, note_id)
    links = DbCausalLinkRepository(db)
    return CausalChainResponse(
        ancestors=await causal_ancestors(links, notes, note_id, depth),
        descendants=await causal_descendants(links, notes, note_id, depth),
    )
