import logging
from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from eventstore.application.merge import merge_timelines
from eventstore.application.services import (
    append_event,
    detect_branches,
    list_events,
    rebuild,
    verify_ledger,
)
from eventstore.application.snapshots import create_snapshot, maintain_snapshots, verify_snapshot
from eventstore.domain.entities import Interaction
from eventstore.domain.repository import SequenceSource
from eventstore.domain.transform import transform
from eventstore.infrastructure.event_repository import DbEventStoreRepository
from eventstore.infrastructure.redis_pubsub import publish_event
from eventstore.interfaces.schemas import (
    AppendEventRequest,
    BranchResponse,
    CausalityResponse,
    ContentResponse,
    InteractionResponse,
    LedgerReportResponse,
    MaintenanceResponse,
    MergeRequest,
    OperationSchema,
    SnapshotResponse,
    TransformRequest,
    TransformResponse,
)
from notes.application.services import get_note, list_notes
from notes.infrastructure.note_repository import DbNoteRepository
from shared.dependencies import get_db, get_redis, get_sequence_source

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["eventstore"])


@router.post("/notes/{note_id}/events", response_model=InteractionResponse, status_code=201)
async def append(
    note_id: UUID,
    body: AppendEventRequest,
    db: AsyncSession = Depends(get_db),
    source: SequenceSource = Depends(get_sequence_source),
    redis: Redis = Depends(get_redis),
):
    await get_note(DbNoteRepository(db), note_id)
    event = await append_event(
        DbEventStoreRepository(db),
        source,
        note_id,
        operation=body.operation,
        char=body.char,
        position=body.position,
        device_id=body.device_id,
        text=body.text,
        observed_clock=body.observed_clock,
    )

    response = InteractionResponse.model_validate(asdict(event))
    try:
        await publish_event(redis, note_id, response.model_dump_json())
    except RedisError as exc:
        logger.warning("Could not publish event %s: %s", event.sequence_number, exc)
    return response


@router.get("/notes/{note_id}/events", response_model=list[InteractionResponse])
async def history(
    note_id: UUID,
    from_sequence: int | None = None,
    to_sequence: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    await get_note(DbNoteRepository(db), note_id)
    return await list_events(DbEventStoreRepository(db), note_id, from_sequence, to_sequence)


@router.get("/notes/{note_id}/content", response_model=ContentResponse)
async def content(
    note_id: UUID,
    up_to_sequence: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    await get_note(DbNoteRepository(db), note_id)
    text = await rebuild(DbEventStoreRepository(db), note_id, up_to_sequence)
    return ContentResponse(note_id=note_id, up_to_sequence=up_to_sequence, content=text)


@router.get("/notes/{note_id}/branches", response_model=list[BranchResponse])
async def branches(note_id: UUID, db: AsyncSession = Depends(get_db)):
    await get_note(DbNoteRepository(db), note_id)
    return await detect_branches(DbEventStoreRepository(db), note_id)


@router.post("/notes/{note_id}/snapshots", response_model=SnapshotResponse, status_code=201)
async def snapshot(note_id: UUID, db: AsyncSession = Depends(get_db)):
    await get_note(DbNoteRepository(db), note_id)
    return await create_snapshot(DbEventStoreRepository(db), note_id)


@router.get("/notes/{note_id}/snapshots/verify", response_model=SnapshotResponse)
async def snapshot_verify(
    note_id: UUID,
    sequence: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    await get_note(DbNoteRepository(db), note_id)
    return await verify_snapshot(DbEventStoreRepository(db), note_id, sequence)


@router.post("/snapshots/maintain", response_model=MaintenanceResponse)
async def maintain(db: AsyncSession = Depends(get_db)):
    notes = await list_notes(DbNoteRepository(db))
    report = await maintain_snapshots(DbEventStoreRepository(db), [n.id for n in notes])
    return asdict(report)


@router.post("/notes/{note_id}/transform", response_model=TransformResponse)
async def transform_pair(
    note_id: UUID, body: TransformRequest, db: AsyncSession = Depends(get_db)
):
    await get_note(DbNoteRepository(db), note_id)
    content_length = body.content_length
    if content_length is None:
        content_length = len(await rebuild(DbEventStoreRepository(db), note_id))

    op_a, op_b = transform(
        _to_interaction(note_id, body.op_a),
        _to_interaction(note_id, body.op_b),
        content_length,
    )
    return TransformResponse(op_a=_to_schema(op_a), op_b=_to_schema(op_b))


@router.post("/notes/{note_id}/merge", response_model=list[InteractionResponse])
async def merge(note_id: UUID, body: MergeRequest, db: AsyncSession = Depends(get_db)):
    await get_note(DbNoteRepository(db), note_id)
    return await merge_timelines(
        DbEventStoreRepository(db),
        note_id,
        body.device_a,
        body.device_b,
        body.common_sequence,
    )


@router.get("/causality", response_model=CausalityResponse)
async def causality(
    seq_a: int,
    seq_b: int,
    source: SequenceSource = Depends(get_sequence_source),
):
    relationship = await source.check_causality(seq_a, seq_b)
    return CausalityResponse(seq_a=seq_a, seq_b=seq_b, relationship=relationship)


@router.get("/ledger/verify", response_model=LedgerReportResponse)
async def ledger_verify(db: AsyncSession = Depends(get_db)):
    return asdict(await verify_ledger(DbEventStoreRepository(db)))


def _to_interaction(note_id: UUID, op: OperationSchema) -> Interaction:
    return Interaction(note_id=note_id, **op.model_dump())


def _to_schema(op: Interaction) -> OperationSchema:
    return OperationSchema(
        operation=op.operation,
        sequence_number=op.sequence_number,
        position=op.position,
        char=op.char,
        text=op.text,
        device_id=op.device_id,
    )
