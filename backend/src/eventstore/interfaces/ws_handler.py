import asyncio
import json
import logging
from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from eventstore.application.services import append_event, rebuild
from eventstore.domain.repository import SequenceSource
from eventstore.infrastructure.event_repository import DbEventStoreRepository
from eventstore.infrastructure.redis_pubsub import publish_event, subscribe
from eventstore.interfaces.schemas import AppendEventRequest, InteractionResponse
from notes.infrastructure.note_repository import DbNoteRepository
from shared.dependencies import get_db, get_redis, get_sequence_source
from shared.exceptions import AppError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notes/{note_id}")
async def websocket_endpoint(
    websocket: WebSocket,
    note_id: UUID,
    db: AsyncSession = Depends(get_db),
    source: SequenceSource = Depends(get_sequence_source),
    redis: Redis = Depends(get_redis),
):
    note = await DbNoteRepository(db).get_by_id(note_id)
    if not note or not note.active:
        await websocket.close(code=4004, reason="Note not found")
        return

    await websocket.accept()
    repo = DbEventStoreRepository(db)

    async def on_redis_message(data: str):
        """Forward events appended anywhere to this client."""
        try:
            await websocket.send_text(data)
        except Exception as exc:
            logger.debug("Dropped event for a closed socket on note %s: %s", note_id, exc)

    sub_task = await subscribe(redis, note_id, on_redis_message)

    try:
        content = await rebuild(repo, note_id)
        await websocket.send_json({"type": "content", "content": content})

        while True:
            raw = await websocket.receive_text()
            try:
                body = AppendEventRequest.model_validate_json(raw)
            except ValidationError as exc:
                await websocket.send_json({"type": "error", "detail": json.loads(exc.json())})
                continue

            try:
                event = await append_event(
                    repo,
                    source,
                    note_id,
                    operation=body.operation,
                    char=body.char,
                    position=body.position,
                    device_id=body.device_id,
                    text=body.text,
                    observed_clock=body.observed_clock,
                )
            except AppError as exc:
                await websocket.send_json({"type": "error", "detail": exc.message})
                continue

            payload = InteractionResponse.model_validate(asdict(event)).model_dump_json()
            try:
                await publish_event(redis, note_id, payload)
            except RedisError as exc:
                logger.warning("Could not publish event %s: %s", event.sequence_number, exc)
                # other subscribers miss it, but the writer still gets its event
                await websocket.send_text(payload)

    except WebSocketDisconnect:
        logger.debug("Client left note %s", note_id)
    finally:
        sub_task.cancel()
        try:
            await sub_task
        except asyncio.CancelledError:
            pass
