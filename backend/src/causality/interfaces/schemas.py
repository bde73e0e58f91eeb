from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from notes.interfaces.schemas import NoteResponse


class CreateCausalLinkRequest(BaseModel):
    cause_note_id: UUID
    effect_note_id: UUID
    strength: float = 1.0
    context: str | None = None


class CausalLinkResponse(BaseModel):
    cause_note_id: UUID
    effect_note_id: UUID
    strength: float
    context: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CausalChainResponse(BaseModel):
    ancestors: list[NoteResponse]
    descendants: list[NoteResponse]
