from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CreateNoteRequest(BaseModel):
    title: str


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    sequence_number: int | None
    created_at: datetime | None = None
