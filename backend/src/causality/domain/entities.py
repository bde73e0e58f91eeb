from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass
class CausalLink:
    cause_note_id: UUID
    effect_note_id: UUID
    strength: float
    context: str | None = None
    id: int | None = field(default=None)
    created_at: datetime | None = field(default=None)
    updated_at: datetime | None = field(default=None)
