from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass
class Note:
    title: str
    sequence_number: int | None = None
    id: UUID | None = field(default=None)
    created_at: datetime | None = field(default=None)
    deleted_at: datetime | None = field(default=None)

    @property
    def active(self) -> bool:
        return self.deleted_at is None
