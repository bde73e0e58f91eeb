from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from eventstore.domain.entities import Causality, Operation


class AppendEventRequest(BaseModel):
    operation: Operation
    char: str | None = None
    text: str | None = None
    position: int | None = None
    device_id: str | None = None
    observed_clock: dict[str, int] | None = None


class InteractionResponse(BaseModel):
    note_id: UUID
    sequence_number: int
    operation: Operation
    position: int | None = None
    char: str | None = None
    text: str | None = None
    device_id: str | None = None
    vector_clock: dict[str, int] = Field(default_factory=dict)
    timestamp: int
    previous_hash: str | None = None
    event_hash: str | None = None


class ContentResponse(BaseModel):
    note_id: UUID
    up_to_sequence: int | None = None
    content: str


class SnapshotResponse(BaseModel):
    note_id: UUID
    sequence_number: int
    content: str
    interaction_count: int
    merkle_root: str | None = None
    created_at: datetime | None = None


class MaintenanceResponse(BaseModel):
    created: list[SnapshotResponse]
    skipped: list[UUID]
    halted: list[UUID]


class OperationSchema(BaseModel):
    operation: Operation
    sequence_number: int
    position: int | None = None
    char: str | None = None
    text: str | None = None
    device_id: str | None = None


class TransformRequest(BaseModel):
    op_a: OperationSchema
    op_b: OperationSchema
    content_length: int | None = None


class TransformResponse(BaseModel):
    op_a: OperationSchema
    op_b: OperationSchema


class MergeRequest(BaseModel):
    device_a: str
    device_b: str
    common_sequence: int = 0


class CausalityResponse(BaseModel):
    seq_a: int
    seq_b: int
    relationship: Causality


class LedgerReportResponse(BaseModel):
    valid: bool
    checked: int
    broken_at: int | None = None
    reason: str | None = None


class BranchResponse(BaseModel):
    divergence_sequence: int
    resumed_sequence: int
    deleted_text: str
    written_text: str
