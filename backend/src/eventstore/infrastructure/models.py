import uuid
from datetime import datetime

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shared.infrastructure.database import Base


class InteractionModel(Base):
    __tablename__ = "interactions"
    __table_args__ = (Index("ix_interactions_note_sequence", "note_id", "sequence_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("notes.id", ondelete="CASCADE"), nullable=False)
    sequence_number: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    interaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    char: Mapped[str | None] = mapped_column(Text, nullable=True)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vector_clock: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    previous_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    event_hash: Mapped[str] = mapped_column(String(64), nullable=False)


class SnapshotModel(Base):
    __tablename__ = "snapshots"
    __table_args__ = (Index("ix_snapshots_note_sequence", "note_id", "sequence_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("notes.id", ondelete="CASCADE"), nullable=False)
    sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    interaction_count: Mapped[int] = mapped_column(Integer, nullable=False)
    merkle_root: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
