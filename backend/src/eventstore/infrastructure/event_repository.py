from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventstore.domain.entities import Interaction, Operation, Snapshot
from eventstore.infrastructure.models import InteractionModel, SnapshotModel
from shared.exceptions import ConflictError


class DbEventStoreRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_last_interaction(self) -> Interaction | None:
        result = await self.session.execute(
            select(InteractionModel)
            .order_by(InteractionModel.sequence_number.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _interaction_to_entity(model) if model else None

    async def save_interaction(self, interaction: Interaction) -> Interaction:
        model = InteractionModel(
            note_id=interaction.note_id,
            sequence_number=interaction.sequence_number,
            interaction_type=interaction.operation.value,
            position=interaction.position,
            char=interaction.char,
            text=interaction.text,
            device_id=interaction.device_id,
            vector_clock=interaction.vector_clock,
            timestamp=interaction.timestamp,
            previous_hash=interaction.previous_hash,
            event_hash=interaction.event_hash,
        )
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(
                f"Sequence number {interaction.sequence_number} is already recorded"
            )
        await self.session.refresh(model)
        return _interaction_to_entity(model)

    async def get_interactions(
        self,
        note_id: UUID,
        from_sequence: int | None = None,
        to_sequence: int | None = None,
    ) -> list[Interaction]:
        query = select(InteractionModel).where(InteractionModel.note_id == note_id)
        if from_sequence is not None:
            query = query.where(InteractionModel.sequence_number >= from_sequence)
        if to_sequence is not None:
            query = query.where(InteractionModel.sequence_number <= to_sequence)
        result = await self.session.execute(
            query.order_by(InteractionModel.sequence_number.asc())
        )
        return [_interaction_to_entity(m) for m in result.scalars().all()]

    async def get_device_interactions(
        self, note_id: UUID, device_id: str, after_sequence: int
    ) -> list[Interaction]:
        result = await self.session.execute(
            select(InteractionModel)
            .where(
                InteractionModel.note_id == note_id,
                InteractionModel.device_id == device_id,
                InteractionModel.sequence_number > after_sequence,
            )
            .order_by(InteractionModel.sequence_number.asc())
        )
        return [_interaction_to_entity(m) for m in result.scalars().all()]

    async def get_ledger(self, after_sequence: int | None = None) -> list[Interaction]:
        query = select(InteractionModel)
        if after_sequence is not None:
            query = query.where(InteractionModel.sequence_number > after_sequence)
        result = await self.session.execute(
            query.order_by(InteractionModel.sequence_number.asc())
        )
        return [_interaction_to_entity(m) for m in result.scalars().all()]

    async def get_max_sequence(self, note_id: UUID) -> int | None:
        result = await self.session.execute(
            select(func.max(InteractionModel.sequence_number))
            .where(InteractionModel.note_id == note_id)
        )
        return result.scalar_one()

    async def count_interactions(self, note_id: UUID, to_sequence: int | None = None) -> int:
        query = select(func.count()).select_from(InteractionModel).where(
            InteractionModel.note_id == note_id
        )
        if to_sequence is not None:
            query = query.where(InteractionModel.sequence_number <= to_sequence)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_latest_snapshot(
        self, note_id: UUID, at_or_below: int | None = None
    ) -> Snapshot | None:
        query = select(SnapshotModel).where(SnapshotModel.note_id == note_id)
        if at_or_below is not None:
            query = query.where(SnapshotModel.sequence_number <= at_or_below)
        result = await self.session.execute(
            query.order_by(SnapshotModel.sequence_number.desc(), SnapshotModel.id.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _snapshot_to_entity(model) if model else None

    async def get_earliest_snapshot_above(self, note_id: UUID, sequence: int) -> Snapshot | None:
        result = await self.session.execute(
            select(SnapshotModel)
            .where(
                SnapshotModel.note_id == note_id,
                SnapshotModel.sequence_number > sequence,
            )
            .order_by(SnapshotModel.sequence_number.asc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _snapshot_to_entity(model) if model else None

    async def save_snapshot(self, snapshot: Snapshot) -> Snapshot:
        model = SnapshotModel(
            note_id=snapshot.note_id,
            sequence_number=snapshot.sequence_number,
            content=snapshot.content,
            interaction_count=snapshot.interaction_count,
            merkle_root=snapshot.merkle_root,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _snapshot_to_entity(model)


def _interaction_to_entity(model: InteractionModel) -> Interaction:
    return Interaction(
        id=model.id,
        note_id=model.note_id,
        operation=Operation(model.interaction_type),
        sequence_number=model.sequence_number,
        position=model.position,
        char=model.char,
        text=model.text,
        device_id=model.device_id,
        vector_clock=dict(model.vector_clock or {}),
        timestamp=model.timestamp,
        previous_hash=model.previous_hash,
        event_hash=model.event_hash,
    )


def _snapshot_to_entity(model: SnapshotModel) -> Snapshot:
    return Snapshot(
        id=model.id,
        note_id=model.note_id,
        sequence_number=model.sequence_number,
        content=model.content,
        interaction_count=model.interaction_count,
        merkle_root=model.merkle_root,
        created_at=model.created_at,
    )
