from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from causality.domain.entities import CausalLink
from causality.infrastructure.models import CausalLinkModel


class DbCausalLinkRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, cause_note_id: UUID, effect_note_id: UUID) -> CausalLink | None:
        model = await self._get_model(cause_note_id, effect_note_id)
        return _to_entity(model) if model else None

    async def upsert(self, link: CausalLink) -> CausalLink:
        model = await self._get_model(link.cause_note_id, link.effect_note_id)
        if model:
            model.strength = link.strength
            model.context = link.context
        else:
            model = CausalLinkModel(
                cause_note_id=link.cause_note_id,
                effect_note_id=link.effect_note_id,
                strength=link.strength,
                context=link.context,
            )
            self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _to_entity(model)

    async def list_causes(self, effect_note_id: UUID) -> list[CausalLink]:
        result = await self.session.execute(
            select(CausalLinkModel).where(CausalLinkModel.effect_note_id == effect_note_id)
        )
        return [_to_entity(m) for m in result.scalars().all()]

    async def list_effects(self, cause_note_id: UUID) -> list[CausalLink]:
        result = await self.session.execute(
            select(CausalLinkModel).where(CausalLinkModel.cause_note_id == cause_note_id)
        )
        return [_to_entity(m) for m in result.scalars().all()]

    async def _get_model(self, cause_note_id: UUID, effect_note_id: UUID) -> CausalLinkModel | None:
        result = await self.session.execute(
            select(CausalLinkModel).where(
                CausalLinkModel.cause_note_id == cause_note_id,
                CausalLinkModel.effect_note_id == effect_note_id,
            )
        )
        return result.scalar_one_or_none()


def _to_entity(model: CausalLinkModel) -> CausalLink:
    return CausalLink(
        id=model.id,
        cause_note_id=model.cause_note_id,
        effect_note_id=model.effect_note_id,
        strength=model.strength,
        context=model.context,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
