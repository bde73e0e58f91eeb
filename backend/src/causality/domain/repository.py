from typing import Protocol
from uuid import UUID

from causality.domain.entities import CausalLink


class CausalLinkRepository(Protocol):
    async def get(self, cause_note_id: UUID, effect_note_id: UUID) -> CausalLink | None: ...

    async def upsert(self, link: CausalLink) -> CausalLink: ...

    async def list_causes(self, effect_note_id: UUID) -> list[CausalLink]: ...

    async def list_effects(self, cause_note_id: UUID) -> list[CausalLink]: ...
