from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol
from uuid import UUID

from eventstore.domain.entities import Causality, Interaction, SequenceTicket, Snapshot


class EventStoreRepository(Protocol):
    async def get_last_interaction(self) -> Interaction | None: ...

    async def save_interaction(self, interaction: Interaction) -> Interaction: ...

    async def get_interactions(
        self,
        note_id: UUID,
        from_sequence: int | None = None,
        to_sequence: int | None = None,
    ) -> list[Interaction]: ...

    async def get_device_interactions(
        self, note_id: UUID, device_id: str, after_sequence: int
    ) -> list[Interaction]: ...

    async def get_ledger(self, after_sequence: int | None = None) -> list[Interaction]: ...

    async def get_max_sequence(self, note_id: UUID) -> int | None: ...

    async def count_interactions(self, note_id: UUID, to_sequence: int | None = None) -> int: ...

    async def get_latest_snapshot(
        self, note_id: UUID, at_or_below: int | None = None
    ) -> Snapshot | None: ...

    async def get_earliest_snapshot_above(self, note_id: UUID, sequence: int) -> Snapshot | None: ...

    async def save_snapshot(self, snapshot: Snapshot) -> Snapshot: ...


class SequenceSource(Protocol):
    """Hands out globally unique, strictly increasing sequence numbers."""

    async def next(
        self, device_id: str, observed_clock: dict[str, int] | None = None
    ) -> SequenceTicket: ...

    async def check_causality(self, seq_a: int, seq_b: int) -> Causality: ...

    def ledger_lock(self) -> AbstractAsyncContextManager[Any]:
        """Held by an append from drawing its number until the event is committed."""
        ...
