"""Hash chain and Merkle helpers for the interaction ledger.

Every event commits to its own fields plus the hash of the event before it in
the global log, so rewriting any past event breaks every hash after it.

Snapshots carry a Merkle root over per-event leaves. When a level has an odd
number of nodes the last one is promoted to the next level unchanged.
"""
import hashlib
import json
from collections.abc import Iterable, Sequence

from eventstore.domain.entities import Interaction, LedgerReport


def _sha256(data: str) -> str:
    return hashlib.sha256(data.encode()).hexdigest()


def event_hash(event: Interaction, previous_hash: str | None) -> str:
    body = {
        "sequence_number": event.sequence_number,
        "note_id": str(event.note_id),
        "operation": event.operation.value,
        "position": event.position,
        "char": event.char,
        "text": event.text,
        "device_id": event.device_id,
        "vector_clock": event.vector_clock,
        "timestamp": event.timestamp,
        "previous_hash": previous_hash,
    }
    return _sha256(json.dumps(body, sort_keys=True, separators=(",", ":")))


def leaf_hash(event: Interaction) -> str:
    return _sha256(f"{event.sequence_number}{event.payload}{event.timestamp}")


def merkle_root(leaves: Sequence[str]) -> str | None:
    if not leaves:
        return None

    level = list(leaves)
    while len(level) > 1:
        next_level = [_sha256(level[i] + level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            next_level.append(level[-1])
        level = next_level
    return level[0]


def merkle_root_for(events: Iterable[Interaction]) -> str | None:
    return merkle_root([leaf_hash(e) for e in events])


def verify_chain(events: Iterable[Interaction], previous_hash: str | None = None) -> LedgerReport:
    """Walk events in sequence order and check every link and stored hash."""
    checked = 0
    last_sequence: int | None = None

    for event in events:
        if last_sequence is not None and event.sequence_number <= last_sequence:
            return LedgerReport(False, checked, event.sequence_number, "sequence out of order")
        if event.previous_hash != previous_hash:
            return LedgerReport(False, checked, event.sequence_number, "previous_hash does not link")
        if event.event_hash != event_hash(event, previous_hash):
            return LedgerReport(False, checked, event.sequence_number, "event_hash does not match")

        previous_hash = event.event_hash
        last_sequence = event.sequence_number
        checked += 1

    return LedgerReport(True, checked)
