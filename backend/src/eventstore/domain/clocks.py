from collections.abc import Mapping

from eventstore.domain.entities import Causality


def merge_vector_clocks(*clocks: Mapping[str, int] | None) -> dict[str, int]:
    merged: dict[str, int] = {}
    for clock in clocks:
        for device, counter in (clock or {}).items():
            merged[device] = max(merged.get(device, 0), int(counter))
    return merged


def advance_vector_clock(
    previous: Mapping[str, int] | None,
    observed: Mapping[str, int] | None,
    device_id: str,
    counter: int,
) -> dict[str, int]:
    """Clock for a new event: everything the device has seen, plus its own tick."""
    clock = merge_vector_clocks(previous, observed)
    clock[device_id] = max(clock.get(device_id, 0), counter)
    return clock


def compare_vector_clocks(a: Mapping[str, int], b: Mapping[str, int]) -> Causality:
    """Partial-order comparison. Identical clocks count as concurrent."""
    devices = set(a) | set(b)
    a_le_b = all(a.get(d, 0) <= b.get(d, 0) for d in devices)
    b_le_a = all(b.get(d, 0) <= a.get(d, 0) for d in devices)

    if a_le_b and not b_le_a:
        return Causality.HAPPENED_BEFORE
    if b_le_a and not a_le_b:
        return Causality.HAPPENED_AFTER
    return Causality.CONCURRENT


def compare_sequence_numbers(seq_a: int, seq_b: int) -> Causality:
    if seq_a < seq_b:
        return Causality.HAPPENED_BEFORE
    if seq_a > seq_b:
        return Causality.HAPPENED_AFTER
    return Causality.CONCURRENT
