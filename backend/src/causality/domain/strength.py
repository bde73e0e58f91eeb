"""Heuristic strength of a causal edge between two notes.

Weighted blend of how close the notes are in sequence order, how much
vocabulary they share, and whether the earlier note was being edited shortly
before the later one was started.
"""
import math
import re
from collections.abc import Iterable

TEMPORAL_WEIGHT = 0.3
SEMANTIC_WEIGHT = 0.5
CONTEXTUAL_WEIGHT = 0.2

_WORD = re.compile(r"\w+")


def temporal_proximity(cause_sequence: int, effect_sequence: int) -> float:
    # within ~100 sequences is close to 1.0, 1000 is ~0.00005
    gap = effect_sequence - cause_sequence
    return min(max(math.exp(-gap / 100.0), 0.0), 1.0)


def semantic_similarity(cause_text: str, effect_text: str) -> float:
    cause_words = set(_WORD.findall(cause_text.lower()))
    effect_words = set(_WORD.findall(effect_text.lower()))
    if not cause_words or not effect_words:
        return 0.0
    return len(cause_words & effect_words) / len(cause_words | effect_words)


def contextual_overlap(
    cause_edit_times: Iterable[int], effect_started_at: int | None, window_ms: int
) -> float:
    if effect_started_at is None:
        return 0.0
    for edited_at in cause_edit_times:
        if effect_started_at - window_ms <= edited_at <= effect_started_at:
            return 1.0
    return 0.0


def causal_strength(
    cause_sequence: int | None,
    effect_sequence: int | None,
    semantic: float,
    contextual: float,
) -> float:
    if cause_sequence is None or effect_sequence is None:
        return 0.0
    if cause_sequence >= effect_sequence:
        return 0.0

    temporal = temporal_proximity(cause_sequence, effect_sequence)
    return (
        temporal * TEMPORAL_WEIGHT
        + semantic * SEMANTIC_WEIGHT
        + contextual * CONTEXTUAL_WEIGHT
    )
