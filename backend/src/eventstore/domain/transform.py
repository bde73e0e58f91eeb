"""Positional operational transform over events.

``transform(a, b)`` takes two operations generated against the same base
content without knowledge of each other and returns adjusted copies. Inputs
are never mutated. Ties between inserts at the same position go to the lower
sequence number, which stays put; every replica must apply the same rule.
"""
from collections.abc import Sequence
from dataclasses import replace

from eventstore.domain.entities import Interaction, Operation
from eventstore.domain.replay import apply_event


def transform(
    op_a: Interaction, op_b: Interaction, content_length: int | None = None
) -> tuple[Interaction, Interaction]:
    a = _with_position(op_a, content_length)
    b = _with_position(op_b, content_length)

    if a.sequence_number == b.sequence_number:
        return a, b

    if a.operation.inserts and b.operation.inserts:
        return _insert_insert(a, b)
    if a.operation.inserts and b.operation.deletes:
        return _insert_delete(a, b)
    if a.operation.deletes and b.operation.inserts:
        b, a = _insert_delete(b, a)
        return a, b
    if a.operation.deletes and b.operation.deletes:
        return _delete_delete(a, b)
    return a, b


def resolve_positions(content: str, ops: Sequence[Interaction]) -> list[Interaction]:
    """Fill in missing positions against the content each op of one stream saw."""
    resolved = []
    for op in ops:
        op = _with_position(op, len(content))
        content = apply_event(content, op)
        resolved.append(op)
    return resolved


def merge_streams(
    ops_a: Sequence[Interaction], ops_b: Sequence[Interaction]
) -> list[Interaction]:
    """Serialise two streams that both start from the same content.

    Ops are emitted by ascending sequence number, stream A first on ties. Every
    emitted op rebases the other stream's remaining ops so they apply after it.
    Positions must already be resolved.
    """
    pending_a = list(ops_a)
    pending_b = list(ops_b)
    merged: list[Interaction] = []

    while pending_a or pending_b:
        if not pending_b or (
            pending_a and pending_a[0].sequence_number <= pending_b[0].sequence_number
        ):
            op = pending_a.pop(0)
            pending_b = _rebase(op, pending_b)
        else:
            op = pending_b.pop(0)
            pending_a = _rebase(op, pending_a)
        merged.append(op)
    return merged


def _rebase(applied: Interaction, ops: Sequence[Interaction]) -> list[Interaction]:
    rebased = []
    for op in ops:
        same_char = (
            applied.operation.deletes
            and op.operation.deletes
            and applied.position == op.position
        )
        applied, op = transform(applied, op)
        if same_char:
            # both removed the same character, so neither survives the other
            applied = replace(applied, operation=Operation.NOOP)
            op = replace(op, operation=Operation.NOOP)
        rebased.append(op)
    return rebased


def _with_position(op: Interaction, content_length: int | None) -> Interaction:
    if op.position is not None:
        return replace(op)
    if content_length is None:
        return replace(op, position=0)
    if op.operation.deletes:
        return replace(op, position=content_length - 1)
    return replace(op, position=content_length)


def _insert_insert(a: Interaction, b: Interaction) -> tuple[Interaction, Interaction]:
    if a.position < b.position:
        b.position += a.length
    elif a.position > b.position:
        a.position += b.length
    elif a.sequence_number < b.sequence_number:
        b.position += a.length
    else:
        a.position += b.length
    return a, b


def _insert_delete(ins: Interaction, dele: Interaction) -> tuple[Interaction, Interaction]:
    if ins.position <= dele.position:
        dele.position += ins.length
    else:
        ins.position = max(ins.position - 1, 0)
    return ins, dele


def _delete_delete(a: Interaction, b: Interaction) -> tuple[Interaction, Interaction]:
    if a.position == b.position:
        # the earlier delete already removed the character
        if a.sequence_number < b.sequence_number:
            b.operation = Operation.NOOP
        else:
            a.operation = Operation.NOOP
    elif a.position < b.position:
        b.position -= 1
    else:
        a.position -= 1
    return a, b
