from uuid import uuid4

from eventstore.domain.entities import Interaction, Operation
from eventstore.domain.replay import replay
from eventstore.domain.transform import merge_streams, resolve_positions, transform

NOTE_ID = uuid4()


def _op(operation, sequence_number, position=None, char=None, text=None, device_id=None):
    return Interaction(
        note_id=NOTE_ID,
        operation=Operation(operation),
        sequence_number=sequence_number,
        position=position,
        char=char,
        text=text,
        device_id=device_id,
    )


def test_concurrent_inserts_at_same_position_converge():
    a = _op("insert", 3, position=2, char="X")
    b = _op("insert", 4, position=2, char="Y")

    a2, b2 = transform(a, b)

    assert a2.position == 2
    assert b2.position == 3
    assert replay("ab", [a2, b2]) == "abXY"
    assert replay("ab", [b2, a2]) == "abXY"


def test_tie_break_favours_lower_sequence_regardless_of_argument_order():
    a = _op("insert", 7, position=2, char="X")
    b = _op("insert", 5, position=2, char="Y")

    a2, b2 = transform(a, b)

    assert b2.position == 2
    assert a2.position == 3


def test_insert_before_insert_shifts_later_by_inserted_length():
    a = _op("paste", 1, position=0, text="abc")
    b = _op("insert", 2, position=1, char="z")

    a2, b2 = transform(a, b)

    assert a2.position == 0
    assert b2.position == 4


def test_insert_after_insert_shifts_first():
    a = _op("insert", 1, position=5, char="x")
    b = _op("insert", 2, position=1, char="y")

    a2, b2 = transform(a, b)

    assert a2.position == 6
    assert b2.position == 1


def test_insert_before_delete_shifts_delete_right():
    a = _op("insert", 1, position=1, char="x")
    b = _op("delete", 2, position=1)

    a2, b2 = transform(a, b)

    assert a2.position == 1
    assert b2.position == 2


def test_insert_after_delete_shifts_insert_left():
    a = _op("insert", 1, position=3, char="x")
    b = _op("delete", 2, position=1)

    a2, b2 = transform(a, b)

    assert a2.position == 2
    assert b2.position == 1


def test_delete_insert_mirrors_insert_delete():
    a = _op("delete", 1, position=1)
    b = _op("insert", 2, position=0, char="x")

    a2, b2 = transform(a, b)

    assert a2.position == 2
    assert b2.position == 0


def test_deletes_at_same_position_cancel_the_later_one():
    a = _op("delete", 10, position=3)
    b = _op("delete", 12, position=3)

    a2, b2 = transform(a, b)

    assert a2.operation == Operation.DELETE
    assert b2.operation == Operation.NOOP
    assert replay("abcdef", [a2, b2]) == "abcef"


def test_deletes_at_different_positions_shift_the_later_left():
    a = _op("backspace", 1, position=1)
    b = _op("delete", 2, position=4)

    a2, b2 = transform(a, b)

    assert a2.position == 1
    assert b2.position == 3


def test_other_pairs_pass_through():
    a = _op("noop", 1, position=1)
    b = _op("insert", 2, position=0, char="x")

    a2, b2 = transform(a, b)

    assert (a2.position, b2.position) == (1, 0)


def test_transform_does_not_mutate_inputs():
    a = _op("insert", 3, position=2, char="X")
    b = _op("insert", 4, position=2, char="Y")

    transform(a, b)

    assert b.position == 2


def test_missing_position_defaults_to_end_of_content():
    a = _op("insert", 1, char="x")
    b = _op("insert", 2, position=1, char="y")

    a2, b2 = transform(a, b, content_length=4)

    assert a2.position == 5
    assert b2.position == 1


def test_missing_delete_position_defaults_to_last_character():
    a = _op("delete", 1)
    b = _op("delete", 2, position=3)

    a2, b2 = transform(a, b, content_length=4)

    assert a2.position == 3
    assert b2.operation == Operation.NOOP


def test_missing_position_never_raises_without_content_length():
    a2, b2 = transform(_op("insert", 1, char="x"), _op("insert", 2, char="y"))
    assert a2.position == 0
    assert b2.position == 1


def test_merge_streams_orders_by_sequence_number():
    ops_a = [_op("insert", 1, 0, "a"), _op("insert", 4, 1, "b")]
    ops_b = [_op("insert", 2, 0, "c"), _op("insert", 3, 1, "d"), _op("insert", 9, 2, "e")]

    merged = merge_streams(ops_a, ops_b)

    assert [op.sequence_number for op in merged] == [1, 2, 3, 4, 9]


def test_merge_streams_empty():
    assert merge_streams([], []) == []


def test_merge_streams_single_pair():
    ops_a = [_op("insert", 3, position=2, char="X", device_id="a")]
    ops_b = [_op("insert", 4, position=2, char="Y", device_id="b")]

    merged = merge_streams(ops_a, ops_b)

    assert [op.position for op in merged] == [2, 3]
    assert replay("ab", merged) == "abXY"


def test_merge_streams_only_shifts_by_earlier_ops():
    # laptop types X then Y at the start; phone puts Z between "a" and "b"
    laptop = [_op("insert", 3, 0, "X"), _op("insert", 5, 1, "Y")]
    phone = [_op("insert", 4, 1, "Z")]

    merged = merge_streams(laptop, phone)

    assert [op.char for op in merged] == ["X", "Z", "Y"]
    assert [op.position for op in merged] == [0, 2, 1]
    assert replay("ab", merged) == "XYaZb"


def test_merge_streams_backspace_run_against_insert():
    # laptop backspaces "c" then "b"; phone inserts Z after "a"
    laptop = [_op("backspace", 3, 2), _op("backspace", 5, 1)]
    phone = [_op("insert", 4, 1, "Z")]

    merged = merge_streams(laptop, phone)

    assert replay("abc", merged) == "aZ"


def test_merge_streams_same_character_deleted_once():
    # both remove "b"; phone goes on to remove "c" as well
    laptop = [_op("delete", 3, 1)]
    phone = [_op("delete", 4, 1), _op("delete", 5, 1)]

    merged = merge_streams(laptop, phone)

    assert [op.operation for op in merged] == [Operation.DELETE, Operation.NOOP, Operation.DELETE]
    assert replay("abcd", merged) == "ad"


def test_merge_streams_leaves_inputs_alone():
    laptop = [_op("insert", 3, 0, "X")]
    phone = [_op("insert", 4, 0, "Y")]

    merge_streams(laptop, phone)

    assert phone[0].position == 0


def test_resolve_positions_follows_each_stream():
    ops = [_op("insert", 1, char="x"), _op("insert", 2, char="y"), _op("delete", 3)]

    resolved = resolve_positions("ab", ops)

    assert [op.position for op in resolved] == [2, 3, 3]
    assert replay("ab", resolved) == "abx"
    assert ops[0].position is None
