from uuid import uuid4

from eventstore.domain.branches import find_branches
from eventstore.domain.entities import Interaction, Operation

NOTE_ID = uuid4()


def _op(operation, sequence_number, position=None, char=None, text=None):
    return Interaction(
        note_id=NOTE_ID,
        operation=Operation(operation),
        sequence_number=sequence_number,
        position=position,
        char=char,
        text=text,
    )


def _typed(text):
    return [_op("keystroke", i + 1, position=i, char=c) for i, c in enumerate(text)]


def test_forward_delete_run_then_rewrite():
    events = _typed("hello") + [
        _op("delete", 6, position=1),
        _op("delete", 7, position=1),
        _op("delete", 8, position=1),
        _op("keystroke", 9, position=1, char="a"),
        _op("keystroke", 10, position=2, char="y"),
    ]

    [branch] = find_branches(events)

    assert branch.divergence_sequence == 6
    assert branch.resumed_sequence == 9
    assert branch.deleted_text == "ell"
    assert branch.written_text == "ay"


def test_backspace_run_reads_left_to_right():
    events = _typed("draft") + [
        _op("backspace", 6, position=4),
        _op("backspace", 7, position=3),
        _op("backspace", 8, position=2),
        _op("paste", 9, position=2, text="ink"),
    ]

    [branch] = find_branches(events)

    assert branch.deleted_text == "aft"
    assert branch.written_text == "ink"


def test_short_delete_run_is_not_a_branch():
    events = _typed("abc") + [
        _op("backspace", 4, position=2),
        _op("backspace", 5, position=1),
        _op("keystroke", 6, position=1, char="z"),
    ]

    assert find_branches(events) == []


def test_trailing_deletes_without_new_writing():
    events = _typed("abcd") + [_op("delete", 5 + i, position=0) for i in range(4)]

    assert find_branches(events) == []


def test_noops_and_out_of_range_deletes_do_not_break_a_run():
    events = _typed("abc") + [
        _op("delete", 4, position=0),
        _op("noop", 5),
        _op("delete", 6, position=7),
        _op("delete", 7, position=0),
        _op("delete", 8, position=0),
        _op("keystroke", 9, position=0, char="x"),
    ]

    [branch] = find_branches(events)

    assert branch.divergence_sequence == 4
    assert branch.deleted_text == "abc"


def test_out_of_range_deletes_do_not_count():
    events = _typed("abc") + [
        _op("delete", 4, position=0),
        _op("delete", 5, position=7),
        _op("delete", 6, position=0),
        _op("keystroke", 7, position=0, char="x"),
    ]

    assert find_branches(events) == []


def test_written_text_stops_at_lookahead():
    events = _typed("abc") + [_op("backspace", 4 + i, position=2 - i) for i in range(3)]
    events += [_op("keystroke", 7 + i, position=i, char="w") for i in range(5)]

    [branch] = find_branches(events, lookahead=2)

    assert branch.written_text == "ww"
