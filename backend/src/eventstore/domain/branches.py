"""Divergence points in a note's edit history.

A branch is a run of at least ``min_deletions`` deletes followed by an insert:
the writer took something out and went a different way. Noops do not break a
run. The deleted characters are recovered by replaying the history.
"""
from collections.abc import Sequence
from itertools import islice, takewhile

from eventstore.domain.entities import Branch, Interaction
from eventstore.domain.replay import apply_event

MIN_DELETIONS = 3
LOOKAHEAD = 10


def find_branches(
    events: Sequence[Interaction],
    min_deletions: int = MIN_DELETIONS,
    lookahead: int = LOOKAHEAD,
) -> list[Branch]:
    branches: list[Branch] = []
    content = ""
    run_start: int | None = None
    run_length = 0
    deleted = ""
    last_position: int | None = None

    for index, event in enumerate(events):
        if event.operation.deletes:
            position = len(content) - 1 if event.position is None else event.position
            if 0 <= position < len(content):
                char = content[position]
                # backspacing walks left, so its characters come out in reverse
                if last_position is not None and position < last_position:
                    deleted = char + deleted
                else:
                    deleted += char
                if run_start is None:
                    run_start = event.sequence_number
                run_length += 1
                last_position = position

        elif event.operation.inserts:
            if run_length >= min_deletions:
                written = takewhile(lambda e: e.operation.inserts, events[index:])
                branches.append(
                    Branch(
                        divergence_sequence=run_start,
                        resumed_sequence=event.sequence_number,
                        deleted_text=deleted,
                        written_text="".join(e.payload for e in islice(written, lookahead)),
                    )
                )
            run_start, run_length, deleted, last_position = None, 0, "", None

        content = apply_event(content, event)

    return branches
