from collections.abc import Iterable

from eventstore.domain.entities import Interaction


def apply_event(content: str, event: Interaction) -> str:
    """Apply one event to ``content`` and return the new text.

    Never raises: positions are clamped for inserts, out-of-range deletes are
    dropped, and a missing position means end of content.
    """
    operation = event.operation

    if operation.inserts:
        position = len(content) if event.position is None else event.position
        position = min(max(position, 0), len(content))
        return content[:position] + event.payload + content[position:]

    if operation.deletes:
        position = len(content) - 1 if event.position is None else event.position
        if 0 <= position < len(content):
            return content[:position] + content[position + 1:]
        return content

    return content


def replay(content: str, events: Iterable[Interaction]) -> str:
    for event in events:
        content = apply_event(content, event)
    return content
