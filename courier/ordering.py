"""Priority ordering shared by every registry."""

from typing import Iterable

from courier import listeners


def sort_by_priority(
    entries: Iterable[listeners.PriorityEntry],
) -> list[listeners.PriorityEntry]:
    """
    Sort entries so higher priorities are ran before lower priorities.

    Entries sharing a priority keep their registration order, the sort is
    stable under reverse=True.
    """
    return sorted(entries, key=lambda e: e.priority, reverse=True)
