"""Turn a before/after text pair into the smallest matching command."""
from typing import Callable, Optional

from textundo.commands import DeleteText, EditorCommand, InsertText, ReplaceText


def command_from_change(old: str, new: str,
                        clock: Optional[Callable[[], float]] = None
                        ) -> Optional[EditorCommand]:
    """Return InsertText, DeleteText or ReplaceText for old -> new, or None."""
    if old == new:
        return None

    prefix = 0
    limit = min(len(old), len(new))
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1

    suffix = 0
    limit -= prefix
    while suffix < limit and old[-1 - suffix] == new[-1 - suffix]:
        suffix += 1

    removed = old[prefix:len(old) - suffix]
    inserted = new[prefix:len(new) - suffix]

    if not removed:
        return InsertText(prefix, inserted, clock=clock)
    if not inserted:
        return DeleteText(prefix, len(removed), clock=clock)
    return ReplaceText(prefix, len(removed), inserted, clock=clock)
