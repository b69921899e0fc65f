"""
Longest-match-first literal substitution over a single line.

At every cursor position the longest source in the table that matches there
is replaced by its target, and the cursor moves past the matched text.
Otherwise one character is copied through and the cursor advances by one.
"""

from typing import List, NamedTuple

from .errors import AllocationError
from .pairs import PatternTable


class LineResult(NamedTuple):
    """Replaced line and whether any pair matched."""
    text: str
    changed: bool


def apply(line: str, table: PatternTable) -> LineResult:
    """
    Replace every pattern occurrence in ``line``.

    Args:
        line: Text without its line terminator
        table: Pattern table to match against

    Returns:
        LineResult with the new text and a changed flag

    Raises:
        AllocationError: If the result buffer cannot grow
    """
    try:
        return _scan(line, table)
    except MemoryError as e:
        raise AllocationError("Memory allocation failed during replacement.") from e


def _scan(line: str, table: PatternTable) -> LineResult:
    out: List[str] = []
    changed = False
    cursor = 0
    length = len(line)
    # Start of the run of characters copied through unchanged
    pending = 0

    while cursor < length:
        match = None
        for pair in table.candidates(line[cursor]):
            # Index already omits empty sources; a zero-width match would never advance
            if pair.source and line.startswith(pair.source, cursor):
                match = pair
                break

        if match is None:
            cursor += 1
            continue

        if pending < cursor:
            out.append(line[pending:cursor])
        out.append(match.target)
        cursor += len(match.source)
        pending = cursor
        changed = True

    if not changed:
        return LineResult(line, False)

    if pending < length:
        out.append(line[pending:])
    return LineResult("".join(out), True)
