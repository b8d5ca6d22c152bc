"""
Pure rank comparison helpers.

Directions are always indexed [top, right, bottom, left]. A neighbour rank of
None means "no opposing card in that direction".
"""
from __future__ import annotations

from collections import Counter
from typing import List, Optional, Sequence, Tuple

from .errors import InvariantViolation

BOARD_SIDE = 3
BOARD_CELLS = BOARD_SIDE * BOARD_SIDE

TOP, RIGHT, BOTTOM, LEFT = range(4)

# Edge of the neighbouring card that faces each direction.
OPPOSITE: Tuple[int, int, int, int] = (BOTTOM, LEFT, TOP, RIGHT)

NeighborRanks = Sequence[Optional[int]]


def neighbors(cell: int) -> List[Optional[int]]:
    """Gets the orthogonal neighbours of a cell, None where the board ends. No wrap-around."""
    if not 0 <= cell < BOARD_CELLS:
        raise InvariantViolation(f"cell index out of range: {cell}")
    row, col = divmod(cell, BOARD_SIDE)
    return [
        cell - BOARD_SIDE if row > 0 else None,
        cell + 1 if col < BOARD_SIDE - 1 else None,
        cell + BOARD_SIDE if row < BOARD_SIDE - 1 else None,
        cell - 1 if col > 0 else None,
    ]


def compare_normal(this: Sequence[int], other: NeighborRanks) -> List[bool]:
    """Flips direction i iff a neighbour is there and this[i] is strictly greater."""
    return [o is not None and t > o for t, o in zip(this, other)]


def compare_same(this: Sequence[int], other: NeighborRanks) -> List[bool]:
    """
    Same rule: fires only when at least two directions hold equal ranks.
    With fewer than two matches nothing flips, even where a single rank is equal.
    """
    matches = [o is not None and t == o for t, o in zip(this, other)]
    if sum(matches) < 2:
        return [False] * 4
    return matches


def compare_plus(this: Sequence[int], other: NeighborRanks) -> List[bool]:
    """
    Plus rule: a direction fires when its sum this[i] + other[i] is shared
    with at least one other present direction. A zero sum never fires.
    """
    sums = [t + o if o is not None else None for t, o in zip(this, other)]
    counts = Counter(s for s in sums if s)
    return [s is not None and s > 0 and counts[s] >= 2 for s in sums]
