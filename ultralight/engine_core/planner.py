"""
Reorder Planner - Multi-item drag and drop as single-item moves.

The server can only move one item at a time. A drag gesture moves a set
of selected items to an insertion point. plan_moves() computes an ordered
list of (from_index, to_index) moves that, replayed one after another
against the live list, leaves the selected items contiguous, in their
original relative order, just before the insertion point.

Each half of the selection (items below the target travel up, items above
it travel down) is handled on its own, choosing the cheaper of:

- moving each selected item to the target, or
- moving the unselected items that sit between the selection and the
  target out of the way, to the other side of the selection.

Ties move the selected items. Every emitted pair is already expressed in
the index space produced by the moves before it.
"""

from __future__ import annotations
from typing import Iterable, Sequence, TypeVar

from .playlist import insertion_position

T = TypeVar("T")

Move = tuple[int, int]


def is_noop_move(from_index: int, to_index: int) -> bool:
    """True when move(from_index, to_index) leaves the list unchanged."""
    return to_index == from_index or to_index == from_index + 1


def plan_moves(selection: Iterable[int], to_index: int) -> list[Move]:
    """
    Plan the moves that place the selected items before to_index.

    selection and to_index are positions in the list before any move.
    Returns an empty list when the arrangement would not change. Raises
    ValueError for negative positions.
    """
    selection = frozenset(selection)
    if to_index < 0:
        raise ValueError(f"target index must not be negative: {to_index}")
    if any(i < 0 for i in selection):
        raise ValueError(f"selected indices must not be negative: {sorted(selection)}")
    if not selection:
        return []
    selected = sorted(selection)

    below = [i for i in selected if i < to_index]
    above = [i for i in selected if i >= to_index]

    moves = _moves_up(below, selection, to_index) + _moves_down(above, selection, to_index)
    return [(f, t) for f, t in moves if not is_noop_move(f, t)]


def _moves_up(selected: list[int], selection: frozenset[int], to_index: int) -> list[Move]:
    """Selected items below the target travel up to it."""
    if not selected:
        return []
    low = selected[0]
    gaps = [i for i in range(low, to_index) if i not in selection]
    if len(gaps) < len(selected):
        # Each gap item moves down to the front of the span. Items after it
        # keep their positions, so original indices stay valid.
        return [(i, low + k) for k, i in enumerate(gaps)]
    # Highest selected item first; lower items keep their positions.
    return [(i, to_index - k) for k, i in enumerate(reversed(selected))]


def _moves_down(selected: list[int], selection: frozenset[int], to_index: int) -> list[Move]:
    """Selected items at or above the target travel down to it."""
    if not selected:
        return []
    high = selected[-1] + 1
    gaps = [i for i in range(to_index, high) if i not in selection]
    if len(gaps) < len(selected):
        # Each gap item moves past the end of the span, shifting the
        # remaining gap items down by one.
        return [(i - k, high) for k, i in enumerate(gaps)]
    # Lowest selected item first; higher items keep their positions.
    return [(i, to_index + k) for k, i in enumerate(selected)]


def apply_move(values: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """The server's single-item move primitive, on a plain list."""
    result = list(values)
    value = result.pop(from_index)
    result.insert(insertion_position(from_index, to_index), value)
    return result


def replay_moves(values: Sequence[T], moves: Iterable[Move]) -> list[T]:
    """Apply moves in order, each against the result of the previous one."""
    result = list(values)
    for from_index, to_index in moves:
        result = apply_move(result, from_index, to_index)
    return result


def expected_arrangement(values: Sequence[T], selection: Iterable[int], to_index: int) -> list[T]:
    """Extract the selected items and reinsert them as a block before to_index."""
    selection = frozenset(selection)
    block = [v for i, v in enumerate(values) if i in selection]
    rest = [v for i, v in enumerate(values) if i not in selection]
    insert_at = sum(1 for i in range(min(to_index, len(values))) if i not in selection)
    return rest[:insert_at] + block + rest[insert_at:]
