"""
Playlist operations - Pure functions over tuples of PlaylistItem.

All functions take and return immutable tuples sorted by server index.
Indices are server playlist positions; the local tuple may be sparse.

Move semantics: move(from_index, to_index) removes the item at
from_index and reinserts it before the item that was at to_index,
so moving down by one is (i, i + 2) and (i, i) / (i, i + 1) are no-ops.
"""

from __future__ import annotations
from typing import Iterable

from .state import PlaylistItem


def merge_window(
    existing: tuple[PlaylistItem, ...],
    incoming: Iterable[PlaylistItem],
) -> tuple[PlaylistItem, ...]:
    """
    Merge a freshly loaded window of items into the existing items.

    Sorted union keyed by index; incoming wins on collision. Existing
    items outside the incoming index range are kept.
    """
    incoming = tuple(incoming)
    if not incoming:
        return existing
    if not existing:
        return incoming

    result: list[PlaylistItem] = []
    i = j = 0
    while i < len(existing):
        old = existing[i]
        while j < len(incoming) and incoming[j].index < old.index:
            result.append(incoming[j])
            j += 1
        if j < len(incoming) and incoming[j].index == old.index:
            result.append(incoming[j])
            j += 1
        else:
            result.append(old)
        i += 1
    result.extend(incoming[j:])
    return tuple(result)


def insertion_position(from_index: int, to_index: int) -> int:
    """Final position of the moved item after move(from_index, to_index)."""
    return to_index - 1 if to_index > from_index else to_index


def move_index(index: int, from_index: int, to_index: int) -> int:
    """Where the item at index ends up after move(from_index, to_index)."""
    if index == from_index:
        return insertion_position(from_index, to_index)
    if from_index < to_index:
        if from_index < index < to_index:
            return index - 1
    elif to_index <= index < from_index:
        return index + 1
    return index


def move_item(
    items: tuple[PlaylistItem, ...],
    from_index: int,
    to_index: int,
) -> tuple[PlaylistItem, ...]:
    """Apply a single-item move and re-index the affected items."""
    moved = [item.with_index(move_index(item.index, from_index, to_index)) for item in items]
    moved.sort(key=lambda item: item.index)
    return tuple(moved)


def delete_item(items: tuple[PlaylistItem, ...], index: int) -> tuple[PlaylistItem, ...]:
    """
    Delete the item at index and shift later items down by one.

    Returns the same tuple when no item has that index.
    """
    if not any(item.index == index for item in items):
        return items
    return tuple(
        item.with_index(item.index - 1) if item.index > index else item
        for item in items
        if item.index != index
    )


def insert_items(
    items: tuple[PlaylistItem, ...],
    new_items: Iterable[PlaylistItem],
    at_index: int,
) -> tuple[PlaylistItem, ...]:
    """Splice new_items in at at_index, shifting later items up."""
    new_items = tuple(new_items)
    count = len(new_items)
    if not count:
        return items
    before = [item for item in items if item.index < at_index]
    after = [item.with_index(item.index + count) for item in items if item.index >= at_index]
    inserted = [item.with_index(at_index + k) for k, item in enumerate(new_items)]
    return tuple(before + inserted + after)


def prune_selection(selection: frozenset[int], items: tuple[PlaylistItem, ...]) -> frozenset[int]:
    """Drop selected indices that no longer refer to a known item."""
    if not selection:
        return selection
    present = {item.index for item in items}
    pruned = frozenset(i for i in selection if i in present)
    return selection if pruned == selection else pruned
