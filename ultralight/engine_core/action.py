"""
Action System - Actions, payloads, and the action registry.

Actions represent:
1. Server updates (player status snapshots)
2. Local playlist mutations (move, delete, insert)
3. Selection changes coming from the gesture layer
4. Timed events (advance to next track, dismiss notice)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable
import itertools
import time

from .effects import EffectValidationError


class ConfigurationError(RuntimeError):
    """Raised when the action registry is misused."""


class ActionType(Enum):
    """Closed set of action kinds."""
    # Server updates
    GOT_PLAYER = "gotPlayer"
    ADVANCE_TO_NEXT_TRACK = "advanceToNextTrack"
    SEEK = "seek"

    # Playlist mutations
    PLAYLIST_ITEM_MOVED = "playlistItemMoved"
    PLAYLIST_ITEM_DELETED = "playlistItemDeleted"
    PLAYLIST_ITEMS_INSERTED = "playlistItemsInserted"
    SELECTION_CHANGED = "selectionChanged"
    CLEAR_SELECTION = "clearSelection"
    LOADED_TRACK_INFO = "loadedTrackInfo"

    # Notices
    OPERATION_ERROR = "operationError"
    DISMISS_NOTICE = "dismissNotice"

    # Returned by an effect to skip dispatch
    IGNORE = "IGNORE_ACTION"


@dataclass(frozen=True)
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; the factories on
    Action fill in the ones each kind needs.
    """
    # Server updates
    snapshot: Any | None = None  # PlaylistSnapshot
    ignore_change: bool = False
    player_id: str | None = None
    now: float | None = None
    value: float | None = None

    # Playlist mutations
    from_index: int | None = None
    to_index: int | None = None
    index: int | None = None
    items: tuple[Any, ...] = ()
    selection: frozenset[int] = frozenset()
    info: Any | None = None

    # Notices
    message: str | None = None
    context: Any | None = None
    show_for: float | None = None
    notice_id: int | None = None


# Payload fields each kind cannot do without
REQUIRED_FIELDS: dict[ActionType, tuple[str, ...]] = {
    ActionType.GOT_PLAYER: ("snapshot",),
    ActionType.ADVANCE_TO_NEXT_TRACK: ("player_id",),
    ActionType.SEEK: ("player_id", "value"),
    ActionType.PLAYLIST_ITEM_MOVED: ("from_index", "to_index"),
    ActionType.PLAYLIST_ITEM_DELETED: ("index",),
    ActionType.PLAYLIST_ITEMS_INSERTED: ("index",),
    ActionType.LOADED_TRACK_INFO: ("info",),
    ActionType.OPERATION_ERROR: ("message",),
    ActionType.DISMISS_NOTICE: ("notice_id",),
}

INDEX_FIELDS = ("from_index", "to_index", "index")

_action_ids = itertools.count(1)


@dataclass(frozen=True)
class Action:
    """
    A complete action to be dispatched to the store.

    action_id is informational (logging) and excluded from equality so
    tests can compare actions by content.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    action_id: int = field(default_factory=lambda: next(_action_ids), compare=False)

    def __post_init__(self):
        for name in REQUIRED_FIELDS.get(self.action_type, ()):
            if getattr(self.payload, name) is None:
                raise EffectValidationError(f"{self.action_type.value} requires {name}")
        for name in INDEX_FIELDS:
            value = getattr(self.payload, name)
            if value is not None and value < 0:
                raise EffectValidationError(f"{self.action_type.value}: negative {name} {value}")

    def __str__(self) -> str:
        return f"{self.action_type.value}#{self.action_id}"

    @classmethod
    def got_player(cls, snapshot: Any, ignore_change: bool = False) -> Action:
        """Factory for a server status snapshot."""
        return cls(
            action_type=ActionType.GOT_PLAYER,
            payload=ActionPayload(snapshot=snapshot, ignore_change=ignore_change),
        )

    @classmethod
    def advance_to_next_track(cls, player_id: str, now: float | None = None) -> Action:
        return cls(
            action_type=ActionType.ADVANCE_TO_NEXT_TRACK,
            payload=ActionPayload(player_id=player_id, now=_now(now)),
        )

    @classmethod
    def seek(cls, player_id: str, value: float, now: float | None = None) -> Action:
        return cls(
            action_type=ActionType.SEEK,
            payload=ActionPayload(player_id=player_id, value=value, now=_now(now)),
        )

    @classmethod
    def playlist_item_moved(cls, from_index: int, to_index: int) -> Action:
        """Factory for a single-item move (to_index is an insertion point)."""
        return cls(
            action_type=ActionType.PLAYLIST_ITEM_MOVED,
            payload=ActionPayload(from_index=from_index, to_index=to_index),
        )

    @classmethod
    def playlist_item_deleted(cls, index: int) -> Action:
        return cls(
            action_type=ActionType.PLAYLIST_ITEM_DELETED,
            payload=ActionPayload(index=index),
        )

    @classmethod
    def playlist_items_inserted(cls, items: Iterable[Any], index: int) -> Action:
        return cls(
            action_type=ActionType.PLAYLIST_ITEMS_INSERTED,
            payload=ActionPayload(items=tuple(items), index=index),
        )

    @classmethod
    def selection_changed(cls, selection: Iterable[int]) -> Action:
        return cls(
            action_type=ActionType.SELECTION_CHANGED,
            payload=ActionPayload(selection=frozenset(selection)),
        )

    @classmethod
    def clear_selection(cls) -> Action:
        return cls(action_type=ActionType.CLEAR_SELECTION)

    @classmethod
    def loaded_track_info(cls, info: Any, now: float | None = None) -> Action:
        return cls(
            action_type=ActionType.LOADED_TRACK_INFO,
            payload=ActionPayload(info=info, now=_now(now)),
        )

    @classmethod
    def operation_error(
        cls,
        message: str,
        context: Any = None,
        show_for: float | None = None,
    ) -> Action:
        """Factory for a transient, user-visible error."""
        return cls(
            action_type=ActionType.OPERATION_ERROR,
            payload=ActionPayload(message=message, context=context, show_for=show_for),
        )

    @classmethod
    def dismiss_notice(cls, notice_id: int) -> Action:
        return cls(
            action_type=ActionType.DISMISS_NOTICE,
            payload=ActionPayload(notice_id=notice_id),
        )


# Return IGNORE_ACTION from an effect factory to skip dispatch
IGNORE_ACTION = Action(action_type=ActionType.IGNORE, action_id=0)


def _now(now: float | None) -> float:
    return time.time() if now is None else now


class ActionRegistry:
    """
    Builder-phase registry of the action kinds each component handles.

    Components register while the application is being composed;
    finalize() closes the registry and returns the immutable set of
    kind names the store will accept.
    """

    def __init__(self):
        self._components: dict[str, frozenset[ActionType]] = {}
        self._finalized: frozenset[str] | None = None

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None

    def register(self, component: str, kinds: Iterable[ActionType]) -> None:
        if self._finalized is not None:
            raise ConfigurationError(
                f"cannot register '{component}' after the registry was finalized"
            )
        if component in self._components:
            raise ConfigurationError(f"component already registered: {component}")
        kinds = frozenset(kinds)
        if ActionType.IGNORE in kinds:
            raise ConfigurationError("IGNORE is not a dispatchable action kind")
        self._components[component] = kinds

    def components(self) -> dict[str, frozenset[ActionType]]:
        return dict(self._components)

    def finalize(self) -> frozenset[str]:
        if self._finalized is None:
            names = set()
            for kinds in self._components.values():
                names.update(kind.value for kind in kinds)
            self._finalized = frozenset(names)
        return self._finalized
