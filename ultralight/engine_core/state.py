"""
Remote State - Immutable value types for the player and its playlist.

Design principles:
- Immutable: every transition returns new values (tuples, frozensets)
- Keyed by server index: the "playlist index" the server assigns is the
  only identity that survives between snapshots
- Partial: the local playlist may hold only a window of the server's list
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any


REPEAT_OFF = 0
REPEAT_ONE = 1
REPEAT_ALL = 2


@dataclass(frozen=True)
class PlaylistItem:
    """
    A playlist entry.

    index is the server-assigned playlist position. Everything else is
    descriptive metadata.
    """
    index: int
    track_id: int | str | None = None
    title: str = ""
    url: str | None = None
    duration: float | None = None
    artist: str | None = None
    album: str | None = None
    tracknum: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def with_index(self, index: int) -> PlaylistItem:
        if index == self.index:
            return self
        return replace(self, index=index)


@dataclass(frozen=True)
class PlaylistSnapshot:
    """
    A point-in-time, possibly partial, report of player status.

    window holds the playlist items the status request returned, sorted
    by index. is_playlist_update is set when the status was fetched
    because the playlist is known to have changed.
    """
    player_id: str
    timestamp: float | None = None
    num_tracks: int = 0
    window: tuple[PlaylistItem, ...] = ()
    current_index: int | None = None
    is_playlist_update: bool = False

    # Player fields
    player_name: str | None = None
    is_power_on: bool = False
    is_playing: bool = False
    volume_level: int = 0
    repeat_mode: int = REPEAT_OFF
    shuffle_mode: int = 0
    elapsed_time: float = 0.0
    total_time: float | None = None
    local_time: float | None = None

    def find(self, index: int | None) -> PlaylistItem | None:
        return find_item(self.window, index)


@dataclass(frozen=True)
class TrackInfo:
    """Full song info, cached for a limited time."""
    track_id: int | str
    fields: dict[str, Any] = field(default_factory=dict)
    expires_at: float = 0.0


@dataclass(frozen=True)
class PlaylistState:
    """
    Local view of a player's playlist.

    Invariants:
    - items sorted ascending by index, no duplicate index
    - current_track is None or current_track.index == current_index
    - selection holds server indices
    """
    player_id: str | None = None
    timestamp: float | None = None
    num_tracks: int = 0
    items: tuple[PlaylistItem, ...] = ()
    current_index: int | None = None
    current_track: PlaylistItem | None = None
    selection: frozenset[int] = frozenset()
    track_info: dict[Any, TrackInfo] = field(default_factory=dict)

    def copy_with(self, **kwargs) -> PlaylistState:
        return replace(self, **kwargs)

    def find(self, index: int | None) -> PlaylistItem | None:
        return find_item(self.items, index)


@dataclass(frozen=True)
class PlayerState:
    """Transport-level state of the selected player."""
    player_id: str | None = None
    player_name: str | None = None
    is_power_on: bool = False
    is_playing: bool = False
    volume_level: int = 0
    repeat_mode: int = REPEAT_OFF
    shuffle_mode: int = 0
    elapsed_time: float = 0.0
    total_time: float | None = None
    local_time: float | None = None

    def copy_with(self, **kwargs) -> PlayerState:
        return replace(self, **kwargs)


@dataclass(frozen=True)
class Notice:
    """A transient error message for the UI."""
    notice_id: int
    message: str
    context: Any = None
    show_for: float = 10.0


@dataclass(frozen=True)
class AppState:
    """Root state: one slice per component."""
    player: PlayerState = field(default_factory=PlayerState)
    playlist: PlaylistState = field(default_factory=PlaylistState)
    notices: tuple[Notice, ...] = ()

    def copy_with(self, **kwargs) -> AppState:
        return replace(self, **kwargs)


def find_item(items: tuple[PlaylistItem, ...], index: int | None) -> PlaylistItem | None:
    """Find an item by server index."""
    if index is None:
        return None
    for item in items:
        if item.index == index:
            return item
    return None
