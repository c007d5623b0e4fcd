"""
Server workflows - Effect factories and multi-step playlist operations.

Every function here talks to the media server through a CommandTransport
and reports its outcome as an Action. Transport failures never escape:
they become OPERATION_ERROR actions shown to the user as notices.

Multi-step workflows (move, delete, insert) dispatch one action per
completed server command, so the local playlist follows the server step
by step and stays consistent when a step fails half way.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterable
import asyncio
import logging

from ..client.transport import CommandTransport, TransportError
from ..engine_core.action import Action, IGNORE_ACTION
from ..engine_core.planner import Move, plan_moves
from ..engine_core.playlist import insertion_position
from ..engine_core.runtime import Timer
from ..engine_core.state import PlaylistItem, PlaylistSnapshot

logger = logging.getLogger(__name__)

Dispatch = Callable[[Action], Any]

WINDOW_SIZE = 100
RECENTER_OFFSET = 15  # items shown before the current track
MAX_POLL_BACKOFF = 30.0

# Media item kinds a drop can carry, and the playlistcontrol parameter for each
CONTROL_PARAMS = {
    "track": "track_id",
    "album": "album_id",
    "artist": "artist_id",
    "genre": "genre_id",
    "playlist": "playlist_id",
    "folder": "folder_id",
}


@dataclass(frozen=True)
class MediaItem:
    """A library item dropped onto the playlist."""
    kind: str
    item_id: int | str
    title: str = ""
    artist: str | None = None
    album: str | None = None
    duration: float | None = None

    @property
    def is_track(self) -> bool:
        return self.kind == "track"

    def control_param(self) -> str | None:
        key = CONTROL_PARAMS.get(self.kind)
        if key is None:
            return None
        return f"{key}:{self.item_id}"

    def to_playlist_item(self, index: int) -> PlaylistItem:
        return PlaylistItem(
            index=index,
            track_id=self.item_id,
            title=self.title,
            artist=self.artist,
            album=self.album,
            duration=self.duration,
        )


# =============================================================================
# Status
# =============================================================================

async def fetch_window(
    transport: CommandTransport,
    player_id: str,
    fetch_playlist: bool = False,
    window_size: int = WINDOW_SIZE,
) -> PlaylistSnapshot:
    """
    Fetch status with a playlist window that contains the current track.

    The first request covers [0, window_size). If the current track is
    outside, the window is requested again starting a few items before it.
    """
    snapshot = await transport.fetch_status(player_id, 0, window_size, fetch_playlist)
    current = snapshot.current_index
    if current is not None and snapshot.window and snapshot.find(current) is None:
        start = max(current - RECENTER_OFFSET, 0)
        snapshot = await transport.fetch_status(player_id, start, window_size, fetch_playlist)
    return snapshot


async def load_player(
    transport: CommandTransport,
    player_id: str,
    fetch_playlist: bool = False,
    window_size: int = WINDOW_SIZE,
) -> Action:
    try:
        snapshot = await fetch_window(transport, player_id, fetch_playlist, window_size)
    except TransportError as e:
        return Action.operation_error("Cannot load player", e)
    return Action.got_player(snapshot)


async def load_track_info(transport: CommandTransport, track_id: int | str) -> Action:
    try:
        info = await transport.song_info(track_id)
    except TransportError as e:
        return Action.operation_error("Error loading track info", e)
    return Action.loaded_track_info(info)


async def seek(transport: CommandTransport, player_id: str, value: float) -> Action:
    try:
        await transport.execute(player_id, "time", value)
    except TransportError as e:
        return Action.operation_error("Seek error", e)
    return IGNORE_ACTION


# =============================================================================
# Playlist workflows
# =============================================================================

async def run_moves(
    transport: CommandTransport,
    player_id: str,
    moves: Iterable[Move],
    on_moved: Callable[[int, int], Any] | None = None,
) -> None:
    """
    Send single-item moves to the server in order.

    The server's "playlist move" puts the item at its final position, so
    the insert-before index is translated. Raises TransportError on the
    first failure; later moves are not sent.
    """
    for from_index, to_index in moves:
        position = insertion_position(from_index, to_index)
        await transport.execute(player_id, "playlist", "move", from_index, position)
        if on_moved is not None:
            on_moved(from_index, to_index)


async def move_items(
    transport: CommandTransport,
    player_id: str,
    selection: Iterable[int],
    to_index: int,
    dispatch: Dispatch,
) -> bool:
    """
    Move the selected items so they sit together before to_index.

    Returns False when nothing needs to move.
    """
    moves = plan_moves(selection, to_index)
    if not moves:
        return False
    logger.debug("moving %s to %s: %s", sorted(selection), to_index, moves)
    try:
        await run_moves(
            transport,
            player_id,
            moves,
            lambda f, t: dispatch(Action.playlist_item_moved(f, t)),
        )
    except TransportError as e:
        dispatch(Action.operation_error("Move error", e))
    return True


async def delete_selection(
    transport: CommandTransport,
    player_id: str,
    selection: Iterable[int],
    dispatch: Dispatch,
) -> int:
    """Delete items highest index first; return how many were deleted."""
    deleted = 0
    for index in sorted(set(selection), reverse=True):
        try:
            await transport.execute(player_id, "playlist", "delete", index)
        except TransportError as e:
            dispatch(Action.operation_error("Delete error", e))
            break
        dispatch(Action.playlist_item_deleted(index))
        deleted += 1
    return deleted


async def insert_items(
    transport: CommandTransport,
    player_id: str,
    items: Iterable[MediaItem],
    index: int,
    num_tracks: int,
    dispatch: Dispatch,
    window_size: int = WINDOW_SIZE,
) -> int:
    """
    Add media items to the playlist before index.

    The server only appends, so each item is added to the end of the
    playlist and the appended block is then moved to its drop position.
    Single tracks are shown immediately; other items shift the known
    playlist by placeholders once the server reports how many tracks they
    added. The final status refresh replaces what it covers. Returns the
    number of tracks added.
    """
    added_total = 0
    for item in items:
        param = item.control_param()
        if param is None:
            logger.warning("Cannot insert unknown item: %r", item)
            continue
        shown = 0
        if item.is_track:
            dispatch(Action.playlist_items_inserted([item.to_playlist_item(index)], index))
            shown = 1
        try:
            await transport.execute(player_id, "playlistcontrol", "cmd:add", param)
            status = await transport.fetch_status(player_id, 0, 0)
            added = max(status.num_tracks - num_tracks, 0)
            if added and index < num_tracks:
                block = range(num_tracks, num_tracks + added)
                await run_moves(transport, player_id, plan_moves(block, index))
            start = max(index - RECENTER_OFFSET, 0)
            final = await transport.fetch_status(player_id, start, window_size, True)
        except TransportError as e:
            dispatch(Action.operation_error("Move error", e))
            break
        position = min(index, num_tracks)
        if added > shown:
            # Items past the refreshed window must still move up
            at = position + shown
            placeholders = [PlaylistItem(index=at + k) for k in range(added - shown)]
            dispatch(Action.playlist_items_inserted(placeholders, at))
        elif added < shown:
            dispatch(Action.playlist_item_deleted(index))
        dispatch(Action.got_player(final, ignore_change=True))
        index = position + added
        num_tracks = final.num_tracks
        added_total += added
    return added_total


# =============================================================================
# Timers
# =============================================================================

class PlayerTimers:
    """
    Delayed player effects: track end and status polling.

    Each kind has a single Timer, so a newer schedule supersedes the older
    one and the superseded effect resolves to IGNORE_ACTION. Zero-wait
    polls back off exponentially so a failing server is not hammered.
    """

    def __init__(
        self,
        transport: CommandTransport,
        status_interval: float = 30.0,
        window_size: int = WINDOW_SIZE,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        self.transport = transport
        self.status_interval = status_interval
        self.window_size = window_size
        self._sleep = sleep
        self.advance = Timer(sleep)
        self.poll = Timer(sleep)
        self._zero_waits = 0

    async def advance_to_next_track_after(self, seconds: float | None, player_id: str) -> Action:
        if seconds is None or seconds > self.status_interval:
            # The next status poll reschedules
            self.advance.clear()
            return IGNORE_ACTION
        return await self.advance.after(seconds, lambda: Action.advance_to_next_track(player_id))

    async def load_player_after(self, wait: float | None, player_id: str) -> Action:
        if not wait:
            wait = min(2.0 ** self._zero_waits, MAX_POLL_BACKOFF)
            self._zero_waits += 1
        else:
            self._zero_waits = 0
        return await self.poll.after(
            wait,
            lambda: load_player(self.transport, player_id, False, self.window_size),
        )

    async def dismiss_notice_after(self, seconds: float, notice_id: int) -> Action:
        await self._sleep(seconds)
        return Action.dismiss_notice(notice_id)

    def clear(self) -> None:
        self.advance.clear()
        self.poll.clear()
