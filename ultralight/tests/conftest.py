"""
Pytest fixtures for Ultralight tests.
"""

import asyncio
from typing import Any

import pytest

from ..client.models import PlayerInfoModel
from ..client.transport import TransportError
from ..config import Settings
from ..engine_core.state import PlaylistItem, PlaylistSnapshot, PlaylistState, TrackInfo


PLAYER_ID = "00:04:20:12:34:56"


def make_items(*indices: int, prefix: str = "track") -> tuple[PlaylistItem, ...]:
    """Playlist items titled after their index."""
    return tuple(
        PlaylistItem(index=i, track_id=100 + i, title=f"{prefix} {i}")
        for i in indices
    )


def make_snapshot(
    indices=range(0),
    num_tracks: int | None = None,
    timestamp: float = 1000.0,
    current_index: int | None = 0,
    is_playlist_update: bool = False,
    player_id: str = PLAYER_ID,
    prefix: str = "track",
    **kwargs: Any,
) -> PlaylistSnapshot:
    window = make_items(*indices, prefix=prefix)
    if num_tracks is None:
        num_tracks = (window[-1].index + 1) if window else 0
    return PlaylistSnapshot(
        player_id=player_id,
        timestamp=timestamp,
        num_tracks=num_tracks,
        window=window,
        current_index=current_index,
        is_playlist_update=is_playlist_update,
        **kwargs,
    )


def make_playlist(
    indices=range(5),
    num_tracks: int | None = None,
    timestamp: float = 1000.0,
    current_index: int | None = 0,
    selection=(),
) -> PlaylistState:
    items = make_items(*indices)
    if num_tracks is None:
        num_tracks = (items[-1].index + 1) if items else 0
    return PlaylistState(
        player_id=PLAYER_ID,
        timestamp=timestamp,
        num_tracks=num_tracks,
        items=items,
        current_index=current_index,
        current_track=next((item for item in items if item.index == current_index), None),
        selection=frozenset(selection),
    )


class FakeTransport:
    """
    In-memory media server.

    Keeps a list of track titles and applies the server's single-item
    playlist commands to it. Every executed command is recorded.
    fail_on maps a command name (e.g. "move") to the number of successful
    calls allowed before it raises TransportError.
    """

    def __init__(self, titles=None, current_index: int | None = 0, album_size: int = 2):
        self.titles: list[str] = list(titles if titles is not None else [f"track {i}" for i in range(5)])
        self.track_ids: list[Any] = list(range(100, 100 + len(self.titles)))
        self.current_index = current_index if self.titles else None
        self.timestamp = 1000.0
        self.album_size = album_size
        self.is_playing = False
        self.volume = 50
        self.elapsed = 0.0
        self.duration = 200.0
        self.commands: list[tuple] = []
        self.status_requests: list[tuple] = []
        self.fail_on: dict[str, int] = {}
        self.players = [
            PlayerInfoModel(player_id=PLAYER_ID, name="Kitchen", connected=1, isplaying=0),
            PlayerInfoModel(player_id="00:04:20:ff:ff:ff", name="Den", connected=0),
        ]

    def _check_failure(self, name: str, command: tuple) -> None:
        if name in self.fail_on:
            if self.fail_on[name] <= 0:
                raise TransportError(f"{name} failed", command)
            self.fail_on[name] -= 1

    def _touch(self) -> None:
        self.timestamp += 1.0

    async def execute(self, player_id: str, *command: Any) -> dict[str, Any]:
        self.commands.append(command)
        name = command[1] if command[0] in ("playlist", "mixer") and len(command) > 1 else command[0]
        self._check_failure(name, command)

        if command[:2] == ("playlist", "move"):
            from_index, position = command[2], command[3]
            title = self.titles.pop(from_index)
            track_id = self.track_ids.pop(from_index)
            self.titles.insert(position, title)
            self.track_ids.insert(position, track_id)
            self._touch()
        elif command[:2] == ("playlist", "delete"):
            index = command[2]
            del self.titles[index]
            del self.track_ids[index]
            if self.current_index is not None and self.current_index > index:
                self.current_index -= 1
            if not self.titles:
                self.current_index = None
            self._touch()
        elif command[:2] == ("playlist", "clear"):
            self.titles, self.track_ids, self.current_index = [], [], None
            self._touch()
        elif command[:2] == ("playlist", "index"):
            value = str(command[2])
            if value[0] in "+-":
                self.current_index += int(value)
            else:
                self.current_index = int(value)
        elif command[0] == "playlistcontrol":
            kind, _, item_id = command[2].partition(":")
            count = 1 if kind == "track_id" else self.album_size
            for k in range(count):
                self.titles.append(f"{kind} {item_id}" + (f" #{k}" if count > 1 else ""))
                self.track_ids.append(item_id)
            if self.current_index is None:
                self.current_index = 0
            self._touch()
        elif command[0] == "play":
            self.is_playing = True
        elif command[0] == "pause":
            self.is_playing = False
        elif command[:2] == ("mixer", "volume"):
            self.volume = int(command[2])
        elif command[0] == "time":
            self.elapsed = float(command[1])
        return {}

    async def fetch_status(self, player_id, start, size, is_playlist_update=False) -> PlaylistSnapshot:
        self.status_requests.append((player_id, start, size, is_playlist_update))
        self._check_failure("status", ("status", start, size))
        window = tuple(
            PlaylistItem(index=i, track_id=self.track_ids[i], title=self.titles[i])
            for i in range(start, min(start + size, len(self.titles)))
        )
        return PlaylistSnapshot(
            player_id=player_id,
            timestamp=self.timestamp,
            num_tracks=len(self.titles),
            window=window,
            current_index=self.current_index,
            is_playlist_update=is_playlist_update,
            player_name="Kitchen",
            is_power_on=True,
            is_playing=self.is_playing,
            volume_level=self.volume,
            elapsed_time=self.elapsed,
            total_time=self.duration,
            local_time=1000.0,
        )

    async def get_players(self) -> list[PlayerInfoModel]:
        self._check_failure("serverstatus", ("serverstatus",))
        return list(self.players)

    async def song_info(self, track_id) -> TrackInfo:
        self._check_failure("songinfo", ("songinfo", track_id))
        return TrackInfo(track_id=track_id, fields={"title": f"song {track_id}"}, expires_at=2000.0)


class BlockingSleep:
    """
    Sleep replacement that records delays and never wakes up.

    Timers built on it stay pending until cleared or cancelled, so tests
    can inspect what was scheduled without waiting.
    """

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.get_running_loop().create_future()


class InstantSleep:
    """Sleep replacement that records delays and returns immediately."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def transport() -> FakeTransport:
    """Server with five tracks, the first one current."""
    return FakeTransport()


@pytest.fixture
def settings() -> Settings:
    return Settings(player_id=PLAYER_ID, window_size=100, status_interval=30.0, notice_seconds=5.0)


@pytest.fixture
def playlist() -> PlaylistState:
    """Five known items, the first current, nothing selected."""
    return make_playlist()
