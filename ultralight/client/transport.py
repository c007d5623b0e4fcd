"""
Command transport - The engine's view of the media server.

The engine only needs three things from the server: run a command, fetch
a (windowed) player status, and list players. Anything implementing this
protocol can drive a RemoteSession; LMSClient talks to a real server and
the tests use an in-memory fake.
"""

from __future__ import annotations
from typing import Any, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import PlaylistSnapshot, TrackInfo
    from .models import PlayerInfoModel


class TransportError(Exception):
    """A command or status request failed (network, HTTP or server error)."""

    def __init__(self, message: str, command: tuple[Any, ...] | None = None):
        super().__init__(message)
        self.command = command


class CommandTransport(Protocol):
    """Asynchronous access to the media server."""

    async def execute(self, player_id: str, *command: Any) -> dict[str, Any]:
        """Run a command for a player ("" for server commands); return its result."""
        ...

    async def fetch_status(
        self,
        player_id: str,
        start: int | str,
        size: int,
        is_playlist_update: bool = False,
    ) -> PlaylistSnapshot:
        """Fetch player status with the playlist window [start, start + size)."""
        ...

    async def get_players(self) -> list[PlayerInfoModel]:
        ...

    async def song_info(self, track_id: int | str) -> TrackInfo:
        ...
