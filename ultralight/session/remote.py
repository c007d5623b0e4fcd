"""
Remote Session - One remote control bound to one media server.

The session is the composition root: it builds the reducers with effect
factories bound to the transport, registers their action kinds, and runs
them in an EffectRuntime. User intents (select, move, delete, drop,
player commands) are exposed as methods.

LIFECYCLE:
1. Create inside a running event loop (effects are asyncio tasks)
2. start() loads the configured player, or the first connected one
3. Status polling keeps itself alive through GOT_PLAYER effects
4. close() cancels pending timers
"""

from __future__ import annotations
from typing import Any, Callable, Iterable
import asyncio
import logging

from ..client.models import PlayerInfoModel
from ..client.transport import CommandTransport, TransportError
from ..config import Settings
from ..engine_core.action import Action, ActionRegistry
from ..engine_core.effects import combine, effect
from ..engine_core.reducer import (
    NoticeEffects,
    NoticeReducer,
    PlayerEffects,
    PlayerReducer,
    PlaylistEffects,
    PlaylistReducer,
    RootReducer,
)
from ..engine_core.runtime import EffectRuntime
from ..engine_core.state import AppState, PlayerState, PlaylistState
from . import operations
from .operations import MediaItem, PlayerTimers

logger = logging.getLogger(__name__)


class NoPlayerError(RuntimeError):
    """An operation needs a player but none is selected."""


class RemoteSession:
    """
    Remote control session.

    Usage:
        async with LMSClient(url) as lms:
            session = RemoteSession(lms, Settings(player_id="00:04:20:aa:bb:cc"))
            await session.start()
            session.select([2, 3])
            await session.move_selection(0)
    """

    def __init__(
        self,
        transport: CommandTransport,
        settings: Settings | None = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.transport = transport
        self.settings = settings or Settings()
        self.timers = PlayerTimers(
            transport,
            status_interval=self.settings.status_interval,
            window_size=self.settings.window_size,
            sleep=sleep,
        )
        self.reducer = RootReducer(
            player=PlayerReducer(
                PlayerEffects(
                    advance_to_next_track_after=self.timers.advance_to_next_track_after,
                    load_player_after=self.timers.load_player_after,
                    seek=self._seek,
                ),
                status_interval=self.settings.status_interval,
            ),
            playlist=PlaylistReducer(PlaylistEffects(load_player=self.load_player)),
            notices=NoticeReducer(
                NoticeEffects(dismiss_notice_after=self.timers.dismiss_notice_after),
                default_show_for=self.settings.notice_seconds,
            ),
        )
        self.registry = self.reducer.register(ActionRegistry())
        known_actions = self.registry.finalize()

        initial_effects = []
        if self.settings.player_id:
            initial_effects.append(effect(self.load_player, self.settings.player_id, True))
        self.runtime = EffectRuntime(
            self.reducer,
            combine(AppState(), initial_effects),
            known_actions=known_actions,
            loop=loop,
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> AppState:
        return self.runtime.get_state()

    @property
    def playlist(self) -> PlaylistState:
        return self.state.playlist

    @property
    def player(self) -> PlayerState:
        return self.state.player

    @property
    def player_id(self) -> str | None:
        return self.playlist.player_id or self.player.player_id or self.settings.player_id

    def require_player(self) -> str:
        player_id = self.player_id
        if not player_id:
            raise NoPlayerError("No player selected")
        return player_id

    def dispatch(self, action: Action) -> Action:
        return self.runtime.dispatch(action)

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.runtime.subscribe(listener)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> str | None:
        """
        Load the configured player; without one, pick the first connected.

        Returns the player id, or None when the server reports no players.
        """
        if self.settings.player_id:
            return self.settings.player_id
        players = await self.get_players()
        connected = [p for p in players if p.connected] or players
        if not connected:
            logger.warning("No players found on %s", self.settings.lms_url)
            return None
        await self.switch_player(connected[0].player_id)
        return connected[0].player_id

    async def close(self) -> None:
        self.timers.clear()
        await self.runtime.shutdown()

    async def get_players(self) -> list[PlayerInfoModel]:
        return await self.transport.get_players()

    # =========================================================================
    # Effect factories
    # =========================================================================

    async def load_player(self, player_id: str, fetch_playlist: bool = False) -> Action:
        return await operations.load_player(
            self.transport, player_id, fetch_playlist, self.settings.window_size
        )

    async def _seek(self, player_id: str, value: float) -> Action:
        return await operations.seek(self.transport, player_id, value)

    async def reload(self, fetch_playlist: bool = False) -> None:
        """Fetch status now and reconcile it."""
        player_id = self.require_player()
        self.dispatch(await self.load_player(player_id, fetch_playlist))

    # =========================================================================
    # Player
    # =========================================================================

    async def switch_player(self, player_id: str) -> None:
        self.dispatch(await self.load_player(player_id, True))

    async def command(self, *command: Any) -> bool:
        """Run a player command, then reload status. Returns success."""
        player_id = self.require_player()
        try:
            await self.transport.execute(player_id, *command)
        except TransportError as e:
            self.dispatch(Action.operation_error("Command error", e))
            return False
        await self.reload()
        return True

    async def play_pause(self) -> bool:
        return await self.command("pause" if self.player.is_playing else "play")

    async def next_track(self) -> bool:
        return await self.command("playlist", "index", "+1")

    async def previous_track(self) -> bool:
        return await self.command("playlist", "index", "-1")

    async def set_volume(self, level: int) -> bool:
        return await self.command("mixer", "volume", max(0, min(int(level), 100)))

    async def set_power(self, on: bool) -> bool:
        return await self.command("power", 1 if on else 0)

    async def play_track(self, index: int) -> bool:
        self.clear_selection()
        return await self.command("playlist", "index", index)

    def seek(self, value: float) -> Action:
        return self.dispatch(Action.seek(self.require_player(), value))

    async def load_track_info(self, track_id: int | str) -> None:
        self.dispatch(await operations.load_track_info(self.transport, track_id))

    # =========================================================================
    # Playlist
    # =========================================================================

    def select(self, indices: Iterable[int]) -> Action:
        return self.dispatch(Action.selection_changed(indices))

    def clear_selection(self) -> None:
        if self.playlist.selection:
            self.dispatch(Action.clear_selection())

    async def move_selection(self, to_index: int, indices: Iterable[int] | None = None) -> bool:
        """
        Move the selection (or the given indices) before to_index.

        Returns False when no move was needed.
        """
        player_id = self.require_player()
        selection = self.playlist.selection if indices is None else frozenset(indices)
        moved = await operations.move_items(
            self.transport, player_id, selection, to_index, self.dispatch
        )
        if moved:
            await self.reload()
        return moved

    async def move_item(self, from_index: int, to_index: int) -> bool:
        return await self.move_selection(to_index, [from_index])

    async def delete_selection(self, indices: Iterable[int] | None = None) -> int:
        """Delete the selection (or the given indices); clear the playlist if none."""
        player_id = self.require_player()
        selection = self.playlist.selection if indices is None else frozenset(indices)
        if not selection:
            await self.command("playlist", "clear")
            return 0
        deleted = await operations.delete_selection(
            self.transport, player_id, selection, self.dispatch
        )
        await self.reload()
        return deleted

    async def drop_items(self, items: Iterable[MediaItem], index: int | None = None) -> int:
        """Insert library items before index (append when None)."""
        player_id = self.require_player()
        num_tracks = self.playlist.num_tracks
        index = num_tracks if index is None else max(0, min(index, num_tracks))
        return await operations.insert_items(
            self.transport,
            player_id,
            items,
            index,
            num_tracks,
            self.dispatch,
            self.settings.window_size,
        )
