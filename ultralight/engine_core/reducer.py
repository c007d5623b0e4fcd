"""
Reducers - Apply actions to the remote control state.

The reducers are the single point of state mutation. Each one is a pure
function of (state, action) that returns either the new state or the new
state combined with effects. Effects are built from function references
injected at construction time; reducers never perform I/O.

Components:
- PlaylistReducer: playlist reconciliation and local mutations
- PlayerReducer: transport state and track timing
- NoticeReducer: transient operation errors
- RootReducer: combines the three over AppState
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
import time

from .action import Action, ActionRegistry, ActionType
from .effects import Effect, combine, effect, split
from .playlist import (
    delete_item,
    insert_items,
    merge_window,
    move_index,
    move_item,
    prune_selection,
)
from .state import (
    AppState,
    Notice,
    PlayerState,
    PlaylistItem,
    PlaylistSnapshot,
    PlaylistState,
    REPEAT_ALL,
    REPEAT_ONE,
    TrackInfo,
    find_item,
)


# =============================================================================
# Playlist
# =============================================================================

@dataclass(frozen=True)
class PlaylistEffects:
    """Effect factories used by the playlist reducer."""
    load_player: Callable[..., Any]  # (player_id, fetch_playlist) -> Action


@dataclass
class PlaylistReducer:
    """
    Reconciles server snapshots into the local playlist.

    Stateless - all state is in PlaylistState.
    """
    effects: PlaylistEffects

    NAME = "playlist"
    HANDLES = frozenset({
        ActionType.GOT_PLAYER,
        ActionType.ADVANCE_TO_NEXT_TRACK,
        ActionType.PLAYLIST_ITEM_MOVED,
        ActionType.PLAYLIST_ITEM_DELETED,
        ActionType.PLAYLIST_ITEMS_INSERTED,
        ActionType.SELECTION_CHANGED,
        ActionType.CLEAR_SELECTION,
        ActionType.LOADED_TRACK_INFO,
    })

    def __call__(self, state: PlaylistState, action: Action, repeat_mode: int = 0) -> Any:
        payload = action.payload
        match action.action_type:
            case ActionType.GOT_PLAYER:
                return self.reconcile(state, payload.snapshot, payload.ignore_change)
            case ActionType.ADVANCE_TO_NEXT_TRACK:
                return self.advance_to_next_track(state, payload.player_id, repeat_mode)
            case ActionType.PLAYLIST_ITEM_MOVED:
                return self.apply_move(state, payload.from_index, payload.to_index)
            case ActionType.PLAYLIST_ITEM_DELETED:
                return self.apply_delete(state, payload.index)
            case ActionType.PLAYLIST_ITEMS_INSERTED:
                return self.apply_insert(state, payload.items, payload.index)
            case ActionType.SELECTION_CHANGED:
                return state.copy_with(selection=payload.selection)
            case ActionType.CLEAR_SELECTION:
                return state.copy_with(selection=frozenset()) if state.selection else state
            case ActionType.LOADED_TRACK_INFO:
                return self.cache_track_info(state, payload.info, payload.now)
            case _:
                return state

    def reconcile(
        self,
        state: PlaylistState,
        snapshot: PlaylistSnapshot,
        ignore_change: bool = False,
    ) -> Any:
        """
        Merge a status snapshot into the playlist.

        A snapshot from another player resets items and selection. If the
        playlist changed (timestamp or track count) the window is merged;
        a plain status poll only refreshes the current track. A corrective
        full load is scheduled when the change cannot be trusted to be
        fully represented locally.
        """
        effects: list[Effect] = []
        changed = False
        if snapshot.player_id != state.player_id:
            state = PlaylistState(player_id=snapshot.player_id, track_info=state.track_info)
            changed = True
        elif not ignore_change:
            changed = (state.timestamp, state.num_tracks) != (snapshot.timestamp, snapshot.num_tracks)

        meta = {"timestamp": snapshot.timestamp, "num_tracks": snapshot.num_tracks}
        window = snapshot.window
        if not window:
            # Empty playlist
            return state.copy_with(
                items=(),
                current_index=None,
                current_track=None,
                selection=frozenset(),
                **meta,
            )

        current = snapshot.current_index
        in_window = snapshot.find(current) is not None
        items = state.items
        if snapshot.is_playlist_update or changed:
            items = merge_window(state.items, window)
            if any(item.index >= snapshot.num_tracks for item in items):
                items = tuple(item for item in items if item.index < snapshot.num_tracks)

        if changed and (not snapshot.is_playlist_update or not in_window):
            effects.append(effect(self.effects.load_player, snapshot.player_id, True))

        return combine(state.copy_with(
            items=items,
            current_index=current,
            current_track=_current_track(snapshot, state, items, current),
            selection=prune_selection(state.selection, items),
            **meta,
        ), effects)

    def advance_to_next_track(self, state: PlaylistState, player_id: str | None, repeat_mode: int = 0) -> Any:
        """Make the next known track current, or load it from the server."""
        if player_id != state.player_id or state.current_index is None:
            return state
        if repeat_mode == REPEAT_ONE:
            return state
        next_index = state.current_index + 1
        if repeat_mode == REPEAT_ALL and state.num_tracks and next_index >= state.num_tracks:
            next_index = 0
        next_track = state.find(next_index)
        if next_track is None:
            return combine(state, [effect(self.effects.load_player, player_id, True)])
        return state.copy_with(current_index=next_index, current_track=next_track)

    def apply_move(self, state: PlaylistState, from_index: int, to_index: int) -> PlaylistState:
        """
        Apply a single-item move locally.

        Selection and the current track follow the items they refer to.
        """
        def reindex(i: int) -> int:
            return move_index(i, from_index, to_index)

        current_index = state.current_index
        current_track = state.current_track
        if current_index is not None:
            current_index = reindex(current_index)
            if current_track is not None:
                current_track = current_track.with_index(current_index)
        return state.copy_with(
            items=move_item(state.items, from_index, to_index),
            selection=frozenset(reindex(i) for i in state.selection),
            current_index=current_index,
            current_track=current_track,
        )

    def apply_delete(self, state: PlaylistState, index: int) -> Any:
        """
        Remove a slot; later slots, selection and current index shift down.

        When the current track is deleted and nothing known slides into its
        slot, the player is reloaded to learn what plays now.
        """
        items = delete_item(state.items, index)
        if items is state.items:
            return state

        def reindex(i: int) -> int:
            return i - 1 if i > index else i

        current_index = state.current_index
        current_track = state.current_track
        if current_index is not None:
            if current_index > index:
                current_index -= 1
                if current_track is not None:
                    current_track = current_track.with_index(current_index)
            elif current_index == index:
                # The following track slides into the deleted slot
                current_track = find_item(items, current_index)
        new_state = state.copy_with(
            items=items,
            num_tracks=max(state.num_tracks - 1, 0),
            selection=frozenset(reindex(i) for i in state.selection if i != index),
            current_index=current_index,
            current_track=current_track,
        )
        if current_index == index and current_track is None and state.player_id:
            return combine(new_state, [effect(self.effects.load_player, state.player_id, True)])
        return new_state

    def apply_insert(
        self,
        state: PlaylistState,
        new_items: tuple[PlaylistItem, ...],
        index: int,
    ) -> PlaylistState:
        """Splice in new items at index, shifting later slots up."""
        count = len(new_items)
        if not count:
            return state

        def reindex(i: int) -> int:
            return i + count if i >= index else i

        current_index = state.current_index
        current_track = state.current_track
        if current_index is not None:
            current_index = reindex(current_index)
            if current_track is not None:
                current_track = current_track.with_index(current_index)
        return state.copy_with(
            items=insert_items(state.items, new_items, index),
            num_tracks=state.num_tracks + count,
            selection=frozenset(reindex(i) for i in state.selection),
            current_index=current_index,
            current_track=current_track,
        )

    def cache_track_info(self, state: PlaylistState, info: TrackInfo, now: float | None) -> PlaylistState:
        """Store full track info, dropping expired entries."""
        now = time.time() if now is None else now
        infos = {key: value for key, value in state.track_info.items() if value.expires_at > now}
        infos[info.track_id] = info
        return state.copy_with(track_info=infos)


def _current_track(
    snapshot: PlaylistSnapshot,
    state: PlaylistState,
    items: tuple[PlaylistItem, ...],
    current: int | None,
) -> PlaylistItem | None:
    track = snapshot.find(current)
    if track is not None:
        return track
    if state.current_track is not None and state.current_track.index == current:
        return state.current_track
    return find_item(items, current)


# =============================================================================
# Player
# =============================================================================

@dataclass(frozen=True)
class PlayerEffects:
    """Effect factories used by the player reducer."""
    advance_to_next_track_after: Callable[..., Any]  # (seconds, player_id)
    load_player_after: Callable[..., Any]  # (wait, player_id)
    seek: Callable[..., Any]  # (player_id, value)


def seconds_to_end_of_track(state: PlayerState, now: float | None = None) -> float | None:
    """Seconds left in the current track, compensating for time since the status."""
    if state.total_time is None:
        return None
    elapsed = state.elapsed_time or 0.0
    if state.local_time is not None and now is not None:
        elapsed += max(now - state.local_time, 0.0)
    return round(max(state.total_time - elapsed, 0.0), 6)


@dataclass
class PlayerReducer:
    """Tracks transport state and schedules track-end and polling effects."""
    effects: PlayerEffects
    status_interval: float = 30.0

    NAME = "player"
    HANDLES = frozenset({
        ActionType.GOT_PLAYER,
        ActionType.ADVANCE_TO_NEXT_TRACK,
        ActionType.SEEK,
    })

    def __call__(self, state: PlayerState, action: Action) -> Any:
        payload = action.payload
        match action.action_type:
            case ActionType.GOT_PLAYER:
                return self.got_player(state, payload.snapshot)
            case ActionType.ADVANCE_TO_NEXT_TRACK:
                if payload.player_id != state.player_id:
                    return state
                return state.copy_with(elapsed_time=0.0, local_time=payload.now)
            case ActionType.SEEK:
                if payload.player_id != state.player_id:
                    return state
                return combine(
                    state.copy_with(elapsed_time=payload.value, local_time=payload.now),
                    [effect(self.effects.seek, payload.player_id, payload.value)],
                )
            case _:
                return state

    def got_player(self, state: PlayerState, snapshot: PlaylistSnapshot) -> Any:
        state = state.copy_with(
            player_id=snapshot.player_id,
            player_name=snapshot.player_name,
            is_power_on=snapshot.is_power_on,
            is_playing=snapshot.is_playing,
            volume_level=snapshot.volume_level,
            repeat_mode=snapshot.repeat_mode,
            shuffle_mode=snapshot.shuffle_mode,
            elapsed_time=snapshot.elapsed_time,
            total_time=snapshot.total_time,
            local_time=snapshot.local_time,
        )
        remaining = seconds_to_end_of_track(state) if state.is_playing else None
        return combine(state, [
            effect(self.effects.advance_to_next_track_after, remaining, snapshot.player_id),
            effect(self.effects.load_player_after, self.status_interval, snapshot.player_id),
        ])


# =============================================================================
# Notices
# =============================================================================

@dataclass(frozen=True)
class NoticeEffects:
    dismiss_notice_after: Callable[..., Any]  # (seconds, notice_id)


@dataclass
class NoticeReducer:
    """Keeps transient operation errors until their display time runs out."""
    effects: NoticeEffects
    default_show_for: float = 10.0

    NAME = "notices"
    HANDLES = frozenset({ActionType.OPERATION_ERROR, ActionType.DISMISS_NOTICE})

    def __call__(self, notices: tuple[Notice, ...], action: Action) -> Any:
        payload = action.payload
        match action.action_type:
            case ActionType.OPERATION_ERROR:
                notice = Notice(
                    notice_id=action.action_id,
                    message=payload.message or "Error",
                    context=payload.context,
                    show_for=payload.show_for or self.default_show_for,
                )
                return combine(
                    notices + (notice,),
                    [effect(self.effects.dismiss_notice_after, notice.show_for, notice.notice_id)],
                )
            case ActionType.DISMISS_NOTICE:
                kept = tuple(n for n in notices if n.notice_id != payload.notice_id)
                return notices if len(kept) == len(notices) else kept
            case _:
                return notices


# =============================================================================
# Root
# =============================================================================

@dataclass
class RootReducer:
    """Runs every component reducer and concatenates their effects."""
    player: PlayerReducer
    playlist: PlaylistReducer
    notices: NoticeReducer

    def register(self, registry: ActionRegistry) -> ActionRegistry:
        for component in (self.player, self.playlist, self.notices):
            registry.register(component.NAME, component.HANDLES)
        return registry

    def __call__(self, state: AppState, action: Action) -> Any:
        # The playlist reacts to the repeat mode in effect before this action
        repeat_mode = state.player.repeat_mode
        player, player_effects = split(self.player(state.player, action))
        playlist, playlist_effects = split(self.playlist(state.playlist, action, repeat_mode))
        notices, notice_effects = split(self.notices(state.notices, action))
        if player is state.player and playlist is state.playlist and notices is state.notices:
            new_state = state
        else:
            new_state = state.copy_with(player=player, playlist=playlist, notices=notices)
        return combine(new_state, player_effects + playlist_effects + notice_effects)
