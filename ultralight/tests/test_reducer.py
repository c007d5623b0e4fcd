"""
Tests for the reducers (state transitions).

Tests:
- Snapshot reconciliation (poll, change, player switch, eviction)
- Local move/delete/insert mutations
- Track advance with repeat modes
- Player timing effects
- Notices
- Root composition
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.effects import effect, get_effects, get_state
from ..engine_core.reducer import (
    NoticeEffects,
    NoticeReducer,
    PlayerEffects,
    PlayerReducer,
    PlaylistEffects,
    PlaylistReducer,
    RootReducer,
    seconds_to_end_of_track,
)
from ..engine_core.state import (
    AppState,
    PlayerState,
    PlaylistItem,
    REPEAT_ALL,
    REPEAT_ONE,
    TrackInfo,
)
from .conftest import PLAYER_ID, make_items, make_playlist, make_snapshot


def load_player(player_id, fetch_playlist=False):
    pass


def advance_after(seconds, player_id):
    pass


def load_player_after(wait, player_id):
    pass


def seek(player_id, value):
    pass


def dismiss_after(seconds, notice_id):
    pass


@pytest.fixture
def reducer() -> PlaylistReducer:
    return PlaylistReducer(PlaylistEffects(load_player=load_player))


@pytest.fixture
def player_reducer() -> PlayerReducer:
    return PlayerReducer(PlayerEffects(advance_after, load_player_after, seek), status_interval=30.0)


@pytest.fixture
def notice_reducer() -> NoticeReducer:
    return NoticeReducer(NoticeEffects(dismiss_after), default_show_for=5.0)


def titles(items):
    return [item.title for item in items]


class TestReconcile:
    """Tests for merging status snapshots."""

    def test_unchanged_poll_keeps_items(self, reducer, playlist):
        """A plain poll with the same timestamp and count only moves the current track."""
        snapshot = make_snapshot([3], num_tracks=5, current_index=3, prefix="fresh")

        result = reducer(playlist, Action.got_player(snapshot))

        state = get_state(result)
        assert state.items is playlist.items
        assert state.current_index == 3
        assert state.current_track.title == "fresh 3"
        assert get_effects(result) == []

    def test_current_track_matches_index_on_poll(self, reducer, playlist):
        """The first window item is not taken blindly as the current track."""
        snapshot = make_snapshot([1, 2, 3], num_tracks=5, current_index=2)

        state = get_state(reducer(playlist, Action.got_player(snapshot)))

        assert state.current_track.index == 2

    def test_player_switch_resets(self, reducer, playlist):
        """Another player's snapshot replaces items and clears the selection."""
        playlist = playlist.copy_with(selection=frozenset({1, 2}))
        snapshot = make_snapshot([0, 1], player_id="other", prefix="other")

        result = reducer(playlist, Action.got_player(snapshot))

        state = get_state(result)
        assert state.player_id == "other"
        assert titles(state.items) == ["other 0", "other 1"]
        assert state.selection == frozenset()
        assert get_effects(result) == [effect(load_player, "other", True)]

    def test_change_on_poll_schedules_full_load(self, reducer, playlist):
        """A changed playlist seen by a plain poll is merged and reloaded."""
        snapshot = make_snapshot([0, 1, 2], num_tracks=5, timestamp=2000.0, prefix="new")

        result = reducer(playlist, Action.got_player(snapshot))

        state = get_state(result)
        assert titles(state.items) == ["new 0", "new 1", "new 2", "track 3", "track 4"]
        assert state.timestamp == 2000.0
        assert get_effects(result) == [effect(load_player, PLAYER_ID, True)]

    def test_playlist_update_with_current_in_window(self, reducer, playlist):
        snapshot = make_snapshot(
            [0, 1, 2, 3, 4], timestamp=2000.0, current_index=4, is_playlist_update=True, prefix="new"
        )

        result = reducer(playlist, Action.got_player(snapshot))

        assert get_effects(result) == []
        assert get_state(result).current_track.title == "new 4"

    def test_playlist_update_with_current_outside_window(self, reducer, playlist):
        snapshot = make_snapshot(
            [0, 1], num_tracks=5, timestamp=2000.0, current_index=4, is_playlist_update=True
        )

        result = reducer(playlist, Action.got_player(snapshot))

        assert get_effects(result) == [effect(load_player, PLAYER_ID, True)]

    def test_ignore_change(self, reducer, playlist):
        """ignore_change merges the window without a corrective load."""
        snapshot = make_snapshot(
            [0, 1, 2, 3, 4, 5], timestamp=2000.0, is_playlist_update=True, prefix="new"
        )

        result = reducer(playlist, Action.got_player(snapshot, ignore_change=True))

        assert get_effects(result) == []
        assert len(get_state(result).items) == 6

    def test_unchanged_playlist_update_merges(self, reducer, playlist):
        snapshot = make_snapshot([1], num_tracks=5, is_playlist_update=True, prefix="new")

        state = get_state(reducer(playlist, Action.got_player(snapshot)))

        assert titles(state.items)[1] == "new 1"

    def test_empty_window_clears_playlist(self, reducer, playlist):
        playlist = playlist.copy_with(selection=frozenset({1}))
        snapshot = make_snapshot([], num_tracks=0, timestamp=2000.0, current_index=None)

        result = reducer(playlist, Action.got_player(snapshot))

        state = get_state(result)
        assert state.items == ()
        assert state.current_index is None
        assert state.current_track is None
        assert state.selection == frozenset()
        assert state.num_tracks == 0

    def test_items_beyond_track_count_are_evicted(self, reducer, playlist):
        snapshot = make_snapshot(
            [0, 1, 2], num_tracks=3, timestamp=2000.0, is_playlist_update=True
        )

        state = get_state(reducer(playlist, Action.got_player(snapshot)))

        assert [item.index for item in state.items] == [0, 1, 2]

    def test_selection_is_pruned(self, reducer, playlist):
        playlist = playlist.copy_with(selection=frozenset({1, 4}))
        snapshot = make_snapshot([0, 1, 2], num_tracks=3, timestamp=2000.0, is_playlist_update=True)

        state = get_state(reducer(playlist, Action.got_player(snapshot)))

        assert state.selection == frozenset({1})


class TestLocalMutations:
    """Tests for optimistic move/delete/insert."""

    def test_move_keeps_selection_on_items(self, reducer, playlist):
        playlist = playlist.copy_with(selection=frozenset({3}))

        state = reducer(playlist, Action.playlist_item_moved(3, 0))

        assert titles(state.items)[0] == "track 3"
        assert state.selection == frozenset({0})

    def test_move_keeps_current_track(self, reducer, playlist):
        """Current index follows the playing item."""
        state = reducer(playlist, Action.playlist_item_moved(0, 3))

        assert state.current_index == 2
        assert state.current_track.title == "track 0"
        assert state.current_track.index == 2

    def test_delete_example(self, reducer):
        """Deleting 1 from [i0..i3] with current 2 leaves current at 1."""
        playlist = make_playlist(range(4), current_index=2)

        state = reducer(playlist, Action.playlist_item_deleted(1))

        assert titles(state.items) == ["track 0", "track 2", "track 3"]
        assert [item.index for item in state.items] == [0, 1, 2]
        assert state.current_index == 1
        assert state.current_track.title == "track 2"
        assert state.num_tracks == 3

    def test_delete_current_track(self, reducer):
        """The following track slides into the current slot."""
        playlist = make_playlist(range(4), current_index=1)

        state = reducer(playlist, Action.playlist_item_deleted(1))

        assert state.current_index == 1
        assert state.current_track.title == "track 2"

    def test_delete_last_current_track_reloads(self, reducer):
        """Nothing known slides into the slot, so the player is reloaded."""
        playlist = make_playlist(range(4), current_index=3)

        result = reducer(playlist, Action.playlist_item_deleted(3))

        state = get_state(result)
        assert state.num_tracks == 3
        assert state.current_track is None
        assert get_effects(result) == [effect(load_player, PLAYER_ID, True)]

    def test_delete_updates_selection(self, reducer, playlist):
        playlist = playlist.copy_with(selection=frozenset({1, 2, 4}))

        state = reducer(playlist, Action.playlist_item_deleted(2))

        assert state.selection == frozenset({1, 3})

    def test_delete_unknown_index_is_noop(self, reducer, playlist):
        assert reducer(playlist, Action.playlist_item_deleted(42)) is playlist

    def test_insert_shifts_items(self, reducer, playlist):
        playlist = playlist.copy_with(selection=frozenset({0, 3}), current_index=2,
                                      current_track=playlist.find(2))
        new = [PlaylistItem(index=0, track_id=7, title="dropped")]

        state = reducer(playlist, Action.playlist_items_inserted(new, 1))

        assert titles(state.items)[:3] == ["track 0", "dropped", "track 1"]
        assert state.num_tracks == 6
        assert state.selection == frozenset({0, 4})
        assert state.current_index == 3
        assert state.current_track.title == "track 2"

    def test_selection_changes(self, reducer, playlist):
        selected = reducer(playlist, Action.selection_changed([1, 2]))
        assert selected.selection == frozenset({1, 2})

        cleared = reducer(selected, Action.clear_selection())
        assert cleared.selection == frozenset()
        assert reducer(cleared, Action.clear_selection()) is cleared

    def test_track_info_cache_expires(self, reducer, playlist):
        old = TrackInfo(track_id=1, expires_at=100.0)
        state = reducer(playlist, Action.loaded_track_info(old, now=50.0))
        assert 1 in state.track_info

        new = TrackInfo(track_id=2, expires_at=500.0)
        state = reducer(state, Action.loaded_track_info(new, now=200.0))
        assert set(state.track_info) == {2}


class TestAdvance:
    """Tests for moving to the next track at track end."""

    def test_next_known_track(self, reducer, playlist):
        state = get_state(reducer(playlist, Action.advance_to_next_track(PLAYER_ID)))
        assert state.current_index == 1
        assert state.current_track.title == "track 1"

    def test_next_unknown_track_loads(self, reducer):
        playlist = make_playlist(range(3), num_tracks=10, current_index=2)

        result = reducer(playlist, Action.advance_to_next_track(PLAYER_ID))

        assert get_state(result).current_index == 2
        assert get_effects(result) == [effect(load_player, PLAYER_ID, True)]

    def test_repeat_one_keeps_track(self, reducer, playlist):
        result = reducer(playlist, Action.advance_to_next_track(PLAYER_ID), REPEAT_ONE)
        assert get_state(result) is playlist

    def test_repeat_all_wraps(self, reducer):
        playlist = make_playlist(range(3), current_index=2)

        state = get_state(reducer(playlist, Action.advance_to_next_track(PLAYER_ID), REPEAT_ALL))

        assert state.current_index == 0

    def test_other_player_ignored(self, reducer, playlist):
        assert reducer(playlist, Action.advance_to_next_track("other")) is playlist


class TestPlayerReducer:
    """Tests for transport state and timing effects."""

    def test_got_player_schedules_advance_and_poll(self, player_reducer):
        snapshot = make_snapshot(
            [0], is_playing=True, elapsed_time=170.0, total_time=200.0, local_time=1000.0
        )

        result = player_reducer(PlayerState(), Action.got_player(snapshot))

        state = get_state(result)
        assert state.player_id == PLAYER_ID
        assert state.is_playing
        assert get_effects(result) == [
            effect(advance_after, 30.0, PLAYER_ID),
            effect(load_player_after, 30.0, PLAYER_ID),
        ]

    def test_paused_player_has_no_track_end(self, player_reducer):
        snapshot = make_snapshot([0], is_playing=False, total_time=200.0)

        effects = get_effects(player_reducer(PlayerState(), Action.got_player(snapshot)))

        assert effects[0] == effect(advance_after, None, PLAYER_ID)

    def test_seconds_to_end_of_track(self):
        state = PlayerState(elapsed_time=50.0, total_time=200.0, local_time=1000.0)
        assert seconds_to_end_of_track(state) == 150.0
        assert seconds_to_end_of_track(state, now=1010.0) == 140.0
        assert seconds_to_end_of_track(state, now=2000.0) == 0.0
        assert seconds_to_end_of_track(PlayerState()) is None

    def test_advance_resets_elapsed(self, player_reducer):
        state = PlayerState(player_id=PLAYER_ID, elapsed_time=199.0)

        new_state = player_reducer(state, Action.advance_to_next_track(PLAYER_ID, now=5.0))

        assert new_state.elapsed_time == 0.0
        assert new_state.local_time == 5.0

    def test_seek_emits_effect(self, player_reducer):
        state = PlayerState(player_id=PLAYER_ID)

        result = player_reducer(state, Action.seek(PLAYER_ID, 42.0, now=7.0))

        assert get_state(result).elapsed_time == 42.0
        assert get_effects(result) == [effect(seek, PLAYER_ID, 42.0)]

    def test_seek_other_player_ignored(self, player_reducer):
        state = PlayerState(player_id=PLAYER_ID)
        assert player_reducer(state, Action.seek("other", 1.0)) is state


class TestNotices:

    def test_operation_error_adds_notice(self, notice_reducer):
        action = Action.operation_error("Move error", "boom")

        result = notice_reducer((), action)

        notices = get_state(result)
        assert len(notices) == 1
        assert notices[0].notice_id == action.action_id
        assert notices[0].message == "Move error"
        assert notices[0].show_for == 5.0
        assert get_effects(result) == [effect(dismiss_after, 5.0, action.action_id)]

    def test_dismiss_removes_notice(self, notice_reducer):
        action = Action.operation_error("Delete error", show_for=2.0)
        notices = get_state(notice_reducer((), action))

        assert notice_reducer(notices, Action.dismiss_notice(action.action_id)) == ()
        assert notice_reducer(notices, Action.dismiss_notice(-1)) is notices


class TestRootReducer:

    @pytest.fixture
    def root(self, reducer, player_reducer, notice_reducer) -> RootReducer:
        return RootReducer(player=player_reducer, playlist=reducer, notices=notice_reducer)

    def test_effects_from_all_components(self, root):
        snapshot = make_snapshot([0, 1], timestamp=2000.0)

        result = root(AppState(), Action.got_player(snapshot))

        factories = [fx.factory for fx in get_effects(result)]
        assert factories == [advance_after, load_player_after, load_player]
        assert get_state(result).playlist.player_id == PLAYER_ID

    def test_unhandled_action_keeps_state(self, root):
        state = AppState()
        assert get_state(root(state, Action.dismiss_notice(3))) is state

    def test_repeat_mode_reaches_playlist(self, root):
        state = AppState(
            player=PlayerState(player_id=PLAYER_ID, repeat_mode=REPEAT_ONE),
            playlist=make_playlist(range(3), current_index=1),
        )

        new_state = get_state(root(state, Action.advance_to_next_track(PLAYER_ID)))

        assert new_state.playlist.current_index == 1
        assert new_state.player.elapsed_time == 0.0

    def test_register_all_components(self, root):
        from ..engine_core.action import ActionRegistry

        registry = root.register(ActionRegistry())

        assert set(registry.components()) == {"player", "playlist", "notices"}
        assert "gotPlayer" in registry.finalize()
