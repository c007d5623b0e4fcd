"""
Engine Core - State/effect reconciliation for the remote control.

The engine is the runtime that:
1. Holds the player and playlist state
2. Applies actions via pure reducers
3. Runs the effects reducers schedule (network calls, timers)
4. Reconciles server snapshots into the local playlist
5. Plans single-item moves for multi-item drag and drop
"""

from .action import Action, ActionType, ActionPayload, ActionRegistry, ConfigurationError, IGNORE_ACTION
from .effects import (
    Effect,
    EffectfulValue,
    EffectValidationError,
    combine,
    effect,
    get_effects,
    get_state,
    split,
)
from .runtime import EffectRuntime, Store, Timer
from .state import AppState, Notice, PlayerState, PlaylistItem, PlaylistSnapshot, PlaylistState, TrackInfo
from .playlist import merge_window, move_item, delete_item, insert_items
from .planner import plan_moves, replay_moves, is_noop_move
from .reducer import (
    NoticeEffects,
    NoticeReducer,
    PlayerEffects,
    PlayerReducer,
    PlaylistEffects,
    PlaylistReducer,
    RootReducer,
)

__all__ = [
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionRegistry",
    "ConfigurationError",
    "IGNORE_ACTION",
    "Effect",
    "EffectfulValue",
    "EffectValidationError",
    "combine",
    "effect",
    "get_effects",
    "get_state",
    "split",
    "EffectRuntime",
    "Store",
    "Timer",
    "AppState",
    "Notice",
    "PlayerState",
    "PlaylistItem",
    "PlaylistSnapshot",
    "PlaylistState",
    "TrackInfo",
    "merge_window",
    "move_item",
    "delete_item",
    "insert_items",
    "plan_moves",
    "replay_moves",
    "is_noop_move",
    "NoticeEffects",
    "NoticeReducer",
    "PlayerEffects",
    "PlayerReducer",
    "PlaylistEffects",
    "PlaylistReducer",
    "RootReducer",
]
