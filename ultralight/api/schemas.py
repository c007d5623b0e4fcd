"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the browser remote and the
engine. Responses are built from engine state with the from_state()
helpers.

Error Codes:
- NO_PLAYER: No player is selected or the player is unknown
- TRANSPORT_ERROR: The media server could not be reached or rejected a command
- VALIDATION_ERROR: The request was malformed
"""

from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, Field, NonNegativeInt

from ..engine_core.state import Notice, PlayerState, PlaylistItem, PlaylistState


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    NO_PLAYER = "NO_PLAYER"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class PlayerCommand(str, Enum):
    """Player commands accepted by POST /player/command."""
    PLAY_PAUSE = "play_pause"
    NEXT = "next"
    PREVIOUS = "previous"
    VOLUME = "volume"
    POWER = "power"
    PLAY_INDEX = "play_index"
    SEEK = "seek"
    CLEAR_PLAYLIST = "clear_playlist"


class MediaKind(str, Enum):
    """Library item kinds that can be dropped onto the playlist."""
    TRACK = "track"
    ALBUM = "album"
    ARTIST = "artist"
    GENRE = "genre"
    PLAYLIST = "playlist"
    FOLDER = "folder"


# =============================================================================
# Shared Models
# =============================================================================

class PlaylistItemInfo(BaseModel):
    """One playlist entry."""
    index: int
    track_id: Optional[Union[int, str]] = None
    title: str = ""
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[float] = None

    @classmethod
    def from_item(cls, item: PlaylistItem) -> "PlaylistItemInfo":
        return cls(
            index=item.index,
            track_id=item.track_id,
            title=item.title,
            artist=item.artist,
            album=item.album,
            duration=item.duration,
        )


class NoticeInfo(BaseModel):
    """A transient operation error."""
    notice_id: int
    message: str
    context: Optional[str] = None
    show_for: float

    @classmethod
    def from_notice(cls, notice: Notice) -> "NoticeInfo":
        return cls(
            notice_id=notice.notice_id,
            message=notice.message,
            context=None if notice.context is None else str(notice.context),
            show_for=notice.show_for,
        )


class PlayerSummary(BaseModel):
    """A player known to the server."""
    player_id: str
    name: str = ""
    model: Optional[str] = None
    is_playing: bool = False
    connected: bool = False


# =============================================================================
# Request Models
# =============================================================================

class SwitchPlayerRequest(BaseModel):
    player_id: str = Field(..., min_length=1, description="MAC address or id of the player")


class CommandRequest(BaseModel):
    """
    A player command.

    `value` is the volume level (0-100), power state (0/1), playlist
    index or seek position in seconds, depending on the command.
    """
    command: PlayerCommand
    value: Optional[float] = None


class SelectionRequest(BaseModel):
    indices: list[NonNegativeInt] = Field(default_factory=list)


class MoveRequest(BaseModel):
    to_index: int = Field(..., ge=0, description="Selected items are placed before this index")
    indices: Optional[list[NonNegativeInt]] = Field(
        None, description="Items to move; defaults to the current selection"
    )


class DeleteRequest(BaseModel):
    indices: Optional[list[NonNegativeInt]] = Field(
        None, description="Items to delete; defaults to the current selection"
    )


class DropItem(BaseModel):
    """A library item to insert."""
    kind: MediaKind
    item_id: Union[int, str]
    title: str = ""
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[float] = None


class DropRequest(BaseModel):
    items: list[DropItem] = Field(..., min_length=1)
    index: Optional[int] = Field(None, ge=0, description="Insert before this index; append if omitted")


# =============================================================================
# Response Models
# =============================================================================

class PlayerResponse(BaseModel):
    """Transport state of the current player."""
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    is_power_on: bool = False
    is_playing: bool = False
    volume_level: int = 0
    repeat_mode: int = 0
    shuffle_mode: int = 0
    elapsed_time: float = 0.0
    total_time: Optional[float] = None

    @classmethod
    def from_state(cls, state: PlayerState) -> "PlayerResponse":
        return cls(
            player_id=state.player_id,
            player_name=state.player_name,
            is_power_on=state.is_power_on,
            is_playing=state.is_playing,
            volume_level=state.volume_level,
            repeat_mode=state.repeat_mode,
            shuffle_mode=state.shuffle_mode,
            elapsed_time=state.elapsed_time,
            total_time=state.total_time,
        )


class PlaylistResponse(BaseModel):
    """The locally known part of the playlist."""
    player_id: Optional[str] = None
    timestamp: Optional[float] = None
    num_tracks: int = 0
    current_index: Optional[int] = None
    current_track: Optional[PlaylistItemInfo] = None
    items: list[PlaylistItemInfo] = Field(default_factory=list)
    selection: list[int] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: PlaylistState) -> "PlaylistResponse":
        current = state.current_track
        return cls(
            player_id=state.player_id,
            timestamp=state.timestamp,
            num_tracks=state.num_tracks,
            current_index=state.current_index,
            current_track=PlaylistItemInfo.from_item(current) if current else None,
            items=[PlaylistItemInfo.from_item(item) for item in state.items],
            selection=sorted(state.selection),
        )


class PlayersResponse(BaseModel):
    players: list[PlayerSummary]
    count: int


class OperationResponse(BaseModel):
    """Outcome of a playlist operation, with the resulting playlist."""
    success: bool
    changed: int = Field(0, description="Number of items moved, deleted or added")
    playlist: PlaylistResponse
    notices: list[NoticeInfo] = Field(default_factory=list)


class NoticesResponse(BaseModel):
    notices: list[NoticeInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    player_id: Optional[str] = None
