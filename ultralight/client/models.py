"""
Pydantic models for the media server's JSON-RPC payloads.

The server reports status with keys such as "playlist index" and
"mixer volume" and sends most numbers as strings. These models validate
and coerce the payloads, then convert them to engine value types.
"""

from typing import Any, Optional, Union
import time

from pydantic import BaseModel, ConfigDict, Field

from ..engine_core.state import PlaylistItem, PlaylistSnapshot, TrackInfo


TRACK_INFO_TTL = 5 * 60  # seconds


class PlaylistItemModel(BaseModel):
    """One entry of a status "playlist_loop"."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    index: int = Field(alias="playlist index")
    id: Optional[Union[int, str]] = None
    title: str = ""
    url: Optional[str] = None
    duration: Optional[float] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    tracknum: Optional[int] = None

    def to_item(self) -> PlaylistItem:
        return PlaylistItem(
            index=self.index,
            track_id=self.id,
            title=self.title,
            url=self.url,
            duration=self.duration,
            artist=self.artist,
            album=self.album,
            tracknum=self.tracknum,
            extra=dict(self.model_extra or {}),
        )


class PlayerStatusModel(BaseModel):
    """Result of the "status" command."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    playerid: Optional[str] = None
    player_name: Optional[str] = None
    mode: str = "stop"
    power: int = 0
    volume: int = Field(default=0, alias="mixer volume")
    repeat: int = Field(default=0, alias="playlist repeat")
    shuffle: int = Field(default=0, alias="playlist shuffle")
    playlist_cur_index: Optional[int] = None
    playlist_timestamp: Optional[float] = None
    playlist_tracks: int = 0
    time: float = 0.0
    duration: Optional[float] = None
    playlist_loop: list[PlaylistItemModel] = Field(default_factory=list)

    def to_snapshot(
        self,
        player_id: str,
        local_time: Optional[float] = None,
        is_playlist_update: bool = False,
    ) -> PlaylistSnapshot:
        window = sorted((item.to_item() for item in self.playlist_loop), key=lambda item: item.index)
        return PlaylistSnapshot(
            player_id=player_id,
            timestamp=self.playlist_timestamp,
            num_tracks=self.playlist_tracks,
            window=tuple(window),
            current_index=self.playlist_cur_index if self.playlist_tracks else None,
            is_playlist_update=is_playlist_update,
            player_name=self.player_name,
            is_power_on=bool(self.power),
            is_playing=self.mode == "play",
            volume_level=self.volume,
            repeat_mode=self.repeat,
            shuffle_mode=self.shuffle,
            elapsed_time=self.time,
            total_time=self.duration,
            local_time=time.time() if local_time is None else local_time,
        )


class PlayerInfoModel(BaseModel):
    """One entry of "serverstatus" players_loop."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    player_id: str = Field(alias="playerid")
    name: str = ""
    model: Optional[str] = None
    isplaying: int = 0
    connected: int = 0


class ServerStatusModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    players_loop: list[PlayerInfoModel] = Field(default_factory=list)


class SongInfoModel(BaseModel):
    """Result of the "songinfo" command: a list of single-key dicts."""
    model_config = ConfigDict(extra="ignore")

    songinfo_loop: list[dict[str, Any]] = Field(default_factory=list)

    def to_track_info(self, track_id: Union[int, str], now: Optional[float] = None) -> TrackInfo:
        fields: dict[str, Any] = {}
        for entry in self.songinfo_loop:
            fields.update(entry)
        now = time.time() if now is None else now
        return TrackInfo(track_id=track_id, fields=fields, expires_at=now + TRACK_INFO_TTL)
