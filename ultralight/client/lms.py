"""
LMS client - JSON-RPC transport for Logitech Media Server.

Every request is a "slim.request" posted to /jsonrpc.js:

    {
        "id": 1,
        "method": "slim.request",
        "params": ["<player id or empty>", ["<command>", params...]]
    }

The server answers with the same envelope plus a "result" object.
"""

from __future__ import annotations
from typing import Any
import asyncio
import json
import logging
import time

import aiohttp
from pydantic import ValidationError

from ..engine_core.state import PlaylistSnapshot, TrackInfo
from .models import PlayerInfoModel, PlayerStatusModel, ServerStatusModel, SongInfoModel
from .transport import TransportError

logger = logging.getLogger(__name__)

JSONRPC_PATH = "/jsonrpc.js"
STATUS_TAGS = "tags:acdlKNtu"
SONGINFO_TAGS = "tags:aAcCdefgiIjJkKlLmMnopPDUqrROSstTuvwxXyY"


class LMSClient:
    """
    Asynchronous LMS client implementing CommandTransport.

    Usage:
        async with LMSClient("http://lms.local:9000") as lms:
            snapshot = await lms.fetch_status(player_id, 0, 100)
            await lms.execute(player_id, "playlist", "move", 3, 0)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> LMSClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def execute(self, player_id: str, *command: Any) -> dict[str, Any]:
        """Run a command and return its "result" object."""
        body = {
            "id": 1,
            "method": "slim.request",
            "params": [player_id or "", list(command)],
        }
        session = self._get_session()
        try:
            async with session.post(
                self.base_url + JSONRPC_PATH,
                data=json.dumps(body),
                headers={"Content-Type": "text/plain"},
            ) as response:
                if response.status >= 400:
                    raise TransportError(f"HTTP {response.status} for {command!r}", command)
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("LMS request %r failed: %s", command, exc)
            raise TransportError(f"request failed: {exc}", command) from exc

        if not isinstance(data, dict):
            raise TransportError(f"malformed response for {command!r}", command)
        if data.get("error"):
            raise TransportError(f"server error: {data['error']}", command)
        result = data.get("result")
        return result if isinstance(result, dict) else {}

    async def fetch_status(
        self,
        player_id: str,
        start: int | str,
        size: int,
        is_playlist_update: bool = False,
    ) -> PlaylistSnapshot:
        result = await self.execute(player_id, "status", start, size, STATUS_TAGS)
        local_time = time.time()
        try:
            status = PlayerStatusModel.model_validate(result)
        except ValidationError as exc:
            raise TransportError(f"malformed status: {exc}", ("status", start, size)) from exc
        return status.to_snapshot(player_id, local_time, is_playlist_update)

    async def get_players(self, start: int = 0, qty: int = 999) -> list[PlayerInfoModel]:
        result = await self.execute("", "serverstatus", start, qty)
        try:
            return ServerStatusModel.model_validate(result).players_loop
        except ValidationError as exc:
            raise TransportError(f"malformed server status: {exc}", ("serverstatus",)) from exc

    async def song_info(self, track_id: int | str) -> TrackInfo:
        result = await self.execute("", "songinfo", 0, 100, f"track_id:{track_id}", SONGINFO_TAGS)
        try:
            return SongInfoModel.model_validate(result).to_track_info(track_id)
        except ValidationError as exc:
            raise TransportError(f"malformed song info: {exc}", ("songinfo", track_id)) from exc
