"""
Client Module - Access to the media server.

The engine talks to the server through the CommandTransport protocol.
LMSClient is the JSON-RPC implementation for Logitech Media Server.
"""

from .transport import CommandTransport, TransportError
from .models import PlayerInfoModel, PlayerStatusModel, PlaylistItemModel, SongInfoModel
from .lms import LMSClient

__all__ = [
    "CommandTransport",
    "TransportError",
    "PlayerInfoModel",
    "PlayerStatusModel",
    "PlaylistItemModel",
    "SongInfoModel",
    "LMSClient",
]
