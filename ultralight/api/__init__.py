"""
API Module - Browser remote interface.

Exposes a RemoteSession via REST API. The browser:
1. Lists players and picks one
2. Polls the player and playlist views
3. Selects, moves, deletes and drops playlist items
4. Sends player commands (play/pause, volume, seek)
5. Shows pending notices for failed operations
"""

from .schemas import (
    # Requests
    CommandRequest,
    DeleteRequest,
    DropRequest,
    MoveRequest,
    SelectionRequest,
    SwitchPlayerRequest,
    # Responses
    ErrorResponse,
    HealthResponse,
    NoticesResponse,
    OperationResponse,
    PlayerResponse,
    PlayersResponse,
    PlaylistResponse,
    # Enums
    ErrorCode,
    PlayerCommand,
)
from .app import create_app

__all__ = [
    # Requests
    "CommandRequest",
    "DeleteRequest",
    "DropRequest",
    "MoveRequest",
    "SelectionRequest",
    "SwitchPlayerRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "NoticesResponse",
    "OperationResponse",
    "PlayerResponse",
    "PlayersResponse",
    "PlaylistResponse",
    # Enums
    "ErrorCode",
    "PlayerCommand",
    "create_app",
]
