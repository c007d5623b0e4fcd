"""
Session Module - Drives the engine against a media server.

A RemoteSession owns the effect runtime and the transport; operations
holds the effect factories and the multi-step playlist workflows.
"""

from .operations import MediaItem, PlayerTimers
from .remote import NoPlayerError, RemoteSession

__all__ = [
    "MediaItem",
    "PlayerTimers",
    "NoPlayerError",
    "RemoteSession",
]
