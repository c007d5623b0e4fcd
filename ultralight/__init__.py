"""
Ultralight - Browser remote control for a networked media player.

The engine keeps a local view of the player and its playlist in step
with the media server and provides:
- A reducer store that runs the effects reducers schedule
- Reconciliation of partial status snapshots into the playlist
- Multi-item reordering through single-item server moves
- A REST API for the browser front end
"""

__version__ = "0.1.0"
