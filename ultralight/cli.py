"""
Ultralight CLI - Command-line interface for the remote.

Usage:
    ultralight serve [--host H] [--port P]     Run the REST API
    ultralight players                          List players on the server
    ultralight status <player_id>               Show player status and playlist window
    ultralight plan <to_index> <index>...       Show the single-item moves for a drop

Server options (--lms-url, --player, --log-level) override the
ULTRALIGHT_* environment variables.
"""

import argparse
import asyncio
import sys

from .config import Settings
from .log_config import setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Ultralight - Browser remote for a networked media player",
        prog="ultralight",
    )
    parser.add_argument("--lms-url", help="Media server base URL")
    parser.add_argument("--player", dest="player_id", help="Player id to control")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    # Players command
    subparsers.add_parser("players", help="List players on the server")

    # Status command
    status_parser = subparsers.add_parser("status", help="Show player status")
    status_parser.add_argument("player_id", nargs="?", help="Player id (defaults to --player)")

    # Plan command
    plan_parser = subparsers.add_parser("plan", help="Show the moves for a multi-item drop")
    plan_parser.add_argument("to_index", type=int, help="Drop position (insert before)")
    plan_parser.add_argument("indices", type=int, nargs="+", help="Selected indices")

    args = parser.parse_args(argv)

    settings = Settings.from_env().override(
        lms_url=args.lms_url,
        player_id=args.player_id,
        log_level=args.log_level.upper() if args.log_level else None,
    )
    setup_logging(settings.log_level)

    if args.command == "serve":
        cmd_serve(args, settings)
    elif args.command == "players":
        cmd_players(args, settings)
    elif args.command == "status":
        cmd_status(args, settings)
    elif args.command == "plan":
        cmd_plan(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args, settings):
    """Run the REST API with uvicorn."""
    import uvicorn
    from .api.app import create_app

    app = create_app(settings=settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


def cmd_players(args, settings):
    """List players on the server."""
    from .client.lms import LMSClient
    from .client.transport import TransportError

    async def run():
        async with LMSClient(settings.lms_url, timeout=settings.request_timeout) as lms:
            return await lms.get_players()

    try:
        players = asyncio.run(run())
    except TransportError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not players:
        print("No players found")
        return
    for p in players:
        state = "playing" if p.isplaying else "idle"
        connected = "" if p.connected else " (disconnected)"
        print(f"{p.player_id}  {p.name}  [{state}]{connected}")


def cmd_status(args, settings):
    """Show player status and the playlist window around the current track."""
    from .client.lms import LMSClient
    from .client.transport import TransportError
    from .session.operations import fetch_window

    player_id = args.player_id or settings.player_id
    if not player_id:
        print("Error: no player id (pass one or use --player)")
        sys.exit(1)

    async def run():
        async with LMSClient(settings.lms_url, timeout=settings.request_timeout) as lms:
            return await fetch_window(lms, player_id, True, settings.window_size)

    try:
        snapshot = asyncio.run(run())
    except TransportError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Player: {snapshot.player_name or player_id}")
    print(f"Playing: {'yes' if snapshot.is_playing else 'no'}  Volume: {snapshot.volume_level}")
    print(f"Tracks: {snapshot.num_tracks}  Current: {snapshot.current_index}")
    for item in snapshot.window:
        marker = ">" if item.index == snapshot.current_index else " "
        artist = f" - {item.artist}" if item.artist else ""
        print(f"{marker} {item.index:4d}  {item.title}{artist}")


def cmd_plan(args):
    """Print the single-item moves that implement a multi-item drop."""
    from .engine_core.planner import plan_moves
    from .engine_core.playlist import insertion_position

    moves = plan_moves(args.indices, args.to_index)
    if not moves:
        print("No moves needed")
        return
    for from_index, to_index in moves:
        position = insertion_position(from_index, to_index)
        print(f"move {from_index} -> before {to_index}  (playlist move {from_index} {position})")


if __name__ == "__main__":
    main()
