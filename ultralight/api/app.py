"""
FastAPI Application - REST API for the browser remote.

Endpoints:
    GET    /health                        Health check
    GET    /api/v1/players                Players known to the server
    GET    /api/v1/player                 Current player state
    PUT    /api/v1/player                 Switch player
    POST   /api/v1/player/command         Play/pause, volume, seek, ...
    GET    /api/v1/playlist               Locally known playlist
    PUT    /api/v1/playlist/selection     Replace the selection
    DELETE /api/v1/playlist/selection     Clear the selection
    POST   /api/v1/playlist/move          Move items before an index
    POST   /api/v1/playlist/delete        Delete items (or clear the playlist)
    POST   /api/v1/playlist/drop          Insert library items
    GET    /api/v1/notices                Pending operation errors

The application owns one RemoteSession, built by the lifespan hook.
All responses are JSON with explicit Pydantic schemas.
"""

from contextlib import AsyncExitStack, asynccontextmanager
from typing import Callable, Optional, Union
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..client.lms import LMSClient
from ..client.transport import TransportError
from ..config import Settings
from ..session.operations import MediaItem
from ..session.remote import NoPlayerError, RemoteSession
from .schemas import (
    # Request models
    CommandRequest,
    DeleteRequest,
    DropRequest,
    MoveRequest,
    SelectionRequest,
    SwitchPlayerRequest,
    # Response models
    ErrorResponse,
    HealthResponse,
    NoticeInfo,
    NoticesResponse,
    OperationResponse,
    PlayerResponse,
    PlayersResponse,
    PlayerSummary,
    PlaylistResponse,
    # Enums
    ErrorCode,
    PlayerCommand,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Settings], RemoteSession]


def create_app(
    session_factory: Optional[SessionFactory] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        session_factory: Builds the RemoteSession from settings. Defaults to
            a session over an LMSClient for settings.lms_url.
        settings: Defaults to Settings.from_env()

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with AsyncExitStack() as stack:
            if session_factory is None:
                lms = await stack.enter_async_context(
                    LMSClient(settings.lms_url, timeout=settings.request_timeout)
                )
                session = RemoteSession(lms, settings)
            else:
                session = session_factory(settings)
            stack.push_async_callback(session.close)
            app.state.session = session
            try:
                player_id = await session.start()
                logger.info("Remote session started for player %s", player_id)
            except TransportError as e:
                logger.warning("Cannot reach media server at %s: %s", settings.lms_url, e)
            yield

    app = FastAPI(
        title="Ultralight Remote API",
        description="""
Browser remote control for a networked media player.

Playlist edits are sent to the server as single-item commands; the
returned playlist is the locally reconciled view.

## Error Codes

| Code | Description |
|------|-------------|
| `NO_PLAYER` | No player is selected |
| `TRANSPORT_ERROR` | The media server could not be reached |
| `VALIDATION_ERROR` | The request was malformed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(NoPlayerError)
    async def no_player_handler(request: Request, exc: NoPlayerError) -> JSONResponse:
        return make_error_response(ErrorCode.NO_PLAYER, str(exc), status_code=409)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [{"loc": [str(part) for part in e["loc"]], "msg": e["msg"]} for e in exc.errors()]
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            status_code=422,
            details={"errors": errors},
        )

    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError) -> JSONResponse:
        return make_error_response(
            ErrorCode.TRANSPORT_ERROR,
            str(exc),
            status_code=502,
            details={"command": list(exc.command)} if exc.command else None,
        )

    def get_session(request: Request) -> RemoteSession:
        return request.app.state.session

    def notice_ids(session: RemoteSession) -> set[int]:
        return {n.notice_id for n in session.state.notices}

    def operation_response(session: RemoteSession, before: set[int], changed: int = 0) -> OperationResponse:
        """Success means the operation raised no new notice."""
        return OperationResponse(
            success=notice_ids(session) <= before,
            changed=changed,
            playlist=PlaylistResponse.from_state(session.playlist),
            notices=[NoticeInfo.from_notice(n) for n in session.state.notices],
        )

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="ultralight",
            version=__version__,
            player_id=get_session(request).player_id,
        )

    # =========================================================================
    # Player Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/players",
        response_model=PlayersResponse,
        responses={502: {"model": ErrorResponse}},
        tags=["Player"],
        summary="List players known to the server",
    )
    async def list_players(request: Request) -> PlayersResponse:
        players = await get_session(request).get_players()
        return PlayersResponse(
            players=[
                PlayerSummary(
                    player_id=p.player_id,
                    name=p.name,
                    model=p.model,
                    is_playing=bool(p.isplaying),
                    connected=bool(p.connected),
                )
                for p in players
            ],
            count=len(players),
        )

    @app.get(
        "/api/v1/player",
        response_model=PlayerResponse,
        tags=["Player"],
        summary="Current player state",
    )
    async def get_player(request: Request) -> PlayerResponse:
        return PlayerResponse.from_state(get_session(request).player)

    @app.put(
        "/api/v1/player",
        response_model=PlayerResponse,
        responses={502: {"model": ErrorResponse}},
        tags=["Player"],
        summary="Switch to another player",
    )
    async def switch_player(request: Request, body: SwitchPlayerRequest) -> PlayerResponse:
        session = get_session(request)
        await session.switch_player(body.player_id)
        return PlayerResponse.from_state(session.player)

    @app.post(
        "/api/v1/player/command",
        response_model=PlayerResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Missing command value"},
            409: {"model": ErrorResponse, "description": "No player selected"},
        },
        tags=["Player"],
        summary="Send a player command",
    )
    async def player_command(
        request: Request, body: CommandRequest
    ) -> Union[PlayerResponse, JSONResponse]:
        """
        Run a player command.

        `volume`, `power`, `play_index` and `seek` require `value`.
        """
        session = get_session(request)
        session.require_player()
        needs_value = {
            PlayerCommand.VOLUME,
            PlayerCommand.POWER,
            PlayerCommand.PLAY_INDEX,
            PlayerCommand.SEEK,
        }
        if body.command in needs_value and body.value is None:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR,
                f"Command '{body.command.value}' requires a value",
            )

        match body.command:
            case PlayerCommand.PLAY_PAUSE:
                await session.play_pause()
            case PlayerCommand.NEXT:
                await session.next_track()
            case PlayerCommand.PREVIOUS:
                await session.previous_track()
            case PlayerCommand.VOLUME:
                await session.set_volume(int(body.value))
            case PlayerCommand.POWER:
                await session.set_power(bool(body.value))
            case PlayerCommand.PLAY_INDEX:
                await session.play_track(int(body.value))
            case PlayerCommand.SEEK:
                session.seek(body.value)
            case PlayerCommand.CLEAR_PLAYLIST:
                await session.command("playlist", "clear")
        return PlayerResponse.from_state(session.player)

    # =========================================================================
    # Playlist Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/playlist",
        response_model=PlaylistResponse,
        tags=["Playlist"],
        summary="Locally known playlist",
    )
    async def get_playlist(request: Request) -> PlaylistResponse:
        return PlaylistResponse.from_state(get_session(request).playlist)

    @app.put(
        "/api/v1/playlist/selection",
        response_model=PlaylistResponse,
        tags=["Playlist"],
        summary="Replace the selection",
    )
    async def set_selection(request: Request, body: SelectionRequest) -> PlaylistResponse:
        session = get_session(request)
        session.select(body.indices)
        return PlaylistResponse.from_state(session.playlist)

    @app.delete(
        "/api/v1/playlist/selection",
        response_model=PlaylistResponse,
        tags=["Playlist"],
        summary="Clear the selection",
    )
    async def clear_selection(request: Request) -> PlaylistResponse:
        session = get_session(request)
        session.clear_selection()
        return PlaylistResponse.from_state(session.playlist)

    @app.post(
        "/api/v1/playlist/move",
        response_model=OperationResponse,
        responses={409: {"model": ErrorResponse, "description": "No player selected"}},
        tags=["Playlist"],
        summary="Move items before an index",
    )
    async def move_items(request: Request, body: MoveRequest) -> OperationResponse:
        """
        Move the selection (or `indices`) so the items sit together before
        `to_index`. Each step is a single-item server move.
        """
        session = get_session(request)
        before = notice_ids(session)
        moved = await session.move_selection(body.to_index, body.indices)
        return operation_response(session, before, changed=int(moved))

    @app.post(
        "/api/v1/playlist/delete",
        response_model=OperationResponse,
        responses={409: {"model": ErrorResponse, "description": "No player selected"}},
        tags=["Playlist"],
        summary="Delete items",
    )
    async def delete_items(request: Request, body: DeleteRequest) -> OperationResponse:
        """Delete the selection (or `indices`). With nothing selected the playlist is cleared."""
        session = get_session(request)
        before = notice_ids(session)
        deleted = await session.delete_selection(body.indices)
        return operation_response(session, before, changed=deleted)

    @app.post(
        "/api/v1/playlist/drop",
        response_model=OperationResponse,
        responses={409: {"model": ErrorResponse, "description": "No player selected"}},
        tags=["Playlist"],
        summary="Insert library items",
    )
    async def drop_items(request: Request, body: DropRequest) -> OperationResponse:
        session = get_session(request)
        items = [
            MediaItem(
                kind=item.kind.value,
                item_id=item.item_id,
                title=item.title,
                artist=item.artist,
                album=item.album,
                duration=item.duration,
            )
            for item in body.items
        ]
        before = notice_ids(session)
        added = await session.drop_items(items, body.index)
        return operation_response(session, before, changed=added)

    @app.get(
        "/api/v1/notices",
        response_model=NoticesResponse,
        tags=["Playlist"],
        summary="Pending operation errors",
    )
    async def get_notices(request: Request) -> NoticesResponse:
        notices = get_session(request).state.notices
        return NoticesResponse(notices=[NoticeInfo.from_notice(n) for n in notices])

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Ultralight Remote API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
