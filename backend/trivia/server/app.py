from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from shared.logging import setup_logging
from trivia.logic.questions import QuestionBank
from trivia.logic.service import TriviaGameService
from trivia.messaging.router import MessageRouter
from trivia.server.settings import GameServerSettings
from trivia.server.websocket import websocket_endpoint
from trivia.session.manager import SessionManager

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: GameServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "rooms": session_manager.registry.room_count,
            "max_rooms": settings.max_rooms,
            "connections": session_manager.connection_count,
            "pending_timers": session_manager.timer_manager.pending_count,
        },
    )


def create_app(
    settings: GameServerSettings | None = None,
    game_service: TriviaGameService | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    if game_service is None:
        game_service = TriviaGameService(QuestionBank.from_file(settings.question_file))

    if session_manager is None:
        session_manager = SessionManager(
            game_service,
            sweep_interval_seconds=settings.room_sweep_interval_seconds,
            max_rooms=settings.max_rooms,
        )

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        session_manager.start()
        try:
            yield
        finally:
            await session_manager.shutdown()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("trivia server ready", questions=len(game_service.bank))
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory)."""
    _settings = GameServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
