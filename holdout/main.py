import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import config
from .game import AsyncioScheduler, GameServer
from .middleware import add_cors_middleware, add_logging_middleware
from .models import GameSettings
from .routers import players_router, websocket_router

log = logging.getLogger(__name__)


def create_app(settings: GameSettings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.game_server = GameServer(AsyncioScheduler(), settings or GameSettings())
        log.info("Game server ready")
        yield
        app.state.game_server.close()
        log.info("shutting down")

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(add_cors_middleware)
    app.add_middleware(add_logging_middleware)

    app.include_router(players_router)
    app.include_router(websocket_router)
    return app


app = create_app()


def run() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
