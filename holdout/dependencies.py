from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from .game import GameServer


def get_game_server(connection: HTTPConnection) -> GameServer:
    """Get the GameServer created by the application lifespan."""
    game_server = getattr(connection.app.state, "game_server", None)
    if game_server is None:
        raise RuntimeError("Game server not initialized")
    return game_server


# convenience type alias for dependency injection
GameServerDep = Annotated[GameServer, Depends(get_game_server)]
