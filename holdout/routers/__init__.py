from .players import router as players_router
from .websocket import router as websocket_router, WebSocketChannel

__all__ = ["players_router", "websocket_router", "WebSocketChannel"]
