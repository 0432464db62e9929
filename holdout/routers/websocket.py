import logging
import math

import anyio
from fastapi import APIRouter, WebSocket
from fastapi.websockets import WebSocketState

from ..dependencies import GameServerDep
from ..game import GameServer

log = logging.getLogger(__name__)
router = APIRouter()


class WebSocketChannel:
    """Send-only handle the game holds for one websocket.

    The game enqueues synchronously; ``drain_to`` writes to the socket in
    the same order from the connection's sender task.
    """

    def __init__(self):
        self._send_stream, self._receive_stream = anyio.create_memory_object_stream(
            max_buffer_size=math.inf
        )

    def send(self, message: dict) -> None:
        try:
            self._send_stream.send_nowait(message)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            log.debug(f"Dropping {message.get('type')} for closed channel")

    def close(self) -> None:
        self._send_stream.close()

    async def drain_to(self, websocket: WebSocket) -> None:
        async with self._receive_stream:
            async for message in self._receive_stream:
                if websocket.client_state == WebSocketState.CONNECTED:
                    await websocket.send_json(message)


async def websocket_receiver(
        websocket: WebSocket, channel: WebSocketChannel, game: GameServer
) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        # binary frames are parsed like text and rejected the same way
        payload = message.get("text") or message.get("bytes") or b""
        game.handle_message(channel, payload)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, game: GameServerDep) -> None:
    await websocket.accept()

    channel = WebSocketChannel()
    player_id = game.admit(channel)

    try:
        async with anyio.create_task_group() as task_group:

            async def run_receiver() -> None:
                await websocket_receiver(websocket, channel, game)
                task_group.cancel_scope.cancel()

            task_group.start_soon(run_receiver)
            await channel.drain_to(websocket)

    except Exception as e:
        # a broken transport is handled like a close
        log.error(f"WebSocket error for player {player_id}: {e}")

    finally:
        channel.close()
        game.disconnect(channel)
