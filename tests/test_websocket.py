"""
End-to-end tests through the FastAPI app and its websocket endpoint.
"""

import pytest
from fastapi.testclient import TestClient

from holdout.main import create_app
from holdout.models import GameSettings


def receive_until(websocket, message_type: str, limit: int = 200) -> dict:
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"{message_type} not received")


@pytest.fixture
def client():
    app = create_app(GameSettings(countdown_seconds=1, tick_interval_ms=100, settle_delay_ms=200))
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    assert client.get("/").json() == {"status": "ok"}


def test_connect_assigns_id_and_lists_player(client):
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json() == {"type": "playerConnected", "playerId": 1}
        assert ws.receive_json()["type"] == "playerStatusUpdate"
        assert ws.receive_json()["type"] == "waitingForReady"

        ws.send_json({"type": "setPlayerName", "playerId": 1, "name": "Ana"})
        status = receive_until(ws, "playerStatusUpdate")
        assert status["players"][0]["name"] == "Ana"

        players = client.get("/players").json()
        assert players["phase"] == "waitingForReady"
        assert players["players"][0]["name"] == "Ana"
        assert "timeRemainingMs" not in players["players"][0]

        assert client.get("/players/1").json()["name"] == "Ana"
        assert client.get("/players/42").status_code == 404


def test_malformed_frame_gets_error(client):
    with client.websocket_connect("/ws") as ws:
        receive_until(ws, "waitingForReady")
        ws.send_text("this is not json")
        assert receive_until(ws, "error") == {"type": "error", "message": "Invalid message format"}

        ws.send_bytes(b"\x00\x01")
        assert receive_until(ws, "error") == {"type": "error", "message": "Invalid message format"}

        ws.send_json({"type": "setPlayerName", "name": "Still here"})
        status = receive_until(ws, "playerStatusUpdate")
        assert status["players"][0]["name"] == "Still here"


def test_round_and_disconnect(client):
    with client.websocket_connect("/ws") as ws1:
        receive_until(ws1, "playerConnected")
        with client.websocket_connect("/ws") as ws2:
            assert receive_until(ws2, "playerConnected")["playerId"] == 2

            ws1.send_json({"type": "playerReady", "playerId": 1})
            ws2.send_json({"type": "playerReady", "playerId": 2})
            receive_until(ws1, "gameStart")
            ws1.send_json({"type": "hold", "playerId": 1})

            assert receive_until(ws2, "blockPlayer") == {"type": "blockPlayer", "playerIdToBlock": 2}
            assert receive_until(ws1, "roundWinner")["winnerId"] == 1

        left = receive_until(ws1, "playerLeft")
        assert left["playerId"] == 2
        over = receive_until(ws1, "gameOver")
        assert over["winnerId"] == 1
