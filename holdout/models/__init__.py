from .game import GameSettings, Phase, IN_GAME_PHASES
from .player import Connection, Player
from .messages import (
    INVALID_MESSAGE,
    Hold,
    IncomingMessage,
    Join,
    PlayerReady,
    Release,
    ResetGame,
    SetPlayerName,
    parse_client_message,
)

__all__ = [
    "GameSettings",
    "Phase",
    "IN_GAME_PHASES",
    "Connection",
    "Player",
    "INVALID_MESSAGE",
    "Hold",
    "IncomingMessage",
    "Join",
    "PlayerReady",
    "Release",
    "ResetGame",
    "SetPlayerName",
    "parse_client_message",
]
