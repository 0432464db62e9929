from enum import Enum

from pydantic import BaseModel, Field

from .. import config


class Phase(str, Enum):
    WAITING_FOR_READY = "waitingForReady"
    COUNTDOWN = "countdown"
    ROUND_ACTIVE = "roundActive"
    ROUND_RESOLVING = "roundResolving"
    GAME_OVER = "gameOver"


IN_GAME_PHASES = frozenset({Phase.COUNTDOWN, Phase.ROUND_ACTIVE, Phase.ROUND_RESOLVING})


class GameSettings(BaseModel):
    """Tunable rules for one game instance. Defaults come from the environment."""

    initial_time_ms: int = Field(default=config.INITIAL_TIME_MS, gt=0)
    min_players: int = Field(default=config.MIN_PLAYERS, ge=2)
    countdown_seconds: int = Field(default=config.COUNTDOWN_SECONDS, ge=0)
    tick_interval_ms: int = Field(default=config.TICK_INTERVAL_MS, gt=0)
    settle_delay_ms: int = Field(default=config.SETTLE_DELAY_MS, ge=0)
    max_name_length: int = Field(default=config.MAX_NAME_LENGTH, gt=0)
    admin_player_id: int = config.ADMIN_PLAYER_ID
    carry_over_holding: bool = config.CARRY_OVER_HOLDING
