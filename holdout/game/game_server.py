import logging

from pydantic import ValidationError

from ..models import (
    IN_GAME_PHASES,
    INVALID_MESSAGE,
    Connection,
    GameSettings,
    Hold,
    Join,
    Phase,
    Player,
    PlayerReady,
    Release,
    ResetGame,
    SetPlayerName,
    parse_client_message,
)
from .roster import Roster
from .scheduler import Scheduler, TimerHandle

log = logging.getLogger(__name__)


class GameServer:
    """Authoritative state for one game.

    Every public method mutates state synchronously and enqueues the
    resulting messages before returning, so callers on a single event loop
    never observe a half-applied transition.
    """

    def __init__(self, scheduler: Scheduler, settings: GameSettings | None = None):
        self.settings = settings or GameSettings()
        self.scheduler = scheduler
        self.roster = Roster(self.settings.initial_time_ms)
        self.phase = Phase.WAITING_FOR_READY
        self.countdown_remaining: int | None = None

        self._connections: list[Connection] = []
        self._countdown_timer: TimerHandle | None = None
        self._decay_timer: TimerHandle | None = None
        self._settle_timer: TimerHandle | None = None

    @property
    def game_in_progress(self) -> bool:
        return self.phase in IN_GAME_PHASES

    @property
    def active_timer(self) -> str | None:
        if self._countdown_timer is not None:
            return "countdown"
        if self._decay_timer is not None:
            return "decay"
        return None

    @property
    def settle_pending(self) -> bool:
        return self._settle_timer is not None

    def broadcast(self, message: dict) -> None:
        for connection in list(self._connections):
            connection.send(message)

    def _with_players(self, message_type: str, **fields) -> dict:
        return {"type": message_type, **fields, "players": self.roster.status()}

    def ready_summary(self) -> dict:
        active = self.roster.active_players
        return {
            "type": "waitingForReady",
            "readyCount": sum(1 for p in active if p.is_ready),
            "totalPlayers": len(active),
            "minPlayers": self.settings.min_players,
        }

    def broadcast_status(self) -> None:
        self.broadcast(self._with_players("playerStatusUpdate"))
        if self.phase is not Phase.ROUND_ACTIVE:
            self.broadcast(self.ready_summary())

    def snapshot(self) -> dict:
        return {
            "phase": self.phase.value,
            "countdown": self.countdown_remaining,
            "players": self.roster.status(),
            **{k: v for k, v in self.ready_summary().items() if k != "type"},
        }

    def admit(self, connection: Connection) -> int:
        if connection not in self._connections:
            self._connections.append(connection)
        player = self.roster.add(connection)
        player.send({"type": "playerConnected", "playerId": player.id})
        if self.phase is Phase.ROUND_ACTIVE:
            # joined after the countdown window closed
            self.roster.set_blocked(player, True)
            player.send({"type": "blockPlayer", "playerIdToBlock": player.id})
        self.broadcast_status()
        return player.id

    def disconnect(self, connection: Connection) -> None:
        if connection in self._connections:
            self._connections.remove(connection)
        player = self.roster.find_by_connection(connection)
        if player is not None:
            self.remove(player.id)

    def handle_message(self, connection: Connection, raw: str | bytes | dict) -> None:
        try:
            message = parse_client_message(raw)
        except ValidationError as e:
            log.error(f"Error processing client message: {e.errors(include_url=False)}")
            connection.send(INVALID_MESSAGE)
            return

        player = self.roster.find_by_connection(connection)

        if isinstance(message, Join):
            if player is not None:
                log.debug(f"Player {player.id} sent join while already admitted")
                return
            player_id = self.admit(connection)
            if message.name:
                self.rename(player_id, message.name)
            return

        if player is None or (message.player_id is not None and message.player_id != player.id):
            log.debug(f"Ignoring {message.type} for unknown player {message.player_id}")
            return

        if isinstance(message, SetPlayerName):
            self.rename(player.id, message.name)
        elif isinstance(message, PlayerReady):
            self.mark_ready(player.id)
        elif isinstance(message, Hold):
            self.hold(player.id)
        elif isinstance(message, Release):
            self.release(player.id)
        elif isinstance(message, ResetGame):
            self.reset(player.id)

    def rename(self, player_id: int, name: str) -> bool:
        player = self.roster.get(player_id)
        if player is None:
            return False
        name = name.strip()[: self.settings.max_name_length].strip()
        if not name:
            return False
        player.name = name
        self.broadcast_status()
        return True

    def remove(self, player_id: int) -> None:
        player = self.roster.remove(player_id)
        if player is None:
            return

        self.broadcast_status()
        self.broadcast(self._with_players("playerLeft", playerId=player.id, playerName=player.name))

        if self.game_in_progress:
            active = self.roster.active_players
            if len(active) == 1:
                self._end_game(active[0])
            elif len(active) < self.settings.min_players:
                log.info(f"Only {len(active)} active players left, resetting game")
                self._reset("Not enough players. Game reset.")
            else:
                self._check_round_outcome()
        else:
            self.evaluate_ready_gate()

    def mark_ready(self, player_id: int) -> bool:
        player = self.roster.get(player_id)
        if player is None or self.phase is not Phase.WAITING_FOR_READY:
            return False
        if not player.is_active or player.is_ready:
            return False

        player.is_ready = True
        log.info(f"Player {player.id} is ready")
        self.broadcast_status()
        self.evaluate_ready_gate()
        return True

    def evaluate_ready_gate(self) -> bool:
        if self.phase is not Phase.WAITING_FOR_READY:
            return False
        active = self.roster.active_players
        if len(active) < self.settings.min_players:
            return False
        if not all(p.is_ready for p in active):
            return False

        self.roster.clear_ready()
        self.phase = Phase.COUNTDOWN
        log.info(f"Game started with {len(active)} players")
        self.broadcast(self._with_players("gameStart"))
        self._start_countdown()
        return True

    def _can_press(self, player: Player | None) -> bool:
        return (
            player is not None
            and self.game_in_progress
            and player.is_active
            and not player.blocked_in_round
        )

    def hold(self, player_id: int) -> bool:
        player = self.roster.get(player_id)
        if not self._can_press(player) or player.holding:
            return False
        self.roster.set_holding(player, True)
        self.broadcast_status()
        return True

    def release(self, player_id: int) -> bool:
        player = self.roster.get(player_id)
        if not self._can_press(player) or not player.holding:
            return False
        self.roster.set_holding(player, False)
        self.broadcast_status()
        self._check_round_outcome()
        return True

    def _start_countdown(self) -> bool:
        if self._countdown_timer is not None or self.phase is Phase.ROUND_ACTIVE:
            log.debug("Countdown already running or round active")
            return False

        self.phase = Phase.COUNTDOWN
        for player in self.roster.active_players:
            self.roster.set_blocked(player, False)
            if not self.settings.carry_over_holding:
                self.roster.set_holding(player, False)
        self.broadcast_status()

        self.countdown_remaining = self.settings.countdown_seconds
        self.broadcast({"type": "countdown", "countdown": self.countdown_remaining})
        if self.countdown_remaining <= 0:
            self._finish_countdown()
        else:
            self._countdown_timer = self.scheduler.call_every(1.0, self._countdown_tick)
        return True

    def _countdown_tick(self) -> None:
        self.countdown_remaining -= 1
        self.broadcast({"type": "countdown", "countdown": self.countdown_remaining})
        if self.countdown_remaining <= 0:
            self._cancel_countdown()
            self._finish_countdown()

    def _finish_countdown(self) -> None:
        self.countdown_remaining = None
        for player in self.roster.active_players:
            if not player.holding:
                self.roster.set_blocked(player, True)
                log.info(f"Player {player.id} blocked for this round")
                player.send({"type": "blockPlayer", "playerIdToBlock": player.id})
        self.broadcast_status()
        self._start_round()

    def _start_round(self) -> None:
        self._cancel_countdown()
        self._cancel_decay()
        self.phase = Phase.ROUND_ACTIVE

        if not self.roster.rebuild_holding_set():
            self._end_round(None)
            return

        log.info(f"Round started with holders {sorted(self.roster.holding_ids)}")
        self.broadcast(self._with_players("roundStart"))
        self._decay_timer = self.scheduler.call_every(
            self.settings.tick_interval_ms / 1000, self._decay_tick
        )

    def _decay_tick(self) -> None:
        if self._check_round_outcome():
            return

        for player in self.roster.eligible_holders():
            if self.roster.consume_time(player, self.settings.tick_interval_ms):
                log.info(f"Player {player.id} eliminated, out of time")
                player.send(
                    self._with_players("playerEliminated", eliminatedPlayerId=player.id)
                )
            else:
                player.send({"type": "timeUpdate", "remainingTime": player.time_remaining_ms})

        self.broadcast_status()

    def _check_round_outcome(self) -> bool:
        if self.phase is not Phase.ROUND_ACTIVE:
            return False
        holders = self.roster.eligible_holders()
        if len(holders) == 1:
            self._end_round(holders[0])
            return True
        if not holders:
            self._end_round(None)
            return True
        return False

    def _end_round(self, winner: Player | None) -> None:
        self._stop_timers()
        self.phase = Phase.ROUND_RESOLVING
        self.roster.clear_blocked()

        if winner is not None:
            log.info(f"Round won by player {winner.id}")
            self.broadcast(
                self._with_players("roundWinner", winnerId=winner.id, winnerName=winner.name)
            )
        else:
            log.info("Round ended with no winner")
            self.broadcast(
                self._with_players("roundEndedNoWinner", message="Nobody held on. No winner this round.")
            )

        self._settle_timer = self.scheduler.call_later(
            self.settings.settle_delay_ms / 1000, self._settle_elapsed
        )

    def _settle_elapsed(self) -> None:
        self._settle_timer = None
        self.evaluate_game_over()

    def evaluate_game_over(self) -> bool:
        if not self.game_in_progress:
            return False

        active = self.roster.active_players
        if len(active) == 1:
            self._end_game(active[0])
            return True
        if not active:
            self._end_game(None)
            return True
        if self.phase is not Phase.ROUND_RESOLVING:
            return False

        self._cancel_settle()
        for player in active:
            player.is_ready = False
            self.roster.set_blocked(player, False)
        return self._start_countdown()

    def _end_game(self, champion: Player | None) -> None:
        self._stop_timers()
        self.phase = Phase.GAME_OVER
        self.countdown_remaining = None
        self.roster.clear_ready()

        if champion is not None:
            log.info(f"Game over. Player {champion.id} is the champion")
            self.broadcast(
                self._with_players("gameOver", winnerId=champion.id, winnerName=champion.name)
            )
        else:
            log.info("Game over with no single winner")
            self.broadcast(
                self._with_players(
                    "gameOver",
                    winnerId=None,
                    winnerName=None,
                    message="All players ran out of time.",
                )
            )

    def reset(self, player_id: int) -> bool:
        if player_id != self.settings.admin_player_id or player_id not in self.roster:
            log.debug(f"Player {player_id} is not allowed to reset the game")
            return False
        self._reset()
        return True

    def _reset(self, message: str | None = None) -> None:
        log.info("Resetting game")
        self._stop_timers()
        self.roster.clear()
        self.phase = Phase.WAITING_FOR_READY
        self.countdown_remaining = None

        payload = {"type": "gameReset"}
        if message:
            payload["message"] = message
        self.broadcast(payload)

    def close(self) -> None:
        """Stop all timers; used on application shutdown."""
        self._stop_timers()
        self._connections.clear()

    def _cancel_countdown(self) -> None:
        if self._countdown_timer is not None:
            self._countdown_timer.cancel()
            self._countdown_timer = None

    def _cancel_decay(self) -> None:
        if self._decay_timer is not None:
            self._decay_timer.cancel()
            self._decay_timer = None

    def _cancel_settle(self) -> None:
        if self._settle_timer is not None:
            self._settle_timer.cancel()
            self._settle_timer = None

    def _stop_timers(self) -> None:
        self._cancel_countdown()
        self._cancel_decay()
        self._cancel_settle()
