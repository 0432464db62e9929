"""
Pytest configuration and shared fixtures for the holdout game server.
"""

import itertools
from typing import Any, Callable

import pytest

from holdout.game import GameServer, RepeatingTimer
from holdout.models import GameSettings


class ManualTimer:
    def __init__(self, due_ms: int, seq: int, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by ``advance`` instead of a real clock."""

    def __init__(self):
        self.now_ms = 0
        self._timers: list[ManualTimer] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now_ms + round(delay * 1000), next(self._seq), callback)
        self._timers.append(timer)
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> RepeatingTimer:
        return RepeatingTimer(self, interval, callback)

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, ms: int, on_step: Callable[[], None] | None = None) -> None:
        target = self.now_ms + ms
        while True:
            self._timers = self.pending
            due = [t for t in self._timers if t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due_ms, t.seq))
            self._timers.remove(timer)
            self.now_ms = timer.due_ms
            timer.callback()
            if on_step is not None:
                on_step()
        self.now_ms = target


class RecordingConnection:
    """Connection that captures everything the game sends to it."""

    def __init__(self):
        self.messages: list[dict[str, Any]] = []

    def send(self, message: dict) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["type"] == message_type]

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]

    def last(self, message_type: str) -> dict[str, Any] | None:
        found = self.of_type(message_type)
        return found[-1] if found else None

    def clear(self) -> None:
        self.messages.clear()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def settings():
    return GameSettings(
        initial_time_ms=600_000,
        min_players=2,
        countdown_seconds=5,
        tick_interval_ms=100,
        settle_delay_ms=2000,
        max_name_length=20,
        admin_player_id=1,
        carry_over_holding=True,
    )


@pytest.fixture
def game(scheduler, settings):
    return GameServer(scheduler, settings)


def join(game: GameServer, count: int) -> list[tuple[RecordingConnection, int]]:
    joined = []
    for _ in range(count):
        connection = RecordingConnection()
        joined.append((connection, game.admit(connection)))
    return joined


def ready_all(game: GameServer, joined) -> None:
    for _, player_id in joined:
        game.mark_ready(player_id)


@pytest.fixture
def two_players(game):
    return join(game, 2)


@pytest.fixture
def started(game, two_players):
    """Two players past the ready gate, countdown running."""
    ready_all(game, two_players)
    return two_players
