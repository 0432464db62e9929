import logging
from typing import Iterator

from ..models import Connection, Player

log = logging.getLogger(__name__)


class Roster:
    """Ordered collection of connected players.

    ``holding``, ``eliminated`` and ``blocked_in_round`` are only changed
    through the setters below so the cached holding set never drifts from the
    per-player flags.
    """

    def __init__(self, initial_time_ms: int):
        self.initial_time_ms = initial_time_ms
        self.next_player_id = 1
        self._players: dict[int, Player] = {}
        self._holding_ids: set[int] = set()

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[Player]:
        return iter(list(self._players.values()))

    def __contains__(self, player_id: int) -> bool:
        return player_id in self._players

    def get(self, player_id: int | None) -> Player | None:
        if player_id is None:
            return None
        return self._players.get(player_id)

    def find_by_connection(self, connection: Connection) -> Player | None:
        for player in self._players.values():
            if player.connection is connection:
                return player
        return None

    @property
    def active_players(self) -> list[Player]:
        return [p for p in self._players.values() if p.is_active]

    @property
    def holding_ids(self) -> frozenset[int]:
        return frozenset(self._holding_ids)

    def status(self) -> list[dict]:
        return [p.status() for p in self._players.values()]

    def add(self, connection: Connection) -> Player:
        player_id = self.next_player_id
        self.next_player_id += 1
        player = Player(
            id=player_id,
            connection=connection,
            name=f"Player {player_id}",
            time_remaining_ms=self.initial_time_ms,
        )
        self._players[player_id] = player
        log.info(f"Player {player_id} joined. Total players: {len(self._players)}")
        return player

    def remove(self, player_id: int) -> Player | None:
        player = self._players.pop(player_id, None)
        self._holding_ids.discard(player_id)
        if player is not None:
            log.info(f"Player {player_id} left. Total players: {len(self._players)}")
        return player

    def clear(self) -> None:
        self._players.clear()
        self._holding_ids.clear()
        self.next_player_id = 1

    def _sync(self, player: Player) -> None:
        if player.holding and not player.eliminated and not player.blocked_in_round:
            self._holding_ids.add(player.id)
        else:
            self._holding_ids.discard(player.id)

    def set_holding(self, player: Player, holding: bool) -> None:
        player.holding = holding
        self._sync(player)

    def set_blocked(self, player: Player, blocked: bool) -> None:
        player.blocked_in_round = blocked
        self._sync(player)

    def eliminate(self, player: Player) -> None:
        player.time_remaining_ms = 0
        player.eliminated = True
        player.holding = False
        player.blocked_in_round = False
        self._sync(player)

    def rebuild_holding_set(self) -> frozenset[int]:
        self._holding_ids = {
            p.id
            for p in self._players.values()
            if p.holding and not p.eliminated and not p.blocked_in_round
        }
        return self.holding_ids

    def eligible_holders(self) -> list[Player]:
        """Holders that count for the current round, in roster order."""
        return [p for p in self._players.values() if p.id in self._holding_ids]

    def consume_time(self, player: Player, elapsed_ms: int) -> bool:
        """Charge ``elapsed_ms`` to ``player``; return True if it ran out."""
        player.time_remaining_ms = max(0, player.time_remaining_ms - elapsed_ms)
        if player.time_remaining_ms == 0:
            self.eliminate(player)
            return True
        return False

    def clear_ready(self) -> None:
        for player in self._players.values():
            player.is_ready = False

    def clear_blocked(self) -> None:
        for player in self._players.values():
            self.set_blocked(player, False)
