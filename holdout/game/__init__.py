from .game_server import GameServer
from .roster import Roster
from .scheduler import AsyncioScheduler, RepeatingTimer, Scheduler, TimerHandle

__all__ = ["GameServer", "Roster", "AsyncioScheduler", "RepeatingTimer", "Scheduler", "TimerHandle"]
