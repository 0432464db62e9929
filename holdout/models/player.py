from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Connection(Protocol):
    """Send-only handle to one client. Must never raise on a closed peer."""

    def send(self, message: dict) -> None: ...


STATUS_FIELDS = {"id", "name", "holding", "eliminated", "blocked_in_round", "is_ready"}


class Player(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    connection: Any = Field(exclude=True, repr=False)
    name: str
    time_remaining_ms: int
    holding: bool = False
    eliminated: bool = False
    blocked_in_round: bool = False
    is_ready: bool = False

    @property
    def is_active(self) -> bool:
        return not self.eliminated

    def status(self) -> dict:
        # remaining time is private to the player, see timeUpdate
        return self.model_dump(by_alias=True, include=STATUS_FIELDS)

    def send(self, message: dict) -> None:
        self.connection.send(message)
