from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ClientMessage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    player_id: int | None = None


class Join(ClientMessage):
    type: Literal["join"]
    name: str | None = None


class SetPlayerName(ClientMessage):
    type: Literal["setPlayerName"]
    name: str


class PlayerReady(ClientMessage):
    type: Literal["playerReady"]


class Hold(ClientMessage):
    type: Literal["hold"]


class Release(ClientMessage):
    type: Literal["release"]


class ResetGame(ClientMessage):
    type: Literal["resetGame"]


IncomingMessage = Annotated[
    Union[Join, SetPlayerName, PlayerReady, Hold, Release, ResetGame],
    Field(discriminator="type"),
]

incoming_message_adapter = TypeAdapter(IncomingMessage)


def parse_client_message(raw: str | bytes | dict) -> IncomingMessage:
    """Decode one client frame.

    Raises pydantic.ValidationError for bad JSON, an unknown ``type`` or
    missing fields.
    """
    if isinstance(raw, dict):
        return incoming_message_adapter.validate_python(raw)
    return incoming_message_adapter.validate_json(raw)


INVALID_MESSAGE = {"type": "error", "message": "Invalid message format"}
