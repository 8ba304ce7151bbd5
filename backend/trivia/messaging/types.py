from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter, field_validator

from trivia.logic.enums import Phase, RoomState
from trivia.logic.types import PlayerInfo, WireModel


class ClientMessageType(StrEnum):
    CREATE_ROOM = "create-room"
    JOIN_ROOM = "join-room"
    HOST_JOIN = "host-join"
    START_GAME = "start-game"
    VOTE_CATEGORY = "vote-category"
    SUBMIT_LIE = "submit-lie"
    SUBMIT_VOTE = "submit-vote"
    PLAY_AGAIN = "play-again"


class SessionMessageType(StrEnum):
    ROOM_CREATED = "room-created"
    ERROR = "error"
    JOINED = "joined"
    HOST_JOINED = "host-joined"
    PLAYER_LIST = "player-list"


class SessionErrorCode(StrEnum):
    ROOM_NOT_FOUND = "room_not_found"
    NAME_REQUIRED = "name_required"
    NAME_TAKEN = "name_taken"
    ROOM_FULL = "room_full"
    GAME_IN_PROGRESS = "game_in_progress"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    SERVER_FULL = "server_full"


def _normalize_code(value: str) -> str:
    return value.strip().upper()


class CreateRoomMessage(WireModel):
    type: Literal[ClientMessageType.CREATE_ROOM] = ClientMessageType.CREATE_ROOM


class JoinRoomMessage(WireModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    code: str = ""
    name: str = ""

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return _normalize_code(v)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return v.strip()


class HostJoinMessage(WireModel):
    type: Literal[ClientMessageType.HOST_JOIN] = ClientMessageType.HOST_JOIN
    code: str = ""

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return _normalize_code(v)


class StartGameMessage(WireModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME


class VoteCategoryMessage(WireModel):
    type: Literal[ClientMessageType.VOTE_CATEGORY] = ClientMessageType.VOTE_CATEGORY
    category: str = Field(max_length=256)


class SubmitLieMessage(WireModel):
    type: Literal[ClientMessageType.SUBMIT_LIE] = ClientMessageType.SUBMIT_LIE
    lie: str = ""


class SubmitVoteMessage(WireModel):
    type: Literal[ClientMessageType.SUBMIT_VOTE] = ClientMessageType.SUBMIT_VOTE
    # lax int parsing also accepts integer strings such as "3"
    answer_id: int


class PlayAgainMessage(WireModel):
    type: Literal[ClientMessageType.PLAY_AGAIN] = ClientMessageType.PLAY_AGAIN


ClientMessage = Annotated[
    CreateRoomMessage
    | JoinRoomMessage
    | HostJoinMessage
    | StartGameMessage
    | VoteCategoryMessage
    | SubmitLieMessage
    | SubmitVoteMessage
    | PlayAgainMessage,
    Field(discriminator="type"),
]

GameActionMessage = VoteCategoryMessage | SubmitLieMessage | SubmitVoteMessage


class RoomCreatedMessage(WireModel):
    type: Literal[SessionMessageType.ROOM_CREATED] = SessionMessageType.ROOM_CREATED
    code: str


class ErrorMessage(WireModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode
    message: str


class JoinedMessage(WireModel):
    """Confirmation sent to a player after joining or rejoining."""

    type: Literal[SessionMessageType.JOINED] = SessionMessageType.JOINED
    code: str
    name: str
    score: int
    phase: Phase


class HostJoinedMessage(WireModel):
    """Snapshot sent to a host display re-attaching to an existing room."""

    type: Literal[SessionMessageType.HOST_JOINED] = SessionMessageType.HOST_JOINED
    code: str
    players: list[PlayerInfo]
    phase: Phase
    state: RoomState


class PlayerListMessage(WireModel):
    type: Literal[SessionMessageType.PLAYER_LIST] = SessionMessageType.PLAYER_LIST
    players: list[PlayerInfo]


_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage. Raises ValidationError on bad input."""
    return _client_message_adapter.validate_python(data)
