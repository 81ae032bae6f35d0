"""Pydantic data schemas used across the service.

Inbound WebSocket messages form a closed tagged union keyed on ``type``;
anything that does not validate against it is dropped before it reaches
the router. Outbound payloads and the REST response models live here too so
that field names stay in one place.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter, ValidationError

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
Counts = Dict[str, int]

# -----------------------------
# Inbound messages
# -----------------------------


class _Inbound(BaseModel):
    # Numeric ids and choices are accepted and keyed by their string form.
    model_config = ConfigDict(populate_by_name=True, frozen=True, coerce_numbers_to_str=True)


class HostCreate(_Inbound):
    type: Literal["host-create"]
    room: Optional[str] = None  # generated when absent or empty


class HostSubscribe(_Inbound):
    type: Literal["host-subscribe"]
    room: NonEmptyStr


class PlayerJoin(_Inbound):
    type: Literal["player-join"]
    room: NonEmptyStr


class QuizDefinition(BaseModel):
    """Opaque quiz definition; only ``id`` is interpreted."""

    model_config = ConfigDict(extra="allow", frozen=True, coerce_numbers_to_str=True)

    id: NonEmptyStr


class QuizUpsert(_Inbound):
    type: Literal["quiz-upsert"]
    room: NonEmptyStr
    quiz: QuizDefinition


class QuizActivate(_Inbound):
    type: Literal["quiz-activate"]
    room: NonEmptyStr
    id: NonEmptyStr
    reset: bool = False


class CountsRequest(_Inbound):
    type: Literal["counts-request"]
    room: NonEmptyStr
    quiz_id: NonEmptyStr = Field(alias="quizId")


class Answer(_Inbound):
    type: Literal["answer"]
    room: NonEmptyStr
    quiz_id: NonEmptyStr = Field(alias="quizId")
    choice: NonEmptyStr


class QuizReset(_Inbound):
    type: Literal["quiz-reset"]
    room: NonEmptyStr
    quiz_id: NonEmptyStr = Field(alias="quizId")


InboundMessage = Annotated[
    Union[
        HostCreate,
        HostSubscribe,
        PlayerJoin,
        QuizUpsert,
        QuizActivate,
        CountsRequest,
        Answer,
        QuizReset,
    ],
    Field(discriminator="type"),
]

inbound_adapter: TypeAdapter = TypeAdapter(InboundMessage)


def parse_message(raw: Union[str, bytes]) -> Optional[InboundMessage]:
    """Return the validated message, or ``None`` if *raw* is malformed.

    Unparseable JSON, non-object payloads, unknown ``type`` values and
    missing or empty required fields all yield ``None``.
    """
    try:
        return inbound_adapter.validate_json(raw)
    except ValidationError:
        return None


# -----------------------------
# Outbound messages
# -----------------------------


class _Outbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class RoomCreated(_Outbound):
    type: Literal["room"] = "room"
    room: str


class Joined(_Outbound):
    type: Literal["joined"] = "joined"
    room: str


class PlayersUpdate(_Outbound):
    type: Literal["players"] = "players"
    room: str
    count: int


class QuizActive(_Outbound):
    type: Literal["quiz-active"] = "quiz-active"
    room: str
    quiz: Dict[str, Any]
    counts: Counts


class CountsUpdate(_Outbound):
    type: Literal["counts"] = "counts"
    room: str
    quiz_id: str = Field(alias="quizId")
    counts: Counts


class AnswerAck(_Outbound):
    type: Literal["answer-ack"] = "answer-ack"
    quiz_id: str = Field(alias="quizId")
    choice: str


# -----------------------------
# REST response models
# -----------------------------


class RoomSummary(BaseModel):
    room: str
    hosts: int
    players: int
    quizzes: List[str]


class CountsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room: str
    quiz_id: str = Field(alias="quizId")
    counts: Counts


__all__ = [
    # inbound
    "HostCreate",
    "HostSubscribe",
    "PlayerJoin",
    "QuizDefinition",
    "QuizUpsert",
    "QuizActivate",
    "CountsRequest",
    "Answer",
    "QuizReset",
    "InboundMessage",
    "inbound_adapter",
    "parse_message",
    # outbound
    "RoomCreated",
    "Joined",
    "PlayersUpdate",
    "QuizActive",
    "CountsUpdate",
    "AnswerAck",
    # rest
    "RoomSummary",
    "CountsResponse",
]
