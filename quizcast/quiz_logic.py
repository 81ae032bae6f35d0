"""Inbound message handling.

This module is transport-agnostic: handlers operate on a :class:`RoomStore`
and a :class:`Connection`, and only ever talk to peers through
``Connection.send_json`` and ``Room.broadcast``. The WebSocket router feeds
raw frames into :func:`handle_raw_message`.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Union

from .connections import Connection, ConnectionRegistry
from .constants import (
    MSG_ANSWER,
    MSG_COUNTS_REQUEST,
    MSG_HOST_CREATE,
    MSG_HOST_SUBSCRIBE,
    MSG_PLAYER_JOIN,
    MSG_QUIZ_ACTIVATE,
    MSG_QUIZ_RESET,
    MSG_QUIZ_UPSERT,
    ROOM_CODE_LENGTH,
)
from .logging_config import get_logger
from .room import Room
from .schemas import (
    Answer,
    AnswerAck,
    CountsRequest,
    CountsUpdate,
    HostCreate,
    HostSubscribe,
    InboundMessage,
    Joined,
    PlayerJoin,
    PlayersUpdate,
    QuizActivate,
    QuizActive,
    QuizReset,
    QuizUpsert,
    RoomCreated,
    parse_message,
)
from .state import RoomStore

logger = get_logger(__name__)


def generate_room_code(store: RoomStore) -> str:
    code = uuid.uuid4().hex[:ROOM_CODE_LENGTH]
    while code.upper() in store:
        code = uuid.uuid4().hex[:ROOM_CODE_LENGTH]
    return code


def _announce_players(room: Room) -> None:
    room.broadcast(PlayersUpdate(room=room.room_id, count=room.player_count).payload())


# ---------------------------------------------------------------------------
# Association
# ---------------------------------------------------------------------------

async def handle_host_create(store: RoomStore, conn: Connection, msg: HostCreate) -> Room:
    room_id = (msg.room or generate_room_code(store)).upper()
    room = store.get_or_create(room_id)
    async with room.lock:
        was_player = room.add_host(conn)
        conn.send_json(RoomCreated(room=room_id).payload())
        if was_player:
            _announce_players(room)
    logger.info("%s is host of room %s", conn.voter_id, room_id)
    return room


async def handle_host_subscribe(store: RoomStore, conn: Connection, msg: HostSubscribe) -> Room:
    room = store.get_or_create(msg.room)
    async with room.lock:
        if room.add_host(conn):
            _announce_players(room)
    logger.info("%s subscribed to room %s as host", conn.voter_id, msg.room)
    return room


async def handle_player_join(store: RoomStore, conn: Connection, msg: PlayerJoin) -> Room:
    room = store.get_or_create(msg.room)
    async with room.lock:
        count = room.add_player(conn)
        conn.send_json(Joined(room=msg.room).payload())
        _announce_players(room)
    logger.info("%s joined room %s (%d players)", conn.voter_id, msg.room, count)
    return room


# ---------------------------------------------------------------------------
# Quizzes & tallies
# ---------------------------------------------------------------------------

async def handle_quiz_upsert(store: RoomStore, conn: Connection, msg: QuizUpsert) -> None:
    room = store.get_or_create(msg.room)
    async with room.lock:
        room.upsert_quiz(msg.quiz.model_dump())


async def handle_quiz_activate(store: RoomStore, conn: Connection, msg: QuizActivate) -> None:
    room = store.get_or_create(msg.room)
    async with room.lock:
        definition, counts = room.activate_quiz(msg.id, reset=msg.reset)
        room.broadcast(QuizActive(room=msg.room, quiz=definition, counts=counts).payload())


async def handle_counts_request(
    store: RoomStore,
    conn: Connection,
    msg: CountsRequest,
    subscribe: bool = False,
) -> None:
    room = store.get_or_create(msg.room)
    async with room.lock:
        counts = room.counts_snapshot(msg.quiz_id)
        conn.send_json(CountsUpdate(room=msg.room, quiz_id=msg.quiz_id, counts=counts).payload())
        if subscribe and room.subscribe_host(conn):
            _announce_players(room)


async def handle_answer(store: RoomStore, conn: Connection, msg: Answer) -> None:
    room = store.get_or_create(msg.room)
    async with room.lock:
        choice, counts = room.record_vote(msg.quiz_id, conn.voter_id, msg.choice)
        conn.send_json(AnswerAck(quiz_id=msg.quiz_id, choice=choice).payload())
        room.broadcast(CountsUpdate(room=msg.room, quiz_id=msg.quiz_id, counts=counts).payload())


async def handle_quiz_reset(store: RoomStore, conn: Connection, msg: QuizReset) -> None:
    room = store.get_or_create(msg.room)
    async with room.lock:
        counts = room.reset_quiz(msg.quiz_id)
        room.broadcast(CountsUpdate(room=msg.room, quiz_id=msg.quiz_id, counts=counts).payload())


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

async def handle_ws_message(
    store: RoomStore,
    conn: Connection,
    msg: InboundMessage,
    counts_request_subscribes: bool = False,
) -> None:
    msg_type = msg.type
    if msg_type == MSG_HOST_CREATE:
        await handle_host_create(store, conn, msg)
    elif msg_type == MSG_HOST_SUBSCRIBE:
        await handle_host_subscribe(store, conn, msg)
    elif msg_type == MSG_PLAYER_JOIN:
        await handle_player_join(store, conn, msg)
    elif msg_type == MSG_QUIZ_UPSERT:
        await handle_quiz_upsert(store, conn, msg)
    elif msg_type == MSG_QUIZ_ACTIVATE:
        await handle_quiz_activate(store, conn, msg)
    elif msg_type == MSG_COUNTS_REQUEST:
        await handle_counts_request(store, conn, msg, subscribe=counts_request_subscribes)
    elif msg_type == MSG_ANSWER:
        await handle_answer(store, conn, msg)
    elif msg_type == MSG_QUIZ_RESET:
        await handle_quiz_reset(store, conn, msg)


async def handle_raw_message(
    store: RoomStore,
    conn: Connection,
    raw: Union[str, bytes],
    counts_request_subscribes: bool = False,
) -> Optional[InboundMessage]:
    """Validate and dispatch one frame. Malformed frames are dropped silently."""
    logger.debug("msg from %s: %r", conn.voter_id, raw)
    msg = parse_message(raw)
    if msg is None:
        logger.debug("dropping malformed message from %s", conn.voter_id)
        return None
    await handle_ws_message(store, conn, msg, counts_request_subscribes=counts_request_subscribes)
    return msg


def handle_disconnect(registry: ConnectionRegistry, conn: Connection) -> None:
    """Unregister *conn* and announce the new player count where it played.

    Synchronous so that it completes even while the connection's task is
    being cancelled. No handler suspends while holding a room lock, so
    skipping the lock here cannot interleave with a half-applied mutation.
    """
    rooms: List[Room] = registry.disconnect(conn)
    for room in rooms:
        _announce_players(room)


__all__ = [
    "generate_room_code",
    "handle_host_create",
    "handle_host_subscribe",
    "handle_player_join",
    "handle_quiz_upsert",
    "handle_quiz_activate",
    "handle_counts_request",
    "handle_answer",
    "handle_quiz_reset",
    "handle_ws_message",
    "handle_raw_message",
    "handle_disconnect",
]
