"""Live connection tracking.

A ``Connection`` wraps one accepted WebSocket together with the state the
router needs about it: the voter identity used for one-vote-per-connection,
and the room/role association established by ``host-create`` or
``player-join``.

Outbound frames never touch the socket from the caller's coroutine. They are
queued on the connection's outbox and written by a per-connection writer
task, so a peer that stops reading only ever stalls its own queue.
"""
from __future__ import annotations

import asyncio
import json
import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from .constants import OUTBOX_LIMIT, ROLE_HOST, ROLE_PLAYER, ROLES
from .logging_config import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from .room import Room

logger = get_logger(__name__)

UNASSOCIATED = "unassociated"
ASSOCIATED = "associated"


def new_voter_id() -> str:
    return uuid.uuid4().hex


class Connection:
    """Per-connection state owned by the :class:`ConnectionRegistry`."""

    def __init__(self, ws: WebSocket, voter_id: Optional[str] = None, outbox_limit: int = OUTBOX_LIMIT):
        self.ws = ws
        self.voter_id = voter_id or new_voter_id()
        self.role: str = ROLE_PLAYER
        self.room_id: Optional[str] = None
        # Every room whose host/player sets this connection was added to.
        self.rooms: Set["Room"] = set()
        self.closed = False
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_limit)
        self._writer: Optional[asyncio.Task] = None

    # -------------------- Association -------------------- #

    @property
    def state(self) -> str:
        return ASSOCIATED if self.room_id is not None else UNASSOCIATED

    def associate(self, room: "Room", role: str) -> None:
        """Bind the connection to *room* as *role*; a later call wins."""
        if role not in ROLES:
            raise ValueError(f"unknown role {role!r}")
        self.room_id = room.room_id
        self.role = role
        self.rooms.add(room)

    @property
    def is_host(self) -> bool:
        return self.role == ROLE_HOST

    # -------------------- Transport -------------------- #

    def is_open(self) -> bool:
        if self.closed:
            return False
        return (
            self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        )

    def send(self, message: str) -> bool:
        """Queue an already serialized frame. Never blocks, never raises.

        Returns ``False`` when the frame was dropped because the peer is
        closed or its outbox is full.
        """
        if not self.is_open():
            return False
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("outbox of %s is full, dropping frame", self.voter_id)
            return False
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(self._write_loop())
        return True

    def send_json(self, payload: Dict[str, Any]) -> bool:
        return self.send(json.dumps(payload))

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                if self.is_open():
                    await self.ws.send_text(message)
            except Exception as exc:
                logger.debug("send to %s failed: %s", self.voter_id, exc)
                self.closed = True
            finally:
                self._outbox.task_done()

    async def drain(self) -> None:
        """Wait until every queued frame has been written or discarded."""
        await self._outbox.join()

    def close(self) -> None:
        """Stop the writer and discard frames that were never written."""
        self.closed = True
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    def __repr__(self) -> str:
        return f"Connection(voter_id={self.voter_id!r}, role={self.role!r}, room={self.room_id!r})"


class ConnectionRegistry:
    """Tracks live connections keyed by voter identity."""

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}

    def connect(self, ws: WebSocket) -> Connection:
        conn = Connection(ws)
        self._connections[conn.voter_id] = conn
        logger.info("connection %s opened (%d live)", conn.voter_id, len(self._connections))
        return conn

    def disconnect(self, conn: Connection) -> List["Room"]:
        """Drop *conn* from every room it joined.

        Returns the rooms in which it was a player so callers can announce
        the new player count. Safe to call more than once.
        """
        conn.close()
        if self._connections.get(conn.voter_id) is conn:
            del self._connections[conn.voter_id]
            logger.info("connection %s closed (%d live)", conn.voter_id, len(self._connections))

        left_as_player: List["Room"] = []
        for room in list(conn.rooms):
            if room.discard(conn):
                left_as_player.append(room)
        conn.rooms.clear()
        return left_as_player

    def get(self, voter_id: str) -> Optional[Connection]:
        return self._connections.get(voter_id)

    async def drain(self) -> None:
        """Wait for every live connection's outbox to empty."""
        await asyncio.gather(*(conn.drain() for conn in list(self._connections.values())))

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, conn: object) -> bool:
        return isinstance(conn, Connection) and self._connections.get(conn.voter_id) is conn


__all__ = [
    "UNASSOCIATED",
    "ASSOCIATED",
    "new_voter_id",
    "Connection",
    "ConnectionRegistry",
]
