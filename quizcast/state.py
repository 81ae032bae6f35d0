"""In-memory room store.

The store is created by the app factory and handed to the router and the
HTTP endpoints explicitly; tests build a fresh one per case.
"""
from __future__ import annotations

from typing import Dict, Iterator, Optional

from starlette.requests import HTTPConnection

from .constants import AUDIENCE_ALL
from .logging_config import get_logger
from .room import Room

logger = get_logger(__name__)


class RoomStore:
    """Maps room ids to :class:`Room` instances. Rooms are never deleted."""

    def __init__(self, audience: str = AUDIENCE_ALL):
        self.audience = audience
        self._rooms: Dict[str, Room] = {}

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is not None:
            return room
        # setdefault keeps lookup-and-insert a single step: one Room per key.
        room = self._rooms.setdefault(room_id, Room(room_id, audience=self.audience))
        logger.info("room %s created (%d total)", room_id, len(self._rooms))
        return room

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))


def get_room_store(conn: HTTPConnection) -> RoomStore:
    """FastAPI dependency returning the store attached by ``create_app``."""
    return conn.app.state.room_store


__all__ = ["RoomStore", "get_room_store"]
