from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional, Set, Tuple

from .connections import Connection
from .constants import AUDIENCE_ALL, AUDIENCE_HOSTS, ROLE_HOST, ROLE_PLAYER
from .logging_config import get_logger
from .quiz import Quiz

logger = get_logger(__name__)


class Room:
    """Runtime state for one room: subscribed connections and its quizzes.

    None of the methods below suspend: mutators are plain dict/set updates and
    ``broadcast`` only queues frames on each peer's outbox. Handlers hold
    ``lock`` across a mutation and the broadcast that reports it, so a room's
    frames are queued in the order its state changed and the lock is never
    held across socket I/O.
    """

    def __init__(self, room_id: str, audience: str = AUDIENCE_ALL):
        self.room_id = room_id
        self.audience = audience
        self.hosts: Set[Connection] = set()
        self.players: Set[Connection] = set()
        self.quizzes: Dict[str, Quiz] = {}
        self.lock = asyncio.Lock()

    # -------------------- Membership -------------------- #

    def add_host(self, conn: Connection) -> bool:
        """Register *conn* as a host; ``True`` if it stopped being a player."""
        was_player = self._leave_players(conn)
        self.hosts.add(conn)
        conn.associate(self, ROLE_HOST)
        return was_player

    def add_player(self, conn: Connection) -> int:
        """Register *conn* as a player and return the new player count."""
        self.hosts.discard(conn)
        self.players.add(conn)
        conn.associate(self, ROLE_PLAYER)
        return len(self.players)

    def subscribe_host(self, conn: Connection) -> bool:
        """Add *conn* to the hosts without touching its routing state.

        Like :meth:`add_host` it leaves the player set; ``True`` if it did.
        """
        was_player = self._leave_players(conn)
        self.hosts.add(conn)
        conn.rooms.add(self)
        return was_player

    def _leave_players(self, conn: Connection) -> bool:
        if conn not in self.players:
            return False
        self.players.discard(conn)
        return True

    def discard(self, conn: Connection) -> bool:
        """Remove *conn* from both sets; ``True`` if it was a player."""
        self.hosts.discard(conn)
        was_player = conn in self.players
        self.players.discard(conn)
        return was_player

    @property
    def player_count(self) -> int:
        return len(self.players)

    # -------------------- Quizzes -------------------- #

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        return self.quizzes.get(quiz_id)

    def get_or_create_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.quizzes.get(quiz_id)
        if quiz is None:
            quiz = self.quizzes[quiz_id] = Quiz(quiz_id)
        return quiz

    def upsert_quiz(self, definition: Dict[str, Any]) -> Quiz:
        quiz = self.get_or_create_quiz(definition["id"])
        quiz.upsert(definition)
        return quiz

    def activate_quiz(self, quiz_id: str, reset: bool = False) -> Tuple[Dict[str, Any], Dict[str, int]]:
        quiz = self.get_or_create_quiz(quiz_id)
        if reset:
            quiz.reset()
        return dict(quiz.definition), quiz.snapshot()

    def record_vote(self, quiz_id: str, voter_id: str, choice: str) -> Tuple[str, Dict[str, int]]:
        quiz = self.get_or_create_quiz(quiz_id)
        accepted = quiz.record_vote(voter_id, choice)
        return accepted, quiz.snapshot()

    def reset_quiz(self, quiz_id: str) -> Dict[str, int]:
        quiz = self.quizzes.get(quiz_id)
        if quiz is None:
            return {}
        quiz.reset()
        return quiz.snapshot()

    def counts_snapshot(self, quiz_id: str) -> Dict[str, int]:
        quiz = self.quizzes.get(quiz_id)
        return quiz.snapshot() if quiz else {}

    # -------------------- Broadcasting -------------------- #

    def recipients(self) -> List[Connection]:
        if self.audience == AUDIENCE_HOSTS:
            return list(self.hosts)
        return list(self.hosts | self.players)

    def broadcast(self, payload: Dict[str, Any]) -> int:
        """Queue *payload* for every open recipient; returns how many took it."""
        message = json.dumps(payload)
        queued = sum(1 for c in self.recipients() if c.send(message))
        logger.debug("broadcast %s to %d in room %s", message, queued, self.room_id)
        return queued

    def __repr__(self) -> str:
        return f"Room({self.room_id!r}, hosts={len(self.hosts)}, players={len(self.players)}, quizzes={len(self.quizzes)})"


__all__ = ["Room"]
