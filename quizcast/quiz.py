"""Per-quiz vote bookkeeping.

Every voter holds at most one active choice. ``counts`` is derived state
kept in step with ``votes`` on each mutation, so ``counts[c]`` always equals
the number of voters whose current choice is ``c``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class Quiz:
    """Definition plus live tally for a single quiz inside a room."""

    def __init__(self, quiz_id: str, definition: Optional[Dict[str, Any]] = None):
        self.quiz_id = quiz_id
        # Placeholder definition for quizzes first seen through a vote or query.
        self.definition: Dict[str, Any] = dict(definition) if definition else {"id": quiz_id}
        self.counts: Dict[str, int] = {}
        self.votes: Dict[str, str] = {}

    def upsert(self, definition: Dict[str, Any]) -> None:
        """Replace the definition wholesale; the tally is left alone."""
        self.definition = dict(definition)

    def record_vote(self, voter_id: str, choice: str) -> str:
        """Record *choice* as *voter_id*'s only active answer and return it."""
        previous = self.votes.get(voter_id)
        if previous is not None:
            self.counts[previous] = max(0, self.counts.get(previous, 0) - 1)
        self.votes[voter_id] = choice
        self.counts[choice] = self.counts.get(choice, 0) + 1
        return choice

    def reset(self) -> None:
        self.counts = {}
        self.votes = {}

    def snapshot(self) -> Dict[str, int]:
        return dict(self.counts)

    def __repr__(self) -> str:
        return f"Quiz(id={self.quiz_id!r}, voters={len(self.votes)}, counts={self.counts!r})"


__all__ = ["Quiz"]
