import random
from collections import Counter

from quizcast.quiz import Quiz


def _expected_counts(votes):
    return Counter(votes.values())


def test_new_quiz_has_placeholder_definition_and_empty_tally():
    quiz = Quiz("q1")
    assert quiz.definition == {"id": "q1"}
    assert quiz.snapshot() == {}
    assert quiz.votes == {}


def test_upsert_replaces_definition_and_keeps_tally():
    quiz = Quiz("q1", {"id": "q1", "title": "old", "choices": ["A", "B"]})
    quiz.record_vote("v1", "A")
    quiz.upsert({"id": "q1", "title": "new"})
    assert quiz.definition == {"id": "q1", "title": "new"}
    assert quiz.snapshot() == {"A": 1}


def test_changing_vote_moves_the_count():
    quiz = Quiz("q1")
    assert quiz.record_vote("x", "A") == "A"
    assert quiz.snapshot() == {"A": 1}
    assert quiz.record_vote("x", "B") == "B"
    assert quiz.snapshot() == {"A": 0, "B": 1}


def test_same_vote_twice_is_idempotent():
    quiz = Quiz("q1")
    quiz.record_vote("x", "A")
    quiz.record_vote("x", "A")
    assert quiz.snapshot() == {"A": 1}


def test_counts_match_latest_choice_per_voter_for_random_sequences():
    rng = random.Random(1234)
    quiz = Quiz("q1")
    latest = {}
    for _ in range(500):
        voter = f"v{rng.randint(0, 20)}"
        choice = rng.choice("ABCD")
        quiz.record_vote(voter, choice)
        latest[voter] = choice

        expected = _expected_counts(latest)
        for label, count in quiz.counts.items():
            assert count >= 0
            assert count == expected.get(label, 0)


def test_decrement_never_goes_negative():
    quiz = Quiz("q1")
    quiz.record_vote("x", "A")
    quiz.counts["A"] = 0  # corrupt the tally directly
    quiz.record_vote("x", "B")
    assert quiz.counts["A"] == 0
    assert quiz.counts["B"] == 1


def test_reset_clears_counts_and_votes():
    quiz = Quiz("q1", {"id": "q1", "title": "t"})
    for i in range(50):
        quiz.record_vote(f"v{i}", "AB"[i % 2])
    quiz.reset()
    assert quiz.snapshot() == {}
    assert quiz.votes == {}
    assert quiz.definition == {"id": "q1", "title": "t"}

    quiz.record_vote("v1", "B")
    assert quiz.snapshot() == {"B": 1}


def test_snapshot_is_a_copy():
    quiz = Quiz("q1")
    quiz.record_vote("x", "A")
    snap = quiz.snapshot()
    snap["A"] = 99
    assert quiz.counts == {"A": 1}
