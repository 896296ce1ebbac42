import random
from collections import Counter

import pytest

from app.errors import InsufficientParticipants
from app.models import Participant
from app.services.assignments import draw


def people(n):
    return [Participant(id=f"p{i}", name=f"Person {i}") for i in range(n)]


@pytest.mark.parametrize("n", [2, 3, 4, 5, 8, 13, 50])
def test_draw_is_a_derangement(n):
    participants = people(n)
    ids = {p.id for p in participants}
    for _ in range(50):
        assignment = draw(participants)
        assert set(assignment.keys()) == ids
        assert set(assignment.values()) == ids
        assert all(giver != receiver for giver, receiver in assignment.items())


def test_draw_two_people_swaps():
    a, b = people(2)
    for _ in range(20):
        assert draw([a, b]) == {a.id: b.id, b.id: a.id}


@pytest.mark.parametrize("n", [0, 1])
def test_draw_rejects_fewer_than_two(n):
    with pytest.raises(InsufficientParticipants):
        draw(people(n))


def test_draw_does_not_touch_input_order():
    participants = people(6)
    before = [p.id for p in participants]
    draw(participants)
    assert [p.id for p in participants] == before


def test_draw_seeded_rng_is_repeatable():
    participants = people(7)
    assert draw(participants, rng=random.Random(123)) == draw(participants, rng=random.Random(123))


def test_draw_distribution_is_not_degenerate():
    participants = people(5)
    seen = {p.id: Counter() for p in participants}
    for _ in range(10_000):
        for giver, receiver in draw(participants).items():
            seen[giver][receiver] += 1

    for giver, counts in seen.items():
        assert giver not in counts
        # Every other participant turns up as this giver's match
        assert set(counts) == {p.id for p in participants} - {giver}
        assert min(counts.values()) > 1000
