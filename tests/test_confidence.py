import itertools

import pytest

from db.store import ReviewRecord
from etl.confidence import (
    ScoringContext, ConfidencePolicy, INSTRUCTOR_POLICY, COURSE_POLICY, compute_confidence,
    recency_factor, vote_factor,
)


def _review(term_number=40, up=0, down=0, instructor="LEE, Ann"):
    return ReviewRecord(
        hash="h1", instructor=instructor, term_number=term_number,
        subject="COMP", number="2011",
        rating_instructor=4.0, rating_content=4.0, rating_teaching=4.0,
        rating_grading=4.0, rating_workload=4.0,
        upvote_count=up, downvote_count=down,
    )


def test_fresh_neutral_review_has_unit_weight():
    assert compute_confidence(_review(40), ScoringContext(40), INSTRUCTOR_POLICY) == 1.0


class TestRecency:
    def test_instructor_grace_window(self):
        ctx = ScoringContext(48)
        assert compute_confidence(_review(40), ctx, INSTRUCTOR_POLICY) == 1.0

    def test_instructor_decay_after_grace(self):
        assert compute_confidence(_review(40), ScoringContext(52), INSTRUCTOR_POLICY) == pytest.approx(0.75)
        assert compute_confidence(_review(40), ScoringContext(56), INSTRUCTOR_POLICY) == pytest.approx(0.5625)

    def test_course_decays_from_first_term(self):
        # one year old, not in roster, same season
        weight = compute_confidence(_review(40), ScoringContext(44), COURSE_POLICY)
        assert weight == pytest.approx(0.75 * 0.15 * 1.5)

    @pytest.mark.parametrize("policy", [INSTRUCTOR_POLICY, COURSE_POLICY])
    def test_monotonic_decay(self, policy):
        weights = [recency_factor(age, policy) for age in range(0, 60)]
        assert all(a >= b for a, b in zip(weights, weights[1:]))


class TestVotes:
    def test_instructor_full_step(self):
        assert vote_factor(3, 1, INSTRUCTOR_POLICY) == 3.0

    def test_course_half_step(self):
        assert vote_factor(3, 1, COURSE_POLICY) == 2.0

    def test_net_downvotes(self):
        assert vote_factor(0, 3, INSTRUCTOR_POLICY) == 0.25
        assert vote_factor(1, 4, COURSE_POLICY) == 0.25

    def test_balanced(self):
        assert vote_factor(5, 5, INSTRUCTOR_POLICY) == 1.0


class TestRelevanceAndSeason:
    def test_instructor_in_roster(self):
        weight = compute_confidence(_review(40), ScoringContext(40), COURSE_POLICY, roster={"LEE, Ann"})
        assert weight == pytest.approx(3.0 * 1.5)

    def test_instructor_not_in_roster(self):
        weight = compute_confidence(_review(40), ScoringContext(40), COURSE_POLICY, roster={"WONG, Ben"})
        assert weight == pytest.approx(0.15 * 1.5)

    def test_empty_roster_is_other_instructor(self):
        weight = compute_confidence(_review(40), ScoringContext(40), COURSE_POLICY)
        assert weight == pytest.approx(0.15 * 1.5)

    def test_different_season_gets_no_bonus(self):
        weight = compute_confidence(_review(39), ScoringContext(40), COURSE_POLICY, roster={"LEE, Ann"})
        assert weight == pytest.approx(3.0 * 0.75 ** 0.25)

    def test_instructor_policy_ignores_roster(self):
        weight = compute_confidence(_review(40), ScoringContext(40), INSTRUCTOR_POLICY, roster={"WONG, Ben"})
        assert weight == 1.0


def test_custom_policy():
    policy = ConfidencePolicy(vote_step=2.0, grace_terms=4, decay_rate=0.5)
    assert compute_confidence(_review(40, up=1), ScoringContext(48), policy) == pytest.approx(3.0 * 0.5)


def test_weight_is_always_positive():
    policies = [INSTRUCTOR_POLICY, COURSE_POLICY]
    ages = [0, 1, 7, 8, 9, 40, 200]
    votes = [(0, 0), (10, 0), (0, 10), (3, 7)]
    rosters = [(), {"LEE, Ann"}]
    for policy, age, (up, down), roster in itertools.product(policies, ages, votes, rosters):
        weight = compute_confidence(_review(0, up, down), ScoringContext(age), policy, roster)
        assert weight > 0
