import math

import pytest

from db.store import ReviewRecord
from etl.ewma import EWMA_SMOOTHING_FACTOR, ewma, ewma_weight, ewma_overall_ratings
from etl.scoring import ReviewIndex, INSTRUCTOR, COURSE


def _review(hash, term_number, teaching, instructor_rating, instructor="LEE, Ann", content=3.0):
    return ReviewRecord(
        hash=hash, instructor=instructor, term_number=term_number,
        subject="COMP", number="2011",
        rating_instructor=instructor_rating, rating_content=content, rating_teaching=teaching,
        rating_grading=3.0, rating_workload=3.0,
        upvote_count=0, downvote_count=0,
    )


def test_half_life_is_two_years():
    assert (1 - EWMA_SMOOTHING_FACTOR) ** 8 == pytest.approx(0.5, abs=0.01)


def test_weight_of_current_term_is_alpha():
    assert ewma_weight(30, 30) == pytest.approx(EWMA_SMOOTHING_FACTOR)
    assert ewma_weight(22, 30) < ewma_weight(29, 30)


def test_single_sample():
    assert ewma([(10, 4.0)], now=30) == pytest.approx(4.0)


def test_recent_samples_dominate():
    value = ewma([(0, 1.0), (40, 5.0)], now=40)
    assert 3.0 < value < 5.0


def test_equal_terms_is_plain_mean():
    assert ewma([(5, 1.0), (5, 4.0)], now=10, alpha=0.5) == pytest.approx(2.5)


def test_empty_is_nan():
    assert math.isnan(ewma([], now=10))


class TestOverallRatings:
    def test_instructor_overall(self):
        index = ReviewIndex([_review("a", 10, teaching=4.0, instructor_rating=2.0)], INSTRUCTOR)
        [result] = ewma_overall_ratings(index, now=12)
        assert result.entity == "LEE, Ann"
        assert result.overall_rating == pytest.approx(3.0)
        assert result.samples == 1

    def test_course_overall_uses_content(self):
        index = ReviewIndex([_review("a", 10, teaching=4.0, instructor_rating=1.0, content=5.0)], COURSE)
        [result] = ewma_overall_ratings(index, now=12)
        assert result.entity == "COMP 2011"
        assert result.overall_rating == pytest.approx(4.5)

    def test_future_reviews_ignored(self):
        index = ReviewIndex([
            _review("a", 10, teaching=4.0, instructor_rating=4.0),
            _review("b", 20, teaching=1.0, instructor_rating=1.0),
            _review("c", 20, teaching=1.0, instructor_rating=1.0, instructor="WONG, Ben"),
        ], INSTRUCTOR)
        inputs = ewma_overall_ratings(index, now=15)
        assert [i.entity for i in inputs] == ["LEE, Ann"]
        assert inputs[0].overall_rating == pytest.approx(4.0)
        assert inputs[0].samples == 1
