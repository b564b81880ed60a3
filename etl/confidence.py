"""Per-review confidence weights.

A weight is the product of independent factors, each 1 when it does not
apply: recency decay, vote balance, instructor relevance and season
alignment. Instructor and course scoring use different policies.
"""

from dataclasses import dataclass

from etl.terms import TERMS_PER_YEAR, season_of


@dataclass(frozen=True)
class ScoringContext:
    term_number: int


@dataclass(frozen=True)
class ConfidencePolicy:
    vote_step: float = 1.0
    grace_terms: int = 0
    decay_rate: float = 0.25
    terms_per_year: int = TERMS_PER_YEAR
    use_relevance: bool = False
    same_instructor_factor: float = 3.0
    other_instructor_factor: float = 0.15
    seasonal_factor: float | None = None


# 25% per year after a two-year grace window; each net upvote adds a full weight.
INSTRUCTOR_POLICY = ConfidencePolicy(vote_step=1.0, grace_terms=2 * TERMS_PER_YEAR)

# Decays from the first term; the current roster and season matter.
COURSE_POLICY = ConfidencePolicy(
    vote_step=0.5,
    grace_terms=0,
    use_relevance=True,
    seasonal_factor=1.5,
)


def recency_factor(age: int, policy: ConfidencePolicy) -> float:
    if age <= policy.grace_terms:
        return 1.0
    return (1 - policy.decay_rate) ** ((age - policy.grace_terms) / policy.terms_per_year)


def vote_factor(upvotes: int, downvotes: int, policy: ConfidencePolicy) -> float:
    votes = upvotes - downvotes
    if votes > 0:
        return 1 + votes * policy.vote_step
    if votes < 0:
        return 1 / (-votes + 1)
    return 1.0


def relevance_factor(instructor: str, roster, policy: ConfidencePolicy) -> float:
    if not policy.use_relevance:
        return 1.0
    if instructor in roster:
        return policy.same_instructor_factor
    return policy.other_instructor_factor


def season_factor(review_term: int, context_term: int, policy: ConfidencePolicy) -> float:
    if policy.seasonal_factor is None:
        return 1.0
    if season_of(review_term) == season_of(context_term):
        return policy.seasonal_factor
    return 1.0


def compute_confidence(review, context: ScoringContext, policy: ConfidencePolicy, roster=()) -> float:
    """Confidence weight of one review when scoring at ``context.term_number``.

    ``roster`` is the set of instructors teaching the reviewed course at the
    context term; it only matters for policies with ``use_relevance``. An
    empty roster gives every review the other-instructor factor.
    """
    weight = 1.0
    weight *= recency_factor(context.term_number - review.term_number, policy)
    weight *= vote_factor(review.upvote_count, review.downvote_count, policy)
    weight *= relevance_factor(review.instructor, roster, policy)
    weight *= season_factor(review.term_number, context.term_number, policy)
    return weight
