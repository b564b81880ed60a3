"""Confidence-weighted scores per entity per term.

For every term at or before the evaluation term that has reviews, each entity
gets a cumulative score computed as if that term were "now". Historical terms
are lazy: an entity only gets a record for a past term if it was reviewed in
that term. Each term's records then go through a Bayesian pass against the
population of records at that same term.
"""

import logging
import time
from bisect import bisect_left, bisect_right
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import numpy as np

from etl.aggregation import weighted_mean, apply_bayesian_pass
from etl.confidence import (
    ScoringContext, ConfidencePolicy, INSTRUCTOR_POLICY, COURSE_POLICY, compute_confidence,
)
from etl.export import json_safe

logger = logging.getLogger(__name__)

DIMENSIONS = ("content", "teaching", "grading", "workload", "instructor")


@dataclass(frozen=True)
class EntityKind:
    """What is being scored, and how its reviews are weighted."""

    name: str
    identity_fields: tuple[str, ...]
    dimensions: tuple[str, ...]
    policy: ConfidencePolicy
    overall_dimensions: tuple[str, str]

    def key_of(self, review) -> tuple[str, ...]:
        return tuple(getattr(review, f) for f in self.identity_fields)

    def entity_id(self, key: tuple[str, ...]) -> str:
        return " ".join(key)


INSTRUCTOR = EntityKind(
    name="instructor",
    identity_fields=("instructor",),
    dimensions=DIMENSIONS,
    policy=INSTRUCTOR_POLICY,
    overall_dimensions=("teaching", "instructor"),
)

COURSE = EntityKind(
    name="course",
    identity_fields=("subject", "number"),
    dimensions=DIMENSIONS[:4],
    policy=COURSE_POLICY,
    overall_dimensions=("content", "teaching"),
)

KINDS = {kind.name: kind for kind in (INSTRUCTOR, COURSE)}


def _camel(prefix: str, dimension: str) -> str:
    return prefix + dimension.capitalize()


@dataclass
class ScoreRecord:
    kind: EntityKind = field(repr=False)
    key: tuple[str, ...]
    term: int
    ratings: dict[str, float]
    samples: int
    confidence: float
    individual_ratings: dict[str, float]
    individual_samples: int
    individual_confidence: float
    bayesian_ratings: dict[str, float] | None = None

    @property
    def entity_id(self) -> str:
        return self.kind.entity_id(self.key)

    def to_dict(self) -> dict:
        data = dict(zip(self.kind.identity_fields, self.key))
        data["term"] = self.term
        for dim in self.kind.dimensions:
            data[_camel("rating", dim)] = self.ratings[dim]
        data["samples"] = self.samples
        data["confidence"] = self.confidence
        for dim in self.kind.dimensions:
            data[_camel("individualRating", dim)] = self.individual_ratings[dim]
        data["individualSamples"] = self.individual_samples
        data["individualConfidence"] = self.individual_confidence
        if self.bayesian_ratings is not None:
            for dim in self.kind.dimensions:
                data[_camel("bayesianRating", dim)] = self.bayesian_ratings[dim]
        return json_safe(data)


class ReviewIndex:
    """Reviews grouped once by entity key, each group sorted by term."""

    def __init__(self, reviews, kind: EntityKind):
        self.kind = kind
        groups = defaultdict(list)
        for review in reviews:
            groups[kind.key_of(review)].append(review)

        self._reviews = {}
        self._terms = {}
        for key in sorted(groups):
            items = sorted(groups[key], key=lambda r: (r.term_number, r.hash, r.instructor))
            self._reviews[key] = items
            self._terms[key] = [r.term_number for r in items]

    def __len__(self) -> int:
        return len(self._reviews)

    def entities(self) -> list[tuple[str, ...]]:
        return list(self._reviews)

    def up_to(self, key, term_number: int) -> list:
        terms = self._terms.get(key, [])
        return self._reviews.get(key, [])[:bisect_right(terms, term_number)]

    def at(self, key, term_number: int) -> list:
        terms = self._terms.get(key, [])
        lo, hi = bisect_left(terms, term_number), bisect_right(terms, term_number)
        return self._reviews.get(key, [])[lo:hi]

    def has_reviews_at(self, key, term_number: int) -> bool:
        terms = self._terms.get(key, [])
        i = bisect_left(terms, term_number)
        return i < len(terms) and terms[i] == term_number

    def terms_of(self, key, upto: int | None = None) -> list[int]:
        """Distinct review terms of an entity, most recent first."""
        terms = set(self._terms.get(key, []))
        if upto is not None:
            terms = {t for t in terms if t <= upto}
        return sorted(terms, reverse=True)

    def all_terms(self, upto: int | None = None) -> list[int]:
        terms = set()
        for key in self._terms:
            terms.update(self.terms_of(key, upto))
        return sorted(terms, reverse=True)


class RosterLookup:
    """(subject, number, term_number) -> instructors scheduled to teach it."""

    def __init__(self, offerings=()):
        rosters = defaultdict(set)
        for offering in offerings:
            rosters[(offering.subject, offering.number, offering.term_number)].update(
                offering.instructors or []
            )
        self._rosters = {key: frozenset(names) for key, names in rosters.items()}

    @classmethod
    def from_catalog(cls, catalog) -> "RosterLookup":
        return cls(catalog.all())

    def roster(self, subject: str, number: str, term_number: int) -> frozenset:
        return self._rosters.get((subject, number, term_number), frozenset())


def _confidences(reviews, kind: EntityKind, context: ScoringContext, rosters: RosterLookup) -> list[float]:
    weights = []
    for review in reviews:
        roster = ()
        if kind.policy.use_relevance:
            roster = rosters.roster(review.subject, review.number, context.term_number)
        weights.append(compute_confidence(review, context, kind.policy, roster))
    return weights


def _weighted_ratings(reviews, weights, dimensions) -> dict[str, float]:
    return {
        dim: weighted_mean([getattr(r, f"rating_{dim}") for r in reviews], weights)
        for dim in dimensions
    }


def score_entity(
    index: ReviewIndex,
    kind: EntityKind,
    key: tuple[str, ...],
    context: ScoringContext,
    rosters: RosterLookup,
    lazy: bool = False,
) -> ScoreRecord | None:
    """Score one entity at ``context.term_number``.

    With ``lazy`` the entity is skipped (None) unless it has a review in
    exactly that term.
    """
    if lazy and not index.has_reviews_at(key, context.term_number):
        return None

    reviews = index.up_to(key, context.term_number)
    individual_reviews = index.at(key, context.term_number)
    weights = _confidences(reviews, kind, context, rosters)
    individual_weights = _confidences(individual_reviews, kind, context, rosters)

    return ScoreRecord(
        kind=kind,
        key=key,
        term=context.term_number,
        ratings=_weighted_ratings(reviews, weights, kind.dimensions),
        samples=len(reviews),
        confidence=float(np.sum(weights)),
        individual_ratings=_weighted_ratings(individual_reviews, individual_weights, kind.dimensions),
        individual_samples=len(individual_reviews),
        individual_confidence=float(np.sum(individual_weights)),
    )


def score_term(
    index: ReviewIndex,
    kind: EntityKind,
    context: ScoringContext,
    rosters: RosterLookup,
    lazy: bool = False,
) -> list[ScoreRecord]:
    """Score every entity at one term, then shrink toward that term's population."""
    records = []
    for key in index.entities():
        record = score_entity(index, kind, key, context, rosters, lazy=lazy)
        if record is not None:
            records.append(record)
    apply_bayesian_pass(records, kind.dimensions)
    return records


def evaluation_terms(index: ReviewIndex, context: ScoringContext) -> list[int]:
    """Reviewed terms up to the evaluation term, plus the evaluation term; newest first."""
    terms = set(index.all_terms(upto=context.term_number))
    terms.add(context.term_number)
    return sorted(terms, reverse=True)


def rollup(
    index: ReviewIndex,
    kind: EntityKind,
    key: tuple[str, ...],
    context: ScoringContext,
    rosters: RosterLookup,
) -> list[ScoreRecord]:
    """Timeline of one entity, most recent first; its entry in ``compute_timelines``."""
    return compute_timelines(index, kind, context, rosters).get(kind.entity_id(key), [])


def compute_timelines(
    index: ReviewIndex,
    kind: EntityKind,
    context: ScoringContext,
    rosters: RosterLookup,
    max_workers: int = 1,
) -> dict[str, list[ScoreRecord]]:
    """Timelines of every entity, keyed by entity id (sorted), most recent first.

    Terms are independent, so they can be scored on a thread pool; results
    are merged in term order so the output does not depend on scheduling.
    """
    terms = evaluation_terms(index, context)

    def _score(term: int) -> list[ScoreRecord]:
        return score_term(index, kind, ScoringContext(term), rosters, lazy=term != context.term_number)

    if max_workers <= 1:
        per_term = [_score(term) for term in terms]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            per_term = list(executor.map(_score, terms))

    timelines: dict[str, list[ScoreRecord]] = {}
    for records in per_term:
        for record in records:
            timelines.setdefault(record.entity_id, []).append(record)
    return dict(sorted(timelines.items()))


def current_term_number(store, catalog) -> int:
    """Latest scheduled term, falling back to the latest reviewed term."""
    term = catalog.latest_term_number()
    if term is not None:
        return term
    term = store.latest_term_number()
    if term is None:
        raise ValueError("No course offerings or reviews loaded; cannot pick a current term")
    return term


def compute_all_scores(
    store,
    catalog,
    kind: EntityKind,
    context: ScoringContext,
    max_workers: int = 1,
) -> dict[str, list[ScoreRecord]]:
    """Score every entity of ``kind`` from a snapshot of the store."""
    start = time.perf_counter()
    index = ReviewIndex(store.snapshot(), kind)
    rosters = RosterLookup.from_catalog(catalog) if kind.policy.use_relevance else RosterLookup()

    timelines = compute_timelines(index, kind, context, rosters, max_workers=max_workers)

    elapsed_ms = (time.perf_counter() - start) * 1000
    records = sum(len(t) for t in timelines.values())
    logger.info(
        f"Scored {len(timelines)} {kind.name}s ({records} records) "
        f"at term {context.term_number} in {elapsed_ms:.0f} ms"
    )
    return timelines
