"""Exponentially weighted moving average over terms.

An alternative to the confidence/Bayesian pipeline for producing one
comparable rating per entity: each rating is weighted by
``alpha * (1 - alpha) ** (now - term)``.
"""

import math

import numpy as np

from etl.ranking import RankingInput

# Half-life of 8 terms (2 years): half of the result comes from the last two years.
EWMA_SMOOTHING_FACTOR = 0.08425


def ewma_weight(term_number: int, now: int, alpha: float = EWMA_SMOOTHING_FACTOR) -> float:
    return alpha * (1 - alpha) ** (now - term_number)


def ewma(samples, now: int, alpha: float = EWMA_SMOOTHING_FACTOR) -> float:
    """EWMA of ``(term_number, rating)`` pairs as seen from term ``now``. NaN if empty."""
    if not samples:
        return math.nan
    weights = np.array([ewma_weight(term, now, alpha) for term, _ in samples])
    ratings = np.array([rating for _, rating in samples], dtype=float)
    return float(np.dot(weights, ratings) / np.sum(weights))


def ewma_overall_ratings(index, now: int, alpha: float = EWMA_SMOOTHING_FACTOR) -> list[RankingInput]:
    """Ranking inputs from an EWMA of each overall dimension.

    Only reviews at or before ``now`` count. Entities with none are left out.
    """
    kind = index.kind
    inputs = []
    for key in index.entities():
        reviews = index.up_to(key, now)
        if not reviews:
            continue
        per_dimension = [
            ewma([(r.term_number, getattr(r, f"rating_{dim}")) for r in reviews], now, alpha)
            for dim in kind.overall_dimensions
        ]
        inputs.append(RankingInput(
            entity=kind.entity_id(key),
            overall_rating=sum(per_dimension) / len(per_dimension),
            samples=len(reviews),
        ))
    return inputs
