import math

import numpy as np


def weighted_mean(values, weights) -> float:
    """Confidence-weighted mean. NaN when there is nothing to average."""
    if len(values) == 0 or len(weights) == 0:
        return math.nan
    values = np.asarray(values, dtype=float)
    weights = np.asarray(weights, dtype=float)
    return float(np.dot(values, weights) / np.sum(weights))


def bayesian_shrink(mean: float, mass: float, population_mean: float, population_mass: float) -> float:
    """Blend an entity mean with the population mean, weighted by confidence mass."""
    return (mean * mass + population_mean * population_mass) / (mass + population_mass)


def population_prior(records, dimension: str) -> tuple[float, float]:
    """Mean of per-entity means and mean confidence mass, over entities with data."""
    # entities without reviews count toward neither the mean nor the mass
    scored = [r for r in records if r.samples > 0 and not math.isnan(r.ratings[dimension])]
    if not scored:
        return math.nan, math.nan
    mean = float(np.mean([r.ratings[dimension] for r in scored]))
    mass = float(np.mean([r.confidence for r in scored]))
    return mean, mass


def apply_bayesian_pass(records, dimensions) -> None:
    """Second pass over one term's records: fill ``bayesian_ratings`` in place.

    Records without reviews keep ``bayesian_ratings`` as None.
    """
    priors = {dim: population_prior(records, dim) for dim in dimensions}
    for record in records:
        if record.samples == 0:
            continue
        record.bayesian_ratings = {
            dim: bayesian_shrink(record.ratings[dim], record.confidence, *priors[dim])
            for dim in dimensions
        }
