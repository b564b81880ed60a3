"""Rank entities by overall rating, damped by sample size, and assign letter grades."""

import logging
import math
from dataclasses import dataclass, asdict

import pandas as pd

logger = logging.getLogger(__name__)

# Percentile cutoff -> letter grade. Must contain a 0.00 floor.
GRADE_CUTOFFS = {
    0.90: "A+",
    0.80: "A",
    0.75: "A-",
    0.60: "B+",
    0.45: "B",
    0.35: "B-",
    0.30: "C+",
    0.25: "C",
    0.20: "C-",
    0.10: "D",
    0.00: "F",
}


class GradeTableError(ValueError):
    """The grade table has no cutoff at or below some percentile."""


@dataclass(frozen=True)
class RankingInput:
    entity: str
    overall_rating: float
    samples: int


@dataclass(frozen=True)
class RankedEntity:
    entity: str
    overall_rating: float
    samples: int
    score: float
    rank: int
    percentile: float
    grade: str

    def to_dict(self) -> dict:
        return asdict(self)


def assign_grade(percentile: float, table: dict[float, str] = GRADE_CUTOFFS) -> str:
    """Grade of the highest cutoff at or below ``percentile``."""
    for cutoff, grade in sorted(table.items(), reverse=True):
        if percentile >= cutoff:
            return grade
    raise GradeTableError(f"Invalid grade table {table!r} for percentile {percentile}")


def linear_scale(values: pd.Series, low: float, high: float) -> pd.Series:
    """Map ``[low, high]`` onto ``[0, 1]``. A degenerate range maps everything to 1."""
    if high == low:
        return pd.Series(1.0, index=values.index)
    return (values - low) / (high - low)


def sample_aware_scores(overall: pd.Series, samples: pd.Series) -> pd.Series:
    """Pull each entity's normalized rating toward the normalized mean.

    Same shape as the Bayesian blend, with sample counts as the evidence
    and the mean overall rating as the prior.
    """
    low, high = overall.min(), overall.max()
    linear = linear_scale(overall, low, high)
    linear_mean = linear_scale(pd.Series([overall.mean()]), low, high).iloc[0]
    mean_samples = samples.mean()
    return (mean_samples * linear_mean + samples * linear) / (mean_samples + samples)


def competition_rank(scores: pd.Series) -> pd.Series:
    """1-based rank, highest score first. Ties share a rank; the next distinct
    score resumes at its position (0.9, 0.9, 0.7 -> 1, 1, 3)."""
    return scores.rank(method="min", ascending=False).astype(int)


def rank_entities(inputs, grade_table: dict[float, str] = GRADE_CUTOFFS) -> dict[str, RankedEntity]:
    """Score, rank, percentile and grade every entity with a defined overall rating.

    Entities with a NaN rating or no samples are excluded. Raises
    GradeTableError if the grade table cannot grade some percentile.
    """
    usable = [i for i in inputs if i.samples > 0 and not math.isnan(i.overall_rating)]
    excluded = len(inputs) - len(usable)
    if excluded:
        logger.debug(f"Excluded {excluded} entities without a defined rating from ranking")
    if not usable:
        return {}

    df = pd.DataFrame(
        {
            "entity": [i.entity for i in usable],
            "overall_rating": [float(i.overall_rating) for i in usable],
            "samples": [int(i.samples) for i in usable],
        }
    )
    df["score"] = sample_aware_scores(df["overall_rating"], df["samples"])
    df["rank"] = competition_rank(df["score"])
    total = len(df)
    df["percentile"] = (total - df["rank"] + 1) / total
    df["grade"] = [assign_grade(p, grade_table) for p in df["percentile"]]

    df = df.sort_values(["rank", "entity"], kind="mergesort")
    return {
        row.entity: RankedEntity(
            entity=row.entity,
            overall_rating=float(row.overall_rating),
            samples=int(row.samples),
            score=float(row.score),
            rank=int(row.rank),
            percentile=float(row.percentile),
            grade=row.grade,
        )
        for row in df.itertuples(index=False)
    }


def overall_rating(record) -> float:
    """Midpoint of the two shrunk overall dimensions of a record; NaN if not shrunk."""
    if record.bayesian_ratings is None:
        return math.nan
    first, second = record.kind.overall_dimensions
    return (record.bayesian_ratings[first] + record.bayesian_ratings[second]) / 2


def ranking_inputs_from_scores(timelines: dict, term_number: int) -> list[RankingInput]:
    """Ranking inputs from each entity's record at ``term_number`` (its most recent)."""
    inputs = []
    for entity, records in timelines.items():
        if not records or records[0].term != term_number:
            continue
        record = records[0]
        inputs.append(RankingInput(entity=entity, overall_rating=overall_rating(record), samples=record.samples))
    return inputs
