"""Batch run: score every entity, rank the latest scores, write JSON."""

import logging
import os

from db.store import ReviewStore, OfferingCatalog
from etl.confidence import ScoringContext
from etl.ewma import EWMA_SMOOTHING_FACTOR, ewma_overall_ratings
from etl.export import build_entity_objects, write_json
from etl.extras import extras_for
from etl.ranking import rank_entities, ranking_inputs_from_scores
from etl.scoring import KINDS, ReviewIndex, compute_all_scores, current_term_number

logger = logging.getLogger(__name__)

RANKING_METHODS = ("bayesian", "ewma")


def rank_kind(store, timelines: dict, kind, context: ScoringContext, method: str = "bayesian") -> dict:
    if method == "bayesian":
        inputs = ranking_inputs_from_scores(timelines, context.term_number)
    elif method == "ewma":
        index = ReviewIndex(store.snapshot(), kind)
        inputs = ewma_overall_ratings(index, context.term_number, EWMA_SMOOTHING_FACTOR)
    else:
        raise ValueError(f"Unknown ranking method {method!r}; expected one of {RANKING_METHODS}")
    return rank_entities(inputs)


def score_and_export(
    session,
    kinds=("instructor", "course"),
    output_dir: str = ".",
    term_number: int | None = None,
    method: str = "bayesian",
    rank: bool = True,
    max_workers: int = 1,
) -> dict:
    """Score, optionally rank, and write ``data-{kind}.json`` for each kind.

    Returns stats dict: {term, <kind>: {entities, ranked, path}}.
    """
    store = ReviewStore(session)
    catalog = OfferingCatalog(session)
    if term_number is None:
        term_number = current_term_number(store, catalog)
    context = ScoringContext(term_number)

    stats = {"term": term_number}
    for name in kinds:
        kind = KINDS[name]
        timelines = compute_all_scores(store, catalog, kind, context, max_workers=max_workers)
        rankings = rank_kind(store, timelines, kind, context, method) if rank else {}
        extras = extras_for(name, store, catalog, context)

        data = build_entity_objects(timelines, extras, rankings)
        path = write_json(os.path.join(output_dir, f"data-{name}.json"), data)
        stats[name] = {"entities": len(timelines), "ranked": len(rankings), "path": path}
        logger.info(f"{name}: {len(timelines)} entities, {len(rankings)} ranked")
    return stats
