"""One-shot CLI script to run the full scoring pipeline.

Usage:
    python scripts/run_pipeline.py              # full pipeline
    python scripts/run_pipeline.py --load       # load reviews + offerings only
    python scripts/run_pipeline.py --score      # score + export only (no ranking)
    python scripts/run_pipeline.py --rank       # score + rank + export
    python scripts/run_pipeline.py --rank --method ewma --term "2023-24 Spring"
"""
import argparse
import logging
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from db.connection import get_session, init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def run_load(session, review_dir: str, cq_dir: str, normalize: bool = True):
    from loaders.offering_loader import load_offerings
    from loaders.review_loader import clear_reviews, load_reviews, normalize_reviews
    logger.info("=== Phase 1: Load Reviews & Course Offerings ===")
    clear_reviews(session)
    stats = {
        "offerings": load_offerings(session, cq_dir),
        "reviews": load_reviews(session, review_dir),
    }
    if normalize:
        normalize_reviews(session)
    logger.info(f"Load complete: {stats}")
    return stats


def run_scoring(session, output_dir: str, term_number, method: str, rank: bool, workers: int):
    from etl.pipeline import score_and_export
    logger.info("=== Phase 2: Scoring%s ===" % (" & Ranking" if rank else ""))
    stats = score_and_export(
        session,
        output_dir=output_dir,
        term_number=term_number,
        method=method,
        rank=rank,
        max_workers=workers,
    )
    logger.info(f"Scoring complete: {stats}")
    return stats


def main(argv=None):
    from etl.pipeline import RANKING_METHODS
    from etl.terms import parse_semester_label

    parser = argparse.ArgumentParser(description="Run the course & instructor scoring pipeline")
    parser.add_argument("--load", action="store_true", help="Load raw data only")
    parser.add_argument("--score", action="store_true", help="Score and export without ranking")
    parser.add_argument("--rank", action="store_true", help="Score, rank and export")
    parser.add_argument("--method", choices=RANKING_METHODS, default="bayesian")
    parser.add_argument("--term", help='Evaluation term label, e.g. "2023-24 Spring" (default: latest)')
    parser.add_argument("--reviews", default=os.environ.get("REVIEW_DATA_DIR", "data-review/data"))
    parser.add_argument("--offerings", default=os.environ.get("CQ_DATA_DIR", "data-cq"))
    parser.add_argument("--output", default=os.environ.get("OUTPUT_DIR", "."))
    parser.add_argument("--workers", type=int, default=int(os.environ.get("SCORE_WORKERS", "1")))
    parser.add_argument("--no-normalize", action="store_true", help="Keep raw rating scales")
    args = parser.parse_args(argv)

    run_all = not (args.load or args.score or args.rank)
    term_number = parse_semester_label(args.term) if args.term else None

    init_db()
    session = get_session()
    try:
        if run_all or args.load:
            run_load(session, args.reviews, args.offerings, normalize=not args.no_normalize)
        if run_all or args.score or args.rank:
            run_scoring(
                session, args.output, term_number, args.method,
                rank=run_all or args.rank, workers=args.workers,
            )

        logger.info("Pipeline finished.")
    except KeyboardInterrupt:
        logger.info("Pipeline interrupted. Loaded data is saved.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
