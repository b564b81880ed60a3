import glob
import json
import logging
import os
import time

import pandas as pd

from db.models import Review
from db.store import ReviewStore
from etl.terms import convert_term, calc_term_number

logger = logging.getLogger(__name__)

RATING_COLUMNS = [
    "rating_instructor", "rating_content", "rating_teaching", "rating_grading", "rating_workload",
]


def review_rows(course: dict, review: dict) -> list[dict]:
    """Expand one raw review into one row per named instructor.

    Raw reviews carry ``upvote_count`` and the total ``vote_count``; the
    downvote count is the difference.
    """
    term = convert_term(review["semester"])
    rows = []
    for instructor in review.get("instructors", []):
        rows.append({
            "hash": review["hash"],
            "term": term,
            "term_name": review["semester"],
            "term_number": calc_term_number(term),
            "subject": course["subject"],
            "number": course["code"],
            "instructor": instructor["name"],
            "rating_instructor": instructor["rating"],
            "rating_content": review["rating_content"],
            "rating_teaching": review["rating_teaching"],
            "rating_grading": review["rating_grading"],
            "rating_workload": review["rating_workload"],
            "upvote_count": review.get("upvote_count", 0),
            "downvote_count": review.get("vote_count", 0) - review.get("upvote_count", 0),
        })
    return rows


def parse_review_file(path: str) -> list[dict]:
    """Parse a raw review file: ``{"course": {...}, "reviews": [...]}``."""
    with open(path, encoding="utf-8") as f:
        obj = json.load(f)
    course = obj["course"]
    rows = []
    for review in obj.get("reviews", []):
        rows.extend(review_rows(course, review))
    return rows


def load_reviews_to_db(rows: list[dict], session) -> int:
    """Insert parsed review rows. Returns count of new rows inserted."""
    store = ReviewStore(session)
    inserted = 0
    seen = set()
    for row in rows:
        key = (row["hash"], row["instructor"])
        # Check for existing record (idempotent)
        if key in seen or store.exists(*key):
            continue
        seen.add(key)
        store.insert(Review(**row))
        inserted += 1

    session.commit()
    return inserted


def clear_reviews(session) -> int:
    """Delete every review row. Returns the number deleted."""
    deleted = session.query(Review).delete()
    session.commit()
    return deleted


def load_reviews(session, root: str) -> int:
    """Load every ``*.json`` review file under ``root``."""
    start = time.perf_counter()
    files = sorted(glob.glob(os.path.join(root, "**", "*.json"), recursive=True))
    inserted = 0
    for path in files:
        rows = parse_review_file(path)
        inserted += load_reviews_to_db(rows, session)
        logger.debug(f"{path}: {len(rows)} rows")
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Loaded {inserted} reviews from {len(files)} files in {elapsed_ms:.0f} ms")
    return inserted


def normalize_reviews(session) -> dict:
    """Z-score every rating column over all reviews (population std).

    A column with zero spread is only centered. Term fields are untouched.
    Returns ``{column: {"mean": ..., "std": ...}}``.
    """
    start = time.perf_counter()
    reviews = session.query(Review).order_by(Review.hash, Review.instructor).all()
    if not reviews:
        return {}

    df = pd.DataFrame([{c: getattr(r, c) for c in RATING_COLUMNS} for r in reviews])
    mean = df.mean()
    std = df.std(ddof=0)
    normalized = (df - mean) / std.replace(0.0, 1.0)

    for review, values in zip(reviews, normalized.to_dict("records")):
        for column, value in values.items():
            setattr(review, column, float(value))
    session.commit()

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Normalized {len(reviews)} reviews in {elapsed_ms:.0f} ms")
    return {c: {"mean": float(mean[c]), "std": float(std[c])} for c in RATING_COLUMNS}
