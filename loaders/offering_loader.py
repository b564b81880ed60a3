import json
import logging
import os
import time

from db.models import CourseOffering
from db.store import OfferingCatalog
from etl.terms import calc_term_number

logger = logging.getLogger(__name__)


def roster_of(course: dict) -> list[str]:
    """Unique instructors across all classes and schedule entries, first seen first."""
    names = []
    for clazz in course.get("classes", []):
        for schedule in clazz.get("schedule", []):
            for name in schedule.get("instructors", []):
                if name not in names:
                    names.append(name)
    return names


def offering_rows(term: dict, courses: list[dict]) -> list[dict]:
    return [
        {
            "term": term["term"],
            "term_name": term["termName"],
            "term_number": calc_term_number(term["term"]),
            "subject": course["subject"],
            "number": course["number"],
            "instructors": roster_of(course),
        }
        for course in courses
    ]


def load_offerings_to_db(rows: list[dict], session) -> int:
    """Insert offering rows, skipping (term, subject, number) already present."""
    catalog = OfferingCatalog(session)
    inserted = 0
    seen = set()
    for row in rows:
        key = (row["term"], row["subject"], row["number"])
        if key in seen or catalog.exists(*key):
            continue
        seen.add(key)
        catalog.insert(CourseOffering(**row))
        inserted += 1

    session.commit()
    return inserted


def load_offerings(session, root: str) -> int:
    """Load ``terms.json`` and each ``{term}.json`` under ``root``.

    A term listed without a file is logged and skipped.
    """
    start = time.perf_counter()
    with open(os.path.join(root, "terms.json"), encoding="utf-8") as f:
        terms = json.load(f)

    inserted = 0
    for term in terms:
        path = os.path.join(root, f"{term['term']}.json")
        if not os.path.exists(path):
            logger.warning(f"No offerings file for term {term['term']} ({term['termName']})")
            continue
        with open(path, encoding="utf-8") as f:
            courses = json.load(f)
        inserted += load_offerings_to_db(offering_rows(term, courses), session)

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Loaded {inserted} course offerings from {len(terms)} terms in {elapsed_ms:.0f} ms")
    return inserted
