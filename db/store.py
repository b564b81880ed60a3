"""Selector-based access to reviews and course offerings.

A selector is a dict mapping a column name either to a value (equality) or to
a dict of operators, e.g. ``{"instructor": "LEE, Ann", "term_number": {"lte": 92}}``.
"""

from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from db.models import Review, CourseOffering

_OPERATORS = {
    "eq": lambda col, v: col == v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "in": lambda col, v: col.in_(list(v)),
}


def _build_filters(model, selector: dict | None) -> list:
    filters = []
    for field, condition in (selector or {}).items():
        column = getattr(model, field, None)
        if column is None or field not in model.__table__.columns:
            raise ValueError(f"Unknown field {field!r} for {model.__tablename__}")
        if isinstance(condition, dict):
            for op, value in condition.items():
                if op not in _OPERATORS:
                    raise ValueError(f"Unsupported selector operator {op!r}")
                filters.append(_OPERATORS[op](column, value))
        else:
            filters.append(column == condition)
    return filters


def _primary_key_order(model) -> list:
    return list(model.__table__.primary_key.columns)


@dataclass(frozen=True)
class ReviewRecord:
    """Detached, immutable copy of a review row."""

    hash: str
    instructor: str
    term_number: int
    subject: str
    number: str
    rating_instructor: float
    rating_content: float
    rating_teaching: float
    rating_grading: float
    rating_workload: float
    upvote_count: int
    downvote_count: int

    @classmethod
    def from_row(cls, row: Review) -> "ReviewRecord":
        return cls(**{f: getattr(row, f) for f in cls.__dataclass_fields__})


class ReviewStore:
    """Read/insert access to the ``reviews`` table."""

    def __init__(self, session: Session):
        self.session = session

    def insert(self, review: Review) -> Review:
        self.session.add(review)
        return review

    def exists(self, hash: str, instructor: str) -> bool:
        return self.session.get(Review, (hash, instructor)) is not None

    def find(self, selector: dict | None = None) -> list[Review]:
        return (
            self.session.query(Review)
            .filter(*_build_filters(Review, selector))
            .order_by(*_primary_key_order(Review))
            .all()
        )

    def count(self, selector: dict | None = None) -> int:
        return self.session.query(Review).filter(*_build_filters(Review, selector)).count()

    def all(self) -> list[Review]:
        return self.find()

    def snapshot(self, selector: dict | None = None) -> list[ReviewRecord]:
        return [ReviewRecord.from_row(row) for row in self.find(selector)]

    def latest_term_number(self) -> int | None:
        return self.session.query(func.max(Review.term_number)).scalar()


class OfferingCatalog:
    """Read/insert access to the ``course_offerings`` table.

    ``instructors`` is stored as JSON, so a bare-name selector on it
    ("roster contains") is evaluated after the SQL filters.
    """

    def __init__(self, session: Session):
        self.session = session

    def insert(self, offering: CourseOffering) -> CourseOffering:
        self.session.add(offering)
        return offering

    def exists(self, term: str, subject: str, number: str) -> bool:
        return self.session.get(CourseOffering, (term, subject, number)) is not None

    def find(self, selector: dict | None = None) -> list[CourseOffering]:
        selector = dict(selector or {})
        instructor = selector.pop("instructors", None)
        if instructor is not None and not isinstance(instructor, str):
            raise ValueError("instructors selector must be a single instructor name")

        offerings = (
            self.session.query(CourseOffering)
            .filter(*_build_filters(CourseOffering, selector))
            .order_by(*_primary_key_order(CourseOffering))
            .all()
        )
        if instructor is not None:
            offerings = [o for o in offerings if instructor in (o.instructors or [])]
        return offerings

    def all(self) -> list[CourseOffering]:
        return self.find()

    def roster(self, subject: str, number: str, term_number: int) -> list[str]:
        """Instructors scheduled to teach a course at a term. Empty if not offered."""
        names = []
        for offering in self.find({"subject": subject, "number": number, "term_number": term_number}):
            for name in offering.instructors or []:
                if name not in names:
                    names.append(name)
        return sorted(names)

    def latest_term_number(self) -> int | None:
        return self.session.query(func.max(CourseOffering.term_number)).scalar()
