import json
import os
import pytest
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite://")

from db.models import Base
from db.connection import get_engine


@pytest.fixture(scope="session")
def engine():
    return get_engine()


@pytest.fixture
def db_session(engine):
    """Session on freshly created tables, dropped again after each test.

    The in-memory SQLite engine shares one connection per thread, so every
    session opened during the test sees the same data.
    """
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()

    yield session

    session.close()
    Base.metadata.drop_all(engine)


def _write(path, obj):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj), encoding="utf-8")


def _raw_review(hash, semester, instructors, content=4, teaching=4, grading=3, workload=3, up=0, votes=0):
    return {
        "hash": hash,
        "semester": semester,
        "instructors": [{"name": name, "rating": rating} for name, rating in instructors],
        "rating_content": content,
        "rating_teaching": teaching,
        "rating_grading": grading,
        "rating_workload": workload,
        "upvote_count": up,
        "vote_count": votes,
    }


@pytest.fixture
def raw_dataset(tmp_path):
    """Small review + course-offering dataset in the raw on-disk layout.

    Returns (review_dir, cq_dir). Latest offered term is 2023-24 Spring (94).
    """
    review_dir = tmp_path / "data-review" / "data"
    cq_dir = tmp_path / "data-cq"

    _write(review_dir / "COMP" / "2011.json", {
        "course": {"subject": "COMP", "code": "2011", "name": "Design and Analysis of Algorithms"},
        "reviews": [
            _raw_review("r1", "2022-23 Fall", [("LEE, Ann", 4)], content=4, teaching=5, up=3, votes=4),
            _raw_review("r2", "2023-24 Fall", [("LEE, Ann", 5), ("WONG, Ben", 3)], content=5, teaching=4),
            _raw_review("r3", "2023-24 Spring", [("WONG, Ben", 2)], content=2, teaching=2, grading=1, up=0, votes=2),
        ],
    })
    _write(review_dir / "MATH" / "1013.json", {
        "course": {"subject": "MATH", "code": "1013", "name": "Calculus IB"},
        "reviews": [
            _raw_review("r4", "2023-24 Spring", [("CHAN, Cara", 4)], content=3, teaching=4, workload=5),
            _raw_review("r5", "2021-22 Winter", [("CHAN, Cara", 3)], content=3, teaching=3),
        ],
    })

    _write(cq_dir / "terms.json", [
        {"term": "2310", "termName": "2023-24 Fall"},
        {"term": "2330", "termName": "2023-24 Spring"},
    ])
    _write(cq_dir / "2310.json", [
        {"subject": "COMP", "number": "2011", "classes": [{"schedule": [{"instructors": ["LEE, Ann"]}]}]},
    ])
    _write(cq_dir / "2330.json", [
        {"subject": "COMP", "number": "2011", "classes": [
            {"schedule": [{"instructors": ["WONG, Ben"]}, {"instructors": ["LEE, Ann"]}]},
            {"schedule": [{"instructors": ["WONG, Ben"]}]},
        ]},
        {"subject": "MATH", "number": "1013", "classes": [{"schedule": [{"instructors": ["CHAN, Cara"]}]}]},
    ])
    return str(review_dir), str(cq_dir)
