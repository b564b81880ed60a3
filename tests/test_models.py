from db.models import Base, Review, CourseOffering


def test_all_tables_defined():
    table_names = {t.name for t in Base.metadata.sorted_tables}
    assert table_names == {"reviews", "course_offerings"}


def test_review_keyed_by_hash_and_instructor():
    assert [c.name for c in Review.__table__.primary_key.columns] == ["hash", "instructor"]


def test_review_columns():
    cols = {c.name for c in Review.__table__.columns}
    for rating in ["instructor", "content", "teaching", "grading", "workload"]:
        assert f"rating_{rating}" in cols
    assert {"term", "term_name", "term_number", "upvote_count", "downvote_count"} <= cols


def test_offering_keyed_by_term_and_course():
    assert [c.name for c in CourseOffering.__table__.primary_key.columns] == ["term", "subject", "number"]
    assert "instructors" in {c.name for c in CourseOffering.__table__.columns}
