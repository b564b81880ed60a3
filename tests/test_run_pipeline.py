import json

import pytest

from db.models import Review, CourseOffering
from scripts.run_pipeline import main


@pytest.fixture
def cli_args(raw_dataset, tmp_path):
    review_dir, cq_dir = raw_dataset
    return ["--reviews", review_dir, "--offerings", cq_dir, "--output", str(tmp_path / "out")]


def test_load_only(db_session, cli_args, tmp_path):
    main(["--load"] + cli_args)

    assert db_session.query(Review).count() == 6
    assert db_session.query(CourseOffering).count() == 3
    assert not (tmp_path / "out").exists()


def test_full_run(db_session, cli_args, tmp_path):
    main(cli_args)

    with open(tmp_path / "out" / "data-instructor.json", encoding="utf-8") as f:
        instructors = json.load(f)
    assert instructors["LEE, Ann"]["grade"] is not None


def test_score_at_term_without_ranking(db_session, cli_args, tmp_path):
    main(["--load"] + cli_args)
    main(["--score", "--term", "2023-24 Fall"] + cli_args)

    with open(tmp_path / "out" / "data-course.json", encoding="utf-8") as f:
        courses = json.load(f)
    assert courses["COMP 2011"]["scores"][0]["term"] == 92
    assert courses["COMP 2011"]["rank"] is None


def test_reload_replaces_reviews(db_session, cli_args):
    main(["--load"] + cli_args)
    main(["--load", "--no-normalize"] + cli_args)

    lee = db_session.query(Review).filter_by(hash="r1", instructor="LEE, Ann").one()
    db_session.refresh(lee)
    assert lee.rating_teaching == 5.0


def test_bad_term_label(db_session, cli_args):
    with pytest.raises(ValueError):
        main(["--score", "--term", "Fall 2023"] + cli_args)


def test_unknown_method(cli_args):
    with pytest.raises(SystemExit):
        main(["--rank", "--method", "median"] + cli_args)
