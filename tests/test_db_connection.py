from db.connection import get_engine, get_session, init_db


def test_get_engine_returns_engine():
    engine = get_engine()
    assert engine is not None
    assert "sqlite" in str(engine.url)


def test_get_session_returns_session():
    session = get_session()
    assert session is not None
    session.close()


def test_init_db_creates_tables(engine):
    from db.models import Base
    from sqlalchemy import inspect

    init_db(engine)
    assert {"reviews", "course_offerings"} <= set(inspect(engine).get_table_names())
    Base.metadata.drop_all(engine)
