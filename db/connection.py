import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

_engine = None


def get_engine():
    global _engine
    if _engine is None:
        url = os.environ.get("DATABASE_URL", "sqlite:///ust_score.db")
        _engine = create_engine(url, pool_pre_ping=True)
    return _engine


def get_session():
    engine = get_engine()
    Session = sessionmaker(bind=engine)
    return Session()


def init_db(engine=None):
    """Create all tables on the given (or default) engine."""
    from db.models import Base

    Base.metadata.create_all(engine or get_engine())
