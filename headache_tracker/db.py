from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool

from headache_tracker.config import get_settings


def make_engine(url: str):
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool; in-memory databases need one shared connection.
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False)


engine = make_engine(get_settings().DATABASE_URL)

def create_db_and_tables(bind=None):
    SQLModel.metadata.create_all(bind or engine)

def get_session(bind=None):
    return Session(bind or engine)
