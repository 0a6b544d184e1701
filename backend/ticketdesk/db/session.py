import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

Base = declarative_base()


def create_credential_engine(database_path: str) -> Engine:
    """Engine for the SQLite credential database at ``database_path``.

    NullPool gives every session its own connection, closed when the
    session ends, so no connection state is shared between calls.
    """
    directory = os.path.dirname(database_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return create_engine(
        f"sqlite:///{database_path}",
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )


def init_db(engine: Engine) -> None:
    # Imported for its side effect of registering tables on Base.metadata
    from ticketdesk.models import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
