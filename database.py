from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from config import DATA_DIR, DATABASE_URL

Base = declarative_base()


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_connection, connection_record):
    # SQLite's built-in lower() only folds ASCII; icontains() relies on it
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def create_db_engine(url: str = DATABASE_URL):
    """
    Build the process-wide engine.
    In-memory SQLite gets a single shared connection so every session sees the same data.
    """
    if url == DATABASE_URL and url.startswith("sqlite:///"):
        # SQLite DB file inside data/ folder
        DATA_DIR.mkdir(exist_ok=True)

    if url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif url.startswith("sqlite"):
        engine = create_engine(
            url, echo=False, future=True, connect_args={"check_same_thread": False}
        )
    else:
        return create_engine(url, echo=False, future=True)

    event.listen(engine, "connect", _register_sqlite_functions)
    return engine


def create_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    # Create tables if they don't exist
    import models  # noqa: F401  registers the tables on Base

    Base.metadata.create_all(bind=engine)
