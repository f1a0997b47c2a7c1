"""
Database Engine & Session Management
SQLAlchemy setup with dependency injection for FastAPI.

The engine lives on ``app.state`` so every app instance (and every test)
gets its own database.
"""
import os

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine.

    File-backed SQLite uses the default pool, a separate connection per session. An
    in-memory URL has to share a single connection, so it is only safe for
    single-threaded use such as scripts.
    """
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=echo,
            )
        # Ensure data directory exists
        path = url.replace("sqlite:///", "")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 15},  # Required for SQLite
            echo=echo,
        )
    return create_engine(url, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """FastAPI dependency: yields a database session, auto-closes on finish."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine):
    """Create all tables. Called once per application instance."""
    from topup.models import records as _records_model  # noqa: F401

    Base.metadata.create_all(bind=engine)
