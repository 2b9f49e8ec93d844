# support_lifecycle/database.py
"""
Engine, session factory and declarative base for the support data store.

PostgreSQL in production; SQLite (in-memory or file) for tests and local
runs. Schema changes go through the Alembic revisions in migrations/.
"""

import os
from contextlib import contextmanager

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is not set")

# Hosted Postgres hands out postgresql:// but SQLAlchemy needs postgresql+psycopg2://
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg2://", 1)

_engine_kwargs = {}
if DATABASE_URL.startswith("sqlite"):
    # One shared connection so every session sees the same in-memory database
    _engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }

engine = create_engine(DATABASE_URL, future=True, echo=False, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)

Base = declarative_base()


def init_db() -> None:
    """
    Create any missing tables from the models.

    For local SQLite runs only; deployed databases are migrated with Alembic.
    """
    from support_lifecycle import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope():
    """Session for scripts and CLI commands; always closed on exit."""
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db():
    """FastAPI dependency yielding a request-scoped session."""
    with session_scope() as db:
        yield db
