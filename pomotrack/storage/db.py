"""Database connection and session management."""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session as OrmSession

from .models import Base

# ── paths ────────────────────────────────────────────────────────────────────

DB_URL_ENV = "POMOTRACK_DB_URL"


def default_data_dir() -> Path:
    """Per-user directory holding the database and cached sounds."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "PomoTrack"
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "pomotrack"


def default_db_url() -> str:
    """``$POMOTRACK_DB_URL`` if set, else a SQLite file in the data dir."""
    override = os.environ.get(DB_URL_ENV)
    if override:
        return override
    data_dir = default_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{data_dir / 'pomotrack.db'}"


# ── database ──────────────────────────────────────────────────────────────


class Database:
    """Owns one SQLAlchemy engine and its session factory.

    Tests pass ``"sqlite:///:memory:"`` to get a private throwaway database.
    """

    def __init__(self, url: str | None = None) -> None:
        self.url = url or default_db_url()
        connect_args = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine = create_engine(self.url, connect_args=connect_args, echo=False)
        self._factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def engine(self):
        return self._engine

    def init(self) -> None:
        """Create all tables.  Safe to call repeatedly."""
        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self):
        """Yield a SQLAlchemy session; commit on success, rollback on error."""
        session: OrmSession = self._factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self._engine.dispose()
