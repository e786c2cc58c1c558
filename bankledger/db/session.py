from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from bankledger.core.config import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the process-wide engine. Called once by the application factory."""
    url = settings.database_url
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=settings.db_echo,
            connect_args={"check_same_thread": False, "timeout": settings.sqlite_busy_timeout_seconds},
        )

    return create_engine(
        url,
        echo=settings.db_echo,
        pool_pre_ping=True,
        isolation_level="READ COMMITTED",
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    # expire_on_commit stays on: balances must be re-read after every unit of work.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)
