"""Backoffice — Database Engine & Session Factory.

PostgreSQL in production; SQLite for local runs and tests. The backoffice
reads ``users`` / ``meta_business_accounts`` and appends to
``adset_edit_logs``.
"""

from sqlalchemy import text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from backoffice.config import settings
from backoffice.core.logging import get_logger

logger = get_logger("database")


def _mask_url(url: str) -> str:
    """Mask password in DB URL for safe logging."""
    return make_url(url).render_as_string(hide_password=True)


def build_engine(url: str) -> Engine:
    """Engine for ``url`` with pool settings suited to its backend."""
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live in one connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        logger.info(f"Database backend: SQLite ({url})")
    else:
        kwargs = {
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 300,
        }
        logger.info(f"Database backend: PostgreSQL ({_mask_url(url)})")
    return create_engine(url, echo=False, **kwargs)


engine = build_engine(settings.effective_database_url)


def test_connection(bind: Engine = engine) -> bool:
    """SELECT 1 against the database; False if it cannot be reached."""
    try:
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        return False


def init_db(bind: Engine = engine) -> None:
    """Create any missing tables."""
    from backoffice.models import account_models, audit_models  # noqa: F401

    SQLModel.metadata.create_all(bind)
    logger.info("Database tables ready")


def get_session():
    """Dependency — yields a DB session."""
    with Session(engine) as session:
        yield session
