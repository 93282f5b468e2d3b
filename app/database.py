"""Database engine, session factory and initialization."""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # 'check_same_thread' is only needed for SQLite.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite leaves foreign keys unenforced unless asked per connection."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None, seed: bool = None):
    """Create tables and optionally seed default data.

    Runs once, before the application starts serving requests.
    """
    # Import models so they are registered on Base.metadata
    from app import models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ready (%s)", bind.url.render_as_string(hide_password=True))

    if seed is None:
        seed = settings.SEED_DEFAULT_DATA
    if seed:
        from app.seed import seed_defaults

        session = sessionmaker(autocommit=False, autoflush=False, bind=bind)()
        try:
            seed_defaults(session)
        finally:
            session.close()
