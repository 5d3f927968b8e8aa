import logging
import os

from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

load_dotenv()

logger = logging.getLogger(__name__)

ENVIRONMENT = os.getenv("ENV", "development").lower()


def database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if ENVIRONMENT == "production":
        raise RuntimeError("DATABASE_URL must be set when ENV=production")
    return "sqlite:///./trainlog.db"


def _enable_sqlite_fks(dbapi_conn, _record) -> None:
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def make_engine(url: str, echo: bool = False) -> Engine:
    """Engine factory shared by the app, the seeder and the test suite."""
    if url.startswith("sqlite"):
        eng = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
        event.listen(eng, "connect", _enable_sqlite_fks)
        return eng
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = make_engine(
    database_url(),
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
)


def init_db(bind: Engine = engine) -> None:
    from . import models  # noqa: F401  registers the tables

    logger.info("creating tables on %s", bind.url.render_as_string(hide_password=True))
    try:
        SQLModel.metadata.create_all(bind)
    except Exception:
        logger.exception("schema creation failed")
        raise


def get_session():
    with Session(engine) as session:
        yield session
