import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import declarative_base, sessionmaker

from persister.config import settings

LOGGER = logging.getLogger(__name__)


def _build_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


DATABASE_URL = _build_database_url(settings.database_url)
engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=settings.sql_echo)
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
)
Base = declarative_base()


def init_db(bind=None) -> None:
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is not configured")
    from persister.models.schema import client_session as _client_session  # noqa: F401
    from persister.models.schema import user_session as _user_session  # noqa: F401

    bind = bind if bind is not None else engine
    Base.metadata.create_all(bind=bind)
    tables = sorted(inspect(bind).get_table_names())
    LOGGER.info("Session tables ready: %s", ", ".join(tables))


@contextmanager
def session_scope(factory=None):
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db_session():
    with session_scope() as session:
        yield session
