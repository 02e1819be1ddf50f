import logging
from typing import Callable, Generator, TypeVar
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from academy_backend.errors import Conflict
from academy_backend.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_postgres_options = {
    "pool_pre_ping": True,
    "pool_size": 10,
    "max_overflow": 5,
    "pool_timeout": 30,
    "pool_recycle": 300
}

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def build_engine(url: str) -> Engine:

    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        engine = create_engine(url, **options)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(url, **_postgres_options)

def supports_row_locks(db: Session) -> bool:
    return db.get_bind().dialect.name != "sqlite"

_engine = build_engine(settings.DATABASE_URL)
_SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

def get_engine() -> Engine:
    return _engine

def get_db() -> Generator[Session, None, None]:

    db = _SessionLocal()

    try:
        yield db
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()

def is_unique_violation(error: IntegrityError) -> bool:
    """True for unique-key collisions, the only integrity errors a retry can resolve."""
    if getattr(error.orig, "pgcode", None) == "23505":
        return True
    return "UNIQUE constraint failed" in str(error.orig)

def run_atomic(db: Session, operation: Callable[[], T], name: str = "operation") -> T:
    """Run ``operation`` as one transaction, retrying on optimistic-lock failures.

    ``operation`` must do all of its reads inside the call so that a retry sees
    fresh state. It may flush but must not commit; this helper commits once at
    the end and rolls back on any error. After the retry budget is spent the
    stale write surfaces as :class:`Conflict`.
    """
    attempts = settings.CONFLICT_RETRY_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except IntegrityError as e:
            db.rollback()
            if not is_unique_violation(e):
                logger.error(f"Integrity error during {name}: {e.orig}")
                raise
            logger.warning(f"Duplicate insert during {name} (attempt {attempt}/{attempts}): {e.orig}")
        except StaleDataError as e:
            db.rollback()
            logger.warning(f"Concurrent modification during {name} (attempt {attempt}/{attempts}): {e.__class__.__name__}")
        except Exception:
            db.rollback()
            raise

    raise Conflict(f"{name} collided with a concurrent change, retry the request")
