import functools
from contextlib import contextmanager

import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from . import config
from .exceptions import DuplicateEntityError, StorageError, ValidationError

logger = structlog.get_logger()

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str = None, **kwargs) -> Engine:
    """Open the storage handle. Dispose of it with ``engine.dispose()`` at shutdown."""
    url = url or config.DATABASE_URL
    kwargs.setdefault("echo", config.SQL_ECHO)
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    # Rows returned from delete operations stay readable after commit.
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine):
    from . import models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(bind=engine)
    logger.info("database_initialized", tables=sorted(Base.metadata.tables))


@contextmanager
def session_scope(factory: sessionmaker):
    db: Session = factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def storage_operation(func):
    """Run a repository call as one unit: roll back and translate storage errors."""

    @functools.wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        try:
            return func(db, *args, **kwargs)
        except IntegrityError as exc:
            db.rollback()
            reason = str(exc.orig)
            logger.warning("integrity_error", operation=func.__name__, error=reason)
            if "UNIQUE" in reason.upper():
                raise DuplicateEntityError("record", "unique key", reason) from exc
            if "FOREIGN KEY" in reason.upper():
                raise ValidationError(f"{func.__name__}: referenced row does not exist") from exc
            raise StorageError(f"{func.__name__} failed: {reason}") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("storage_failure", operation=func.__name__, error=str(exc))
            raise StorageError(f"{func.__name__} failed: {exc}") from exc

    return wrapper
