# =======================================================================================
# qr_access/database.py - Database Management
# =======================================================================================
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.pool import QueuePool

from .config import config
from .models.tables import metadata
from .utils.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


def _enable_sqlite_transactions(engine: Engine) -> None:
    """
    pysqlite opens transactions lazily and breaks SAVEPOINT handling; take
    over BEGIN ourselves and switch on foreign keys for every connection.

    Transactions start IMMEDIATE: SQLite has one writer, and a read lock
    upgraded to a write lock mid-transaction can deadlock against another
    writer. Taking the write lock up front makes concurrent transactions
    wait their turn (up to DB_BUSY_TIMEOUT) instead.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or config.DB_URL
        self.engine: Engine = create_engine(self.url, **self._engine_kwargs())
        if self.is_sqlite:
            _enable_sqlite_transactions(self.engine)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def _engine_kwargs(self) -> dict:
        kwargs = {"pool_pre_ping": True, "future": True}
        if self.is_sqlite:
            # SQLite has no READ COMMITTED and shares connections across the threadpool
            kwargs["connect_args"] = {"check_same_thread": False, "timeout": config.DB_BUSY_TIMEOUT}
            return kwargs
        kwargs.update(
            poolclass=QueuePool,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
        )
        if config.DB_ISOLATION_LEVEL:
            kwargs["isolation_level"] = config.DB_ISOLATION_LEVEL
        return kwargs

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        """
        One transaction per block: commits on success, rolls back on error.
        Lost or unreachable storage surfaces as StorageUnavailableError.
        """
        try:
            with self.engine.begin() as conn:
                yield conn
        except OperationalError as e:
            logger.error("Database unavailable: %s", e.orig)
            raise StorageUnavailableError("Storage is unavailable") from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.error("Database connection lost: %s", e.orig)
                raise StorageUnavailableError("Storage connection lost") from e
            raise

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        metadata.create_all(self.engine)
        logger.info("Schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    def ping(self) -> bool:
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()


# Global database instance
db_manager = DatabaseManager()
