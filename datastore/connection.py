"""Connection handling for the temperature database.

Every session owns a single-thread channel that performs all wire I/O for its
connection. Callers submit one statement at a time and wait for its result;
the channel is joined when the session closes.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine, Row, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy.sql.base import Executable

from services.errors import DatabaseError
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "postgresql+psycopg2"
DEFAULT_HOST = "localhost"
DEFAULT_DATABASE = "home"

T = TypeVar("T")


def resolve_database_url(settings: Settings) -> tuple[URL, dict[str, Any]]:
    """Return the engine URL and driver connect arguments for ``settings``."""
    conn_string = settings.database_url
    if conn_string:
        if "://" in conn_string:
            return make_url(conn_string), {}
        # libpq keyword/value string, e.g. "host='localhost' dbname='home'"
        return URL.create(DEFAULT_DRIVER), {"dsn": conn_string}
    url = URL.create(
        DEFAULT_DRIVER,
        username=settings.database_user,
        host=DEFAULT_HOST,
        database=DEFAULT_DATABASE,
    )
    return url, {}


def build_engine(settings: Settings) -> Engine:
    try:
        url, connect_args = resolve_database_url(settings)
        return create_engine(url, poolclass=NullPool, connect_args=connect_args)
    except SQLAlchemyError as exc:
        raise DatabaseError(f"Invalid database configuration: {exc}") from exc


def _log_close_failure(future: Future[None]) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Database channel failed while closing", exc_info=exc)


class DatabaseSession:
    """One logical database connection together with its I/O channel."""

    def __init__(self, engine: Engine, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self._abandoned = False
        self._channel = ThreadPoolExecutor(max_workers=1, thread_name_prefix="db-channel")
        try:
            self._connection: Connection = self._call(engine.connect)
        except DatabaseError:
            self._channel.shutdown(wait=False, cancel_futures=True)
            raise

    def __enter__(self) -> "DatabaseSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def execute(
        self,
        statement: Executable,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> list[Row]:
        """Run ``statement`` on the channel and return any produced rows."""
        return self._call(self._execute, statement, parameters)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit on a clean exit, roll back on every other exit path."""
        transaction = self._call(self._connection.begin)
        try:
            yield
        except BaseException:
            try:
                self._call(transaction.rollback)
            except DatabaseError:
                logger.exception("Rollback failed")
            raise
        self._call(transaction.commit)

    def close(self) -> None:
        future = self._channel.submit(self._connection.close)
        if self._abandoned:
            # The close runs once the stuck statement returns.
            future.add_done_callback(_log_close_failure)
            self._channel.shutdown(wait=False)
            return
        try:
            future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.error("Database channel did not close in time", extra={"reason": "timeout"})
            future.add_done_callback(_log_close_failure)
            self._channel.shutdown(wait=False)
            return
        except SQLAlchemyError:
            logger.exception("Database channel failed while closing")
        self._channel.shutdown(wait=True)

    def _execute(self, statement: Executable, parameters: Optional[Mapping[str, Any]]) -> list[Row]:
        result = self._connection.execute(statement, parameters)
        if not result.returns_rows:
            return []
        return list(result.all())

    def _call(self, fn: Callable[..., T], *args: Any) -> T:
        future = self._channel.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            self._abandoned = True
            raise DatabaseError(
                f"Database did not respond within {self.timeout} seconds."
            ) from exc
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Database operation failed: {exc}") from exc


class ConnectionProvider:
    """Resolves configuration and opens sessions against the temperature database."""

    def __init__(self, settings: Settings, engine: Optional[Engine] = None) -> None:
        self.settings = settings
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = build_engine(self.settings)
        return self._engine

    def open(self) -> DatabaseSession:
        engine = self.engine
        logger.debug("Opening database session", extra={"database": engine.url.database})
        return DatabaseSession(engine, timeout=self.settings.query_timeout)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()


@lru_cache
def build_default_provider() -> ConnectionProvider:
    return ConnectionProvider(get_settings())
