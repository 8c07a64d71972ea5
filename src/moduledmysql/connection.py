# src/moduledmysql/connection.py
"""Connection handle executing parameterized statements on MySQL."""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence, Tuple

import mysql.connector
from mysql.connector import pooling
from mysql.connector.errors import Error as MySQLError

from .adapters import to_database
from .config import ConnectionConfig
from .dialect import check_parameter_count
from .errors import ConnectionError


@dataclass
class QueryResult:
    """Outcome of a statement that was executed for its side effect."""

    affected_rows: int = 0
    last_insert_id: Optional[int] = None
    duration: float = 0.0


class Database:
    """Handle to one MySQL server.

    Statements run on prepared cursors, binding ``?`` placeholders
    positionally. Without a pool a single connection is shared and every
    operation holds the handle's lock; with ``pool_size`` configured every
    operation checks out its own pooled connection, waiting while all
    ``pool_size`` connections are in use.

    Errors raised by mysql-connector while a statement executes are logged and
    re-raised unchanged.
    """

    def __init__(self, config: Optional[ConnectionConfig] = None,
                 logger: Optional[logging.Logger] = None, **kwargs):
        self.config = config if config is not None else ConnectionConfig(**kwargs)
        self.logger = logger or logging.getLogger("moduledmysql.connection")
        self.logger.setLevel(self.config.log_level)
        self._connection = None
        self._pool = None
        self._checkouts: Optional[threading.BoundedSemaphore] = None
        self._lock = threading.RLock()

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    @property
    def is_connected(self) -> bool:
        return self._connection is not None or self._pool is not None

    def connect(self) -> None:
        """Establish the connection, or the pool when ``pool_size`` is set.

        Calling it again while connected does nothing.

        Raises:
            ConnectionError: If the server cannot be reached.
        """
        with self._lock:
            if self.is_connected:
                self.log(logging.INFO, "Already connected to MySQL, keeping the existing connection")
                return
            try:
                pool_args = self.config.pool_args()
                if pool_args:
                    pool = pooling.MySQLConnectionPool(**pool_args)
                    self._checkouts = threading.BoundedSemaphore(pool_args["pool_size"])
                    self._pool = pool
                    self.log(logging.INFO,
                             f"Created MySQL connection pool {pool_args['pool_name']} "
                             f"with {pool_args['pool_size']} connections")
                else:
                    self._connection = mysql.connector.connect(**self.config.to_dict())
                    self.log(logging.INFO,
                             f"Connected to MySQL at {self.config.host}:{self.config.port}")
            except MySQLError as e:
                self.log(logging.ERROR, f"Failed to connect to MySQL: {e}")
                raise ConnectionError(f"Failed to connect to MySQL: {e}") from e

    def disconnect(self) -> None:
        """Close the connection, or the pool's idle connections, and drop them."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
            if self._pool is not None:
                self._pool._remove_connections()
                self._pool = None
                self._checkouts = None
            self.log(logging.INFO, "Disconnected from MySQL")

    def ping(self, reconnect: bool = True) -> bool:
        """Check if connection is valid"""
        if not self.is_connected:
            if reconnect:
                self.connect()
                return True
            return False

        try:
            with self._checkout() as connection:
                connection.ping(reconnect=reconnect)
            return True
        except MySQLError as e:
            self.log(logging.WARNING, f"Ping failed: {e}")
            return False

    @contextmanager
    def cursor(self, prepared: bool = False) -> Iterator[Any]:
        """Yield a cursor on a checked-out connection, closing it afterwards."""
        with self._checkout() as connection:
            cursor = connection.cursor(prepared=True) if prepared else connection.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute a statement and commit it unless autocommit is on.

        Raises:
            ParameterCountError: If placeholders and parameters differ in number.
            mysql.connector.Error: Driver errors, unchanged.
        """
        with self._execute(sql, params) as (connection, cursor, start_time):
            if getattr(cursor, "with_rows", False):
                cursor.fetchall()
            if not self.config.autocommit:
                connection.commit()
                self.log(logging.DEBUG, "Committed statement (autocommit disabled)")

            duration = time.perf_counter() - start_time
            result = QueryResult(
                affected_rows=cursor.rowcount,
                last_insert_id=cursor.lastrowid or None,
                duration=duration,
            )
        self.log(self._query_log_level,
                 f"Statement completed, affected {result.affected_rows} rows, duration={duration:.3f}s")
        return result

    @contextmanager
    def query(self, sql: str, params: Sequence[Any] = ()) -> Iterator[Any]:
        """Execute a statement and yield the cursor holding its result rows.

        The cursor is closed when the block exits::

            with database.query("SELECT id, email FROM users WHERE id = ?", [1]) as cursor:
                user = map_one(cursor, User)
        """
        with self._execute(sql, params) as (_, cursor, _start):
            yield cursor

    @property
    def _query_log_level(self) -> int:
        return logging.INFO if self.config.log_queries else logging.DEBUG

    @contextmanager
    def _checkout(self) -> Iterator[Any]:
        if not self.is_connected:
            self.log(logging.DEBUG, "No active connection, establishing new connection")
            self.connect()

        if self._pool is not None:
            # The driver pool raises PoolError when exhausted instead of waiting
            pool, checkouts = self._pool, self._checkouts
            with checkouts:
                connection = pool.get_connection()
                try:
                    yield connection
                finally:
                    # Returns the connection to the pool
                    connection.close()
        else:
            with self._lock:
                yield self._connection

    @contextmanager
    def _execute(self, sql: str, params: Sequence[Any]) -> Iterator[Tuple[Any, Any, float]]:
        params = tuple(params or ())
        check_parameter_count(sql, params)
        bound = tuple(to_database(value) for value in params)
        self.log(self._query_log_level, f"Executing SQL: {sql}, parameters: {params}")

        with self._checkout() as connection:
            cursor = connection.cursor(prepared=True) if bound else connection.cursor()
            try:
                start_time = time.perf_counter()
                try:
                    if bound:
                        cursor.execute(sql, bound)
                    else:
                        cursor.execute(sql)
                except MySQLError as e:
                    self.log(logging.ERROR, f"Error executing statement: {e}")
                    raise
                yield connection, cursor, start_time
            finally:
                cursor.close()

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()
