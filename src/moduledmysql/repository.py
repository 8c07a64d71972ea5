# src/moduledmysql/repository.py
"""Entity persistence on top of a :class:`~moduledmysql.connection.Database`.

:class:`Repository` runs every operation synchronously on the caller's thread.
:class:`AsyncRepository` exposes the same operations as coroutines that run
the synchronous ones on a thread pool.
"""

import asyncio
import functools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Type, TypeVar

from .connection import Database
from .mapper import map_all
from .metadata import describe
from .query import QueryBuilder
from .schema import create_table

T = TypeVar("T")

DEFAULT_ASYNC_WORKERS = 10


class Repository:
    """Save, load, update and delete entities.

    Every entity type used here needs a declared table; key based operations
    also need a primary key column.
    """

    def __init__(self, database: Database, logger: Optional[logging.Logger] = None):
        self.database = database
        self.logger = logger or logging.getLogger("moduledmysql.repository")

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    def save(self, entity: Any) -> int:
        """Insert the entity, replacing any row with the same key.

        Returns:
            int: Rows affected as reported by MySQL (2 when a row was replaced).
        """
        result = QueryBuilder.replace_into(type(entity), entity).execute(self.database)
        self.log(logging.DEBUG, f"Saved {type(entity).__name__}, affected {result.affected_rows} rows")
        return result.affected_rows

    def insert(self, entity: Any) -> int:
        """Insert the entity without its auto-increment column.

        The generated key is written back into the entity when MySQL reports one.
        """
        entity_type = type(entity)
        result = QueryBuilder.insert_into(entity_type, entity).execute(self.database)
        generated = describe(entity_type).auto_increment_column
        if generated is not None and result.last_insert_id is not None:
            setattr(entity, generated.attribute, result.last_insert_id)
            self.log(logging.DEBUG,
                     f"Inserted {entity_type.__name__} with {generated.name}={result.last_insert_id}")
        return result.affected_rows

    def update(self, entity: Any) -> int:
        result = QueryBuilder.update(type(entity), entity).execute(self.database)
        return result.affected_rows

    def load(self, entity_type: Type[T], key: Any) -> Optional[T]:
        """Load the entity whose primary key equals ``key``, or None."""
        descriptor = describe(entity_type)
        table = descriptor.table()
        key_column = descriptor.primary_key
        builder = QueryBuilder.select(entity_type).from_(entity_type)
        builder.where(f"{builder.alias_for(entity_type)}.{key_column.name} = ?", key)
        self.log(logging.DEBUG, f"Loading {entity_type.__name__} from {table} by {key_column.name}={key!r}")
        found = self.find(builder, entity_type)
        return found[0] if found else None

    def delete(self, entity_type: type, key: Any) -> int:
        """Delete the row whose primary key equals ``key``."""
        result = QueryBuilder.delete_from(entity_type, key).execute(self.database)
        self.log(logging.DEBUG, f"Deleted {entity_type.__name__} {key!r}, affected {result.affected_rows} rows")
        return result.affected_rows

    def find(self, builder: QueryBuilder, entity_type: Type[T]) -> List[T]:
        """Run a SELECT builder and map every row to ``entity_type``."""
        with self.database.query(*builder.build()) as cursor:
            return map_all(cursor, entity_type)

    def create_table(self, entity_type: type) -> str:
        return create_table(self.database, entity_type)


class AsyncRepository:
    """Coroutine facade over a :class:`Repository`.

    Operations run on a thread pool, concurrently and without ordering
    between calls. Exceptions raised by an operation propagate unchanged
    from the awaited coroutine.

    An executor passed in stays owned by the caller. One created here is
    shut down by :meth:`shutdown` or on leaving ``async with``.
    """

    def __init__(self, repository: Repository, executor: Optional[Executor] = None,
                 max_workers: int = DEFAULT_ASYNC_WORKERS):
        self.repository = repository
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="moduledmysql"
        )

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    async def save(self, entity: Any) -> int:
        return await self._run(self.repository.save, entity)

    async def insert(self, entity: Any) -> int:
        return await self._run(self.repository.insert, entity)

    async def update(self, entity: Any) -> int:
        return await self._run(self.repository.update, entity)

    async def load(self, entity_type: Type[T], key: Any) -> Optional[T]:
        return await self._run(self.repository.load, entity_type, key)

    async def delete(self, entity_type: type, key: Any) -> int:
        return await self._run(self.repository.delete, entity_type, key)

    async def find(self, builder: QueryBuilder, entity_type: Type[T]) -> List[T]:
        return await self._run(self.repository.find, builder, entity_type)

    async def create_table(self, entity_type: type) -> str:
        return await self._run(self.repository.create_table, entity_type)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    async def __aenter__(self) -> "AsyncRepository":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
