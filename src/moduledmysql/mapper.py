# src/moduledmysql/mapper.py
"""Conversion of result rows into entity instances."""

from typing import Any, List, Mapping, Optional, Type, TypeVar

from .adapters import from_database
from .errors import RowMappingError
from .metadata import describe, read_value

T = TypeVar("T")


def _as_mapping(row: Any, cursor: Any = None) -> Mapping[str, Any]:
    if isinstance(row, Mapping):
        return row
    description = getattr(cursor, "description", None)
    if not description:
        raise RowMappingError(
            f"Cannot map a {type(row).__name__} row without a cursor description"
        )
    names = [column[0] for column in description]
    if len(names) != len(row):
        raise RowMappingError(
            f"Row has {len(row)} values but the cursor describes {len(names)} columns"
        )
    return dict(zip(names, row))


def map_row(row: Any, entity_type: Type[T], cursor: Any = None) -> T:
    """Build an entity from one result row.

    Args:
        row: A mapping of column name to value, or a sequence of values whose
            column names come from ``cursor.description``.
        entity_type: Entity class. It must be constructible without arguments.
        cursor: Cursor the row was fetched from, needed for sequence rows.

    Returns:
        The new entity with every mapped column assigned.

    Raises:
        NoColumnsFoundError: If the entity declares no columns.
        RowMappingError: If construction, lookup, conversion or assignment
            fails. The original exception is chained as ``__cause__``.
    """
    columns = describe(entity_type).require_columns()
    values = _as_mapping(row, cursor)
    try:
        entity = entity_type()
        for col in columns:
            setattr(entity, col.attribute, from_database(values[col.name], col.sql_type))
    except Exception as e:
        raise RowMappingError(
            f"Error mapping result row to {entity_type.__name__}: {e}"
        ) from e
    return entity


def map_one(cursor: Any, entity_type: Type[T]) -> Optional[T]:
    """Fetch and map the next row of ``cursor``, or None when it is exhausted."""
    row = cursor.fetchone()
    if row is None:
        return None
    return map_row(row, entity_type, cursor)


def map_all(cursor: Any, entity_type: Type[T]) -> List[T]:
    """Fetch every remaining row of ``cursor`` and map it."""
    return [map_row(row, entity_type, cursor) for row in cursor.fetchall()]


def row_from(entity: Any) -> Mapping[str, Any]:
    """Column name -> attribute value mapping of an entity instance."""
    return {col.name: read_value(entity, col)
            for col in describe(type(entity)).require_columns()}
