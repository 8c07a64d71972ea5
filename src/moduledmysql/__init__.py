# src/moduledmysql/__init__.py
"""
Annotation-driven persistence for MySQL.

This package maps dataclass entities to MySQL tables:
- Entity metadata declared with the @table decorator and column() fields
- CREATE TABLE synthesis from that metadata
- Fluent, parameterized statement construction (QueryBuilder, ConditionGroup)
- Result row to entity mapping with type adaptation
- Repository facade with synchronous and thread-pool backed async variants

Architecture:
- Database: connection handle using mysql-connector-python prepared cursors
- Every statement uses positional ``?`` placeholders; values are never
  interpolated into SQL text
"""

from .config import ConnectionConfig
from .connection import Database, QueryResult
from .errors import (
    ConnectionError,
    DatabaseError,
    EmptyInListError,
    FieldAccessError,
    MappingError,
    MissingPrimaryKeyError,
    MissingTableMetadataError,
    NoColumnsFoundError,
    ParameterCountError,
    QueryBuilderError,
    RowMappingError,
    StatementConsumedError,
)
from .mapper import map_all, map_one, map_row
from .metadata import ColumnDescriptor, EntityDescriptor, column, describe, table
from .query import AliasAllocator, ConditionGroup, QueryBuilder
from .repository import AsyncRepository, Repository
from .schema import create_table, render_column, render_create_table
from .types import SQLType

__version__ = "1.0.0"

__all__ = [
    # Entity metadata
    'SQLType',
    'column',
    'table',
    'describe',
    'ColumnDescriptor',
    'EntityDescriptor',

    # Statements
    'QueryBuilder',
    'ConditionGroup',
    'AliasAllocator',
    'render_column',
    'render_create_table',
    'create_table',

    # Execution
    'ConnectionConfig',
    'Database',
    'QueryResult',
    'Repository',
    'AsyncRepository',
    'map_row',
    'map_one',
    'map_all',

    # Errors
    'DatabaseError',
    'ConnectionError',
    'MappingError',
    'MissingTableMetadataError',
    'NoColumnsFoundError',
    'MissingPrimaryKeyError',
    'RowMappingError',
    'FieldAccessError',
    'QueryBuilderError',
    'EmptyInListError',
    'StatementConsumedError',
    'ParameterCountError',
]
