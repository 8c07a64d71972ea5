# src/moduledmysql/errors.py
"""Exception hierarchy for statement construction, mapping and connections.

Every error raised by this package derives from DatabaseError. Errors raised
by the mysql-connector driver while a statement executes are not wrapped and
reach the caller unchanged.
"""


class DatabaseError(Exception):
    """Base class for all errors raised by moduledmysql."""


class ConnectionError(DatabaseError):
    """Raised when a connection to the MySQL server cannot be established."""


class MappingError(DatabaseError):
    """Base class for entity metadata and row mapping problems."""


class MissingTableMetadataError(MappingError):
    """Raised when an entity type has no table name declared."""


class NoColumnsFoundError(MappingError):
    """Raised when an entity type declares no mapped columns."""


class MissingPrimaryKeyError(MappingError):
    """Raised when an operation needs a primary key column and none is declared."""


class RowMappingError(MappingError):
    """Raised when a result row cannot be converted into an entity instance.

    The original exception is available as ``__cause__``.
    """


class FieldAccessError(MappingError):
    """Raised when a column value cannot be read from an entity instance."""


class QueryBuilderError(DatabaseError):
    """Base class for statement construction problems."""


class EmptyInListError(QueryBuilderError, ValueError):
    """Raised when an IN clause is requested with no values."""


class StatementConsumedError(QueryBuilderError):
    """Raised when a builder is used after being embedded into another statement."""


class ParameterCountError(QueryBuilderError, ValueError):
    """Raised when the placeholder count does not match the parameter count."""
