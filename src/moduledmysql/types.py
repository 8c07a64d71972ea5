# src/moduledmysql/types.py
from enum import Enum


class SQLType(Enum):
    """MySQL column types usable in entity column declarations.

    Each member's value is the literal keyword written into DDL, so
    ``str(SQLType.VARCHAR)`` gives ``"VARCHAR"``.
    """

    # Numeric types
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    MEDIUMINT = "MEDIUMINT"
    INT = "INT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"

    # Boolean / bit
    BIT = "BIT"
    BOOLEAN = "BOOLEAN"

    # String types
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    TINYTEXT = "TINYTEXT"
    TEXT = "TEXT"
    MEDIUMTEXT = "MEDIUMTEXT"
    LONGTEXT = "LONGTEXT"

    # Binary types
    BINARY = "BINARY"
    VARBINARY = "VARBINARY"
    TINYBLOB = "TINYBLOB"
    BLOB = "BLOB"
    MEDIUMBLOB = "MEDIUMBLOB"
    LONGBLOB = "LONGBLOB"

    # Date and time
    DATE = "DATE"
    TIME = "TIME"
    YEAR = "YEAR"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"

    # JSON and enumerations
    JSON = "JSON"
    ENUM = "ENUM"
    SET = "SET"

    # Spatial
    GEOMETRY = "GEOMETRY"
    POINT = "POINT"
    LINESTRING = "LINESTRING"
    POLYGON = "POLYGON"

    @property
    def sql(self) -> str:
        """Keyword as written in a column definition."""
        return self.value

    def __str__(self):
        return self.value


TEXT_TYPES = frozenset({
    SQLType.CHAR,
    SQLType.VARCHAR,
    SQLType.TINYTEXT,
    SQLType.TEXT,
    SQLType.MEDIUMTEXT,
    SQLType.LONGTEXT,
    SQLType.ENUM,
    SQLType.SET,
})

DECIMAL_TYPES = frozenset({SQLType.DECIMAL, SQLType.NUMERIC})
