# src/moduledmysql/adapters.py
"""Value conversion between entity attributes and the MySQL driver.

Writing is keyed on the Python type of a bound parameter, reading on the
declared :class:`SQLType` of the column being mapped. ``None`` is never
converted in either direction.
"""

import datetime
import enum
import json
import uuid
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .types import DECIMAL_TYPES, TEXT_TYPES, SQLType


class SQLTypeAdapter:
    """Base adapter. Subclasses declare the types they handle."""

    #: Column types whose values this adapter converts when reading rows.
    sql_types: FrozenSet[SQLType] = frozenset()
    #: Python types this adapter converts when binding parameters.
    python_types: Tuple[type, ...] = ()

    def to_database(self, value: Any) -> Any:
        return value

    def from_database(self, value: Any) -> Any:
        return value


class JSONAdapter(SQLTypeAdapter):
    """
    Adapts Python dict/list to MySQL JSON and vice-versa.
    Serializes to JSON string when writing, deserializes from JSON string when reading.
    """
    sql_types = frozenset({SQLType.JSON})
    python_types = (dict, list)

    def to_database(self, value: Any) -> Any:
        return json.dumps(value, ensure_ascii=False)

    def from_database(self, value: Any) -> Any:
        # The driver may already hand back decoded objects
        if isinstance(value, (dict, list)):
            return value
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("utf-8")
        return json.loads(value)


class UUIDAdapter(SQLTypeAdapter):
    """
    Adapts Python UUID to MySQL CHAR(36).
    """
    python_types = (uuid.UUID,)

    def to_database(self, value: uuid.UUID) -> Any:
        return str(value)


class EnumAdapter(SQLTypeAdapter):
    python_types = (enum.Enum,)

    def to_database(self, value: enum.Enum) -> Any:
        return value.value


class BooleanAdapter(SQLTypeAdapter):
    """
    Adapts Python bool to MySQL BOOLEAN (TINYINT(1)) and vice-versa.
    """
    sql_types = frozenset({SQLType.BOOLEAN})
    python_types = (bool,)

    def to_database(self, value: bool) -> Any:
        return 1 if value else 0

    def from_database(self, value: Any) -> bool:
        # MySQL returns int (0 or 1) for TINYINT(1)
        if isinstance(value, (bytes, bytearray)):
            return value not in (b"\x00", b"0", b"")
        return bool(value)


class DecimalAdapter(SQLTypeAdapter):
    """
    Adapts MySQL DECIMAL/NUMERIC values to Python Decimal.
    """
    sql_types = DECIMAL_TYPES

    def from_database(self, value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("ascii")
        # Converts str, float, int to Decimal
        return Decimal(str(value))


class TimeAdapter(SQLTypeAdapter):
    """
    Adapts MySQL TIME values to Python time.

    mysql-connector returns datetime.timedelta for TIME columns. Values outside
    a single day (durations of 24h or more, negative intervals) have no
    datetime.time equivalent and stay timedelta.
    """
    sql_types = frozenset({SQLType.TIME})

    def from_database(self, value: Any) -> Any:
        if isinstance(value, datetime.time):
            return value
        if isinstance(value, datetime.timedelta):
            if not datetime.timedelta(0) <= value < datetime.timedelta(days=1):
                return value
            total_seconds = int(value.total_seconds())
            hours, remainder = divmod(total_seconds, 3600)
            minutes, seconds = divmod(remainder, 60)
            return datetime.time(hours, minutes, seconds, value.microseconds)
        return datetime.time.fromisoformat(str(value))


class DateAdapter(SQLTypeAdapter):
    sql_types = frozenset({SQLType.DATE})

    def from_database(self, value: Any) -> datetime.date:
        if isinstance(value, datetime.date):
            return value
        return datetime.date.fromisoformat(str(value))


class DatetimeAdapter(SQLTypeAdapter):
    """
    Adapts Python datetime to MySQL DATETIME/TIMESTAMP and vice-versa.

    Timezone-aware values are normalized to naive UTC before binding, since
    the driver expects naive datetimes.
    """
    sql_types = frozenset({SQLType.DATETIME, SQLType.TIMESTAMP})
    python_types = (datetime.datetime,)

    def to_database(self, value: datetime.datetime) -> Any:
        if value.tzinfo is not None:
            return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
        return value

    def from_database(self, value: Any) -> datetime.datetime:
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("ascii")
        return datetime.datetime.fromisoformat(str(value))


class TextAdapter(SQLTypeAdapter):
    """Decodes character columns returned as bytes by prepared cursors."""
    sql_types = TEXT_TYPES

    def from_database(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return value.decode("utf-8")
        return value


DEFAULT_ADAPTERS: Tuple[SQLTypeAdapter, ...] = (
    BooleanAdapter(),
    JSONAdapter(),
    UUIDAdapter(),
    EnumAdapter(),
    DecimalAdapter(),
    TimeAdapter(),
    DateAdapter(),
    DatetimeAdapter(),
    TextAdapter(),
)


class AdapterRegistry:
    """Lookup of adapters by column type (reading) and Python type (writing).

    Adapters registered later take precedence over earlier ones.
    """

    def __init__(self, adapters: Optional[Iterable[SQLTypeAdapter]] = None):
        self._by_sql_type: Dict[SQLType, SQLTypeAdapter] = {}
        self._writers: List[SQLTypeAdapter] = []
        for adapter in adapters if adapters is not None else DEFAULT_ADAPTERS:
            self.register(adapter)

    def register(self, adapter: SQLTypeAdapter) -> None:
        for sql_type in adapter.sql_types:
            self._by_sql_type[sql_type] = adapter
        if adapter.python_types:
            self._writers.insert(0, adapter)

    def adapter_for(self, sql_type: SQLType) -> Optional[SQLTypeAdapter]:
        return self._by_sql_type.get(sql_type)

    def to_database(self, value: Any) -> Any:
        if value is None:
            return None
        for adapter in self._writers:
            if isinstance(value, adapter.python_types):
                return adapter.to_database(value)
        return value

    def from_database(self, value: Any, sql_type: SQLType) -> Any:
        if value is None:
            return None
        adapter = self._by_sql_type.get(sql_type)
        if adapter is None:
            return value
        return adapter.from_database(value)


default_registry = AdapterRegistry()


def to_database(value: Any) -> Any:
    return default_registry.to_database(value)


def from_database(value: Any, sql_type: SQLType) -> Any:
    return default_registry.from_database(value, sql_type)
