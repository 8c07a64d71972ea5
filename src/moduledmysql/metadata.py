# src/moduledmysql/metadata.py
"""Entity metadata declaration and extraction.

Entities are dataclasses whose fields are declared with :func:`column`. The
table is declared with the :func:`table` class decorator (or a plain
``__table_name__`` class attribute)::

    @table("users")
    @dataclass
    class User:
        id: int = column("id", SQLType.INT, length=11, primary_key=True, auto_increment=True)
        email: str = column("email", SQLType.VARCHAR, length=255)
        cached_score: float = 0.0  # not a column

Column order is the dataclass field order, inherited fields first.
Descriptors are built once per class and kept for the life of the process.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .errors import (
    FieldAccessError,
    MissingPrimaryKeyError,
    MissingTableMetadataError,
    NoColumnsFoundError,
)
from .types import SQLType

COLUMN_METADATA_KEY = "moduledmysql.column"
TABLE_ATTRIBUTE = "__table_name__"


@dataclass(frozen=True)
class ColumnDescriptor:
    """Mapping between one entity attribute and one table column."""

    attribute: str
    name: str
    sql_type: SQLType
    length: Optional[int] = None
    scale: Optional[int] = None
    primary_key: bool = False
    auto_increment: bool = False

    @property
    def has_length(self) -> bool:
        return self.length is not None and self.length > 0

    @property
    def has_scale(self) -> bool:
        return self.scale is not None and self.scale > 0


@dataclass(frozen=True)
class _ColumnSpec:
    name: Optional[str]
    sql_type: SQLType
    length: Optional[int]
    scale: Optional[int]
    primary_key: bool
    auto_increment: bool


@dataclass(frozen=True)
class EntityDescriptor:
    """Table name and ordered columns of an entity class."""

    entity_type: type
    table_name: Optional[str]
    columns: Tuple[ColumnDescriptor, ...]

    def table(self, strict: bool = True) -> str:
        """Return the declared table name.

        Args:
            strict: When False, fall back to the lower-cased class name
                instead of raising.

        Raises:
            MissingTableMetadataError: If strict and no table is declared.
        """
        if self.table_name:
            return self.table_name
        if not strict:
            return self.entity_type.__name__.lower()
        raise MissingTableMetadataError(
            f"Missing table name on entity class {self.entity_type.__name__}; "
            f"decorate it with @table(...)"
        )

    def require_columns(self) -> Tuple[ColumnDescriptor, ...]:
        if not self.columns:
            raise NoColumnsFoundError(
                f"No column fields declared in entity class {self.entity_type.__name__}"
            )
        return self.columns

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(col.name for col in self.columns)

    @property
    def primary_key(self) -> ColumnDescriptor:
        """First column flagged as primary key."""
        for col in self.columns:
            if col.primary_key:
                return col
        raise MissingPrimaryKeyError(
            f"No primary key column defined in entity class {self.entity_type.__name__}"
        )

    @property
    def auto_increment_column(self) -> Optional[ColumnDescriptor]:
        for col in self.columns:
            if col.auto_increment:
                return col
        return None


_DESCRIPTORS: Dict[type, EntityDescriptor] = {}


def column(name: Optional[str],
           sql_type: SQLType,
           *,
           length: Optional[int] = None,
           scale: Optional[int] = None,
           primary_key: bool = False,
           auto_increment: bool = False,
           default: Any = None,
           default_factory: Any = dataclasses.MISSING,
           **field_kwargs) -> Any:
    """Declare a dataclass field as a table column.

    Args:
        name: Column name in the table. ``None`` uses the attribute name.
        sql_type: Column type.
        length: Length / precision, e.g. 255 for VARCHAR(255). Values <= 0
            mean "not specified".
        scale: Scale for DECIMAL / NUMERIC, only rendered together with a length.
        primary_key: Whether the column is the primary key.
        auto_increment: Whether MySQL generates the value. Such columns are
            left out of INSERT statements.
        default: Attribute default, so the entity can be built with no arguments.
        default_factory: Used instead of ``default`` when given.
        **field_kwargs: Passed to :func:`dataclasses.field`.

    Returns:
        A :func:`dataclasses.field` carrying the column metadata.
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[COLUMN_METADATA_KEY] = _ColumnSpec(
        name=name,
        sql_type=sql_type,
        length=length,
        scale=scale,
        primary_key=primary_key,
        auto_increment=auto_increment,
    )
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata, **field_kwargs)
    return dataclasses.field(default=default, metadata=metadata, **field_kwargs)


def table(name: str):
    """Class decorator declaring the table of an entity and registering it.

    Classes that are not dataclasses yet are turned into one.
    """

    def decorator(cls):
        if not dataclasses.is_dataclass(cls):
            cls = dataclass(cls)
        setattr(cls, TABLE_ATTRIBUTE, name)
        _DESCRIPTORS[cls] = _build_descriptor(cls)
        return cls

    return decorator


def _build_descriptor(entity_type: type) -> EntityDescriptor:
    columns = []
    if dataclasses.is_dataclass(entity_type):
        for f in dataclasses.fields(entity_type):
            declared = f.metadata.get(COLUMN_METADATA_KEY)
            if declared is None:
                continue
            columns.append(ColumnDescriptor(
                attribute=f.name,
                name=declared.name or f.name,
                sql_type=declared.sql_type,
                length=declared.length,
                scale=declared.scale,
                primary_key=declared.primary_key,
                auto_increment=declared.auto_increment,
            ))
    return EntityDescriptor(
        entity_type=entity_type,
        table_name=getattr(entity_type, TABLE_ATTRIBUTE, None),
        columns=tuple(columns),
    )


def describe(entity_type: type) -> EntityDescriptor:
    """Return the (memoized) descriptor of an entity class."""
    if not isinstance(entity_type, type):
        raise TypeError(f"Expected an entity class, got {type(entity_type).__name__}")
    descriptor = _DESCRIPTORS.get(entity_type)
    if descriptor is None:
        descriptor = _DESCRIPTORS.setdefault(entity_type, _build_descriptor(entity_type))
    return descriptor


def table_name_of(entity_type: type, strict: bool = True) -> str:
    return describe(entity_type).table(strict=strict)


def columns_of(entity_type: type) -> Tuple[ColumnDescriptor, ...]:
    return describe(entity_type).require_columns()


def primary_key_of(entity_type: type) -> ColumnDescriptor:
    return describe(entity_type).primary_key


def read_value(instance: Any, col: ColumnDescriptor) -> Any:
    """Read the value of a column attribute from an entity instance."""
    try:
        return getattr(instance, col.attribute)
    except AttributeError as e:
        raise FieldAccessError(
            f"Cannot access field value '{col.attribute}' on {type(instance).__name__}"
        ) from e
