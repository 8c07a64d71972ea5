# src/moduledmysql/schema.py
"""CREATE TABLE synthesis from entity metadata."""

import logging
from typing import TYPE_CHECKING, Union

from .dialect import format_identifier
from .metadata import ColumnDescriptor, EntityDescriptor, describe

if TYPE_CHECKING:
    from .connection import Database

logger = logging.getLogger("moduledmysql.schema")


def render_column(col: ColumnDescriptor) -> str:
    """Render one column definition, e.g. ```id` INT(11) PRIMARY KEY AUTO_INCREMENT``."""
    sql = f"{format_identifier(col.name)} {col.sql_type.sql}"

    if col.has_length:
        if col.has_scale:
            sql += f"({col.length}, {col.scale})"
        else:
            sql += f"({col.length})"

    if col.primary_key:
        sql += " PRIMARY KEY"
    if col.auto_increment:
        sql += " AUTO_INCREMENT"

    return sql


def render_create_table(entity: Union[type, EntityDescriptor]) -> str:
    """Render the CREATE TABLE IF NOT EXISTS statement of an entity.

    Args:
        entity: Entity class or its descriptor.

    Returns:
        str: The statement, one column definition per line.

    Raises:
        MissingTableMetadataError: If the entity declares no table.
        NoColumnsFoundError: If the entity declares no columns.
    """
    descriptor = entity if isinstance(entity, EntityDescriptor) else describe(entity)
    table_name = descriptor.table()
    definitions = [f"  {render_column(col)}" for col in descriptor.require_columns()]
    return (
        f"CREATE TABLE IF NOT EXISTS {format_identifier(table_name)} (\n"
        + ",\n".join(definitions)
        + "\n);"
    )


def create_table(database: "Database", entity_type: type) -> str:
    """Create the entity's table if it does not exist yet.

    Returns:
        str: The executed statement.
    """
    sql = render_create_table(entity_type)
    database.execute(sql)
    logger.info(f"Table created or already exists: {describe(entity_type).table()}")
    return sql
