# src/moduledmysql/query.py
"""Fluent SQL statement construction.

A statement is built by concatenating SQL fragments while appending the bound
values to a single parameter list, in the order their ``?`` placeholders
appear in the text::

    builder = (QueryBuilder.select(User)
               .from_(User)
               .left_join(Order, "t1.user_id = t0.id")
               .where("t0.active = ?", 1)
               .and_("t1.total > ?", 100))
    sql, params = builder.build()

Builders and condition groups are not thread-safe. Each instance belongs to a
single call chain.
"""

from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from .dialect import PLACEHOLDER, placeholders
from .errors import EmptyInListError, QueryBuilderError, StatementConsumedError
from .metadata import describe, read_value


class AliasAllocator:
    """Hands out one alias per entity class within a statement: t0, t1, ..."""

    def __init__(self):
        self._aliases: Dict[type, str] = {}
        self._counter = 0

    def alias_for(self, entity_type: type) -> str:
        alias = self._aliases.get(entity_type)
        if alias is None:
            alias = f"t{self._counter}"
            self._counter += 1
            self._aliases[entity_type] = alias
        return alias

    @property
    def aliases(self) -> Dict[type, str]:
        return dict(self._aliases)

    def __contains__(self, entity_type) -> bool:
        return entity_type in self._aliases

    def __len__(self) -> int:
        return len(self._aliases)


class ConditionGroup:
    """Standalone AND/OR condition accumulator.

    The group's text is spliced into a statement, wrapped in parentheses, with
    :meth:`QueryBuilder.where_group`::

        group = ConditionGroup().and_("name = ?", "Alice").or_("age > ?", 30)
        group.get_query()   # "name = ? OR age > ?"
        group.parameters    # ("Alice", 30)
    """

    def __init__(self):
        self._parts: List[str] = []
        self._parameters: List[Any] = []

    def and_(self, condition: str, *values: Any) -> "ConditionGroup":
        return self._append("AND", condition, values)

    def or_(self, condition: str, *values: Any) -> "ConditionGroup":
        return self._append("OR", condition, values)

    def _append(self, keyword: str, condition: str, values: Tuple[Any, ...]) -> "ConditionGroup":
        if any(self._parts):
            self._parts.append(f" {keyword} ")
        self._parts.append(condition)
        self._parameters.extend(values)
        return self

    def get_query(self) -> str:
        """Condition text without surrounding parentheses."""
        return "".join(self._parts)

    @property
    def query(self) -> str:
        return self.get_query()

    @property
    def parameters(self) -> Tuple[Any, ...]:
        return tuple(self._parameters)

    def __repr__(self):
        return f"ConditionGroup({self.get_query()!r}, parameters={self.parameters!r})"


class QueryBuilder:
    """Chained builder for parameterized MySQL statements.

    Start with one of the factory classmethods (:meth:`select`,
    :meth:`insert_into`, :meth:`replace_into`, :meth:`update`,
    :meth:`update_table`, :meth:`delete_from`, :meth:`delete_from_table`),
    chain clauses, then read :attr:`sql` and :attr:`parameters` or call
    :meth:`build`.

    A builder passed to :meth:`union`, :meth:`union_all` or :meth:`subquery`
    is consumed: it can still be read but not modified or embedded again.
    """

    def __init__(self):
        self._parts: List[str] = []
        self._parameters: List[Any] = []
        self._aliases = AliasAllocator()
        self._consumed = False

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def select(cls, *columns: Union[type, str]) -> "QueryBuilder":
        """Start a SELECT statement.

        Args:
            *columns: Column expressions, optionally preceded by an entity
                class. With an entity class and no columns, every mapped
                column is selected as ``alias.column``.

        Raises:
            NoColumnsFoundError: If an entity class without columns is
                selected without explicit columns.
        """
        builder = cls()
        if columns and isinstance(columns[0], type):
            entity_type, columns = columns[0], columns[1:]
            alias = builder._aliases.alias_for(entity_type)
            if not columns:
                columns = tuple(f"{alias}.{col.name}"
                                for col in describe(entity_type).require_columns())
        if not columns:
            raise QueryBuilderError("SELECT needs at least one column")
        builder._append(f"SELECT {', '.join(columns)}")
        return builder

    @classmethod
    def insert_into(cls, target: Union[type, str], values: Any) -> "QueryBuilder":
        """Start an INSERT statement.

        Args:
            target: Entity class or raw table name.
            values: Entity instance when ``target`` is a class (auto-increment
                columns are skipped), otherwise a mapping of column name to value.

        Raises:
            MissingTableMetadataError: If the entity declares no table.
            NoColumnsFoundError: If the entity declares no columns.
            FieldAccessError: If a column value cannot be read.
        """
        builder = cls()
        if isinstance(target, type):
            descriptor = describe(target)
            table = descriptor.table()
            cols = [col for col in descriptor.require_columns() if not col.auto_increment]
            names = [col.name for col in cols]
            params = [read_value(values, col) for col in cols]
        else:
            table = target
            names = list(values.keys())
            params = list(values.values())

        builder._append(
            f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders(len(names))})"
        )
        builder._parameters.extend(params)
        return builder

    @classmethod
    def replace_into(cls, entity_type: type, instance: Any) -> "QueryBuilder":
        """Start a REPLACE INTO statement covering every mapped column.

        This is the statement behind :meth:`Repository.save`: the row is
        inserted, or replaced when its key already exists.
        """
        builder = cls()
        descriptor = describe(entity_type)
        table = descriptor.table()
        cols = descriptor.require_columns()
        params = [read_value(instance, col) for col in cols]
        builder._append(
            f"REPLACE INTO {table} ({', '.join(col.name for col in cols)}) "
            f"VALUES ({placeholders(len(cols))})"
        )
        builder._parameters.extend(params)
        return builder

    @classmethod
    def update(cls, entity_type: type, instance: Any) -> "QueryBuilder":
        """Start an UPDATE of one entity row, keyed by its primary key.

        Every non-key column becomes a SET assignment in field order. The key
        value is always the last parameter, wherever the key field is declared.

        Raises:
            MissingPrimaryKeyError: If the entity declares no primary key.
            QueryBuilderError: If there is no non-key column to assign.
        """
        builder = cls()
        descriptor = describe(entity_type)
        table = descriptor.table()
        key = descriptor.primary_key
        cols = [col for col in descriptor.require_columns() if col is not key]
        if not cols:
            raise QueryBuilderError(
                f"Entity class {entity_type.__name__} has no columns besides its primary key to update"
            )

        assignments = [f"{col.name} = {PLACEHOLDER}" for col in cols]
        params = [read_value(instance, col) for col in cols]
        params.append(read_value(instance, key))

        builder._append(f"UPDATE {table} SET {', '.join(assignments)} WHERE {key.name} = {PLACEHOLDER}")
        builder._parameters.extend(params)
        return builder

    @classmethod
    def update_table(cls, table_name: str, primary_key_column: str, key_value: Any,
                     values: Mapping[str, Any]) -> "QueryBuilder":
        """Start an UPDATE of a raw table row from a column -> value mapping."""
        if not values:
            raise QueryBuilderError(f"No columns to update in table {table_name}")
        builder = cls()
        assignments = [f"{name} = {PLACEHOLDER}" for name in values]
        builder._append(
            f"UPDATE {table_name} SET {', '.join(assignments)} "
            f"WHERE {primary_key_column} = {PLACEHOLDER}"
        )
        builder._parameters.extend(values.values())
        builder._parameters.append(key_value)
        return builder

    @classmethod
    def delete_from(cls, entity_type: type, key_value: Any) -> "QueryBuilder":
        """Start a DELETE of the entity row with the given primary key value.

        Raises:
            MissingPrimaryKeyError: If the entity declares no primary key.
        """
        descriptor = describe(entity_type)
        return cls.delete_from_table(descriptor.table(), descriptor.primary_key.name, key_value)

    @classmethod
    def delete_from_table(cls, table_name: str, primary_key_column: str,
                          key_value: Any) -> "QueryBuilder":
        builder = cls()
        builder._append(f"DELETE FROM {table_name} WHERE {primary_key_column} = {PLACEHOLDER}")
        builder._parameters.append(key_value)
        return builder

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def from_(self, source: Union[type, str]) -> "QueryBuilder":
        """Add ``FROM table alias`` for an entity class or ``FROM name`` for a raw name."""
        self._check_open()
        if isinstance(source, type):
            table = describe(source).table(strict=False)
            self._append(f" FROM {table} {self._aliases.alias_for(source)}")
        else:
            self._append(f" FROM {source}")
        return self

    def join(self, entity_type: type, on_condition: str) -> "QueryBuilder":
        return self._append_join("JOIN", entity_type, on_condition)

    def left_join(self, entity_type: type, on_condition: str) -> "QueryBuilder":
        return self._append_join("LEFT JOIN", entity_type, on_condition)

    def _append_join(self, join_type: str, entity_type: type, on_condition: str) -> "QueryBuilder":
        self._check_open()
        table = describe(entity_type).table(strict=False)
        alias = self._aliases.alias_for(entity_type)
        self._append(f" {join_type} {table} {alias} ON {on_condition}")
        return self

    def where(self, condition: str, *values: Any) -> "QueryBuilder":
        return self._append_condition("WHERE", condition, values)

    def and_(self, condition: str, *values: Any) -> "QueryBuilder":
        return self._append_condition("AND", condition, values)

    def or_(self, condition: str, *values: Any) -> "QueryBuilder":
        return self._append_condition("OR", condition, values)

    def having(self, condition: str, *values: Any) -> "QueryBuilder":
        return self._append_condition("HAVING", condition, values)

    def _append_condition(self, keyword: str, condition: str, values: Tuple[Any, ...]) -> "QueryBuilder":
        self._check_open()
        self._append(f" {keyword} {condition}")
        self._parameters.extend(values)
        return self

    def where_group(self, group: ConditionGroup) -> "QueryBuilder":
        """Add ``WHERE (<group>)`` and the group's parameters."""
        self._check_open()
        self._append(f" WHERE ({group.get_query()})")
        self._parameters.extend(group.parameters)
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        """Add `` column IN (?, ?, ...)`` with one placeholder per value.

        The column text is emitted verbatim, so it may carry its own
        connective, e.g. ``in_("AND t0.status", ["new", "paid"])``.

        Raises:
            EmptyInListError: If ``values`` is None or empty.
        """
        self._check_open()
        if isinstance(values, (str, bytes)):
            raise TypeError("IN values must be a collection, not a string")
        values = list(values) if values is not None else []
        if not values:
            raise EmptyInListError(f"Values list for IN clause on {column} cannot be empty")
        self._append(f" {column} IN ({placeholders(len(values))})")
        self._parameters.extend(values)
        return self

    def group_by(self, *columns: str) -> "QueryBuilder":
        self._check_open()
        if not columns:
            raise QueryBuilderError("GROUP BY needs at least one column")
        self._append(f" GROUP BY {', '.join(columns)}")
        return self

    def union(self, other: "QueryBuilder") -> "QueryBuilder":
        return self._append_union("UNION", other)

    def union_all(self, other: "QueryBuilder") -> "QueryBuilder":
        return self._append_union("UNION ALL", other)

    def _append_union(self, keyword: str, other: "QueryBuilder") -> "QueryBuilder":
        self._check_open()
        sql, params = self._consume(other)
        self._append(f" {keyword} {sql}")
        self._parameters.extend(params)
        return self

    def subquery(self, other: "QueryBuilder", alias: str) -> "QueryBuilder":
        """Add `` (<other>) AS alias`` and the subquery's parameters."""
        self._check_open()
        sql, params = self._consume(other)
        self._append(f" ({sql}) AS {alias}")
        self._parameters.extend(params)
        return self

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def alias_for(self, entity_type: type) -> str:
        """Alias of an entity class in this statement, allocating it on first use."""
        return self._aliases.alias_for(entity_type)

    def get_query(self) -> str:
        return "".join(self._parts)

    @property
    def sql(self) -> str:
        return self.get_query()

    @property
    def parameters(self) -> Tuple[Any, ...]:
        return tuple(self._parameters)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def build(self) -> Tuple[str, Tuple[Any, ...]]:
        """Return ``(sql, parameters)`` ready for execution."""
        return self.get_query(), self.parameters

    def execute(self, database) -> Any:
        """Execute the statement on a :class:`~moduledmysql.connection.Database`."""
        return database.execute(*self.build())

    def __repr__(self):
        return f"QueryBuilder({self.get_query()!r}, parameters={self.parameters!r})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _append(self, fragment: str) -> None:
        self._parts.append(fragment)

    def _check_open(self) -> None:
        if self._consumed:
            raise StatementConsumedError(
                "Statement was embedded into another statement and can no longer be modified"
            )

    def _consume(self, other: "QueryBuilder") -> Tuple[str, List[Any]]:
        if other is self:
            raise StatementConsumedError("A statement cannot be embedded into itself")
        if other._consumed:
            raise StatementConsumedError("Statement was already embedded into another statement")
        other._consumed = True
        return other.get_query(), list(other._parameters)
