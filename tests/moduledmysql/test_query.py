# tests/moduledmysql/test_query.py
from unittest.mock import MagicMock

import pytest

from entities import Account, AuditEntry, Empty, Note, Order, Setting, Tag, User
from moduledmysql import ConditionGroup, QueryBuilder
from moduledmysql.dialect import count_placeholders
from moduledmysql.errors import (
    EmptyInListError,
    FieldAccessError,
    MissingPrimaryKeyError,
    MissingTableMetadataError,
    NoColumnsFoundError,
    QueryBuilderError,
    StatementConsumedError,
)


def assert_aligned(builder):
    assert count_placeholders(builder.get_query()) == len(builder.parameters)


def inline(sql, params):
    """Substitute parameters into the placeholders outside single-quoted strings."""
    values = iter(params)
    out = []
    quoted = False
    for ch in sql:
        if ch == "'":
            quoted = not quoted
        out.append(str(next(values)) if ch == "?" and not quoted else ch)
    return "".join(out)


def test_select_entity_by_id():
    builder = QueryBuilder.select(User).from_(User).where("t0.id = ?", 1)
    assert builder.get_query() == "SELECT t0.id, t0.email FROM users t0 WHERE t0.id = ?"
    assert builder.parameters == (1,)


def test_select_raw_columns():
    builder = QueryBuilder.select("COUNT(*)", "MAX(total)").from_("orders")
    assert builder.sql == "SELECT COUNT(*), MAX(total) FROM orders"
    assert builder.parameters == ()


def test_select_entity_with_explicit_columns():
    builder = QueryBuilder.select(User, "t0.email").from_(User)
    assert builder.sql == "SELECT t0.email FROM users t0"


def test_select_without_columns_rejected():
    with pytest.raises(QueryBuilderError):
        QueryBuilder.select()


def test_select_entity_without_columns_rejected():
    with pytest.raises(NoColumnsFoundError):
        QueryBuilder.select(Empty)


def test_insert_entity_without_columns_rejected():
    with pytest.raises(NoColumnsFoundError):
        QueryBuilder.insert_into(Empty, Empty())


def test_aliases_are_reused_per_type():
    builder = (QueryBuilder.select(User)
               .from_(User)
               .join(Order, "t1.user_id = t0.id"))
    assert builder.alias_for(User) == "t0"
    assert builder.alias_for(Order) == "t1"
    assert builder.sql == (
        "SELECT t0.id, t0.email FROM users t0 JOIN orders t1 ON t1.user_id = t0.id"
    )


def test_aliases_follow_first_reference():
    builder = QueryBuilder.select("o.id").from_(Order).left_join(User, "t1.id = t0.user_id")
    assert builder.sql == "SELECT o.id FROM orders t0 LEFT JOIN users t1 ON t1.id = t0.user_id"


def test_independent_statements_start_at_t0():
    first = QueryBuilder.select(User).from_(User)
    second = QueryBuilder.select(Order).from_(Order)
    assert first.alias_for(User) == "t0"
    assert second.alias_for(Order) == "t0"


def test_from_untabled_entity_falls_back_to_class_name():
    builder = QueryBuilder.select(Note).from_(Note)
    assert builder.sql == "SELECT t0.id, t0.body FROM note t0"


def test_conditions_append_values_in_order():
    builder = (QueryBuilder.select("*")
               .from_("orders")
               .where("status = ?", "new")
               .and_("total > ?", 10)
               .or_("user_id BETWEEN ? AND ?", 1, 5))
    assert builder.sql == (
        "SELECT * FROM orders WHERE status = ? AND total > ? OR user_id BETWEEN ? AND ?"
    )
    assert builder.parameters == ("new", 10, 1, 5)


def test_in_clause():
    builder = QueryBuilder.select("*").from_("orders").where("1 = 1").in_("AND status", [1, 2, 3])
    assert builder.sql.endswith(" AND status IN (?, ?, ?)")
    assert builder.parameters == (1, 2, 3)


def test_in_clause_standalone_column():
    builder = QueryBuilder.select("*").from_("orders").in_("status", [1, 2, 3])
    assert " status IN (?, ?, ?)" in builder.sql


@pytest.mark.parametrize("values", [[], None, ()])
def test_in_clause_rejects_empty(values):
    with pytest.raises(EmptyInListError):
        QueryBuilder.select("*").from_("orders").in_("status", values)


def test_empty_in_list_is_a_value_error():
    with pytest.raises(ValueError):
        QueryBuilder.select("*").in_("status", [])


def test_in_clause_rejects_string():
    with pytest.raises(TypeError):
        QueryBuilder.select("*").in_("status", "abc")


def test_in_clause_accepts_generator():
    builder = QueryBuilder.select("*").in_("id", (i for i in range(2)))
    assert builder.parameters == (0, 1)


def test_group_by_having():
    builder = (QueryBuilder.select("user_id", "SUM(total)")
               .from_("orders")
               .group_by("user_id", "status")
               .having("SUM(total) > ?", 100))
    assert builder.sql == (
        "SELECT user_id, SUM(total) FROM orders GROUP BY user_id, status HAVING SUM(total) > ?"
    )
    assert builder.parameters == (100,)


def test_group_by_requires_columns():
    with pytest.raises(QueryBuilderError):
        QueryBuilder.select("*").group_by()


def test_where_group():
    group = ConditionGroup().and_("name = ?", "Alice").or_("age > ?", 30)
    builder = QueryBuilder.select("*").from_("people").where_group(group).and_("active = ?", True)
    assert builder.sql == "SELECT * FROM people WHERE (name = ? OR age > ?) AND active = ?"
    assert builder.parameters == ("Alice", 30, True)


def test_union_and_union_all():
    first = QueryBuilder.select("id").from_("users").where("id < ?", 10)
    second = QueryBuilder.select("id").from_("admins").where("id > ?", 20)
    third = QueryBuilder.select("id").from_("guests").where("id = ?", 30)

    first.union(second).union_all(third)

    assert first.sql == (
        "SELECT id FROM users WHERE id < ? UNION SELECT id FROM admins WHERE id > ?"
        " UNION ALL SELECT id FROM guests WHERE id = ?"
    )
    assert first.parameters == (10, 20, 30)


def test_subquery():
    inner = QueryBuilder.select("user_id", "SUM(total) AS spent").from_("orders").where("status = ?", "paid")
    outer = (QueryBuilder.select("u.email", "s.spent")
             .from_("users u JOIN")
             .subquery(inner, "s")
             .where("s.user_id = u.id AND s.spent > ?", 50))
    assert outer.sql == (
        "SELECT u.email, s.spent FROM users u JOIN"
        " (SELECT user_id, SUM(total) AS spent FROM orders WHERE status = ?) AS s"
        " WHERE s.user_id = u.id AND s.spent > ?"
    )
    assert outer.parameters == ("paid", 50)


def test_embedded_builder_is_consumed():
    inner = QueryBuilder.select("id").from_("users")
    QueryBuilder.select("id").from_("admins").union(inner)

    assert inner.consumed
    assert inner.sql == "SELECT id FROM users"
    with pytest.raises(StatementConsumedError):
        inner.where("id = ?", 1)
    with pytest.raises(StatementConsumedError):
        QueryBuilder.select("id").union(inner)


def test_builder_cannot_embed_itself():
    builder = QueryBuilder.select("id").from_("users")
    with pytest.raises(StatementConsumedError):
        builder.union(builder)
    with pytest.raises(StatementConsumedError):
        builder.subquery(builder, "x")


def test_consumed_error_is_a_builder_error():
    assert issubclass(StatementConsumedError, QueryBuilderError)


def test_insert_entity_skips_auto_increment():
    builder = QueryBuilder.insert_into(Order, Order(id=99, user_id=3, total=12, status="paid"))
    assert builder.sql == "INSERT INTO orders (user_id, total, status) VALUES (?, ?, ?)"
    assert builder.parameters == (3, 12, "paid")
    assert_aligned(builder)


def test_insert_raw_mapping():
    builder = QueryBuilder.insert_into("audit_log", {"message": "hello", "level": 2})
    assert builder.sql == "INSERT INTO audit_log (message, level) VALUES (?, ?)"
    assert builder.parameters == ("hello", 2)


def test_insert_requires_table():
    with pytest.raises(MissingTableMetadataError):
        QueryBuilder.insert_into(Note, Note(id=1, body="x"))


def test_insert_unreadable_field():
    with pytest.raises(FieldAccessError):
        QueryBuilder.insert_into(User, object())


def test_replace_into_covers_every_column():
    builder = QueryBuilder.replace_into(User, User(id=5, email="e@example.com"))
    assert builder.sql == "REPLACE INTO users (id, email) VALUES (?, ?)"
    assert builder.parameters == (5, "e@example.com")


def test_update_key_last():
    builder = QueryBuilder.update(Account, Account(id=4, name="Bob"))
    assert builder.sql == "UPDATE accounts SET name = ? WHERE id = ?"
    assert builder.parameters == ("Bob", 4)


def test_update_key_declared_last():
    builder = QueryBuilder.update(Setting, Setting(value="dark", scope="ui", key="theme"))
    assert builder.sql == "UPDATE settings SET value = ?, scope = ? WHERE setting_key = ?"
    assert builder.parameters == ("dark", "ui", "theme")


def test_update_requires_primary_key():
    with pytest.raises(MissingPrimaryKeyError):
        QueryBuilder.update(AuditEntry, AuditEntry(message="x"))


def test_update_requires_non_key_column():
    with pytest.raises(QueryBuilderError):
        QueryBuilder.update(Tag, Tag(id=1))


def test_update_table_raw():
    builder = QueryBuilder.update_table("accounts", "id", 4, {"name": "Bob", "active": 1})
    assert builder.sql == "UPDATE accounts SET name = ?, active = ? WHERE id = ?"
    assert builder.parameters == ("Bob", 1, 4)


def test_update_table_requires_values():
    with pytest.raises(QueryBuilderError):
        QueryBuilder.update_table("accounts", "id", 4, {})


def test_delete_from_entity():
    builder = QueryBuilder.delete_from(Setting, "theme")
    assert builder.sql == "DELETE FROM settings WHERE setting_key = ?"
    assert builder.parameters == ("theme",)


def test_delete_from_requires_primary_key():
    with pytest.raises(MissingPrimaryKeyError):
        QueryBuilder.delete_from(AuditEntry, 1)


def test_delete_from_table_raw():
    builder = QueryBuilder.delete_from_table("accounts", "id", 4)
    assert builder.build() == ("DELETE FROM accounts WHERE id = ?", (4,))


def test_parameters_are_a_snapshot():
    builder = QueryBuilder.select("*").where("id = ?", 1)
    params = builder.parameters
    builder.and_("name = ?", "x")
    assert params == (1,)
    assert builder.parameters == (1, "x")


def test_sentinels_line_up_with_placeholders():
    sub = QueryBuilder.select("user_id").from_("orders").where("total > ?", "S-sub")
    tail = (QueryBuilder.select("u.id", "u.email")
            .from_("users u JOIN")
            .subquery(sub, "x")
            .where("u.id = x.user_id AND u.email <> ?", "S-union"))
    group = ConditionGroup().and_("t0.email = ?", "S-g1").or_("t0.email LIKE ?", "S-g2")

    builder = (QueryBuilder.select(User)
               .from_(User)
               .left_join(Order, "t1.user_id = t0.id AND t1.status <> 'what?'")
               .where_group(group)
               .and_("t1.total > ?", "S-and")
               .in_("AND t1.status", ["S-in1", "S-in2"])
               .or_("t0.id BETWEEN ? AND ?", "S-or1", "S-or2")
               .group_by("t0.id", "t0.email")
               .having("COUNT(*) > ?", "S-having")
               .union(tail))

    assert_aligned(builder)
    assert builder.parameters == (
        "S-g1", "S-g2", "S-and", "S-in1", "S-in2", "S-or1", "S-or2", "S-having", "S-sub", "S-union",
    )

    text = inline(*builder.build())
    assert "WHERE (t0.email = S-g1 OR t0.email LIKE S-g2)" in text
    assert "t1.total > S-and AND t1.status IN (S-in1, S-in2)" in text
    assert "t0.id BETWEEN S-or1 AND S-or2" in text
    assert "HAVING COUNT(*) > S-having UNION" in text
    assert "WHERE total > S-sub) AS x" in text
    assert text.endswith("u.email <> S-union")


def test_execute_runs_on_database():
    database = MagicMock()
    builder = QueryBuilder.delete_from(Account, 4)
    result = builder.execute(database)
    database.execute.assert_called_once_with("DELETE FROM accounts WHERE id = ?", (4,))
    assert result is database.execute.return_value


def test_repr_shows_query_and_parameters():
    builder = QueryBuilder.select("*").where("id = ?", 1)
    assert repr(builder) == "QueryBuilder('SELECT * WHERE id = ?', parameters=(1,))"
