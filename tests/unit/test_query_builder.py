"""
Unit tests for the D1 statement builder.

Placeholder numbering must follow mapping order and the number of ?N
placeholders must always equal the number of bound values.
"""

import re

import pytest
from ff_d1 import CURRENT_TIMESTAMP, IS_NULL, InvalidArgument, QueryBuilder, Statement


def placeholders(sql: str) -> list[int]:
    return [int(n) for n in re.findall(r"\?(\d+)", sql)]


@pytest.fixture
def builder():
    return QueryBuilder()


class TestBuildSelect:
    """Test SELECT rendering (fetch)."""

    def test_single_condition(self, builder):
        statement = builder.build_select("users", {"id": 5})

        assert statement.sql == "SELECT * FROM users WHERE  id = ?1 "
        assert statement.params == [5]

    def test_no_conditions_fetches_everything(self, builder):
        assert builder.build_select("users") == Statement("SELECT * FROM users", [])
        assert builder.build_select("users", {}) == Statement("SELECT * FROM users", [])

    def test_conditions_keep_insertion_order(self, builder):
        sql, params = builder.build_select("users", {"status": 1, "username": "john", "age": 44})

        assert sql == "SELECT * FROM users WHERE  status = ?1  AND  username = ?2  AND  age = ?3 "
        assert params == [1, "john", 44]
        assert placeholders(sql) == [1, 2, 3]

    def test_fields_string(self, builder):
        sql, _ = builder.build_select("users", fields="id,name")
        assert sql == "SELECT id,name FROM users"

    def test_fields_list(self, builder):
        sql, _ = builder.build_select("users", {"id": 1}, fields=["id", "name"])
        assert sql == "SELECT id,name FROM users WHERE  id = ?1 "

    def test_only_null_conditions_have_no_stray_and(self, builder):
        """A WHERE made only of IS NULL clauses must not start with AND."""
        sql, params = builder.build_select("users", {"deleted_at": None})

        assert sql == "SELECT * FROM users WHERE  deleted_at IS NULL "
        assert params == []
        assert "WHERE AND" not in sql.replace("  ", " ")

    def test_null_conditions_follow_equality_conditions(self, builder):
        sql, params = builder.build_select(
            "users", {"deleted_at": IS_NULL, "id": 5, "banned_at": None, "name": "john"}
        )

        assert sql == (
            "SELECT * FROM users WHERE  id = ?1  AND  name = ?2  "
            "AND  deleted_at IS NULL  AND  banned_at IS NULL "
        )
        assert params == [5, "john"]

    def test_pairs_are_accepted(self, builder):
        sql, params = builder.build_select("users", [("b", 2), ("a", 1)])

        assert sql == "SELECT * FROM users WHERE  b = ?1  AND  a = ?2 "
        assert params == [2, 1]

    def test_falsy_values_are_bound(self, builder):
        _, params = builder.build_select("users", {"active": 0, "name": "", "flag": False})
        assert params == [0, "", False]


class TestBuildInsert:
    """Test INSERT rendering (create)."""

    def test_insert_example(self, builder):
        statement = builder.build_insert("users", {"name": "john", "age": 44})

        assert statement.sql == "INSERT INTO users (name,age) VALUES (?1, ?2) RETURNING *"
        assert statement.params == ["john", 44]

    def test_columns_and_placeholders_match(self, builder):
        entity = {f"col_{i}": i for i in range(7)}
        sql, params = builder.build_insert("wide", entity)

        columns = sql.split("(", 1)[1].split(")", 1)[0].split(",")
        assert columns == list(entity)
        assert placeholders(sql) == list(range(1, 8))
        assert params == list(range(7))

    def test_none_value_is_bound(self, builder):
        sql, params = builder.build_insert("users", {"name": "john", "deleted_at": None})

        assert sql == "INSERT INTO users (name,deleted_at) VALUES (?1, ?2) RETURNING *"
        assert params == ["john", None]

    def test_empty_entity_raises(self, builder):
        with pytest.raises(InvalidArgument, match="without any columns"):
            builder.build_insert("users", {})

    def test_current_timestamp_rejected(self, builder):
        with pytest.raises(InvalidArgument):
            builder.build_insert("users", {"created_at": CURRENT_TIMESTAMP})


class TestBuildUpdate:
    """Test UPDATE rendering."""

    def test_update_example(self, builder):
        statement = builder.build_update("users", {"age": 45}, {"id": 5})

        assert statement.sql == "UPDATE users SET  age = ?1  WHERE  id = ?2 "
        assert statement.params == [45, 5]

    def test_without_conditions_updates_every_row(self, builder):
        sql, params = builder.build_update("users", {"age": 45})

        assert sql == "UPDATE users SET  age = ?1 "
        assert params == [45]

    def test_current_timestamp_is_not_bound(self, builder):
        sql, params = builder.build_update(
            "users",
            {"age": 45, "updated_at": CURRENT_TIMESTAMP, "name": "x"},
            {"id": 5, "org": 2},
        )

        assert sql == (
            "UPDATE users SET  age = ?1 ,  updated_at = CURRENT_TIMESTAMP ,  name = ?2  "
            "WHERE  id = ?3  AND  org = ?4 "
        )
        assert params == [45, "x", 5, 2]
        assert CURRENT_TIMESTAMP not in params

    def test_only_current_timestamp(self, builder):
        sql, params = builder.build_update("users", {"deleted_at": CURRENT_TIMESTAMP}, {"id": 5})

        assert sql == "UPDATE users SET  deleted_at = CURRENT_TIMESTAMP  WHERE  id = ?1 "
        assert params == [5]

    def test_literal_string_is_bound_as_data(self, builder):
        sql, params = builder.build_update("notes", {"body": "CURRENT_TIMESTAMP"})

        assert sql == "UPDATE notes SET  body = ?1 "
        assert params == ["CURRENT_TIMESTAMP"]

    def test_placeholders_are_continuous(self, builder):
        sql, params = builder.build_update("t", {"a": 1, "b": 2, "c": 3}, {"x": 4, "y": 5})

        assert placeholders(sql) == [1, 2, 3, 4, 5]
        assert params == [1, 2, 3, 4, 5]

    def test_none_value_sets_null(self, builder):
        sql, params = builder.build_update("users", {"deleted_at": None}, {"id": 1})

        assert sql == "UPDATE users SET  deleted_at = ?1  WHERE  id = ?2 "
        assert params == [None, 1]

    def test_null_conditions_render_is_null(self, builder):
        sql, params = builder.build_update("users", {"age": 45}, {"deleted_at": None, "id": 5})

        assert sql == "UPDATE users SET  age = ?1  WHERE  id = ?2  AND  deleted_at IS NULL "
        assert params == [45, 5]

    def test_is_null_in_entity_raises(self, builder):
        with pytest.raises(InvalidArgument, match="condition marker"):
            builder.build_update("users", {"deleted_at": IS_NULL})

    def test_empty_entity_raises(self, builder):
        with pytest.raises(InvalidArgument):
            builder.build_update("users", {}, {"id": 1})


class TestBuildDelete:
    """Test DELETE rendering (remove)."""

    def test_delete_with_conditions(self, builder):
        sql, params = builder.build_delete("users", {"status": 0, "username": "john"})

        assert sql == "DELETE FROM users WHERE  status = ?1  AND  username = ?2 "
        assert params == [0, "john"]

    def test_delete_without_conditions(self, builder):
        assert builder.build_delete("users") == Statement("DELETE FROM users", [])

    def test_null_conditions_render_is_null(self, builder):
        sql, params = builder.build_delete("users", {"deleted_at": IS_NULL, "id": 5})

        assert sql == "DELETE FROM users WHERE  id = ?1  AND  deleted_at IS NULL "
        assert params == [5]

    def test_only_null_conditions(self, builder):
        assert builder.build_delete("users", {"deleted_at": None}) == Statement(
            "DELETE FROM users WHERE  deleted_at IS NULL ", []
        )


class TestValidation:
    """Test that malformed input fails before rendering."""

    @pytest.mark.parametrize("table", ["", "   ", None, 42])
    def test_bad_table_name(self, builder, table):
        with pytest.raises(InvalidArgument, match="Table name"):
            builder.build_select(table)

    def test_invalid_argument_is_value_error(self, builder):
        with pytest.raises(ValueError):
            builder.build_delete("")

    def test_non_string_column(self, builder):
        with pytest.raises(InvalidArgument, match="column names"):
            builder.build_select("users", {1: "x"})

    def test_empty_column(self, builder):
        with pytest.raises(InvalidArgument, match="column names"):
            builder.build_insert("users", {"": "x"})

    def test_string_conditions_rejected(self, builder):
        with pytest.raises(InvalidArgument, match="mapping"):
            builder.build_select("users", "id = 1")

    def test_malformed_pairs_rejected(self, builder):
        with pytest.raises(InvalidArgument, match="pairs"):
            builder.build_select("users", [("id", 1, 2)])

    def test_duplicate_pair_columns_rejected(self, builder):
        with pytest.raises(InvalidArgument, match="Duplicate"):
            builder.build_delete("users", [("id", 1), ("id", 2)])

    def test_empty_fields_rejected(self, builder):
        with pytest.raises(InvalidArgument, match="Field list"):
            builder.build_select("users", fields="")
        with pytest.raises(InvalidArgument, match="Field list"):
            builder.build_select("users", fields=[])

    def test_current_timestamp_condition_rejected(self, builder):
        with pytest.raises(InvalidArgument, match="condition"):
            builder.build_update("users", {"age": 1}, {"updated_at": CURRENT_TIMESTAMP})


def test_markers_are_singletons():
    """Markers compare by identity across imports."""
    from ff_d1.db.query_builder import CurrentTimestamp, IsNull

    assert CurrentTimestamp() is CURRENT_TIMESTAMP
    assert IsNull() is IS_NULL
    assert repr(CURRENT_TIMESTAMP) == "CURRENT_TIMESTAMP"
