"""Tests for statement composition."""

import dataclasses
from dataclasses import dataclass
from typing import Optional

import pytest
import sqlglot
from sqlglot import exp

from sqltools import (
    ArgumentError,
    ConflictPolicy,
    FieldVisibility,
    OperationType,
    Parameter,
    ParameterConflictError,
    ParameterTypeError,
    Statement,
    StatementConfig,
    build_delete,
    build_insert,
    build_raw,
    build_select,
    build_update,
)
from sqltools.statement import deduplicate_parameters


@dataclass
class User:
    id: int
    name: str
    email: Optional[str] = None


@dataclass
class NoColumns:
    pass


def _placeholder_names(sql: str) -> "set[str]":
    expression = sqlglot.parse_one(sql.rstrip(";"))
    return {placeholder.name for placeholder in expression.find_all(exp.Placeholder)}


class TestSelect:
    def test_select_all_with_key(self) -> None:
        statement = build_select("users", {"id": 7}, {})
        assert statement.sql == "select * from users where id = :id"
        assert statement.parameters == (Parameter("id", 7),)
        assert statement.operation is OperationType.SELECT
        assert statement.table == "users"

    def test_select_projection(self) -> None:
        statement = build_select("users", {"id": 7}, {"name": None, "email": None})
        assert statement.sql == "select name, email from users where id = :id"
        assert statement.parameters == (Parameter("id", 7), Parameter("name", None), Parameter("email", None))

    def test_select_without_key_selects_every_row(self) -> None:
        statement = build_select("users", None, None)
        assert statement.sql == "select * from users"
        assert statement.parameters == ()

    def test_select_with_fieldless_projection(self) -> None:
        assert build_select("users", {"id": 1}, NoColumns()).sql == "select * from users where id = :id"

    def test_select_compound_key(self) -> None:
        statement = build_select("users", {"id": 7, "name": "Bob"})
        assert statement.sql == "select * from users where id = :id and name = :name"

    def test_select_identical_pairs_collapse(self) -> None:
        statement = build_select("users", {"id": 7}, {"id": 7})
        assert statement.sql == "select id from users where id = :id"
        assert statement.parameters == (Parameter("id", 7),)

    @pytest.mark.parametrize("policy", list(ConflictPolicy))
    def test_projected_key_column_binds_key_value(self, policy: ConflictPolicy) -> None:
        config = StatementConfig(conflict_policy=policy)
        statement = build_select("users", {"name": "Bob"}, {"id": None, "name": None}, config)
        assert statement.sql == "select id, name from users where name = :name"
        assert statement.parameters == (Parameter("name", "Bob"), Parameter("id", None))

    def test_select_parses(self) -> None:
        statement = build_select("users", {"id": 7, "name": "Bob"}, {"email": None})
        assert isinstance(sqlglot.parse_one(statement.sql), exp.Select)
        assert _placeholder_names(statement.sql) == {"id", "name"}


class TestInsert:
    def test_insert_dataclass(self) -> None:
        statement = build_insert("users", User(id=7, name="Bob"))
        assert statement.sql == "insert into users (id, name, email) values (:id, :name, :email);"
        assert statement.parameters == (Parameter("id", 7), Parameter("name", "Bob"), Parameter("email", None))
        assert statement.operation is OperationType.INSERT

    def test_insert_without_fields_is_rejected(self) -> None:
        with pytest.raises(ArgumentError) as exc_info:
            build_insert("users", NoColumns())
        assert exc_info.value.argument == "parameter"

    def test_insert_none_is_rejected(self) -> None:
        with pytest.raises(ArgumentError):
            build_insert("users", None)

    def test_insert_parses(self) -> None:
        statement = build_insert("users", {"id": 7, "name": "Bob"})
        assert isinstance(sqlglot.parse_one(statement.sql.rstrip(";")), exp.Insert)
        assert _placeholder_names(statement.sql) == {"id", "name"}


class TestUpdate:
    def test_update(self) -> None:
        statement = build_update("users", {"id": 7}, {"name": "Bob"})
        assert statement.sql == "update users set name = :name where id = :id;"
        assert statement.parameters == (Parameter("name", "Bob"), Parameter("id", 7))
        assert statement.operation is OperationType.UPDATE

    def test_update_without_key_updates_every_row(self) -> None:
        statement = build_update("users", {}, {"name": "Bob"})
        assert statement.sql == "update users set name = :name;"

    def test_update_without_fields_is_rejected(self) -> None:
        with pytest.raises(ArgumentError) as exc_info:
            build_update("users", {"id": 7}, {})
        assert exc_info.value.argument == "update"

    def test_update_parses(self) -> None:
        statement = build_update("users", {"id": 7}, {"name": "Bob", "email": None})
        assert isinstance(sqlglot.parse_one(statement.sql.rstrip(";")), exp.Update)
        assert _placeholder_names(statement.sql) == {"id", "name", "email"}


class TestDelete:
    def test_delete(self) -> None:
        statement = build_delete("users", {"id": 7})
        assert statement.sql == "delete from users where id = :id;"
        assert statement.parameters == (Parameter("id", 7),)

    def test_delete_with_empty_key_deletes_every_row(self) -> None:
        statement = build_delete("users", {})
        assert statement.sql == "delete from users;"
        assert statement.parameters == ()
        assert statement.operation is OperationType.DELETE

    def test_delete_parses(self) -> None:
        statement = build_delete("users", {"id": 7})
        assert isinstance(sqlglot.parse_one(statement.sql.rstrip(";")), exp.Delete)


@pytest.mark.parametrize(
    "build",
    [
        lambda: build_select("", {"id": 7}),
        lambda: build_insert("", {"id": 7}),
        lambda: build_update("", {"id": 7}, {"name": "Bob"}),
        lambda: build_delete("", {"id": 7}),
    ],
    ids=["select", "insert", "update", "delete"],
)
def test_empty_table_name_is_rejected(build) -> None:
    with pytest.raises(ArgumentError) as exc_info:
        build()
    assert exc_info.value.argument == "table_name"


class TestRaw:
    def test_raw_without_parameters(self) -> None:
        statement = build_raw("select 1")
        assert statement.sql == "select 1"
        assert statement.parameters == ()
        assert statement.operation is OperationType.RAW
        assert statement.table is None

    def test_raw_with_pairs(self) -> None:
        statement = build_raw("select * from users where id = :id", [("id", 7), ("id", 7)])
        assert statement.parameters == (Parameter("id", 7),)

    def test_raw_with_iterator(self) -> None:
        statement = build_raw("select * from users where id = :id", iter([("id", 7)]))
        assert statement.parameters == (Parameter("id", 7),)

    def test_raw_with_object(self) -> None:
        statement = build_raw("insert into users (id, name) values (:id, :name)", User(id=1, name="Ann"))
        assert statement.parameter_names == ("id", "name", "email")

    def test_raw_empty_sql_is_rejected(self) -> None:
        with pytest.raises(ArgumentError) as exc_info:
            build_raw("", [("id", 7)])
        assert exc_info.value.argument == "sql"

    def test_raw_malformed_pairs_are_rejected(self) -> None:
        with pytest.raises(ArgumentError) as exc_info:
            build_raw("select :a", [1, 2])
        assert exc_info.value.argument == "parameters"


class TestDeduplication:
    def test_exact_pairs_collapse_in_first_position(self) -> None:
        parameters = [("b", 2), ("a", 1), ("b", 2)]
        assert deduplicate_parameters(parameters) == (Parameter("b", 2), Parameter("a", 1))

    def test_conflict_raises_by_default(self) -> None:
        with pytest.raises(ParameterConflictError) as exc_info:
            build_update("users", {"id": 7}, {"id": 8})
        assert exc_info.value.name == "id"
        assert exc_info.value.values == (8, 7)
        assert "update users set id = :id where id = :id;" in str(exc_info.value)

    def test_conflict_first_wins(self) -> None:
        config = StatementConfig(conflict_policy=ConflictPolicy.FIRST)
        statement = build_update("users", {"id": 7}, {"id": 8}, config)
        assert statement.parameters == (Parameter("id", 8),)

    def test_conflict_last_wins(self) -> None:
        config = StatementConfig(conflict_policy=ConflictPolicy.LAST)
        statement = build_update("users", {"id": 7, "name": "x"}, {"id": 8}, config)
        assert statement.parameters == (Parameter("id", 7), Parameter("name", "x"))

    @pytest.mark.parametrize(("first", "second"), [(1, True), (1, 1.0), (0, False)])
    def test_equal_values_of_different_types_conflict(self, first: object, second: object) -> None:
        with pytest.raises(ParameterConflictError):
            deduplicate_parameters([("flag", first), ("flag", second)])

    def test_conflict_error_is_an_argument_error(self) -> None:
        assert issubclass(ParameterConflictError, ArgumentError)


class TestStrictTypes:
    def test_unsupported_value_is_rejected(self) -> None:
        config = StatementConfig(strict_types=True)
        with pytest.raises(ParameterTypeError) as exc_info:
            build_insert("users", {"id": 7, "tags": ["a", "b"]}, config)
        assert exc_info.value.argument == "tags"
        assert isinstance(exc_info.value, TypeError)

    def test_unsupported_value_passes_through_by_default(self) -> None:
        statement = build_insert("users", {"id": 7, "tags": ["a", "b"]})
        assert statement.parameters[1] == Parameter("tags", ["a", "b"])

    def test_supported_values_are_accepted(self) -> None:
        config = StatementConfig(strict_types=True)
        statement = build_insert("users", {"id": 7, "name": None, "blob": b"\x00", "ratio": 0.5}, config)
        assert len(statement.parameters) == 4


class TestStatement:
    def test_statement_requires_table(self) -> None:
        with pytest.raises(ArgumentError):
            Statement(OperationType.SELECT, "select 1", (), "")

    def test_statement_requires_sql(self) -> None:
        with pytest.raises(ArgumentError):
            Statement(OperationType.RAW, "")

    def test_statement_is_immutable(self) -> None:
        statement = build_delete("users", {"id": 7})
        with pytest.raises(dataclasses.FrozenInstanceError):
            statement.sql = "delete from users;"  # type: ignore[misc]

    def test_parameter_dict(self) -> None:
        statement = build_update("users", {"id": 7}, {"name": "Bob"})
        assert statement.parameter_dict() == {"name": "Bob", "id": 7}


def test_visibility_override() -> None:
    @dataclass
    class Base:
        id: int

    @dataclass
    class Child(Base):
        name: str

    assert build_insert("users", Child(id=1, name="Ann")).parameter_names == ("name",)
    visibility = FieldVisibility.PUBLIC | FieldVisibility.INHERITED
    statement = build_insert("users", Child(id=1, name="Ann"), visibility=visibility)
    assert statement.parameter_names == ("id", "name")


def test_config_visibility_is_used() -> None:
    @dataclass
    class Base:
        id: int

    @dataclass
    class Child(Base):
        name: str

    config = StatementConfig(visibility=FieldVisibility.PUBLIC | FieldVisibility.INHERITED)
    statement = build_delete("users", Child(id=1, name="Ann"), config)
    assert statement.sql == "delete from users where id = :id and name = :name;"


def test_building_twice_is_idempotent() -> None:
    first = build_update("users", {"id": 7}, User(id=7, name="Bob"))
    second = build_update("users", {"id": 7}, User(id=7, name="Bob"))
    assert first.sql == "update users set id = :id, name = :name, email = :email where id = :id;"
    assert first == second
    assert set(first.parameters) == set(second.parameters)


class RepeatedFields:
    def __sql_fields__(self):
        return [("id", 1), ("id", 1)]


@pytest.mark.parametrize(
    ("build", "argument"),
    [
        (lambda: build_insert("users", RepeatedFields()), "parameter"),
        (lambda: build_update("users", {"id": 1}, RepeatedFields()), "update"),
        (lambda: build_update("users", RepeatedFields(), {"name": "Bob"}), "key"),
        (lambda: build_select("users", {"id": 1}, RepeatedFields()), "select"),
        (lambda: build_delete("users", RepeatedFields()), "key"),
    ],
    ids=["insert", "update", "update-key", "select", "delete"],
)
def test_repeated_field_names_are_rejected(build, argument: str) -> None:
    with pytest.raises(ArgumentError) as exc_info:
        build()
    assert exc_info.value.argument == argument


def test_raw_parameters_may_repeat_names() -> None:
    statement = build_raw("select * from users where id = :id", RepeatedFields())
    assert statement.parameters == (Parameter("id", 1),)
