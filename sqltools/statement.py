"""Statement composition.

Each ``build_*`` function is pure: it reflects over its inputs, renders the
SQL text for one operation and returns an immutable :class:`Statement` with
its final, deduplicated parameters. Nothing here touches a connection.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from sqltools.config import ConflictPolicy, StatementConfig
from sqltools.exceptions import ArgumentError, ParameterConflictError, ParameterTypeError
from sqltools.fields import extract_fields
from sqltools.fragments import assignments_sql, columns_sql, placeholders_sql, predicate_sql
from sqltools.typing import Parameter
from sqltools.utils.type_guards import is_namedtuple, is_parameter_pair, is_parameter_value

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqltools.fields import FieldVisibility
    from sqltools.typing import FieldSet

__all__ = (
    "DEFAULT_STATEMENT_CONFIG",
    "OperationType",
    "Statement",
    "build_delete",
    "build_insert",
    "build_raw",
    "build_select",
    "build_update",
    "coerce_parameters",
    "deduplicate_parameters",
)

DEFAULT_STATEMENT_CONFIG = StatementConfig()


class OperationType(str, Enum):
    """The kind of statement a builder produced."""

    RAW = "raw"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Statement:
    """Composed SQL text and the parameters it binds.

    Attributes:
        operation: The operation the statement performs.
        sql: The SQL text, using ``:name`` placeholders.
        parameters: Unique-by-name parameters in binding order.
        table: Target table. Only raw statements may omit it.
    """

    operation: OperationType
    sql: str
    parameters: "tuple[Parameter, ...]" = ()
    table: Optional[str] = None

    def __post_init__(self) -> None:
        if self.operation is not OperationType.RAW and not self.table:
            msg = "Table name must not be empty"
            raise ArgumentError(msg, argument="table_name")
        if not self.sql:
            msg = "SQL text must not be empty"
            raise ArgumentError(msg, argument="sql")

    @property
    def parameter_names(self) -> "tuple[str, ...]":
        return tuple(parameter.name for parameter in self.parameters)

    def parameter_dict(self) -> "dict[str, Any]":
        """Return the parameters as a DB-API ``named`` style mapping."""
        return dict(self.parameters)


def _same_value(first: Any, second: Any) -> bool:
    # 1, 1.0 and True compare equal but bind differently
    return first is second or (type(first) is type(second) and first == second)


def deduplicate_parameters(
    parameters: "Iterable[tuple[str, Any]]",
    conflict_policy: ConflictPolicy = ConflictPolicy.RAISE,
    sql: Optional[str] = None,
) -> "tuple[Parameter, ...]":
    """Collapse parameters so every name is bound once.

    Identical ``(name, value)`` pairs collapse onto the first occurrence. A
    name bound to different values is resolved by ``conflict_policy``; the
    surviving parameter keeps the position of the name's first occurrence.

    Args:
        parameters: Pairs in binding order.
        conflict_policy: How to resolve a name bound to different values.
        sql: SQL text quoted in conflict errors.

    Raises:
        ParameterConflictError: On a conflict under ``ConflictPolicy.RAISE``.

    Returns:
        The unique parameters.
    """
    merged: dict[str, Parameter] = {}
    for name, value in parameters:
        existing = merged.get(name)
        if existing is None:
            merged[name] = Parameter(name, value)
            continue
        if _same_value(existing.value, value):
            continue
        if conflict_policy is ConflictPolicy.RAISE:
            raise ParameterConflictError(name, existing.value, value, sql)
        if conflict_policy is ConflictPolicy.LAST:
            merged[name] = Parameter(name, value)
    return tuple(merged.values())


def coerce_parameters(parameters: Any, visibility: "FieldVisibility") -> "FieldSet":
    """Normalize the parameters of a raw statement.

    Args:
        parameters: ``None``, a list/tuple/iterator of ``(name, value)`` pairs,
            or any value the field extractor understands.
        visibility: Member visibility used when reflecting over a value.

    Raises:
        ArgumentError: If a sequence holds anything but ``(name, value)`` pairs.

    Returns:
        The parameters in the order given.
    """
    if parameters is None:
        return ()
    if isinstance(parameters, Iterator) or (
        isinstance(parameters, (list, tuple)) and not is_namedtuple(parameters)
    ):
        pairs = tuple(parameters)
        if not all(is_parameter_pair(pair) for pair in pairs):
            msg = "Parameter sequences must hold (name, value) pairs"
            raise ArgumentError(msg, argument="parameters")
        return tuple(Parameter(name, value) for name, value in pairs)
    return extract_fields(parameters, visibility)


def _require_table(table_name: str) -> None:
    if not table_name:
        msg = "Table name must not be empty"
        raise ArgumentError(msg, argument="table_name")


def _extract_columns(obj: Any, visibility: "FieldVisibility", argument: str) -> "FieldSet":
    """Extract fields that are rendered into SQL text, one column per name."""
    fields = extract_fields(obj, visibility)
    seen: set[str] = set()
    for name, _ in fields:
        if name in seen:
            msg = f"Field {name!r} appears more than once"
            raise ArgumentError(msg, argument=argument)
        seen.add(name)
    return fields


def _finalize(parameters: "Iterable[Parameter]", config: StatementConfig, sql: str) -> "tuple[Parameter, ...]":
    if config.strict_types:
        for name, value in parameters:
            if not is_parameter_value(value):
                raise ParameterTypeError(name, value)
    return deduplicate_parameters(parameters, config.conflict_policy, sql)


def _resolve(
    config: "Optional[StatementConfig]", visibility: "Optional[FieldVisibility]"
) -> "tuple[StatementConfig, FieldVisibility]":
    config = config or DEFAULT_STATEMENT_CONFIG
    return config, visibility if visibility is not None else config.visibility


def build_raw(
    sql: str,
    parameters: Any = None,
    config: "Optional[StatementConfig]" = None,
    visibility: "Optional[FieldVisibility]" = None,
) -> Statement:
    """Wrap caller supplied SQL and its parameters.

    Raises:
        ArgumentError: If ``sql`` is empty or ``parameters`` is malformed.
    """
    if not sql:
        msg = "SQL text must not be empty"
        raise ArgumentError(msg, argument="sql")
    config, visibility = _resolve(config, visibility)
    fields = coerce_parameters(parameters, visibility)
    return Statement(OperationType.RAW, sql, _finalize(fields, config, sql))


def build_select(
    table_name: str,
    key: Any = None,
    select: Any = None,
    config: "Optional[StatementConfig]" = None,
    visibility: "Optional[FieldVisibility]" = None,
) -> Statement:
    """Compose ``select {columns} from {table} where ...``.

    The fields of ``select`` name the projected columns; when it has none
    every column is selected. An empty ``key`` selects every row.
    Key values always bind the ``where`` clause, so a projected column that
    is also a key field binds the key value.
    """
    _require_table(table_name)
    config, visibility = _resolve(config, visibility)
    keys = _extract_columns(key, visibility, "key")
    selects = _extract_columns(select, visibility, "select")

    sql = f"select {columns_sql(selects) or '*'} from {table_name}{predicate_sql(keys)}"
    # projected columns never shadow a key value
    key_names = {field.name for field in keys}
    projected = tuple(field for field in selects if field.name not in key_names)
    return Statement(OperationType.SELECT, sql, _finalize((*keys, *projected), config, sql), table_name)


def build_insert(
    table_name: str,
    parameter: Any,
    config: "Optional[StatementConfig]" = None,
    visibility: "Optional[FieldVisibility]" = None,
) -> Statement:
    """Compose ``insert into {table} (...) values (...);``.

    Raises:
        ArgumentError: If ``parameter`` has no fields to insert.
    """
    _require_table(table_name)
    config, visibility = _resolve(config, visibility)
    parameters = _extract_columns(parameter, visibility, "parameter")
    if not parameters:
        msg = "An insert needs at least one field"
        raise ArgumentError(msg, argument="parameter")

    sql = f"insert into {table_name} ({columns_sql(parameters)}) values ({placeholders_sql(parameters)});"
    return Statement(OperationType.INSERT, sql, _finalize(parameters, config, sql), table_name)


def build_update(
    table_name: str,
    key: Any,
    update: Any,
    config: "Optional[StatementConfig]" = None,
    visibility: "Optional[FieldVisibility]" = None,
) -> Statement:
    """Compose ``update {table} set ... where ...;``.

    An empty ``key`` updates every row of the table.

    Raises:
        ArgumentError: If ``update`` has no fields to assign.
    """
    _require_table(table_name)
    config, visibility = _resolve(config, visibility)
    updates = _extract_columns(update, visibility, "update")
    keys = _extract_columns(key, visibility, "key")

    sql = f"update {table_name} set {assignments_sql(updates)}{predicate_sql(keys)};"
    return Statement(OperationType.UPDATE, sql, _finalize((*updates, *keys), config, sql), table_name)


def build_delete(
    table_name: str,
    key: Any = None,
    config: "Optional[StatementConfig]" = None,
    visibility: "Optional[FieldVisibility]" = None,
) -> Statement:
    """Compose ``delete from {table} where ...;``.

    An empty ``key`` deletes every row of the table.
    """
    _require_table(table_name)
    config, visibility = _resolve(config, visibility)
    keys = _extract_columns(key, visibility, "key")

    sql = f"delete from {table_name}{predicate_sql(keys)};"
    return Statement(OperationType.DELETE, sql, _finalize(keys, config, sql), table_name)
