"""Command construction and execution against DB-API connections."""

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generic, Optional

from sqltools.config import StatementConfig, StatementHooks
from sqltools.exceptions import ArgumentError
from sqltools.statement import build_delete, build_insert, build_raw, build_select, build_update
from sqltools.typing import ConnectionT
from sqltools.utils.logging import get_logger, log_with_context
from sqltools.utils.type_guards import is_transaction

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable

    from sqltools.fields import FieldVisibility
    from sqltools.protocols import CursorProtocol
    from sqltools.statement import Statement
    from sqltools.typing import Parameter

__all__ = ("Command", "SQLTools")

logger = get_logger("driver")


def _check_transaction(connection: Any, transaction: Any) -> None:
    if transaction is None:
        return
    if not is_transaction(transaction):
        msg = f"Transaction handles must expose their connection, got {type(transaction).__name__!r}"
        raise ArgumentError(msg, argument="transaction")
    if transaction.connection is not connection:
        msg = "The transaction belongs to a different connection"
        raise ArgumentError(msg, argument="transaction")


class Command(Generic[ConnectionT]):
    """A parameterized SQL command bound to a connection.

    Every execution opens its own cursor. Errors raised by the connection or
    cursor propagate unchanged.
    """

    __slots__ = ("connection", "parameters", "sql", "transaction")

    def __init__(
        self,
        connection: ConnectionT,
        sql: str,
        parameters: "Iterable[Parameter]" = (),
        transaction: Optional[Any] = None,
    ) -> None:
        self.connection = connection
        self.sql = sql
        self.parameters = tuple(parameters)
        self.transaction = transaction

    def __repr__(self) -> str:
        return f"Command(sql={self.sql!r}, parameters={self.parameters!r})"

    def parameter_dict(self) -> "dict[str, Any]":
        """Return the parameters as a DB-API ``named`` style mapping."""
        return dict(self.parameters)

    def _execute(self) -> "CursorProtocol":
        cursor = self.connection.cursor()
        try:
            cursor.execute(self.sql, self.parameter_dict())
        except BaseException:
            cursor.close()
            raise
        return cursor

    def execute_non_query(self) -> int:
        """Execute the command and return the affected row count.

        Drivers that do not report a count return ``-1``.
        """
        cursor = self._execute()
        try:
            return cursor.rowcount if hasattr(cursor, "rowcount") else -1
        finally:
            cursor.close()

    def execute_scalar(self) -> Any:
        """Execute the command and return the first column of the first row.

        Returns ``None`` when the command yields no rows.
        """
        cursor = self._execute()
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        if row is None:
            return None
        if isinstance(row, Mapping):
            return next(iter(row.values()), None)
        return row[0]

    def execute_reader(self) -> "CursorProtocol":
        """Execute the command and return the open cursor.

        The caller owns the cursor and must close it.
        """
        return self._execute()

    @contextmanager
    def reader(self) -> "Generator[CursorProtocol, None, None]":
        """Execute the command and yield the cursor, closing it afterwards."""
        cursor = self._execute()
        try:
            yield cursor
        finally:
            cursor.close()


class SQLTools:
    """Builds and runs single-table CRUD commands from plain Python values.

    Args:
        config: Statement settings. Defaults to :class:`StatementConfig`.
        hooks: Callbacks merged over ``config.hooks``.
    """

    __slots__ = ("config",)

    def __init__(self, config: "Optional[StatementConfig]" = None, hooks: "Optional[StatementHooks]" = None) -> None:
        config = config or StatementConfig()
        if hooks is not None:
            config = config.replace(hooks=StatementHooks.merge(config.hooks, hooks))
        self.config = config

    @property
    def hooks(self) -> StatementHooks:
        return self.config.hooks

    def command(self, connection: ConnectionT, transaction: Any, statement: "Statement") -> "Command[ConnectionT]":
        """Create the command for a composed statement.

        Fires the ``on_sql`` hook with the statement's SQL and parameters.
        """
        _check_transaction(connection, transaction)
        return self._command(connection, transaction, statement)

    def _command(self, connection: ConnectionT, transaction: Any, statement: "Statement") -> "Command[ConnectionT]":
        if self.hooks.on_sql is not None:
            self.hooks.on_sql(statement.sql, statement.parameters)
        log_with_context(
            logger,
            logging.DEBUG,
            f"Built {statement.operation} command: {statement.sql}",
            operation=str(statement.operation),
            table=statement.table,
            parameter_names=list(statement.parameter_names),
        )
        return Command(connection, statement.sql, statement.parameters, transaction)

    # Raw SQL

    def sql_command(
        self,
        connection: ConnectionT,
        transaction: Any,
        sql: str,
        parameters: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> "Command[ConnectionT]":
        """Create a command for caller supplied SQL.

        Args:
            connection: DB-API connection.
            transaction: Transaction handle or ``None``.
            sql: SQL text with ``:name`` placeholders.
            parameters: ``(name, value)`` pairs or a value to extract fields from.
            visibility: Member visibility override for reflected values.

        Raises:
            ArgumentError: If ``sql`` is empty.

        Returns:
            The unexecuted command.
        """
        _check_transaction(connection, transaction)
        statement = build_raw(sql, parameters, self.config, visibility)
        return self._command(connection, transaction, statement)

    def execute_non_query(
        self,
        connection: ConnectionT,
        transaction: Any,
        sql: str,
        parameters: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> int:
        return self.sql_command(connection, transaction, sql, parameters, visibility=visibility).execute_non_query()

    def execute_reader(
        self,
        connection: ConnectionT,
        transaction: Any,
        sql: str,
        parameters: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> Any:
        return self.sql_command(connection, transaction, sql, parameters, visibility=visibility).execute_reader()

    def execute_scalar(
        self,
        connection: ConnectionT,
        transaction: Any,
        sql: str,
        parameters: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> Any:
        return self.sql_command(connection, transaction, sql, parameters, visibility=visibility).execute_scalar()

    # SELECT

    def select_command(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        key: Any = None,
        select: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> "Command[ConnectionT]":
        """Create a ``select`` command.

        ``select`` names the projected columns (``*`` when it has no fields)
        and ``key`` the equality filter (every row when it has no fields).
        """
        _check_transaction(connection, transaction)
        statement = build_select(table_name, key, select, self.config, visibility)
        if self.hooks.on_select is not None:
            self.hooks.on_select(statement.sql, key)
        return self._command(connection, transaction, statement)

    def execute_select(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        key: Any = None,
        select: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> Any:
        return self.select_command(
            connection, transaction, table_name, key, select, visibility=visibility
        ).execute_reader()

    # INSERT

    def insert_command(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        parameter: Any,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> "Command[ConnectionT]":
        """Create an ``insert`` command with one column per field of ``parameter``.

        Raises:
            ArgumentError: If ``parameter`` has no fields or ``table_name`` is empty.
        """
        _check_transaction(connection, transaction)
        statement = build_insert(table_name, parameter, self.config, visibility)
        if self.hooks.on_insert is not None:
            self.hooks.on_insert(statement.sql, parameter)
        return self._command(connection, transaction, statement)

    def execute_insert(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        parameter: Any,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> int:
        return self.insert_command(
            connection, transaction, table_name, parameter, visibility=visibility
        ).execute_non_query()

    # UPDATE

    def update_command(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        key: Any,
        update: Any,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> "Command[ConnectionT]":
        """Create an ``update`` command assigning the fields of ``update``.

        Raises:
            ArgumentError: If ``update`` has no fields or ``table_name`` is empty.
        """
        _check_transaction(connection, transaction)
        statement = build_update(table_name, key, update, self.config, visibility)
        if self.hooks.on_update is not None:
            self.hooks.on_update(statement.sql, update, key)
        return self._command(connection, transaction, statement)

    def execute_update(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        key: Any,
        update: Any,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> int:
        return self.update_command(
            connection, transaction, table_name, key, update, visibility=visibility
        ).execute_non_query()

    # DELETE

    def delete_command(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        key: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> "Command[ConnectionT]":
        """Create a ``delete`` command. An empty ``key`` deletes every row."""
        _check_transaction(connection, transaction)
        statement = build_delete(table_name, key, self.config, visibility)
        if self.hooks.on_delete is not None:
            self.hooks.on_delete(statement.sql, key)
        return self._command(connection, transaction, statement)

    def execute_delete(
        self,
        connection: ConnectionT,
        transaction: Any,
        table_name: str,
        key: Any = None,
        *,
        visibility: "Optional[FieldVisibility]" = None,
    ) -> int:
        return self.delete_command(connection, transaction, table_name, key, visibility=visibility).execute_non_query()
