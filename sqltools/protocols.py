"""Runtime-checkable protocols for the objects sqltools works with.

The connection, cursor and transaction protocols describe the DB-API 2.0
surface the command layer relies on. ``SupportsFields`` lets a value list its
own SQL fields instead of being reflected over.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from sqltools.typing import ParameterPairs

__all__ = (
    "ConnectionProtocol",
    "CursorProtocol",
    "SupportsFields",
    "TransactionProtocol",
)


@runtime_checkable
class SupportsFields(Protocol):
    """Protocol for values that enumerate their own ``(name, value)`` pairs."""

    def __sql_fields__(self) -> "ParameterPairs":
        """Return the ordered fields of this value."""
        ...


@runtime_checkable
class CursorProtocol(Protocol):
    """Protocol for DB-API 2.0 cursors."""

    @property
    def description(self) -> "Optional[Sequence[Sequence[Any]]]":
        """Column descriptions of the last result set."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last execute call."""
        ...

    def execute(self, operation: str, parameters: "Mapping[str, Any]" = ...) -> Any:
        """Execute an operation with named parameters."""
        ...

    def fetchone(self) -> Any:
        """Fetch the next row, or ``None``."""
        ...

    def fetchall(self) -> "Sequence[Any]":
        """Fetch all remaining rows."""
        ...

    def close(self) -> Any:
        """Close the cursor."""
        ...

    def __iter__(self) -> "Iterator[Any]":
        """Iterate over remaining rows."""
        ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """Protocol for DB-API 2.0 connections."""

    def cursor(self) -> Any:
        """Return a new cursor."""
        ...


@runtime_checkable
class TransactionProtocol(Protocol):
    """Protocol for externally managed transaction handles."""

    @property
    def connection(self) -> Any:
        """The connection the transaction runs on."""
        ...
