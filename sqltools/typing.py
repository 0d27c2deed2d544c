import datetime
from collections.abc import Iterable
from decimal import Decimal
from importlib.util import find_spec
from typing import Any, NamedTuple, Union
from uuid import UUID

from typing_extensions import TypeAlias, TypeVar

from sqltools.protocols import ConnectionProtocol

ATTRS_INSTALLED = find_spec("attrs") is not None
"""Whether :mod:`attrs` is importable."""
PYDANTIC_INSTALLED = find_spec("pydantic") is not None
"""Whether :mod:`pydantic` is importable."""

ParameterValue: TypeAlias = Union[
    None,
    bool,
    int,
    float,
    Decimal,
    str,
    bytes,
    bytearray,
    memoryview,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    UUID,
]
"""Values a parameter may carry.

``None`` binds database NULL. Values are handed to the driver as they are.
"""

PARAMETER_VALUE_TYPES: "tuple[type, ...]" = (
    bool,
    int,
    float,
    Decimal,
    str,
    bytes,
    bytearray,
    memoryview,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    UUID,
)


class Parameter(NamedTuple):
    """A named value bound to a ``:name`` placeholder."""

    name: str
    value: Any


FieldSet: TypeAlias = "tuple[Parameter, ...]"
"""Ordered parameters extracted from one object."""

ParameterPairs: TypeAlias = "Iterable[tuple[str, Any]]"
"""Any iterable of ``(name, value)`` pairs."""

ConnectionT = TypeVar("ConnectionT", bound="ConnectionProtocol")
"""Type variable for DB-API connection types."""


__all__ = (
    "ATTRS_INSTALLED",
    "PARAMETER_VALUE_TYPES",
    "PYDANTIC_INSTALLED",
    "ConnectionT",
    "FieldSet",
    "Parameter",
    "ParameterPairs",
    "ParameterValue",
)
