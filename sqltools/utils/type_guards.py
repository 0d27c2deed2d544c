"""Type guard functions for runtime type checking in sqltools.

This module provides type-safe runtime checks that help the type checker
understand type narrowing, replacing defensive hasattr() and duck typing patterns.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from msgspec import Struct

from sqltools.protocols import SupportsFields, TransactionProtocol
from sqltools.typing import ATTRS_INSTALLED, PARAMETER_VALUE_TYPES, PYDANTIC_INSTALLED

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

    from sqltools.typing import ParameterValue

__all__ = (
    "has_dict_attribute",
    "is_attrs_class",
    "is_dataclass",
    "is_mapping",
    "is_msgspec_struct",
    "is_namedtuple",
    "is_parameter_pair",
    "is_parameter_value",
    "is_pydantic_model",
    "is_transaction",
    "supports_fields",
)


def _as_type(obj: Any) -> type:
    return obj if isinstance(obj, type) else type(obj)


def supports_fields(obj: Any) -> "TypeGuard[SupportsFields]":
    """Check if an object enumerates its own SQL fields.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return not isinstance(obj, type) and isinstance(obj, SupportsFields)


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    """Check if a value is a mapping.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, Mapping)


def is_namedtuple(obj: Any) -> bool:
    """Check if a value is a named tuple class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    cls = _as_type(obj)
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def is_dataclass(obj: Any) -> bool:
    """Check if an object is a dataclass class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return hasattr(_as_type(obj), "__dataclass_fields__")


def is_msgspec_struct(obj: Any) -> bool:
    """Check if a value is a msgspec struct class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return issubclass(_as_type(obj), Struct)


def is_attrs_class(obj: Any) -> bool:
    """Check if a value is an attrs class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if not ATTRS_INSTALLED:
        return False
    from attrs import has

    return has(_as_type(obj))


def is_pydantic_model(obj: Any) -> bool:
    """Check if a value is a pydantic model class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if not PYDANTIC_INSTALLED:
        return False
    from pydantic import BaseModel

    return issubclass(_as_type(obj), BaseModel)


def has_dict_attribute(obj: Any) -> bool:
    """Check if an object has an instance ``__dict__``.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return hasattr(obj, "__dict__")


def is_parameter_value(value: Any) -> "TypeGuard[ParameterValue]":
    """Check if a value belongs to the supported parameter value types.

    Args:
        value: Value to check.

    Returns:
        bool
    """
    return value is None or isinstance(value, PARAMETER_VALUE_TYPES)


def is_parameter_pair(obj: Any) -> "TypeGuard[tuple[str, Any]]":
    """Check if a value is a plain ``(name, value)`` pair.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, tuple) and len(obj) == 2 and isinstance(obj[0], str)  # noqa: PLR2004


def is_transaction(obj: Any) -> "TypeGuard[TransactionProtocol]":
    """Check if an object exposes the connection it belongs to.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, TransactionProtocol)
