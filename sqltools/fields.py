"""Field extraction.

Turns an arbitrary value into the ordered ``(name, value)`` parameters that
feed the SQL fragment builders. Mappings and objects implementing
``__sql_fields__`` are taken verbatim; dataclasses, named tuples,
:class:`msgspec.Struct`, attrs classes, pydantic models and plain objects are
reflected over according to a :class:`FieldVisibility`.
"""

import dataclasses
import inspect
from enum import Flag
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Optional

from sqltools.exceptions import ArgumentError
from sqltools.typing import Parameter
from sqltools.utils.type_guards import (
    has_dict_attribute,
    is_attrs_class,
    is_dataclass,
    is_mapping,
    is_msgspec_struct,
    is_namedtuple,
    is_pydantic_model,
    supports_fields,
)

if TYPE_CHECKING:
    from sqltools.typing import FieldSet

__all__ = ("FieldVisibility", "extract_fields")

_MISSING = object()
_DECLARED_BY_ANNOTATION = frozenset({"dataclass", "msgspec", "pydantic"})


class FieldVisibility(Flag):
    """Which members of a value become parameters.

    Without ``INHERITED`` only members declared on the value's own class are
    used. Instance attributes of plain objects always count as declared.
    """

    PUBLIC = 1
    NON_PUBLIC = 2
    INHERITED = 4
    PROPERTIES = 8
    DEFAULT = 1

    @classmethod
    def all(cls) -> "FieldVisibility":
        """Every public and non-public member, inherited ones and properties included."""
        return cls.PUBLIC | cls.NON_PUBLIC | cls.INHERITED | cls.PROPERTIES


def _is_visible(name: str, visibility: FieldVisibility) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return False
    if name.startswith("_"):
        return FieldVisibility.NON_PUBLIC in visibility
    return FieldVisibility.PUBLIC in visibility


def _lineage(cls: type, inherited: bool) -> "tuple[type, ...]":
    if not inherited:
        return (cls,)
    return tuple(klass for klass in reversed(cls.__mro__) if klass is not object)


def _property_names(cls: type, visibility: FieldVisibility) -> "list[str]":
    names: list[str] = []
    for klass in _lineage(cls, FieldVisibility.INHERITED in visibility):
        for name, member in vars(klass).items():
            if isinstance(member, property) and name not in names and _is_visible(name, visibility):
                names.append(name)
    return names


@lru_cache(maxsize=256)
def _detect_schema_type(cls: type) -> "Optional[str]":
    """Detect schema type with LRU caching.

    Args:
        cls: Type to detect

    Returns:
        Type identifier string or None for plain objects
    """
    return (
        "namedtuple"
        if is_namedtuple(cls)
        else "dataclass"
        if is_dataclass(cls)
        else "msgspec"
        if is_msgspec_struct(cls)
        else "attrs"
        if is_attrs_class(cls)
        else "pydantic"
        if is_pydantic_model(cls)
        else None
    )


@lru_cache(maxsize=512)
def _schema_member_names(cls: type, schema_type: str, visibility: FieldVisibility) -> "tuple[str, ...]":
    inherited = FieldVisibility.INHERITED in visibility
    names: tuple[str, ...]
    if schema_type == "namedtuple":
        names = tuple(cls._fields)  # type: ignore[attr-defined]
    elif schema_type == "dataclass":
        names = tuple(field.name for field in dataclasses.fields(cls))  # type: ignore[arg-type]
    elif schema_type == "msgspec":
        names = tuple(cls.__struct_fields__)  # type: ignore[attr-defined]
    elif schema_type == "attrs":
        import attrs

        names = tuple(attribute.name for attribute in attrs.fields(cls) if inherited or not attribute.inherited)
    else:
        names = tuple(cls.model_fields)  # type: ignore[attr-defined]

    if not inherited and schema_type in _DECLARED_BY_ANNOTATION:
        declared = inspect.get_annotations(cls)
        names = tuple(name for name in names if name in declared)

    members = [name for name in names if _is_visible(name, visibility)]
    if FieldVisibility.PROPERTIES in visibility:
        members.extend(name for name in _property_names(cls, visibility) if name not in members)
    return tuple(members)


@lru_cache(maxsize=512)
def _object_member_names(cls: type, visibility: FieldVisibility) -> "tuple[tuple[str, ...], tuple[str, ...]]":
    """Return the slot names and property names a plain class contributes."""
    slots: list[str] = []
    for klass in _lineage(cls, FieldVisibility.INHERITED in visibility):
        declared = vars(klass).get("__slots__", ())
        if isinstance(declared, str):
            declared = (declared,)
        slots.extend(name for name in declared if name not in slots and _is_visible(name, visibility))
    properties: list[str] = []
    if FieldVisibility.PROPERTIES in visibility:
        properties = _property_names(cls, visibility)
    return tuple(slots), tuple(properties)


def _object_fields(obj: Any, visibility: FieldVisibility) -> "FieldSet":
    slots, properties = _object_member_names(type(obj), visibility)
    fields: dict[str, Any] = {}
    if has_dict_attribute(obj):
        fields.update((name, value) for name, value in vars(obj).items() if _is_visible(name, visibility))
    for name in slots:
        # unassigned slots have no value to bind
        if name not in fields and (value := getattr(obj, name, _MISSING)) is not _MISSING:
            fields[name] = value
    for name in properties:
        if name not in fields:
            fields[name] = getattr(obj, name)
    return tuple(Parameter(name, value) for name, value in fields.items())


def extract_fields(obj: Any, visibility: FieldVisibility = FieldVisibility.DEFAULT) -> "FieldSet":
    """Extract the ordered field set of a value.

    Args:
        obj: The value to reflect over. ``None`` yields no fields.
        visibility: Which members to include for reflected values.

    Raises:
        ArgumentError: If a class is passed instead of an instance.

    Returns:
        The ``(name, value)`` parameters in declaration order.
    """
    if obj is None:
        return ()
    if isinstance(obj, type):
        msg = f"Expected an instance but got the class {obj.__name__!r}"
        raise ArgumentError(msg, argument="obj")
    if supports_fields(obj):
        return tuple(Parameter(name, value) for name, value in obj.__sql_fields__())
    if is_mapping(obj):
        return tuple(Parameter(name, value) for name, value in obj.items())

    cls = type(obj)
    schema_type = _detect_schema_type(cls)
    if schema_type is None:
        return _object_fields(obj, visibility)
    return tuple(Parameter(name, getattr(obj, name)) for name in _schema_member_names(cls, schema_type, visibility))
