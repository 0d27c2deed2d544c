"""Configuration objects for statement building."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from sqltools.fields import FieldVisibility
from sqltools.typing import Parameter

__all__ = (
    "ConflictPolicy",
    "DeleteHook",
    "InsertHook",
    "SelectHook",
    "SqlHook",
    "StatementConfig",
    "StatementHooks",
    "UpdateHook",
)

SqlHook = Callable[[str, Sequence[Parameter]], None]
SelectHook = Callable[[str, Any], None]
InsertHook = Callable[[str, Any], None]
UpdateHook = Callable[[str, Any, Any], None]
DeleteHook = Callable[[str, Any], None]


class ConflictPolicy(str, Enum):
    """How to resolve one parameter name bound to two different values."""

    RAISE = "raise"
    FIRST = "first"
    LAST = "last"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class StatementHooks:
    """Optional callbacks fired while statements are built.

    ``on_sql`` receives every command's SQL and final parameters. The
    operation hooks receive the composed SQL and the objects it was built from.
    """

    on_sql: Optional[SqlHook] = None
    on_select: Optional[SelectHook] = None
    on_insert: Optional[InsertHook] = None
    on_update: Optional[UpdateHook] = None
    on_delete: Optional[DeleteHook] = None

    def copy(self) -> "StatementHooks":
        """Return a shallow copy."""

        return StatementHooks(
            on_sql=self.on_sql,
            on_select=self.on_select,
            on_insert=self.on_insert,
            on_update=self.on_update,
            on_delete=self.on_delete,
        )

    @classmethod
    def merge(cls, base: "Optional[StatementHooks]", override: "Optional[StatementHooks]") -> "StatementHooks":
        """Combine two hook sets, preferring callbacks set on ``override``."""

        if base is None and override is None:
            return cls()
        if override is None:
            return base.copy()  # type: ignore[union-attr]
        if base is None:
            return override.copy()
        return StatementHooks(
            on_sql=override.on_sql or base.on_sql,
            on_select=override.on_select or base.on_select,
            on_insert=override.on_insert or base.on_insert,
            on_update=override.on_update or base.on_update,
            on_delete=override.on_delete or base.on_delete,
        )


@dataclass(frozen=True, slots=True)
class StatementConfig:
    """Settings shared by every statement an engine builds."""

    hooks: StatementHooks = field(default_factory=StatementHooks)
    visibility: FieldVisibility = FieldVisibility.DEFAULT
    conflict_policy: ConflictPolicy = ConflictPolicy.RAISE
    strict_types: bool = False

    def replace(self, **changes: Any) -> "StatementConfig":
        """Return a copy with ``changes`` applied."""

        return replace(self, **changes)
