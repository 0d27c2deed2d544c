from typing import Any, Optional

__all__ = (
    "ArgumentError",
    "ParameterConflictError",
    "ParameterTypeError",
    "SQLToolsError",
)


class SQLToolsError(Exception):
    """Base exception class from which all sqltools exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLToolsError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ArgumentError(SQLToolsError, ValueError):
    """An argument passed to a statement builder is unusable.

    Raised before any command is created, so a failed build never leaves
    partial state behind.
    """

    argument: Optional[str]

    def __init__(self, message: str, argument: Optional[str] = None) -> None:
        detail_message = message
        if argument:
            detail_message = f"{message} (Argument: {argument})"
        super().__init__(detail=detail_message)
        self.argument = argument


class ParameterConflictError(ArgumentError):
    """The same parameter name is bound to different values in one statement."""

    name: str
    values: "tuple[Any, ...]"

    def __init__(self, name: str, first: Any, second: Any, sql: Optional[str] = None) -> None:
        message = f"Parameter {name!r} is bound to conflicting values {first!r} and {second!r}"
        if sql:
            message = f"{message}\nSQL: {sql}"
        super().__init__(message, argument=name)
        self.name = name
        self.values = (first, second)


class ParameterTypeError(ArgumentError, TypeError):
    """A parameter value is outside the supported value types."""

    def __init__(self, name: str, value: Any) -> None:
        super().__init__(f"Unsupported value type {type(value).__name__!r} for parameter {name!r}", argument=name)
