"""SQL text fragments built from field sets.

Fragments only ever reference values through ``:name`` placeholders.
"""

from typing import TYPE_CHECKING

from sqltools.exceptions import ArgumentError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqltools.typing import Parameter

__all__ = ("assignments_sql", "columns_sql", "placeholders_sql", "predicate_sql")


def columns_sql(fields: "Iterable[Parameter]") -> str:
    """Comma separated column names, ``""`` when there are none."""
    return ", ".join(field.name for field in fields)


def placeholders_sql(fields: "Iterable[Parameter]") -> str:
    """Comma separated ``:name`` placeholders, ``""`` when there are none."""
    return ", ".join(f":{field.name}" for field in fields)


def assignments_sql(fields: "Iterable[Parameter]") -> str:
    """Render the ``SET`` list of an update.

    Args:
        fields: The fields to assign.

    Raises:
        ArgumentError: If there is nothing to assign.

    Returns:
        ``name = :name`` clauses joined by commas.
    """
    sql = ", ".join(f"{field.name} = :{field.name}" for field in fields)
    if not sql:
        msg = "An update needs at least one field to assign"
        raise ArgumentError(msg, argument="update")
    return sql


def predicate_sql(fields: "Iterable[Parameter]") -> str:
    """Render a ``where`` clause matching every field by equality.

    An empty field set renders ``""``, which matches every row of the table.
    """
    sql = " and ".join(f"{field.name} = :{field.name}" for field in fields)
    if sql:
        return f" where {sql}"
    return sql
