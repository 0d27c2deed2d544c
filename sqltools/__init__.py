"""sqltools: single-table CRUD statements built from plain Python values."""

from sqltools import config, driver, exceptions, fields, fragments, protocols, statement, typing, utils
from sqltools.__metadata__ import __version__
from sqltools.config import ConflictPolicy, StatementConfig, StatementHooks
from sqltools.driver import Command, SQLTools
from sqltools.exceptions import (
    ArgumentError,
    ParameterConflictError,
    ParameterTypeError,
    SQLToolsError,
)
from sqltools.fields import FieldVisibility, extract_fields
from sqltools.fragments import assignments_sql, columns_sql, placeholders_sql, predicate_sql
from sqltools.protocols import SupportsFields
from sqltools.statement import (
    OperationType,
    Statement,
    build_delete,
    build_insert,
    build_raw,
    build_select,
    build_update,
)
from sqltools.typing import Parameter, ParameterValue

__all__ = (
    "ArgumentError",
    "Command",
    "ConflictPolicy",
    "FieldVisibility",
    "OperationType",
    "Parameter",
    "ParameterConflictError",
    "ParameterTypeError",
    "ParameterValue",
    "SQLTools",
    "SQLToolsError",
    "Statement",
    "StatementConfig",
    "StatementHooks",
    "SupportsFields",
    "__version__",
    "assignments_sql",
    "build_delete",
    "build_insert",
    "build_raw",
    "build_select",
    "build_update",
    "columns_sql",
    "config",
    "driver",
    "exceptions",
    "extract_fields",
    "fields",
    "fragments",
    "placeholders_sql",
    "predicate_sql",
    "protocols",
    "statement",
    "typing",
    "utils",
)
