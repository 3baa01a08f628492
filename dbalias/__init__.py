"""Connect to PostgreSQL and MySQL databases by alias."""

from __future__ import annotations

from .api import destroy_connection, new_connection, run_query
from .config import AliasConfig
from .errors import (
    AliasNotFoundError,
    AmbiguousAliasError,
    CatalogFileMissingError,
    DatabaseConnectionError,
    DbAliasError,
    InvalidHandleError,
    QueryExecutionError,
    QueryFileNotFoundError,
)
from .manager import ConnectionHandle, ConnectionManager, terminal_prompt
from .models import CatalogEntry, DbType, PasswordEntry, ResolvedConnection
from .query import QueryResult
from .resolver import AliasResolver, parse_catalog_file, parse_password_file, resolve

__version__ = "0.1.0"

__all__ = [
    "AliasConfig",
    "AliasNotFoundError",
    "AliasResolver",
    "AmbiguousAliasError",
    "CatalogEntry",
    "CatalogFileMissingError",
    "ConnectionHandle",
    "ConnectionManager",
    "DatabaseConnectionError",
    "DbAliasError",
    "DbType",
    "InvalidHandleError",
    "PasswordEntry",
    "QueryExecutionError",
    "QueryFileNotFoundError",
    "QueryResult",
    "ResolvedConnection",
    "__version__",
    "destroy_connection",
    "new_connection",
    "parse_catalog_file",
    "parse_password_file",
    "resolve",
    "run_query",
    "terminal_prompt",
]
