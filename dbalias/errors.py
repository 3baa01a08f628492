"""Exceptions raised by alias resolution and connection handling."""

from __future__ import annotations


class DbAliasError(RuntimeError):
    """Base class for every error raised by dbalias."""


class CatalogFileMissingError(DbAliasError):
    """Raised when the catalog file does not exist."""


class AliasNotFoundError(DbAliasError):
    """Raised when no catalog record matches the requested alias."""


class AmbiguousAliasError(DbAliasError):
    """Raised when more than one merged record matches the requested alias."""


class DatabaseConnectionError(DbAliasError):
    """Raised when the driver cannot open a connection."""


class QueryFileNotFoundError(DbAliasError):
    """Raised when a query file does not exist."""


class QueryExecutionError(DbAliasError):
    """Raised when a query fails to execute."""


class InvalidHandleError(QueryExecutionError):
    """Raised when an operation receives a closed or foreign handle."""


__all__ = [
    "AliasNotFoundError",
    "AmbiguousAliasError",
    "CatalogFileMissingError",
    "DatabaseConnectionError",
    "DbAliasError",
    "InvalidHandleError",
    "QueryExecutionError",
    "QueryFileNotFoundError",
]
