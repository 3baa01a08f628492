"""Shared dataclasses used by the resolver and connection modules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

WILDCARD = "*"


class DbType(str, Enum):
    """Database flavours understood by the catalog file."""

    POSTGRES = "postgres"
    MYSQL = "mysql"


@dataclass(frozen=True, slots=True)
class PasswordEntry:
    """One line of the password file."""

    hostname: str
    port: str
    database: str
    username: str
    password: str

    def matches_database(self, database: str) -> bool:
        return self.database == WILDCARD or self.database == database


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One line of the catalog file."""

    alias: str
    dbtype: DbType
    hostname: str
    port: str
    database: str
    username: str

    @property
    def join_key(self) -> tuple[str, str, str]:
        return self.hostname, self.username, self.port


@dataclass(frozen=True, slots=True)
class ResolvedConnection:
    """Fully merged parameters needed to open one connection."""

    alias: str
    dbtype: DbType
    hostname: str
    port: int
    database: str
    username: str
    password: str | None = None

    def with_password(self, password: str | None) -> ResolvedConnection:
        """Return a copy with the password replaced."""

        return replace(self, password=password)

    def __repr__(self) -> str:
        secret = None if self.password is None else "***"
        return (
            f"ResolvedConnection(alias={self.alias!r}, dbtype={self.dbtype.value!r}, "
            f"hostname={self.hostname!r}, port={self.port}, database={self.database!r}, "
            f"username={self.username!r}, password={secret!r})"
        )


__all__ = ["CatalogEntry", "DbType", "PasswordEntry", "ResolvedConnection", "WILDCARD"]
