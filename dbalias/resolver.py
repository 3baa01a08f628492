"""Alias resolution over a password file and a catalog file."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Callable, Iterable, Sequence, TypeVar

from .config import CATALOG_FILE, PASSWORD_FILE
from .errors import AliasNotFoundError, AmbiguousAliasError, CatalogFileMissingError
from .models import CatalogEntry, DbType, PasswordEntry, ResolvedConnection

LOG = logging.getLogger(__name__)

_PASSWORD_LINE = re.compile(r"^([^#:][^:]*):([^:]*):([^:]*):([^:]*):(.*)$")
_CATALOG_LINE = re.compile(
    r"^([^#:][^:]*):(postgres|mysql):([^:]*):(\d+):([^:]*):([^:\[]*)(?:[:\[].*)?$"
)

_Entry = TypeVar("_Entry")


def parse_password_line(line: str) -> PasswordEntry | None:
    """Parse ``hostname:port:database:username:password`` or return None."""

    match = _PASSWORD_LINE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    hostname, port, database, username, password = match.groups()
    return PasswordEntry(
        hostname=hostname,
        port=port,
        database=database,
        username=username,
        password=password,
    )


def parse_catalog_line(line: str) -> CatalogEntry | None:
    """Parse ``alias:dbtype:hostname:port:database:username[...]`` or return None."""

    match = _CATALOG_LINE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    alias, dbtype, hostname, port, database, username = match.groups()
    return CatalogEntry(
        alias=alias,
        dbtype=DbType(dbtype),
        hostname=hostname,
        port=port,
        database=database,
        username=username.strip(),
    )


def parse_password_file(path: str | Path = PASSWORD_FILE) -> list[PasswordEntry]:
    """Read the password file; a missing file yields no entries."""

    file_path = Path(path).expanduser()
    try:
        lines = _read_lines(file_path)
    except FileNotFoundError:
        LOG.debug("Password file not found", extra={"path": str(file_path)})
        return []
    entries = _collect(lines, parse_password_line)
    LOG.debug("Parsed password file", extra={"path": str(file_path), "entries": len(entries)})
    return entries


def parse_catalog_file(path: str | Path = CATALOG_FILE) -> list[CatalogEntry]:
    """Read the catalog file; a missing file is fatal."""

    file_path = Path(path).expanduser()
    try:
        lines = _read_lines(file_path)
    except FileNotFoundError as exc:
        raise CatalogFileMissingError(f"Catalog file '{file_path}' does not exist") from exc
    entries = _collect(lines, parse_catalog_line)
    LOG.debug("Parsed catalog file", extra={"path": str(file_path), "entries": len(entries)})
    return entries


def merge(
    passwords: Iterable[PasswordEntry],
    catalog: Iterable[CatalogEntry],
) -> list[ResolvedConnection]:
    """Left-join catalog entries with compatible password entries.

    Password entries join on (hostname, username, port) and are kept when
    their database is the wildcard or equals the catalog database. A catalog
    entry without any compatible password entry still yields one record,
    with no password.
    """

    by_key: dict[tuple[str, str, str], list[PasswordEntry]] = defaultdict(list)
    for entry in passwords:
        by_key[(entry.hostname, entry.username, entry.port)].append(entry)

    merged: list[ResolvedConnection] = []
    for item in catalog:
        candidates = [
            entry for entry in by_key.get(item.join_key, ()) if entry.matches_database(item.database)
        ]
        secrets: Sequence[str | None] = [entry.password for entry in candidates] or [None]
        for secret in secrets:
            merged.append(
                ResolvedConnection(
                    alias=item.alias,
                    dbtype=item.dbtype,
                    hostname=item.hostname,
                    port=int(item.port),
                    database=item.database,
                    username=item.username,
                    password=secret,
                )
            )
    return merged


def known_aliases(catalog: Iterable[CatalogEntry]) -> tuple[str, ...]:
    """Distinct catalog aliases in file order."""

    return tuple(dict.fromkeys(entry.alias for entry in catalog))


def resolve(
    alias: str,
    passwords: Iterable[PasswordEntry],
    catalog: Iterable[CatalogEntry],
) -> ResolvedConnection:
    """Return the single merged record for ``alias``."""

    entries = list(catalog)
    matches = [record for record in merge(passwords, entries) if record.alias == alias]
    if not matches:
        known = ", ".join(known_aliases(entries)) or "none"
        raise AliasNotFoundError(f"Alias '{alias}' not found in the catalog (known aliases: {known})")
    if len(matches) > 1:
        raise AmbiguousAliasError(
            f"Alias '{alias}' matches {len(matches)} catalog/password records"
        )
    return matches[0]


class AliasResolver:
    """Resolves aliases against a fixed pair of lookup files."""

    def __init__(
        self,
        password_file: str | Path = PASSWORD_FILE,
        catalog_file: str | Path = CATALOG_FILE,
    ) -> None:
        self._password_file = Path(password_file)
        self._catalog_file = Path(catalog_file)

    @property
    def password_file(self) -> Path:
        return self._password_file

    @property
    def catalog_file(self) -> Path:
        return self._catalog_file

    def load(self) -> tuple[list[PasswordEntry], list[CatalogEntry]]:
        """Parse both files from disk."""

        catalog = parse_catalog_file(self._catalog_file)
        passwords = parse_password_file(self._password_file)
        return passwords, catalog

    def aliases(self) -> tuple[str, ...]:
        """Aliases declared in the catalog, in file order."""

        return known_aliases(parse_catalog_file(self._catalog_file))

    def lookup(self, alias: str) -> ResolvedConnection:
        """Parse both files and resolve ``alias``."""

        passwords, catalog = self.load()
        resolved = resolve(alias, passwords, catalog)
        LOG.debug(
            "Resolved alias",
            extra={"alias": alias, "dbtype": resolved.dbtype.value, "host": resolved.hostname},
        )
        return resolved


def _read_lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


def _collect(lines: Iterable[str], parse: Callable[[str], _Entry | None]) -> list[_Entry]:
    entries: list[_Entry] = []
    for line in lines:
        entry = parse(line)
        if entry is not None:
            entries.append(entry)
    return entries


__all__ = [
    "AliasResolver",
    "known_aliases",
    "merge",
    "parse_catalog_file",
    "parse_catalog_line",
    "parse_password_file",
    "parse_password_line",
    "resolve",
]
