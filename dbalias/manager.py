"""Connection manager owning one driver instance and one open connection."""

from __future__ import annotations

import getpass
import logging
import sys
from pathlib import Path
from types import TracebackType
from typing import Callable, Mapping

from .connections import DRIVERS, DatabaseDriver, DriverConnection, DriverFactory
from .errors import (
    DatabaseConnectionError,
    InvalidHandleError,
    QueryExecutionError,
    QueryFileNotFoundError,
)
from .models import DbType, ResolvedConnection
from .query import QueryResult

LOG = logging.getLogger(__name__)

PasswordPrompt = Callable[[str], str | None]


def terminal_prompt(alias: str) -> str | None:
    """Ask for a password on the controlling terminal, if there is one."""

    if not sys.stdin.isatty():
        return None
    print(f"No password found for database {alias}.")
    return getpass.getpass(f"Password for alias {alias}: ")


class ConnectionHandle:
    """Exclusive owner of one driver instance and its open connection.

    The handle must be closed exactly once, either explicitly with
    :meth:`close` or by using it as a context manager.
    """

    def __init__(self, params: ResolvedConnection, driver: DatabaseDriver, connection: DriverConnection) -> None:
        self._alias = params.alias
        self._dbtype = params.dbtype
        self._driver = driver
        self._connection = connection
        self._open = True

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def dbtype(self) -> DbType:
        return self._dbtype

    @property
    def is_open(self) -> bool:
        return self._open

    def execute(self, sql: str) -> QueryResult:
        """Run ``sql`` and return the materialised result."""

        self._ensure_open()
        statement = sql.strip()
        if not statement:
            raise QueryExecutionError("Provide SQL to execute.")
        result = self._connection.fetch(statement)
        LOG.debug(
            "Query finished",
            extra={"alias": self._alias, "status": result.status, "elapsed_ms": result.elapsed_ms},
        )
        return result

    def execute_file(self, path: str | Path) -> QueryResult:
        """Run the SQL stored in ``path``."""

        file_path = Path(path).expanduser()
        if not file_path.is_file():
            raise QueryFileNotFoundError(f"Query file '{file_path}' does not exist")
        return self.execute(file_path.read_text(encoding="utf-8"))

    def close(self) -> None:
        """Disconnect every connection of the driver, then unload it."""

        self._ensure_open()
        self._open = False
        try:
            for connection in self._driver.connections():
                connection.close()
        finally:
            self._driver.unload()
        LOG.info("Connection closed", extra={"alias": self._alias})

    def __enter__(self) -> ConnectionHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._open:
            self.close()

    def __repr__(self) -> str:
        state = "open" if self._open else "closed"
        return f"<ConnectionHandle alias={self._alias!r} dbtype={self._dbtype.value} {state}>"

    def _ensure_open(self) -> None:
        if not self._open:
            raise InvalidHandleError(f"Connection for alias '{self._alias}' is closed")


class ConnectionManager:
    """Opens connections for resolved aliases."""

    def __init__(
        self,
        *,
        drivers: Mapping[DbType, DriverFactory] | None = None,
        prompt: PasswordPrompt | None = terminal_prompt,
        connect_timeout: float = 5.0,
    ) -> None:
        self._drivers = dict(drivers or DRIVERS)
        self._prompt = prompt
        self._connect_timeout = connect_timeout

    def open(self, resolved: ResolvedConnection) -> ConnectionHandle:
        """Open one connection for ``resolved``."""

        params = self._with_prompted_password(resolved)
        factory = self._drivers.get(params.dbtype)
        if factory is None:
            raise DatabaseConnectionError(f"No driver registered for '{params.dbtype.value}'")
        driver = factory()
        try:
            connection = driver.connect(params, timeout=self._connect_timeout)
        except Exception:
            driver.unload()
            raise
        LOG.info(
            "Connection opened",
            extra={
                "alias": params.alias,
                "dbtype": params.dbtype.value,
                "host": params.hostname,
                "port": params.port,
                "database": params.database,
            },
        )
        return ConnectionHandle(params, driver, connection)

    def execute(self, handle: ConnectionHandle, sql: str) -> QueryResult:
        return ensure_handle(handle).execute(sql)

    def execute_file(self, handle: ConnectionHandle, path: str | Path) -> QueryResult:
        return ensure_handle(handle).execute_file(path)

    def close(self, handle: ConnectionHandle) -> None:
        ensure_handle(handle).close()

    def _with_prompted_password(self, resolved: ResolvedConnection) -> ResolvedConnection:
        if resolved.password is not None:
            return resolved
        if self._prompt is None:
            LOG.warning("No password found and prompting is disabled", extra={"alias": resolved.alias})
            return resolved
        password = self._prompt(resolved.alias)
        if password is None:
            LOG.warning("No password found for alias", extra={"alias": resolved.alias})
            return resolved
        return resolved.with_password(password)


def ensure_handle(handle: object) -> ConnectionHandle:
    """Return ``handle`` if it is a ConnectionHandle, else raise InvalidHandleError."""

    if not isinstance(handle, ConnectionHandle):
        raise InvalidHandleError("Parameter should be an instance of ConnectionHandle")
    return handle


__all__ = ["ConnectionHandle", "ConnectionManager", "PasswordPrompt", "ensure_handle", "terminal_prompt"]
