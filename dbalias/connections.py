"""Driver backends that open and talk to a single database connection."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Coroutine, Mapping, Protocol, TypeVar, runtime_checkable

import asyncpg
import pymysql

from .errors import DatabaseConnectionError, QueryExecutionError
from .models import DbType, ResolvedConnection
from .query import QueryResult, cursor_to_result, records_to_result

LOG = logging.getLogger(__name__)

_T = TypeVar("_T")


@runtime_checkable
class DriverConnection(Protocol):
    """One open connection owned by a driver."""

    def fetch(self, sql: str) -> QueryResult:
        """Run ``sql`` and return the whole result set."""

    def close(self) -> None:
        """Disconnect from the server."""


@runtime_checkable
class DatabaseDriver(Protocol):
    """Protocol implemented by driver backends."""

    def connect(self, params: ResolvedConnection, *, timeout: float) -> DriverConnection:
        """Open a connection described by ``params``."""

    def connections(self) -> tuple[DriverConnection, ...]:
        """Connections opened by this driver that are still open."""

    def unload(self) -> None:
        """Release resources held by the driver itself."""


DriverFactory = Callable[[], DatabaseDriver]


class AsyncpgConnection:
    """Blocking facade over an asyncpg connection."""

    def __init__(self, driver: AsyncpgDriver, raw: Any) -> None:
        self._driver = driver
        self._raw = raw
        self.closed = False

    def fetch(self, sql: str) -> QueryResult:
        started = time.perf_counter()
        try:
            result = self._driver.run(self._run_statement(sql))
        except Exception as exc:
            raise QueryExecutionError(str(exc)) from exc
        return QueryResult(
            columns=result["columns"],
            rows=result["rows"],
            status=result["status"],
            elapsed_ms=int((time.perf_counter() - started) * 1000),
            row_count=result["row_count"],
        )

    async def _run_statement(self, sql: str) -> dict[str, Any]:
        # Column shape comes from the server-side statement description.
        statement = await self._raw.prepare(sql)
        attributes = statement.get_attributes()
        if not attributes:
            status = await self._raw.execute(sql)
            return {"columns": (), "rows": (), "status": status, "row_count": None}
        columns = tuple(str(attribute.name) for attribute in attributes)
        result = records_to_result(columns, await statement.fetch())
        result["status"] = f"{result['row_count']} row(s)"
        return result

    def close(self) -> None:
        try:
            self._driver.run(self._raw.close())
        except Exception:
            LOG.debug("Graceful close failed; terminating connection", exc_info=True)
            self._raw.terminate()
        self.closed = True


class AsyncpgDriver:
    """PostgreSQL driver running asyncpg on a private event loop thread."""

    def __init__(self) -> None:
        self._connections: list[AsyncpgConnection] = []
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="dbalias-asyncpg-driver",
            daemon=True,
        )
        self._loop_thread.start()

    def run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run ``coro`` on the driver loop and block until it finishes."""

        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    def connect(self, params: ResolvedConnection, *, timeout: float = 5.0) -> AsyncpgConnection:
        kwargs: dict[str, object] = {
            "host": params.hostname,
            "port": params.port,
            "user": params.username,
            "database": params.database,
            "timeout": timeout,
        }
        if params.password is not None:
            kwargs["password"] = params.password
        try:
            raw = self.run(asyncpg.connect(**kwargs))
        except Exception as exc:
            raise DatabaseConnectionError(
                f"Failed to connect to alias '{params.alias}': {exc}"
            ) from exc
        connection = AsyncpgConnection(self, raw)
        self._connections.append(connection)
        return connection

    def connections(self) -> tuple[AsyncpgConnection, ...]:
        return tuple(conn for conn in self._connections if not conn.closed)

    def unload(self) -> None:
        self._connections.clear()
        if self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=1)
        if not self._loop_thread.is_alive():
            self._loop.close()


class PyMySQLConnection:
    """Wrapper around a PyMySQL connection."""

    def __init__(self, raw: Any) -> None:
        self._raw = raw
        self.closed = False

    def fetch(self, sql: str) -> QueryResult:
        started = time.perf_counter()
        try:
            with self._raw.cursor() as cursor:
                affected = cursor.execute(sql)
                if cursor.description:
                    result = cursor_to_result(cursor.description, cursor.fetchall())
                    columns = result["columns"]
                    rows = result["rows"]
                    row_count = result["row_count"]
                    status = f"{row_count} row(s)"
                else:
                    columns = ()
                    rows = ()
                    row_count = None
                    status = f"{affected} row(s) affected"
        except pymysql.MySQLError as exc:
            raise QueryExecutionError(str(exc)) from exc
        return QueryResult(
            columns=columns,
            rows=rows,
            status=status,
            elapsed_ms=int((time.perf_counter() - started) * 1000),
            row_count=row_count,
        )

    def close(self) -> None:
        self._raw.close()
        self.closed = True


class PyMySQLDriver:
    """MySQL driver backed by PyMySQL."""

    def __init__(self) -> None:
        self._connections: list[PyMySQLConnection] = []

    def connect(self, params: ResolvedConnection, *, timeout: float = 5.0) -> PyMySQLConnection:
        try:
            raw = pymysql.connect(
                host=params.hostname,
                port=params.port,
                user=params.username,
                password=params.password or "",
                database=params.database,
                connect_timeout=timeout,
                autocommit=True,
            )
        except pymysql.MySQLError as exc:
            raise DatabaseConnectionError(
                f"Failed to connect to alias '{params.alias}': {exc}"
            ) from exc
        connection = PyMySQLConnection(raw)
        self._connections.append(connection)
        return connection

    def connections(self) -> tuple[PyMySQLConnection, ...]:
        return tuple(conn for conn in self._connections if not conn.closed)

    def unload(self) -> None:
        self._connections.clear()


DRIVERS: Mapping[DbType, DriverFactory] = {
    DbType.POSTGRES: AsyncpgDriver,
    DbType.MYSQL: PyMySQLDriver,
}


__all__ = [
    "AsyncpgConnection",
    "AsyncpgDriver",
    "DRIVERS",
    "DatabaseDriver",
    "DriverConnection",
    "DriverFactory",
    "PyMySQLConnection",
    "PyMySQLDriver",
]
