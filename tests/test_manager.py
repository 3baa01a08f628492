"""Tests for the connection manager and handle lifecycle."""

from __future__ import annotations

from pathlib import Path

import pytest

from dbalias.errors import (
    DatabaseConnectionError,
    InvalidHandleError,
    QueryExecutionError,
    QueryFileNotFoundError,
)
from dbalias.manager import ConnectionHandle, ConnectionManager, terminal_prompt
from dbalias.models import DbType, ResolvedConnection
from dbalias.query import QueryResult

RESOLVED = ResolvedConnection(
    alias="database1",
    dbtype=DbType.POSTGRES,
    hostname="my.postgres.db.com",
    port=5432,
    database="my_database1",
    username="user1",
    password="secret",
)


class _FakeConnection:
    def __init__(self) -> None:
        self.statements: list[str] = []
        self.closed = False

    def fetch(self, sql: str) -> QueryResult:
        self.statements.append(sql)
        return QueryResult(columns=("one",), rows=((1,),), status="1 row(s)", elapsed_ms=0, row_count=1)

    def close(self) -> None:
        self.closed = True


class _FakeDriver:
    instances: list[_FakeDriver] = []

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.opened: list[_FakeConnection] = []
        self.params: list[ResolvedConnection] = []
        self.timeouts: list[float] = []
        self.unloaded = False
        _FakeDriver.instances.append(self)

    def connect(self, params: ResolvedConnection, *, timeout: float) -> _FakeConnection:
        if self.fail:
            raise DatabaseConnectionError("password authentication failed")
        self.params.append(params)
        self.timeouts.append(timeout)
        connection = _FakeConnection()
        self.opened.append(connection)
        return connection

    def connections(self) -> tuple[_FakeConnection, ...]:
        return tuple(conn for conn in self.opened if not conn.closed)

    def unload(self) -> None:
        self.unloaded = True


@pytest.fixture(autouse=True)
def _reset_instances():
    _FakeDriver.instances.clear()
    yield
    _FakeDriver.instances.clear()


def _manager(**kwargs) -> ConnectionManager:
    kwargs.setdefault("prompt", None)
    return ConnectionManager(drivers={DbType.POSTGRES: _FakeDriver, DbType.MYSQL: _FakeDriver}, **kwargs)


def test_open_uses_driver_for_dbtype() -> None:
    handle = _manager(connect_timeout=1.5).open(RESOLVED)

    driver = _FakeDriver.instances[0]
    assert handle.is_open is True
    assert handle.alias == "database1"
    assert driver.params == [RESOLVED]
    assert driver.timeouts == [1.5]


def test_open_without_registered_driver() -> None:
    manager = ConnectionManager(drivers={DbType.MYSQL: _FakeDriver}, prompt=None)

    with pytest.raises(DatabaseConnectionError):
        manager.open(RESOLVED)


def test_open_prompts_when_password_missing() -> None:
    asked: list[str] = []

    def _prompt(alias: str) -> str:
        asked.append(alias)
        return "typed"

    _manager(prompt=_prompt).open(RESOLVED.with_password(None))

    assert asked == ["database1"]
    assert _FakeDriver.instances[0].params[0].password == "typed"


def test_open_skips_prompt_when_password_known() -> None:
    def _prompt(alias: str) -> str:
        raise AssertionError("should not prompt")

    _manager(prompt=_prompt).open(RESOLVED)

    assert _FakeDriver.instances[0].params[0].password == "secret"


def test_open_proceeds_without_password_when_prompt_declines() -> None:
    _manager(prompt=lambda alias: None).open(RESOLVED.with_password(None))

    assert _FakeDriver.instances[0].params[0].password is None


def test_open_unloads_driver_on_failure() -> None:
    manager = ConnectionManager(drivers={DbType.POSTGRES: lambda: _FakeDriver(fail=True)}, prompt=None)

    with pytest.raises(DatabaseConnectionError):
        manager.open(RESOLVED)

    assert _FakeDriver.instances[0].unloaded is True


def test_execute_runs_stripped_sql() -> None:
    handle = _manager().open(RESOLVED)

    result = handle.execute("  SELECT 1;\n")

    assert result.rows == ((1,),)
    assert _FakeDriver.instances[0].opened[0].statements == ["SELECT 1;"]


def test_execute_rejects_blank_sql() -> None:
    handle = _manager().open(RESOLVED)

    with pytest.raises(QueryExecutionError):
        handle.execute("   ")


def test_execute_file_reads_sql(tmp_path: Path) -> None:
    query = tmp_path / "query.sql"
    query.write_text("SELECT *\nFROM users;\n")
    handle = _manager().open(RESOLVED)

    handle.execute_file(query)

    assert _FakeDriver.instances[0].opened[0].statements == ["SELECT *\nFROM users;"]


def test_execute_file_missing_path_raises_before_io(tmp_path: Path) -> None:
    handle = _manager().open(RESOLVED)

    with pytest.raises(QueryFileNotFoundError):
        handle.execute_file(tmp_path / "missing.sql")

    assert _FakeDriver.instances[0].opened[0].statements == []


def test_close_disconnects_and_unloads() -> None:
    handle = _manager().open(RESOLVED)
    driver = _FakeDriver.instances[0]

    handle.close()

    assert handle.is_open is False
    assert driver.opened[0].closed is True
    assert driver.unloaded is True


def test_closed_handle_is_invalid() -> None:
    handle = _manager().open(RESOLVED)
    handle.close()

    with pytest.raises(InvalidHandleError):
        handle.execute("SELECT 1")
    with pytest.raises(InvalidHandleError):
        handle.execute("   ")
    with pytest.raises(InvalidHandleError):
        handle.close()


def test_context_manager_closes_on_error() -> None:
    with pytest.raises(RuntimeError):
        with _manager().open(RESOLVED) as handle:
            raise RuntimeError("boom")

    assert handle.is_open is False
    assert _FakeDriver.instances[0].unloaded is True


def test_context_manager_tolerates_explicit_close() -> None:
    with _manager().open(RESOLVED) as handle:
        handle.close()

    assert handle.is_open is False


def test_manager_methods_reject_foreign_handles() -> None:
    manager = _manager()

    with pytest.raises(InvalidHandleError):
        manager.execute(object(), "SELECT 1")  # type: ignore[arg-type]
    with pytest.raises(InvalidHandleError):
        manager.close("handle")  # type: ignore[arg-type]


def test_manager_methods_delegate_to_handle(tmp_path: Path) -> None:
    manager = _manager()
    handle = manager.open(RESOLVED)
    query = tmp_path / "q.sql"
    query.write_text("SELECT 2")

    manager.execute(handle, "SELECT 1")
    manager.execute_file(handle, query)
    manager.close(handle)

    assert isinstance(handle, ConnectionHandle)
    assert _FakeDriver.instances[0].opened[0].statements == ["SELECT 1", "SELECT 2"]
    assert handle.is_open is False


def test_terminal_prompt_is_silent_without_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Stdin:
        def isatty(self) -> bool:
            return False

    monkeypatch.setattr("dbalias.manager.sys.stdin", _Stdin())

    assert terminal_prompt("database1") is None


def test_terminal_prompt_reads_password(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    class _Stdin:
        def isatty(self) -> bool:
            return True

    prompts: list[str] = []

    def _getpass(prompt: str) -> str:
        prompts.append(prompt)
        return "typed"

    monkeypatch.setattr("dbalias.manager.sys.stdin", _Stdin())
    monkeypatch.setattr("dbalias.manager.getpass.getpass", _getpass)

    assert terminal_prompt("database1") == "typed"
    assert prompts == ["Password for alias database1: "]
    assert "No password found for database database1." in capsys.readouterr().out
