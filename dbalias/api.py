"""Module-level helpers composing alias resolution with the connection manager."""

from __future__ import annotations

from pathlib import Path

from .config import AliasConfig
from .manager import ConnectionHandle, ConnectionManager, PasswordPrompt, ensure_handle, terminal_prompt
from .query import QueryResult
from .resolver import AliasResolver


def new_connection(
    alias: str,
    password_file: str | Path | None = None,
    catalog_file: str | Path | None = None,
    *,
    prompt: PasswordPrompt | None = terminal_prompt,
    config: AliasConfig | None = None,
    manager: ConnectionManager | None = None,
) -> ConnectionHandle:
    """Resolve ``alias`` from the lookup files and open a connection to it.

    Paths default to ``~/.pgpass`` and ``~/db.conf`` (or the values of
    ``config``). The returned handle must be released with
    :func:`destroy_connection` or used as a context manager.
    """

    settings = (config or AliasConfig()).with_paths(
        password_file=password_file,
        catalog_file=catalog_file,
    ).expanded()
    resolver = AliasResolver(settings.password_file, settings.catalog_file)
    resolved = resolver.lookup(alias)
    if manager is None:
        manager = ConnectionManager(prompt=prompt, connect_timeout=settings.connect_timeout)
    return manager.open(resolved)


def run_query(
    handle: ConnectionHandle,
    query: str | None = None,
    *,
    from_file: str | Path | None = None,
) -> QueryResult:
    """Run ``query`` directly, or the SQL stored in ``from_file``."""

    checked = ensure_handle(handle)
    if query is not None and from_file is not None:
        raise ValueError("Pass either query or from_file, not both")
    if from_file is not None:
        return checked.execute_file(from_file)
    return checked.execute(query or "")


def destroy_connection(handle: ConnectionHandle) -> None:
    """Disconnect the handle's connections and unload its driver."""

    ensure_handle(handle).close()


__all__ = ["destroy_connection", "new_connection", "run_query"]
