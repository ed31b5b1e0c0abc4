"""Shared SQLite connection factory for the badge-review stores."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_MEMORY = ":memory:"


def open_connection(db_path: Path | str) -> sqlite3.Connection:
    """Open a SQLite connection usable from the event loop and worker threads.

    The parent directory of a file-backed database is created if missing.
    ``Path(":memory:")`` opens a private in-memory database (tests).

    Args:
        db_path: Filesystem path to the database, or ``":memory:"``.

    Returns:
        A connection with ``row_factory = sqlite3.Row`` and
        ``check_same_thread`` disabled, since reviewer lookups run in
        :func:`asyncio.to_thread`.
    """
    target = str(db_path)
    if target != _MEMORY:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if target != _MEMORY:
        conn.execute("PRAGMA journal_mode = WAL")
    return conn


def as_connection(conn: sqlite3.Connection | Path | str) -> sqlite3.Connection:
    """Return *conn* unchanged if it is a connection, otherwise open it."""
    if isinstance(conn, sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        return conn
    return open_connection(conn)
