"""MentorStore: SQLite-backed mentor roster.

The roster is the one piece of external state the validation pipeline reads.
:meth:`MentorStore.classifications_for` satisfies
:class:`~badgereview.validation.layer.ClassificationLookup`; the remaining
methods are the administrative create/read/delete operations that maintain
the roster independently of validation.

Schema
------
``mentors(email TEXT PRIMARY KEY, classifications_json TEXT NOT NULL,
updated_at TIMESTAMP NOT NULL)``

Classification sets are stored as a sorted JSON array so the row content is
deterministic.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from badgereview.errors import MentorLookupError
from badgereview.models import Mentor
from badgereview.store.connection import as_connection

logger = logging.getLogger(__name__)


class MentorStore:
    """Persistent mentor roster.

    Args:
        conn: An open :class:`sqlite3.Connection`, or a path to a SQLite file.
            ``Path(":memory:")`` gives a private in-memory roster.
    """

    def __init__(self, conn: sqlite3.Connection | Path | str) -> None:
        self._conn: sqlite3.Connection = as_connection(conn)
        self._init_schema()

    # ------------------------------------------------------------------
    # Reviewer lookup
    # ------------------------------------------------------------------

    async def classifications_for(self, identity: str) -> set[str]:
        """Return the classification tags granted to *identity*.

        An unknown identity yields an empty set, exactly like a mentor with
        no classifications.  The SQLite read runs in a worker thread so the
        event loop is never blocked.

        Args:
            identity: Mentor e-mail address.

        Returns:
            The mentor's classification tags, possibly empty.

        Raises:
            MentorLookupError: If the roster could not be read or the stored
                tags are malformed.
        """
        try:
            return await asyncio.to_thread(self._read_classifications, identity)
        except (sqlite3.Error, ValueError) as exc:
            raise MentorLookupError(
                f"Could not read classifications for {identity!r}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def add_mentor(self, mentor: Mentor) -> Mentor:
        """Insert *mentor*, replacing any existing row with the same e-mail."""
        now = datetime.now(tz=timezone.utc).isoformat()
        self._conn.execute(
            """
            INSERT INTO mentors (email, classifications_json, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(email) DO UPDATE SET
                classifications_json = excluded.classifications_json,
                updated_at = excluded.updated_at
            """,
            (mentor.email, json.dumps(sorted(mentor.classifications)), now),
        )
        self._conn.commit()
        logger.info(
            "Stored mentor %s with %d classification(s)",
            mentor.email,
            len(mentor.classifications),
        )
        return mentor

    def get_mentor(self, email: str) -> Mentor | None:
        """Return the mentor with *email*, or ``None`` if absent."""
        row = self._conn.execute(
            "SELECT email, classifications_json FROM mentors WHERE email = ?",
            (email,),
        ).fetchone()
        if row is None:
            return None
        return Mentor(
            email=row["email"],
            classifications=set(json.loads(row["classifications_json"])),
        )

    def remove_mentor(self, email: str) -> bool:
        """Delete the mentor with *email*; return whether a row was removed."""
        cur = self._conn.execute("DELETE FROM mentors WHERE email = ?", (email,))
        self._conn.commit()
        return cur.rowcount > 0

    def remove_all(self) -> int:
        """Delete every mentor and return the number of rows removed."""
        cur = self._conn.execute("DELETE FROM mentors")
        self._conn.commit()
        logger.info("Removed %d mentor(s)", cur.rowcount)
        return cur.rowcount

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _read_classifications(self, identity: str) -> set[str]:
        row = self._conn.execute(
            "SELECT classifications_json FROM mentors WHERE email = ?",
            (identity,),
        ).fetchone()
        if row is None:
            return set()
        tags = json.loads(row["classifications_json"])
        if not isinstance(tags, list):
            raise ValueError(f"classifications_json is not a list: {tags!r}")
        return set(tags)

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS mentors (
                email TEXT PRIMARY KEY,
                classifications_json TEXT NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
            """
        )
        self._conn.commit()
