"""SubmissionStore: validate-then-write persistence for submissions.

:meth:`SubmissionStore.create` is the only write path.  It awaits
:meth:`~badgereview.validation.layer.SubmissionValidator.validate` and
inserts a row only when validation passes, so no invalid or half-validated
submission is ever visible to readers.

Schema overview
---------------
- ``submissions`` — one row per accepted submission.  The full submission is
  kept as JSON in ``payload_json``; ``learner`` and ``reviewer`` are copied
  out for querying.

Design notes
------------
- The insert is a single statement committed once, so a row is either fully
  present or absent.
- Errors from the reviewer lookup pass through :meth:`create` unchanged.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from badgereview.errors import SubmissionValidationError
from badgereview.models import Submission
from badgereview.store.connection import as_connection
from badgereview.validation.layer import SubmissionValidator

logger = logging.getLogger(__name__)


class StoredSubmission(BaseModel):
    """A persisted submission together with its generated identifier.

    Attributes
    ----------
    submission_id:
        Identifier assigned by :meth:`SubmissionStore.create`.
    submission:
        The validated :class:`~badgereview.models.Submission`.
    """

    submission_id: str
    submission: Submission


class SubmissionStore:
    """Persistent SQLite storage for validated submissions.

    Parameters
    ----------
    conn:
        An open :class:`sqlite3.Connection`, or a path to a SQLite file.
        Pass ``Path(":memory:")`` in tests.
    validator:
        The :class:`~badgereview.validation.layer.SubmissionValidator` run
        before every write.
    """

    def __init__(
        self,
        conn: sqlite3.Connection | Path | str,
        validator: SubmissionValidator,
    ) -> None:
        self._conn: sqlite3.Connection = as_connection(conn)
        self._validator = validator
        self._init_schema()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(self, submission: Submission | Mapping[str, Any]) -> str:
        """Validate *submission* and persist it if every rule passes.

        Parameters
        ----------
        submission:
            A :class:`Submission` or its wire-format mapping.

        Returns
        -------
        str
            The generated ``submission_id``.

        Raises
        ------
        SubmissionValidationError
            If any validation rule failed.  Nothing is written.
        Exception
            Any error raised by the reviewer lookup, unchanged.  Nothing is
            written.
        """
        result = await self._validator.validate(submission)
        if not result.valid:
            raise SubmissionValidationError(result.errors)

        accepted = result.submission
        if accepted is None:
            raise RuntimeError("validator accepted a submission without returning it")
        submission_id = f"submission-{uuid.uuid4().hex[:12]}"

        with self._conn:
            self._conn.execute(
                """
                INSERT INTO submissions
                    (submission_id, learner, reviewer, created_at, payload_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    submission_id,
                    accepted.learner,
                    accepted.reviewer,
                    accepted.created_at.isoformat(),
                    accepted.model_dump_json(by_alias=True),
                ),
            )
        logger.info("Stored submission %s for %s", submission_id, accepted.learner)
        return submission_id

    def get(self, submission_id: str) -> StoredSubmission | None:
        """Return the stored submission with *submission_id*, or ``None``."""
        row = self._conn.execute(
            "SELECT submission_id, payload_json FROM submissions WHERE submission_id = ?",
            (submission_id,),
        ).fetchone()
        if row is None:
            return None
        return StoredSubmission(
            submission_id=row["submission_id"],
            submission=Submission.model_validate_json(row["payload_json"]),
        )

    def count(self) -> int:
        """Return the number of stored submissions."""
        row = self._conn.execute("SELECT COUNT(*) FROM submissions").fetchone()
        return int(row[0]) if row else 0

    def remove_all(self) -> int:
        """Delete every submission and return the number of rows removed."""
        with self._conn:
            cur = self._conn.execute("DELETE FROM submissions")
        logger.info("Removed %d submission(s)", cur.rowcount)
        return cur.rowcount

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        """Create the ``submissions`` table if it does not exist."""
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS submissions (
                submission_id TEXT PRIMARY KEY,
                learner TEXT NOT NULL,
                reviewer TEXT,
                created_at TIMESTAMP NOT NULL,
                payload_json TEXT NOT NULL
            )
            """
        )
        self._conn.commit()
