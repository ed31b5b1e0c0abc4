"""FastAPI application factory for the badge-review API.

Exposes a :func:`create_app` factory function that instantiates the
:class:`fastapi.FastAPI` application, wires up the dependency-injected
components (:class:`~badgereview.store.mentors.MentorStore`,
:class:`~badgereview.validation.layer.SubmissionValidator`,
:class:`~badgereview.store.submissions.SubmissionStore`), and registers the
API router defined in :mod:`badgereview.api.routes`.

Usage::

    # Production startup (uvicorn, factory mode)
    uvicorn badgereview.api.main:create_app --factory --port 8000

    # Testing: pass in-memory stores
    from badgereview.api.main import create_app
    app = create_app(config=AppConfig(database_path=Path(":memory:")))

Components are attached to ``app.state`` so that route handlers can
retrieve them via ``request.app.state``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from badgereview.api.routes import router
from badgereview.config import AppConfig, get_config
from badgereview.logging_setup import configure_logging
from badgereview.store.connection import open_connection
from badgereview.store.mentors import MentorStore
from badgereview.store.submissions import SubmissionStore
from badgereview.validation.layer import ClassificationLookup, SubmissionValidator

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None,
    mentor_store: MentorStore | None = None,
    submission_store: SubmissionStore | None = None,
    lookup: ClassificationLookup | None = None,
) -> FastAPI:
    """Create and configure the badge-review FastAPI application.

    Parameters
    ----------
    config:
        Settings; read from the environment via :func:`get_config` if ``None``.
    mentor_store:
        Pre-built roster.  If ``None`` one is opened on
        ``config.database_path``.
    submission_store:
        Pre-built submission store.  If ``None`` one is opened on the same
        connection as the roster, validating with *lookup*.
    lookup:
        Reviewer lookup used by the default validator.  Defaults to
        *mentor_store*.  Ignored when *submission_store* is provided.

    Returns
    -------
    FastAPI
        A fully configured application with all routes registered.
    """
    if config is None:
        config = get_config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="badge-review API",
        description="Validates learner evidence submissions before they are stored.",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    conn = None
    if mentor_store is None or submission_store is None:
        conn = open_connection(config.database_path)
        logger.info("Database opened at %s", config.database_path)

    if mentor_store is None:
        mentor_store = MentorStore(conn)  # type: ignore[arg-type]

    if submission_store is None:
        validator = SubmissionValidator(
            lookup=lookup if lookup is not None else mentor_store,
            canned_responses=config.canned_responses,
        )
        submission_store = SubmissionStore(conn, validator)  # type: ignore[arg-type]
        logger.info("SubmissionStore initialised")

    app.state.config = config
    app.state.mentor_store = mentor_store
    app.state.submission_store = submission_store

    app.include_router(router)
    return app
