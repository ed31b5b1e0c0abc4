"""FastAPI router for the badge-review API.

Endpoints:

- ``POST /submissions``                  — validate and store a submission
- ``GET /submissions/{submission_id}``   — read a stored submission
- ``PUT /mentors/{email}``               — create or replace a mentor
- ``GET /mentors/{email}``               — read a mentor
- ``DELETE /mentors/{email}``            — remove a mentor
- ``GET /health``                        — liveness check

Status codes for ``POST /submissions``: 201 on success, 422 with
``{"detail": {"errors": {field: message}}}`` when validation rejects the
submission, 503 when the reviewer lookup failed or exceeded
``lookup_timeout_seconds``.  The timeout is applied here, at the boundary;
the validation layer itself never times out.
"""

from __future__ import annotations

import asyncio
import importlib.metadata
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response

from badgereview.api.models import (
    HealthResponse,
    MentorRequest,
    MentorResponse,
    SubmissionCreatedResponse,
    SubmissionResponse,
)
from badgereview.config import AppConfig
from badgereview.errors import (
    InfrastructureError,
    LookupTimeoutError,
    SubmissionValidationError,
)
from badgereview.models import Mentor
from badgereview.store.mentors import MentorStore
from badgereview.store.submissions import SubmissionStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependency accessor helpers
# ---------------------------------------------------------------------------


def _get_submission_store(request: Request) -> SubmissionStore:
    return request.app.state.submission_store  # type: ignore[no-any-return]


def _get_mentor_store(request: Request) -> MentorStore:
    return request.app.state.mentor_store  # type: ignore[no-any-return]


def _get_config(request: Request) -> AppConfig:
    return request.app.state.config  # type: ignore[no-any-return]


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


@router.post(
    "/submissions",
    response_model=SubmissionCreatedResponse,
    status_code=201,
    summary="Validate and store a submission",
    tags=["submissions"],
)
async def post_submission(
    body: Annotated[dict[str, Any], Body()],
    store: Annotated[SubmissionStore, Depends(_get_submission_store)],
    config: Annotated[AppConfig, Depends(_get_config)],
) -> SubmissionCreatedResponse:
    """Run the validation pipeline and persist the submission on success.

    Raises
    ------
    HTTPException
        422 with the field-error mapping on validation failure; 503 when the
        reviewer could not be checked.
    """
    try:
        submission_id = await _create_with_timeout(
            store, body, config.lookup_timeout_seconds
        )
    except SubmissionValidationError as exc:
        raise HTTPException(status_code=422, detail={"errors": exc.errors}) from exc
    except InfrastructureError as exc:
        logger.warning("Submission could not be validated: %s", exc)
        raise HTTPException(
            status_code=503,
            detail={"error": "reviewer could not be checked", "reason": str(exc)},
        ) from exc

    stored = store.get(submission_id)
    if stored is None:
        raise RuntimeError(f"submission {submission_id!r} vanished after insert")
    return SubmissionCreatedResponse(
        submission_id=submission_id,
        is_learner_underage=stored.submission.is_learner_underage(),
    )


@router.get(
    "/submissions/{submission_id}",
    response_model=SubmissionResponse,
    summary="Read a stored submission",
    tags=["submissions"],
)
def get_submission(
    submission_id: str,
    store: Annotated[SubmissionStore, Depends(_get_submission_store)],
) -> SubmissionResponse:
    """Return the stored submission with its derived underage flag, or 404."""
    stored = store.get(submission_id)
    if stored is None:
        raise HTTPException(
            status_code=404, detail=f"submission_id '{submission_id}' not found."
        )
    return SubmissionResponse(
        submission_id=stored.submission_id,
        submission=stored.submission,
        is_learner_underage=stored.submission.is_learner_underage(),
    )


# ---------------------------------------------------------------------------
# Mentors
# ---------------------------------------------------------------------------


@router.put(
    "/mentors/{email}",
    response_model=MentorResponse,
    summary="Create or replace a mentor",
    tags=["mentors"],
)
def put_mentor(
    email: str,
    body: MentorRequest,
    mentors: Annotated[MentorStore, Depends(_get_mentor_store)],
) -> MentorResponse:
    mentor = mentors.add_mentor(
        Mentor(email=email, classifications=set(body.classifications))
    )
    return MentorResponse.from_mentor(mentor)


@router.get(
    "/mentors/{email}",
    response_model=MentorResponse,
    summary="Read a mentor",
    tags=["mentors"],
)
def get_mentor(
    email: str,
    mentors: Annotated[MentorStore, Depends(_get_mentor_store)],
) -> MentorResponse:
    mentor = mentors.get_mentor(email)
    if mentor is None:
        raise HTTPException(status_code=404, detail=f"mentor '{email}' not found.")
    return MentorResponse.from_mentor(mentor)


@router.delete(
    "/mentors/{email}",
    status_code=204,
    summary="Remove a mentor",
    tags=["mentors"],
)
def delete_mentor(
    email: str,
    mentors: Annotated[MentorStore, Depends(_get_mentor_store)],
) -> Response:
    if not mentors.remove_mentor(email):
        raise HTTPException(status_code=404, detail=f"mentor '{email}' not found.")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    tags=["meta"],
)
def get_health(
    store: Annotated[SubmissionStore, Depends(_get_submission_store)],
) -> HealthResponse:
    """Always 200; ``database_reachable`` reports whether the store answered."""
    try:
        store.count()
        reachable = True
    except Exception as exc:  # noqa: BLE001
        logger.warning("Health check could not reach the database: %s", exc)
        reachable = False

    return HealthResponse(
        status="ok",
        version=_get_version(),
        database_reachable=reachable,
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


async def _create_with_timeout(
    store: SubmissionStore, body: dict[str, Any], timeout: float
) -> str:
    """Call :meth:`SubmissionStore.create`, mapping expiry to :class:`LookupTimeoutError`."""
    try:
        return await asyncio.wait_for(store.create(body), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise LookupTimeoutError(
            f"reviewer lookup exceeded {timeout:g}s"
        ) from exc


def _get_version() -> str:
    try:
        return importlib.metadata.version("badge-review")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"
