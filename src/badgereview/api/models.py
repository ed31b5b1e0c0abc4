"""Pydantic models for the badge-review HTTP API.

Request bodies for ``POST /submissions`` are taken as raw JSON objects and
handed to the validation layer unchanged, so shape errors come back in the
same field → message form as policy errors.  Everything else crossing the
HTTP boundary is defined here.

Models
------
- :class:`SubmissionCreatedResponse` — ``POST /submissions`` response body
- :class:`SubmissionResponse` — ``GET /submissions/{submission_id}`` body
- :class:`MentorRequest` / :class:`MentorResponse` — ``/mentors/{email}``
- :class:`HealthResponse` — ``GET /health`` response body
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from badgereview.models import Mentor, Submission


class SubmissionCreatedResponse(BaseModel):
    """Response body for a successful ``POST /submissions``.

    Attributes
    ----------
    submission_id:
        Identifier assigned to the stored submission.
    is_learner_underage:
        Derived flag; see :func:`~badgereview.models.is_learner_underage`.
    """

    submission_id: str
    is_learner_underage: bool


class SubmissionResponse(BaseModel):
    """Response body for ``GET /submissions/{submission_id}``."""

    submission_id: str
    submission: Submission
    is_learner_underage: bool


class MentorRequest(BaseModel):
    """Request body for ``PUT /mentors/{email}``."""

    classifications: list[str] = Field(default_factory=list)


class MentorResponse(BaseModel):
    """A mentor as returned by the API; classifications are sorted."""

    email: str
    classifications: list[str]

    @classmethod
    def from_mentor(cls, mentor: Mentor) -> MentorResponse:
        return cls(email=mentor.email, classifications=sorted(mentor.classifications))


class HealthResponse(BaseModel):
    """Response body for ``GET /health``.

    Attributes
    ----------
    status:
        Always ``"ok"`` when the process is serving requests.
    version:
        Installed package version, or ``"unknown"``.
    database_reachable:
        Whether a trivial query against the database succeeded.
    """

    status: str
    version: str
    database_reachable: bool
