"""Domain models for badge-review.

The models here describe the *shape* of a submission and a mentor.  Policy
checks that need configuration or external state (URL safety, the canned
response catalog, reviewer authorization) live in
:mod:`badgereview.validation.layer`, so constructing a :class:`Submission`
in memory never performs I/O and never rejects on policy grounds.

Wire names are camelCase (``criteriaUrl``, ``imageUrl``, ``cannedResponses``);
Python attributes are snake_case.  Both spellings are accepted on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base class mapping snake_case attributes to camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Achievement(_WireModel):
    """The badge a learner is applying for.

    Attributes
    ----------
    name:
        Display name of the achievement.
    image_url:
        URL of the badge image (``imageUrl`` on the wire).
    description:
        Optional free-text description.
    """

    name: str
    image_url: str
    description: str | None = None


class EvidenceItem(_WireModel):
    """One URL-bearing piece of evidence attached to a submission."""

    url: str
    media_type: str | None = None
    reflection: str | None = None


class Submission(_WireModel):
    """A learner's evidence package awaiting review.

    Attributes
    ----------
    learner:
        E-mail address of the learner.
    achievement:
        The :class:`Achievement` being claimed.
    criteria_url:
        URL of the achievement's criteria page (``criteriaUrl``).
    evidence:
        Ordered evidence items; at least one is required.
    classifications:
        Classification tags this submission falls under.  A reviewer must
        hold at least one of them.
    reviewer:
        Optional mentor e-mail proposed as reviewer.  Blank strings are
        treated as "no reviewer".
    canned_responses:
        Canned reviewer remarks selected for this submission
        (``cannedResponses``).  May be empty; ``null`` is read as empty.
    created_at:
        Creation timestamp (UTC).
    """

    learner: str
    achievement: Achievement
    criteria_url: str
    evidence: list[EvidenceItem] = Field(min_length=1)
    classifications: list[str] = Field(default_factory=list)
    reviewer: str | None = None
    canned_responses: list[str] = Field(default_factory=list)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )

    @field_validator("learner")
    @classmethod
    def _non_empty_learner(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("learner must be a non-empty string.")
        return v.strip()

    @field_validator("reviewer")
    @classmethod
    def _blank_reviewer_is_absent(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("canned_responses", mode="before")
    @classmethod
    def _null_canned_responses_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def is_learner_underage(self) -> bool:
        """Return the derived underage flag; see :func:`is_learner_underage`."""
        return is_learner_underage(self)


class Mentor(BaseModel):
    """A reviewer and the classification tags they may review.

    Attributes
    ----------
    email:
        Unique identity of the mentor.
    classifications:
        Tags granting review permission.  Matching is exact and
        case-sensitive.
    """

    email: str
    classifications: set[str] = Field(default_factory=set)

    @field_validator("email")
    @classmethod
    def _non_empty_email(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("email must be a non-empty string.")
        return v.strip()


def is_learner_underage(submission: Submission) -> bool:
    """Return ``True`` if the learner on *submission* is treated as a minor.

    Any canned-response selection marks the learner as underage: minors may
    only receive canned remarks, never free-form reviewer text.  The value is
    derived on every call, so it is identical before and after persistence.

    Parameters
    ----------
    submission:
        The submission to classify.

    Returns
    -------
    bool
        ``True`` when ``canned_responses`` is non-empty, ``False`` otherwise.
    """
    return bool(submission.canned_responses)
