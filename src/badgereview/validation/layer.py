"""Validation layer for badge-review.

Decides whether a :class:`~badgereview.models.Submission` may be persisted.

Processing order (fixed):

1. **Shape** — mappings are parsed into a :class:`Submission`; pydantic
   errors are folded into the field-error report.
2. **URL safety** — :func:`~badgereview.validation.urls.unsafe_url_fields`
   over ``achievement.imageUrl``, ``criteriaUrl`` and every
   ``evidence.<i>.url``.  When step 1 fails, the string URLs found in the raw
   mapping are still checked, along with the canned-response selections.
3. **Canned responses** — every selection must belong to the catalog.
4. **Reviewer authorization** — only when steps 1–3 produced no errors and
   the submission names a reviewer.  This is the only step that performs
   I/O and it runs at most once per call.

Outcomes
--------
- ``ValidationResult(valid=True)`` — the caller may persist.
- ``ValidationResult(valid=False, errors={...})`` — policy rejection; one
  entry per failing field.
- An exception raised by the reviewer lookup — re-raised unchanged (same
  object), never folded into ``errors``.  Callers treat it as an
  infrastructure failure.

The validator holds no per-call state, so concurrent validations of
different submissions are independent and repeated validation of an
unchanged submission against an unchanged roster gives the same outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from badgereview.config import DEFAULT_CANNED_RESPONSES
from badgereview.models import Submission
from badgereview.validation.urls import unsafe_raw_url_fields, unsafe_url_fields

logger = logging.getLogger(__name__)

#: Message attached to the ``reviewer`` field when authorization fails.
REVIEWER_PERMISSION_MESSAGE: str = "reviewer does not have permission to review"


class ClassificationLookup(Protocol):
    """Anything that can resolve a reviewer identity to classification tags.

    Implementations return an empty set for unknown identities and raise
    when the lookup itself cannot complete.
    """

    async def classifications_for(self, identity: str) -> set[str]: ...


class ValidationResult(BaseModel):
    """The outcome of :meth:`SubmissionValidator.validate`.

    Attributes
    ----------
    valid:
        ``True`` if every rule passed.
    errors:
        Field path → message for each failing field.  Empty when valid.
    submission:
        The parsed submission when ``valid`` is ``True``; ``None`` otherwise.
    """

    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)
    submission: Submission | None = None


class SubmissionValidator:
    """Validates submissions before they are written.

    Parameters
    ----------
    lookup:
        The reviewer authorization lookup, injected so tests can pass a fake.
    canned_responses:
        Catalog of permitted canned-response strings.  Defaults to
        :data:`~badgereview.config.DEFAULT_CANNED_RESPONSES`.
    """

    def __init__(
        self,
        lookup: ClassificationLookup,
        canned_responses: Iterable[str] | None = None,
    ) -> None:
        self._lookup = lookup
        self._catalog: frozenset[str] = frozenset(
            canned_responses if canned_responses is not None
            else DEFAULT_CANNED_RESPONSES
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def validate(
        self, submission: Submission | Mapping[str, Any]
    ) -> ValidationResult:
        """Run every rule against *submission* and return the outcome.

        Parameters
        ----------
        submission:
            A :class:`Submission`, or a mapping in wire (camelCase) or
            attribute (snake_case) form.

        Returns
        -------
        ValidationResult
            ``valid=True`` with the parsed submission, or ``valid=False``
            with the field-error mapping.

        Raises
        ------
        Exception
            Whatever the injected lookup raises, unchanged.
        """
        parsed, errors = self._parse(submission)
        if parsed is None:
            # Shape failed; policy checks still run on whatever raw values are usable.
            for field, message in self._check_raw(submission).items():
                errors.setdefault(field, message)
            logger.info("Submission rejected before reviewer lookup: %s", sorted(errors))
            return ValidationResult(valid=False, errors=errors)

        errors.update(unsafe_url_fields(parsed))
        errors.update(self.check_canned_responses(parsed.canned_responses))
        if errors:
            logger.info("Submission rejected before reviewer lookup: %s", sorted(errors))
            return ValidationResult(valid=False, errors=errors)

        reviewer_error = await self.check_reviewer(parsed)
        if reviewer_error is not None:
            logger.info(
                "Submission rejected: reviewer %s lacks classifications %s",
                parsed.reviewer,
                parsed.classifications,
            )
            return ValidationResult(valid=False, errors={"reviewer": reviewer_error})

        return ValidationResult(valid=True, submission=parsed)

    async def check_reviewer(self, submission: Submission) -> str | None:
        """Check the proposed reviewer against the mentor roster.

        Returns ``None`` when there is no reviewer or the reviewer holds at
        least one of the submission's classifications, otherwise
        :data:`REVIEWER_PERMISSION_MESSAGE`.  A reviewer with no
        classifications and an unknown reviewer are indistinguishable.

        Raises
        ------
        Exception
            Whatever the lookup raises, re-raised as the same object.
        """
        if submission.reviewer is None:
            return None

        try:
            granted = await self._lookup.classifications_for(submission.reviewer)
        except Exception as exc:
            logger.warning(
                "Reviewer lookup failed for %s: %s", submission.reviewer, exc
            )
            raise

        if set(granted).isdisjoint(submission.classifications):
            return REVIEWER_PERMISSION_MESSAGE
        return None

    def check_canned_responses(self, selections: Iterable[str]) -> dict[str, str]:
        """Return a ``cannedResponses`` error if any selection is off-catalog."""
        unknown = [s for s in selections if s not in self._catalog]
        if not unknown:
            return {}
        listed = ", ".join(repr(s) for s in unknown)
        return {"cannedResponses": f"unknown canned response(s): {listed}"}

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_raw(self, submission: Submission | Mapping[str, Any]) -> dict[str, str]:
        """Run the URL and catalog rules against an unparsed mapping."""
        if not isinstance(submission, Mapping):
            return {}
        errors = unsafe_raw_url_fields(submission)
        canned = submission.get("cannedResponses", submission.get("canned_responses"))
        if isinstance(canned, list):
            errors.update(
                self.check_canned_responses(s for s in canned if isinstance(s, str))
            )
        return errors

    @staticmethod
    def _parse(
        submission: Submission | Mapping[str, Any],
    ) -> tuple[Submission | None, dict[str, str]]:
        """Coerce *submission* into a model, collecting shape errors by field."""
        if isinstance(submission, Submission):
            return submission, {}
        try:
            return Submission.model_validate(submission), {}
        except PydanticValidationError as exc:
            return None, _field_errors(exc)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _field_errors(exc: PydanticValidationError) -> dict[str, str]:
    """Flatten pydantic errors into ``{"a.b.0": "message"}``, first error per field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "submission"
        errors.setdefault(field, err["msg"])
    return errors

