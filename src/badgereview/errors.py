"""Error taxonomy for badge-review.

Two kinds of failure leave the validation pipeline and callers must be able
to tell them apart:

- :class:`SubmissionValidationError` — the submitted data breaks a policy.
  Carries a field → message mapping.  Fixable by the caller; never retried.
- :class:`InfrastructureError` — an external dependency (the mentor roster)
  could not answer.  Transient from the caller's point of view.

Note that the validation pipeline re-raises whatever the reviewer lookup
raises *as-is*; :class:`InfrastructureError` subclasses are what the bundled
lookup implementations raise, not a wrapper applied by the pipeline.
"""

from __future__ import annotations


class SubmissionValidationError(Exception):
    """A submission was rejected by one or more validation rules.

    Attributes
    ----------
    errors:
        Mapping of field path (e.g. ``"evidence.1.url"``) to a human-readable
        message.  Never empty.
    """

    name = "ValidationError"

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors: dict[str, str] = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Submission failed validation: {fields}")


class InfrastructureError(Exception):
    """An external dependency failed before a decision could be made."""

    name = "InfrastructureError"


class MentorLookupError(InfrastructureError):
    """The mentor roster could not be read."""


class LookupTimeoutError(InfrastructureError):
    """The reviewer lookup did not finish within the configured timeout."""
