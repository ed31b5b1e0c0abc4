"""Validation layer subpackage for badge-review.

Enforces URL safety, canned-response catalog membership and reviewer
authorization on submissions before they are written to storage.
"""

from badgereview.validation.layer import (
    REVIEWER_PERMISSION_MESSAGE,
    ClassificationLookup,
    SubmissionValidator,
    ValidationResult,
)
from badgereview.validation.urls import (
    is_safe,
    unsafe_raw_url_fields,
    unsafe_url_fields,
)

__all__: list[str] = [
    "REVIEWER_PERMISSION_MESSAGE",
    "ClassificationLookup",
    "SubmissionValidator",
    "ValidationResult",
    "is_safe",
    "unsafe_raw_url_fields",
    "unsafe_url_fields",
]
