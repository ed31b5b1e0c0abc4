"""badge-review: Submission validation service.

This package validates learner evidence submissions before they are
persisted: URL safety checks, reviewer authorization against the mentor
roster, and the derived learner-underage flag.
"""

__version__ = "0.1.0"
__all__: list[str] = []
