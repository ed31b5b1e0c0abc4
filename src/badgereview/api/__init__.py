"""HTTP API subpackage for badge-review.

Exposes the FastAPI endpoints used to submit evidence packages and to
administer the mentor roster.
"""

__all__: list[str] = []
