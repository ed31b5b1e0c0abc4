"""Store subpackage for badge-review.

SQLite persistence for submissions (validate-then-write) and the mentor
roster consulted during reviewer authorization.
"""

from badgereview.store.connection import open_connection
from badgereview.store.mentors import MentorStore
from badgereview.store.submissions import StoredSubmission, SubmissionStore

__all__: list[str] = [
    "MentorStore",
    "StoredSubmission",
    "SubmissionStore",
    "open_connection",
]
