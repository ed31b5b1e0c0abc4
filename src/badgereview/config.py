"""Application configuration for badge-review.

Settings come from the environment (or a local ``.env``) through
:class:`AppConfig`.  The canned-response catalog default lives here too, so
the validator and the HTTP layer share one list.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

#: Predefined reviewer remarks a submission may pre-select.
DEFAULT_CANNED_RESPONSES: tuple[str, ...] = (
    "This is awesome",
    "This kind of sucks",
    "You didn't satisfy all criteria",
    "Great work, keep it up",
    "Please add more evidence",
)

#: Level names accepted for ``LOG_LEVEL``.
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppConfig(BaseSettings):
    """Application-wide configuration loaded from environment variables.

    Attributes:
        database_path: Path to the SQLite database holding submissions and mentors.
        log_level: One of :data:`LOG_LEVELS`, case-insensitive.
        lookup_timeout_seconds: Upper bound on a single reviewer lookup made
            from the HTTP layer.
        canned_responses: Catalog of allowed canned-response strings.
    """

    database_path: Path = Path("data/badgereview.db")
    log_level: str = "INFO"
    lookup_timeout_seconds: float = 5.0
    canned_responses: list[str] = list(DEFAULT_CANNED_RESPONSES)

    model_config = {"env_prefix": "", "case_sensitive": False}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise ``LOG_LEVEL`` to the upper-case name ``configure_logging`` expects."""
        name = v.strip().upper()
        if name not in LOG_LEVELS:
            raise ValueError(
                f"unknown LOG_LEVEL {v!r}; expected one of {', '.join(LOG_LEVELS)}"
            )
        return name

    @field_validator("lookup_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError(f"lookup_timeout_seconds must be > 0; got {v!r}")
        return v


def get_config() -> AppConfig:
    """Build the service settings from the process environment and ``./.env``.

    Variables set in the environment take precedence over ``.env``.  See
    :class:`AppConfig` for the recognised names and their defaults;
    ``CANNED_RESPONSES`` is given as a JSON array.
    """
    return AppConfig(
        _env_file=".env",
        _env_file_encoding="utf-8",
    )
