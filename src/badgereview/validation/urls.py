"""URL safety filter for user-supplied links.

:func:`is_safe` is a pure predicate: it never raises and never touches the
network.  A URL is unsafe when its scheme is on :data:`UNSAFE_SCHEMES`.
Schemeless (relative) URLs and ordinary ``http``/``https`` URLs pass.

Browsers ignore tab, CR and LF anywhere in a URL and skip leading control
characters and spaces, so ``" \\tjava\\nscript:alert(1)"`` still executes
script.  The filter normalises those away before reading the scheme, and
also tolerates whitespace between the scheme and the ``:`` separator.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from badgereview.models import Submission

#: Schemes that can execute script when the URL is followed or rendered.
UNSAFE_SCHEMES: frozenset[str] = frozenset({"javascript", "vbscript"})

#: Message used for every unsafe-URL field error.
UNSAFE_URL_MESSAGE: str = "url uses a disallowed scheme"

_IGNORED_CHARS = re.compile(r"[\t\n\r]")
_LEADING_JUNK = re.compile(r"^[\x00-\x20]+")
_SCHEME = re.compile(r"^([a-z][a-z0-9+.\-]*)\s*:", re.IGNORECASE)


def is_safe(url: str) -> bool:
    """Return ``False`` if *url* uses a disallowed scheme, ``True`` otherwise.

    Parameters
    ----------
    url:
        Any string, including malformed or relative URLs.

    Returns
    -------
    bool
        Whether the URL may be stored and later rendered as a link.
    """
    scheme = _scheme_of(url)
    return scheme is None or scheme not in UNSAFE_SCHEMES


def unsafe_url_fields(submission: Submission) -> dict[str, str]:
    """Return a field-error mapping for every unsafe URL on *submission*.

    Fields checked: ``achievement.imageUrl``, ``criteriaUrl`` and
    ``evidence.<i>.url`` for each evidence item.  Safe fields are absent
    from the result, so an empty dict means every URL passed.
    """
    candidates: list[tuple[str, str]] = [
        ("achievement.imageUrl", submission.achievement.image_url),
        ("criteriaUrl", submission.criteria_url),
    ]
    candidates.extend(
        (f"evidence.{i}.url", item.url)
        for i, item in enumerate(submission.evidence)
    )
    return {
        field: UNSAFE_URL_MESSAGE
        for field, url in candidates
        if not is_safe(url)
    }


def unsafe_raw_url_fields(data: Mapping[str, Any]) -> dict[str, str]:
    """Like :func:`unsafe_url_fields`, for a mapping that failed to parse.

    Only string values are checked; missing or mistyped fields are left to
    the shape errors.  Both wire (camelCase) and attribute (snake_case) keys
    are accepted.
    """
    candidates: list[tuple[str, Any]] = [
        ("criteriaUrl", _get(data, "criteriaUrl", "criteria_url")),
    ]
    achievement = data.get("achievement")
    if isinstance(achievement, Mapping):
        candidates.append(
            ("achievement.imageUrl", _get(achievement, "imageUrl", "image_url"))
        )
    evidence = data.get("evidence")
    if isinstance(evidence, list):
        candidates.extend(
            (f"evidence.{i}.url", item.get("url"))
            for i, item in enumerate(evidence)
            if isinstance(item, Mapping)
        )
    return {
        field: UNSAFE_URL_MESSAGE
        for field, url in candidates
        if isinstance(url, str) and not is_safe(url)
    }


def _get(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _scheme_of(url: str) -> str | None:
    """Return the lower-cased scheme of *url* after normalisation, or ``None``."""
    cleaned = _LEADING_JUNK.sub("", _IGNORED_CHARS.sub("", url))
    match = _SCHEME.match(cleaned)
    if match is None:
        return None
    return match.group(1).lower()
