"""Tests for SubmissionValidator (badgereview.validation.layer).

Covers:
    - URL safety failures are field-scoped and do not trigger a reviewer lookup
    - shape errors from raw mappings are folded into the same error mapping
    - no reviewer → the lookup is never awaited
    - lookup failure → the same exception object propagates
    - lookup success without a shared classification → "reviewer" field error
    - lookup success with a shared classification → valid, extras ignored
    - canned responses must belong to the catalog
    - validation is idempotent and waits for an in-flight lookup

No database is used; the reviewer lookup is a fake injected at construction.
"""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from badgereview.errors import MentorLookupError
from badgereview.models import Submission
from badgereview.validation.layer import (
    REVIEWER_PERMISSION_MESSAGE,
    SubmissionValidator,
    ValidationResult,
)
from badgereview.validation.urls import UNSAFE_URL_MESSAGE


# ---------------------------------------------------------------------------
# Fixtures / helpers
# ---------------------------------------------------------------------------


class _FakeLookup:
    """In-memory reviewer lookup recording every identity it is asked about."""

    def __init__(
        self,
        roster: dict[str, set[str]] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.roster = roster or {}
        self.error = error
        self.calls: list[str] = []

    async def classifications_for(self, identity: str) -> set[str]:
        self.calls.append(identity)
        if self.error is not None:
            raise self.error
        return set(self.roster.get(identity, set()))


def _base_submission(**overrides: Any) -> dict[str, Any]:
    """Build a valid submission mapping in wire form."""
    attrs: dict[str, Any] = {
        "learner": "learner@example.org",
        "criteriaUrl": "http://example.org/criteria",
        "achievement": {
            "name": "Algebra Ace",
            "description": "Solves linear equations.",
            "imageUrl": "http://example.org/badge.png",
        },
        "evidence": [
            {"url": "http://example.org/evidence/0", "reflection": "I did it."},
            {"url": "http://example.org/evidence/1"},
        ],
        "classifications": ["math"],
        "createdAt": "2025-01-01T00:00:00Z",
    }
    attrs.update(overrides)
    return attrs


def _make_validator(
    lookup: Any = None, canned_responses: list[str] | None = None
) -> SubmissionValidator:
    return SubmissionValidator(
        lookup=lookup if lookup is not None else _FakeLookup(),
        canned_responses=canned_responses,
    )


# ---------------------------------------------------------------------------
# Valid submissions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_valid_submission_without_reviewer() -> None:
    validator = _make_validator()
    result = await validator.validate(_base_submission())

    assert isinstance(result, ValidationResult)
    assert result.valid is True
    assert result.errors == {}
    assert result.submission is not None
    assert result.submission.learner == "learner@example.org"


@pytest.mark.asyncio
async def test_model_instance_accepted() -> None:
    validator = _make_validator()
    sub = Submission.model_validate(_base_submission())
    result = await validator.validate(sub)

    assert result.valid is True
    assert result.submission == sub


# ---------------------------------------------------------------------------
# URL safety
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unsafe_evidence_url_rejected() -> None:
    lookup = _FakeLookup(roster={"foo@bar.org": {"math"}})
    validator = _make_validator(lookup)
    attrs = _base_submission(reviewer="foo@bar.org")
    attrs["evidence"][1]["url"] = "javascript:lol()"

    result = await validator.validate(attrs)

    assert result.valid is False
    assert result.errors == {"evidence.1.url": UNSAFE_URL_MESSAGE}
    assert lookup.calls == []


@pytest.mark.asyncio
async def test_unsafe_criteria_url_rejected() -> None:
    validator = _make_validator()
    result = await validator.validate(_base_submission(criteriaUrl="javascript:lol()"))

    assert result.valid is False
    assert result.errors == {"criteriaUrl": UNSAFE_URL_MESSAGE}


@pytest.mark.asyncio
async def test_unsafe_image_url_rejected() -> None:
    validator = _make_validator()
    attrs = _base_submission()
    attrs["achievement"]["imageUrl"] = "javascript:lol()"

    result = await validator.validate(attrs)

    assert result.valid is False
    assert result.errors == {"achievement.imageUrl": UNSAFE_URL_MESSAGE}


@pytest.mark.asyncio
async def test_synchronous_errors_collected_together() -> None:
    validator = _make_validator()
    attrs = _base_submission(
        criteriaUrl="javascript:a()",
        cannedResponses=["Not in the catalog"],
    )
    attrs["evidence"][0]["url"] = "vbscript:b()"

    result = await validator.validate(attrs)

    assert set(result.errors) == {"criteriaUrl", "evidence.0.url", "cannedResponses"}


# ---------------------------------------------------------------------------
# Shape errors
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_missing_field_reported_by_name() -> None:
    lookup = _FakeLookup()
    validator = _make_validator(lookup)
    attrs = _base_submission(reviewer="foo@bar.org")
    del attrs["criteriaUrl"]

    result = await validator.validate(attrs)

    assert result.valid is False
    assert "criteriaUrl" in result.errors
    assert lookup.calls == []


@pytest.mark.asyncio
async def test_nested_shape_error_uses_dotted_path() -> None:
    validator = _make_validator()
    attrs = _base_submission()
    del attrs["evidence"][0]["url"]

    result = await validator.validate(attrs)

    assert "evidence.0.url" in result.errors


@pytest.mark.asyncio
async def test_empty_evidence_rejected() -> None:
    validator = _make_validator()
    result = await validator.validate(_base_submission(evidence=[]))

    assert result.valid is False
    assert "evidence" in result.errors


@pytest.mark.asyncio
async def test_shape_and_url_errors_reported_together() -> None:
    lookup = _FakeLookup(roster={"foo@bar.org": {"math"}})
    validator = _make_validator(lookup)
    attrs = _base_submission(reviewer="foo@bar.org", criteriaUrl="javascript:lol()")
    del attrs["learner"]
    attrs["evidence"][1]["url"] = "javascript:lol()"

    result = await validator.validate(attrs)

    assert result.valid is False
    assert "learner" in result.errors
    assert result.errors["criteriaUrl"] == UNSAFE_URL_MESSAGE
    assert result.errors["evidence.1.url"] == UNSAFE_URL_MESSAGE
    assert lookup.calls == []


@pytest.mark.asyncio
async def test_shape_failure_still_checks_canned_responses() -> None:
    validator = _make_validator()
    attrs = _base_submission(cannedResponses=["Not in the catalog"])
    del attrs["learner"]

    result = await validator.validate(attrs)

    assert set(result.errors) == {"learner", "cannedResponses"}


@pytest.mark.asyncio
async def test_mistyped_url_keeps_shape_message() -> None:
    validator = _make_validator()
    attrs = _base_submission(criteriaUrl=["javascript:lol()"])

    result = await validator.validate(attrs)

    assert result.valid is False
    assert result.errors["criteriaUrl"] != UNSAFE_URL_MESSAGE


# ---------------------------------------------------------------------------
# Reviewer authorization
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_no_reviewer_never_awaits_lookup() -> None:
    lookup = AsyncMock()
    validator = _make_validator(lookup)

    result = await validator.validate(_base_submission())

    assert result.valid is True
    lookup.classifications_for.assert_not_awaited()


@pytest.mark.asyncio
async def test_blank_reviewer_never_awaits_lookup() -> None:
    lookup = _FakeLookup()
    validator = _make_validator(lookup)

    result = await validator.validate(_base_submission(reviewer="   "))

    assert result.valid is True
    assert lookup.calls == []


@pytest.mark.asyncio
async def test_lookup_error_propagates_verbatim() -> None:
    err = RuntimeError("oof")
    validator = _make_validator(_FakeLookup(error=err))

    with pytest.raises(RuntimeError) as exc_info:
        await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert exc_info.value is err
    assert str(exc_info.value) == "oof"


@pytest.mark.asyncio
async def test_infrastructure_error_not_folded_into_errors() -> None:
    err = MentorLookupError("roster unavailable")
    validator = _make_validator(_FakeLookup(error=err))

    with pytest.raises(MentorLookupError) as exc_info:
        await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert exc_info.value is err


@pytest.mark.asyncio
async def test_unknown_reviewer_denied() -> None:
    lookup = _FakeLookup()
    validator = _make_validator(lookup)

    result = await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert result.valid is False
    assert result.errors == {"reviewer": REVIEWER_PERMISSION_MESSAGE}
    assert lookup.calls == ["foo@bar.org"]


@pytest.mark.asyncio
async def test_reviewer_with_no_classifications_denied_like_unknown() -> None:
    validator = _make_validator(_FakeLookup(roster={"foo@bar.org": set()}))

    result = await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert result.errors == {"reviewer": REVIEWER_PERMISSION_MESSAGE}


@pytest.mark.asyncio
async def test_reviewer_with_other_classifications_denied() -> None:
    validator = _make_validator(_FakeLookup(roster={"foo@bar.org": {"art"}}))

    result = await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert result.errors == {"reviewer": REVIEWER_PERMISSION_MESSAGE}


@pytest.mark.asyncio
async def test_classification_match_is_case_sensitive() -> None:
    validator = _make_validator(_FakeLookup(roster={"foo@bar.org": {"Math"}}))

    result = await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert result.errors == {"reviewer": REVIEWER_PERMISSION_MESSAGE}


@pytest.mark.asyncio
async def test_reviewer_with_permission_accepted() -> None:
    lookup = _FakeLookup(roster={"foo@bar.org": {"math"}})
    validator = _make_validator(lookup)

    result = await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert result.valid is True
    assert lookup.calls == ["foo@bar.org"]


@pytest.mark.asyncio
async def test_extra_classifications_do_not_matter() -> None:
    validator = _make_validator(
        _FakeLookup(roster={"foo@bar.org": {"art", "math", "science"}})
    )

    result = await validator.validate(_base_submission(reviewer="foo@bar.org"))

    assert result.valid is True


@pytest.mark.asyncio
async def test_any_shared_classification_suffices() -> None:
    validator = _make_validator(_FakeLookup(roster={"foo@bar.org": {"science"}}))

    result = await validator.validate(
        _base_submission(reviewer="foo@bar.org", classifications=["math", "science"])
    )

    assert result.valid is True


# ---------------------------------------------------------------------------
# Canned responses
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_catalog_canned_responses_accepted() -> None:
    validator = _make_validator()
    result = await validator.validate(
        _base_submission(
            cannedResponses=[
                "This is awesome",
                "This kind of sucks",
                "You didn't satisfy all criteria",
            ]
        )
    )

    assert result.valid is True
    assert result.submission is not None
    assert result.submission.is_learner_underage() is True


@pytest.mark.asyncio
async def test_unknown_canned_response_rejected() -> None:
    validator = _make_validator()
    result = await validator.validate(_base_submission(cannedResponses=["Meh"]))

    assert result.valid is False
    assert "'Meh'" in result.errors["cannedResponses"]


@pytest.mark.asyncio
async def test_custom_catalog() -> None:
    validator = _make_validator(canned_responses=["Meh"])
    result = await validator.validate(_base_submission(cannedResponses=["Meh"]))

    assert result.valid is True


# ---------------------------------------------------------------------------
# Scheduling and idempotence
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_validation_is_idempotent() -> None:
    lookup = _FakeLookup(roster={"foo@bar.org": {"art"}})
    validator = _make_validator(lookup)
    attrs = _base_submission(reviewer="foo@bar.org")

    first = await validator.validate(attrs)
    second = await validator.validate(attrs)

    assert first == second
    assert lookup.calls == ["foo@bar.org", "foo@bar.org"]


@pytest.mark.asyncio
async def test_outcome_waits_for_in_flight_lookup() -> None:
    gate = asyncio.Event()

    class _GatedLookup:
        async def classifications_for(self, identity: str) -> set[str]:
            await gate.wait()
            return {"math"}

    validator = _make_validator(_GatedLookup())
    task = asyncio.create_task(
        validator.validate(_base_submission(reviewer="foo@bar.org"))
    )
    for _ in range(5):
        await asyncio.sleep(0)
    assert not task.done()

    gate.set()
    result = await task
    assert result.valid is True


@pytest.mark.asyncio
async def test_concurrent_validations_are_independent() -> None:
    lookup = _FakeLookup(roster={"good@bar.org": {"math"}})
    validator = _make_validator(lookup)

    good, bad = await asyncio.gather(
        validator.validate(_base_submission(reviewer="good@bar.org")),
        validator.validate(_base_submission(reviewer="bad@bar.org")),
    )

    assert good.valid is True
    assert bad.errors == {"reviewer": REVIEWER_PERMISSION_MESSAGE}
