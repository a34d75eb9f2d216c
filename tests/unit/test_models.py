"""Tests for promptforge.core.models: request records and status updates.

Tests cover:
- Lifecycle invariants reported by GenerationRequest.check_invariants().
- StatusUpdate constructors and the UNSET sentinel.
- Forward-only transition checks in validate_status_update().
- Step result values.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from promptforge.core.errors import GenerationError, ValidationError
from promptforge.core.models import (
    UNSET,
    GenerationRequest,
    RequestStatus,
    StatusUpdate,
    StepFailure,
    StepSuccess,
    validate_status_update,
)

CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
DONE = CREATED + timedelta(seconds=3)


def make_record(**overrides) -> GenerationRequest:
    values = dict(
        id=1,
        user_idea="a cat",
        expanded_prompt="",
        image_url=None,
        status=RequestStatus.PENDING,
        created_at=CREATED,
        completed_at=None,
    )
    values.update(overrides)
    return GenerationRequest(**values)


class TestRequestStatus:
    """Test RequestStatus helpers."""

    def test_values(self):
        assert [s.value for s in RequestStatus] == ["pending", "processing", "completed", "failed"]

    def test_terminal_states(self):
        assert RequestStatus.COMPLETED.is_terminal
        assert RequestStatus.FAILED.is_terminal
        assert not RequestStatus.PENDING.is_terminal
        assert not RequestStatus.PROCESSING.is_terminal

    def test_status_compares_equal_to_string(self):
        """str-based enum so JSON payloads and DB values compare directly."""
        assert RequestStatus.PENDING == "pending"


class TestCheckInvariants:
    """Test GenerationRequest.check_invariants()."""

    def test_pending_record_is_consistent(self):
        assert make_record().check_invariants() == []

    def test_completed_record_is_consistent(self):
        record = make_record(
            status=RequestStatus.COMPLETED,
            expanded_prompt="prompt",
            image_url="https://img/1.jpg",
            completed_at=DONE,
        )
        assert record.check_invariants() == []

    def test_completed_without_image_url(self):
        record = make_record(
            status=RequestStatus.COMPLETED, expanded_prompt="prompt", completed_at=DONE
        )
        assert "completed requests must have an image_url" in record.check_invariants()

    def test_failed_with_image_url(self):
        record = make_record(
            status=RequestStatus.FAILED, image_url="https://img/1.jpg", completed_at=DONE
        )
        assert "failed requests cannot have an image_url" in record.check_invariants()

    def test_failed_without_prompt_is_consistent(self):
        """A request that failed during expansion has no prompt."""
        record = make_record(status=RequestStatus.FAILED, completed_at=DONE)
        assert record.check_invariants() == []

    def test_processing_requires_prompt(self):
        record = make_record(status=RequestStatus.PROCESSING)
        assert "processing requests must have an expanded_prompt" in record.check_invariants()

    def test_non_terminal_cannot_have_completed_at(self):
        record = make_record(completed_at=DONE)
        assert "pending requests cannot have a completed_at" in record.check_invariants()

    def test_to_dict_uses_iso_timestamps(self):
        data = make_record().to_dict()
        assert data["status"] == "pending"
        assert data["created_at"] == "2024-05-01T12:00:00+00:00"
        assert data["completed_at"] is None


class TestStatusUpdate:
    """Test StatusUpdate constructors and field selection."""

    def test_bare_update_writes_only_status(self):
        assert StatusUpdate(RequestStatus.PROCESSING).fields() == {
            "status": RequestStatus.PROCESSING
        }

    def test_unset_differs_from_none(self):
        update = StatusUpdate(RequestStatus.FAILED, image_url=None)
        assert update.expanded_prompt is UNSET
        assert update.fields() == {"status": RequestStatus.FAILED, "image_url": None}

    def test_processing_constructor(self):
        update = StatusUpdate.processing("a prompt")
        assert update.fields() == {
            "status": RequestStatus.PROCESSING,
            "expanded_prompt": "a prompt",
        }

    def test_completed_constructor(self):
        update = StatusUpdate.completed("https://img/1.jpg", DONE)
        assert update.fields() == {
            "status": RequestStatus.COMPLETED,
            "image_url": "https://img/1.jpg",
            "completed_at": DONE,
        }

    def test_failed_constructor_clears_image_url(self):
        update = StatusUpdate.failed(DONE)
        assert update.fields()["image_url"] is None
        assert update.fields()["completed_at"] == DONE

    def test_constructors_default_completed_at_to_now(self):
        assert StatusUpdate.failed().completed_at is not None

    def test_apply_to_leaves_unset_fields(self):
        record = make_record(expanded_prompt="kept")
        updated = StatusUpdate(RequestStatus.PROCESSING).apply_to(record)
        assert updated.status is RequestStatus.PROCESSING
        assert updated.expanded_prompt == "kept"
        assert record.status is RequestStatus.PENDING


class TestValidateStatusUpdate:
    """Test validate_status_update()."""

    def test_pending_to_processing(self):
        updated = validate_status_update(make_record(), StatusUpdate.processing("prompt"))
        assert updated.status is RequestStatus.PROCESSING

    def test_pending_to_failed(self):
        updated = validate_status_update(make_record(), StatusUpdate.failed(DONE))
        assert updated.status is RequestStatus.FAILED

    def test_processing_to_completed(self):
        current = make_record(status=RequestStatus.PROCESSING, expanded_prompt="prompt")
        updated = validate_status_update(current, StatusUpdate.completed("https://img/1.jpg", DONE))
        assert updated.image_url == "https://img/1.jpg"

    def test_same_status_is_allowed(self):
        current = make_record(status=RequestStatus.PROCESSING, expanded_prompt="prompt")
        validate_status_update(current, StatusUpdate.processing("new prompt"))

    def test_backwards_move_rejected(self):
        current = make_record(status=RequestStatus.PROCESSING, expanded_prompt="prompt")
        with pytest.raises(ValidationError, match="cannot move back"):
            validate_status_update(current, StatusUpdate(RequestStatus.PENDING))

    def test_leaving_terminal_state_rejected(self):
        current = make_record(status=RequestStatus.FAILED, completed_at=DONE)
        with pytest.raises(ValidationError, match="already failed"):
            validate_status_update(current, StatusUpdate.completed("https://img/1.jpg", DONE))

    def test_completed_without_image_rejected(self):
        current = make_record(status=RequestStatus.PROCESSING, expanded_prompt="prompt")
        with pytest.raises(ValidationError, match="Inconsistent status update"):
            validate_status_update(current, StatusUpdate(RequestStatus.COMPLETED))

    def test_processing_without_prompt_rejected(self):
        with pytest.raises(ValidationError, match="expanded_prompt"):
            validate_status_update(make_record(), StatusUpdate(RequestStatus.PROCESSING))


class TestStepResults:
    """Test StepSuccess and StepFailure."""

    def test_success(self):
        result = StepSuccess("value")
        assert result.ok
        assert result.value == "value"

    def test_failure(self):
        result = StepFailure("generate", GenerationError("backend down"))
        assert not result.ok
        assert result.step == "generate"
        assert result.message == "backend down"
