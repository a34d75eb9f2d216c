"""Data models for generation requests and their lifecycle.

GenerationRequest is the only persisted entity.  Its status moves forward
through ``pending -> processing -> completed | failed`` and the field
combinations allowed at each status are checked by ``check_invariants()``.

StatusUpdate is the typed partial update used by the manual status override.
Each optional field defaults to the ``UNSET`` sentinel so that "leave alone"
and "set to None" stay distinguishable.

StepSuccess / StepFailure are the values the orchestrator sequences on; a
pipeline step returns one of them instead of raising.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Union

from promptforge.core.errors import PromptforgeError, ValidationError


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class RequestStatus(str, Enum):
    """Lifecycle status of a generation request."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.COMPLETED, RequestStatus.FAILED)

    @property
    def rank(self) -> int:
        """Position in the lifecycle; both terminal states share the last rank."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    RequestStatus.PENDING: 0,
    RequestStatus.PROCESSING: 1,
    RequestStatus.COMPLETED: 2,
    RequestStatus.FAILED: 2,
}


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET


@dataclass(frozen=True)
class GenerationRequest:
    """One user idea's end-to-end lifecycle record.

    Instances are immutable snapshots of what the store holds; every change
    goes through the store and produces a new snapshot.
    """

    id: int
    user_idea: str
    expanded_prompt: str
    image_url: str | None
    status: RequestStatus
    created_at: datetime
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def check_invariants(self) -> list[str]:
        """Return a description of every lifecycle invariant this record breaks.

        Returns:
            Human-readable violations; empty when the record is consistent
        """
        problems: list[str] = []

        if self.status is RequestStatus.COMPLETED:
            if self.image_url is None:
                problems.append("completed requests must have an image_url")
            if self.completed_at is None:
                problems.append("completed requests must have a completed_at")
        elif self.status is RequestStatus.FAILED:
            if self.image_url is not None:
                problems.append("failed requests cannot have an image_url")
            if self.completed_at is None:
                problems.append("failed requests must have a completed_at")
        elif self.completed_at is not None:
            problems.append(f"{self.status.value} requests cannot have a completed_at")

        # A request that failed during expansion never got a prompt
        needs_prompt = self.status in (RequestStatus.PROCESSING, RequestStatus.COMPLETED)
        if needs_prompt and not self.expanded_prompt:
            problems.append(f"{self.status.value} requests must have an expanded_prompt")

        return problems

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON wire shape (ISO-8601 timestamps)."""
        return {
            "id": self.id,
            "user_idea": self.user_idea,
            "expanded_prompt": self.expanded_prompt,
            "image_url": self.image_url,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass(frozen=True)
class StatusUpdate:
    """Explicit partial update for the manual status override.

    ``status`` is always written.  The other fields are written only when
    they are not ``UNSET``; ``image_url`` and ``completed_at`` may be set to
    ``None`` explicitly.

    The classmethod constructors build the field combination each status
    requires, e.g. ``StatusUpdate.completed("https://...")``.
    """

    status: RequestStatus
    expanded_prompt: str | _Unset = UNSET
    image_url: str | None | _Unset = UNSET
    completed_at: datetime | None | _Unset = UNSET

    @classmethod
    def processing(cls, expanded_prompt: str) -> StatusUpdate:
        return cls(RequestStatus.PROCESSING, expanded_prompt=expanded_prompt)

    @classmethod
    def completed(cls, image_url: str, completed_at: datetime | None = None) -> StatusUpdate:
        return cls(
            RequestStatus.COMPLETED,
            image_url=image_url,
            completed_at=completed_at or utc_now(),
        )

    @classmethod
    def failed(cls, completed_at: datetime | None = None) -> StatusUpdate:
        return cls(
            RequestStatus.FAILED,
            image_url=None,
            completed_at=completed_at or utc_now(),
        )

    def fields(self) -> dict[str, Any]:
        """Return the columns this update writes, keyed by field name."""
        values: dict[str, Any] = {"status": RequestStatus(self.status)}
        for name in ("expanded_prompt", "image_url", "completed_at"):
            value = getattr(self, name)
            if value is not UNSET:
                values[name] = value
        return values

    def apply_to(self, record: GenerationRequest) -> GenerationRequest:
        """Return *record* as it would look after this update."""
        return dataclasses.replace(record, **self.fields())


def validate_status_update(current: GenerationRequest, update: StatusUpdate) -> GenerationRequest:
    """Check that *update* is a legal change to *current*.

    The rules are: a terminal record does not change status, the status
    never moves backwards, and the resulting record satisfies every
    invariant reported by ``GenerationRequest.check_invariants()``.

    Args:
        current: The record as currently persisted
        update: The requested partial update

    Returns:
        The record as it will look once the update is written

    Raises:
        ValidationError: If the update would produce an inconsistent record
    """
    target = RequestStatus(update.status)

    if current.is_terminal and target is not current.status:
        raise ValidationError(
            f"Request {current.id} is already {current.status.value}; "
            f"cannot move it to {target.value}"
        )
    if target.rank < current.status.rank:
        raise ValidationError(
            f"Request {current.id} cannot move back from {current.status.value} to {target.value}"
        )

    updated = update.apply_to(current)
    problems = updated.check_invariants()
    if problems:
        raise ValidationError("Inconsistent status update: " + "; ".join(problems))
    return updated


@dataclass(frozen=True)
class StepSuccess:
    """A pipeline step that produced its output."""

    value: str
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class StepFailure:
    """A pipeline step that failed with an expected error."""

    step: str
    error: PromptforgeError
    ok: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return str(self.error)


StepResult = Union[StepSuccess, StepFailure]
