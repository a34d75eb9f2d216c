"""Pydantic request and response models for the Promptforge API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Models
------
IdeaRequest
    Payload for ``POST /api/requests``, ``POST /api/requests/process`` and
    ``POST /api/prompt/expand``.
GenerateImageRequest
    Payload for ``POST /api/images/generate``.
StatusUpdateRequest
    Payload for ``PATCH /api/requests/{id}/status`` (manual override).
GenerationRequestResponse
    Wire shape of a generation request record.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from promptforge.core.models import GenerationRequest, RequestStatus, StatusUpdate


class IdeaRequest(BaseModel):
    """Request body carrying a user idea.

    The upper length bound is ``PromptforgeConfig.max_idea_length`` and is
    enforced by the core, which answers 400 when it is exceeded.

    Attributes:
        user_idea: Short description of the desired image.
    """

    user_idea: str = Field(
        ...,
        min_length=1,
        description="Short description of the desired image.",
    )


class GenerateImageRequest(BaseModel):
    """Request body for the ``POST /api/images/generate`` endpoint.

    Attributes:
        expanded_prompt: Prompt to send to the image generator.
    """

    expanded_prompt: str = Field(
        ...,
        min_length=1,
        description="Prompt to send to the image generator.",
    )


class StatusUpdateRequest(BaseModel):
    """Request body for the ``PATCH /api/requests/{id}/status`` endpoint.

    ``status`` is required.  The other fields are written only when they
    appear in the JSON body; ``image_url`` and ``completed_at`` may be sent
    as ``null`` to clear them.  ``expanded_prompt`` is never null in storage,
    so an explicit ``null`` for it is rejected.

    Attributes:
        status: Target lifecycle status.
        expanded_prompt: New expanded prompt, if supplied.
        image_url: New image URL or null, if supplied.
        completed_at: New completion timestamp or null, if supplied.
    """

    status: RequestStatus = Field(..., description="Target lifecycle status.")
    expanded_prompt: str | None = Field(
        default=None,
        description="Expanded prompt to store (omit to leave unchanged).",
    )
    image_url: str | None = Field(
        default=None,
        description="Image URL to store, or null to clear (omit to leave unchanged).",
    )
    completed_at: datetime | None = Field(
        default=None,
        description="Completion timestamp, or null to clear (omit to leave unchanged).",
    )

    @field_validator("expanded_prompt")
    @classmethod
    def _expanded_prompt_not_null(cls, value: str | None) -> str | None:
        # Only runs for values present in the body; the default is not validated
        if value is None:
            raise ValueError("expanded_prompt cannot be null; omit it to leave it unchanged")
        return value

    def to_status_update(self) -> StatusUpdate:
        """Build the core update from the fields present in the request body."""
        supplied = {
            name: getattr(self, name)
            for name in ("expanded_prompt", "image_url", "completed_at")
            if name in self.model_fields_set
        }
        return StatusUpdate(status=self.status, **supplied)


class GenerationRequestResponse(BaseModel):
    """Wire shape of a generation request."""

    id: int
    user_idea: str
    expanded_prompt: str
    image_url: str | None
    status: RequestStatus
    created_at: datetime
    completed_at: datetime | None

    @classmethod
    def from_record(cls, record: GenerationRequest) -> GenerationRequestResponse:
        return cls(**record.to_dict())
