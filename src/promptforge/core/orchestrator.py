"""Request orchestration: the generation request state machine.

:class:`RequestOrchestrator` drives one user idea through its lifecycle::

    pending --expand ok--> processing --generate ok--> completed
       |                        |
       +--expand failed--> failed <--generate failed--+

Every transition is persisted through the :class:`RequestStore` before the
next step starts, so a client polling by id always sees where the request
is.  Once the initial ``pending`` record exists, ``process()`` always returns
a record in a terminal state: the expansion and generation steps return
:class:`StepSuccess` / :class:`StepFailure` values rather than raising, and a
failure is written as ``failed`` with ``completed_at`` set.  Only store
faults (:class:`StorageError`) propagate.

Transitions are written with the status the orchestrator expects the record
to be in.  If a manual ``set_status()`` moved the record first, the store
raises :class:`ConflictError` and ``process()`` returns the record as the
override left it.

Usage
-----
::

    from promptforge.core.config import PromptforgeConfig
    from promptforge.core.orchestrator import build_orchestrator

    orchestrator = build_orchestrator(PromptforgeConfig())
    record = orchestrator.process("a cat on a windowsill")
    print(record.status, record.image_url)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from promptforge.core.config import PromptforgeConfig
from promptforge.core.errors import (
    ConflictError,
    GenerationError,
    NotFoundError,
    ValidationError,
)
from promptforge.core.image_generator import ImageGenerator, create_image_generator
from promptforge.core.models import (
    GenerationRequest,
    StatusUpdate,
    StepFailure,
    StepResult,
    StepSuccess,
    utc_now,
    validate_status_update,
)
from promptforge.core.prompt_expander import PromptExpander
from promptforge.core.request_store import RequestStore, SQLiteRequestStore

logger = logging.getLogger(__name__)


class RequestOrchestrator:
    """Drive generation requests from idea to terminal record.

    Args:
        store: Where request records live
        expander: Turns user ideas into prompts
        generator: Turns prompts into image URLs
        clock: Source of ``completed_at`` timestamps
    """

    def __init__(
        self,
        store: RequestStore,
        expander: PromptExpander,
        generator: ImageGenerator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.expander = expander
        self.generator = generator
        self.clock = clock

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _expand_step(self, user_idea: str) -> StepResult:
        try:
            return StepSuccess(self.expander.expand(user_idea))
        except ValidationError as e:
            return StepFailure("expand", e)

    def _generate_step(self, expanded_prompt: str) -> StepResult:
        try:
            return StepSuccess(self.generator.generate(expanded_prompt))
        except (ValidationError, GenerationError) as e:
            return StepFailure("generate", e)
        except Exception as e:
            # Generators that bypass ImageGenerator.generate still fail the record
            error = GenerationError(f"Image generation failed: {e}")
            error.__cause__ = e
            return StepFailure("generate", error)

    def _transition(
        self,
        record: GenerationRequest,
        update: StatusUpdate,
    ) -> GenerationRequest:
        """Persist *update* on *record*, provided nobody else moved it first."""
        return self.store.update(record.id, update.fields(), expected_status=record.status)

    def _fail(self, record: GenerationRequest, failure: StepFailure) -> GenerationRequest:
        logger.warning(f"Request {record.id} failed at {failure.step}: {failure.message}")
        return self._transition(record, StatusUpdate.failed(self.clock()))

    def _check_idea_length(self, user_idea: object) -> None:
        """Reject ideas that may not be stored at all.

        Only the raw type and length are checked here. A whitespace-only idea
        is stored and then fails at expansion.
        """
        if not isinstance(user_idea, str) or not user_idea:
            raise ValidationError("User idea must be a non-empty string")
        if len(user_idea) > self.expander.max_idea_length:
            raise ValidationError(
                f"User idea is too long ({len(user_idea)} characters). "
                f"Maximum is {self.expander.max_idea_length} characters."
            )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def create(self, user_idea: str) -> GenerationRequest:
        """Persist a new ``pending`` request without processing it.

        Raises:
            ValidationError: If the idea is not 1 to ``max_idea_length`` characters
            StorageError: If the record cannot be written
        """
        idea = self.expander.validate(user_idea)
        return self.store.create(idea)

    def process(self, user_idea: str) -> GenerationRequest:
        """Create a request for *user_idea* and run it to a terminal state.

        Args:
            user_idea: The user's short description

        Returns:
            The persisted record, ``completed`` or ``failed``

        Raises:
            ValidationError: If *user_idea* is not a string of 1 to
                ``max_idea_length`` characters (no record is created)
            StorageError: If the store fails; raised before any record
                exists if the initial insert fails
        """
        self._check_idea_length(user_idea)

        record = self.store.create(user_idea)
        logger.info(f"Processing request {record.id}")

        try:
            return self._run(record)
        except ConflictError as e:
            logger.warning(f"Stopped processing request {record.id}: {e}")
            return self.store.get_by_id(record.id)

    def _run(self, record: GenerationRequest) -> GenerationRequest:
        expanded = self._expand_step(record.user_idea)
        if not expanded.ok:
            return self._fail(record, expanded)

        record = self._transition(record, StatusUpdate.processing(expanded.value))

        generated = self._generate_step(record.expanded_prompt)
        if not generated.ok:
            return self._fail(record, generated)

        record = self._transition(record, StatusUpdate.completed(generated.value, self.clock()))
        logger.info(f"Request {record.id} completed: {record.image_url}")
        return record

    def list_all(self) -> list[GenerationRequest]:
        """Return every request, newest first."""
        return self.store.list_all()

    def get_by_id(self, request_id: int) -> GenerationRequest | None:
        """Return the request with *request_id*, or None if it does not exist."""
        return self.store.get_by_id(request_id)

    def set_status(self, request_id: int, update: StatusUpdate) -> GenerationRequest:
        """Apply a manual status override.

        Only the fields carried by *update* are written.  The resulting
        record must be a legal forward move that satisfies every lifecycle
        invariant.

        Raises:
            NotFoundError: If no request has *request_id*
            ValidationError: If the update would leave the record inconsistent
            ConflictError: If the record changed status while being updated
        """
        current = self.store.get_by_id(request_id)
        if current is None:
            raise NotFoundError(request_id)

        validate_status_update(current, update)
        record = self.store.update(request_id, update.fields(), expected_status=current.status)
        logger.info(f"Request {request_id} manually set to {record.status.value}")
        return record

    def expand(self, user_idea: str) -> str:
        """Expand *user_idea* without creating a request."""
        return self.expander.expand(user_idea)

    def generate(self, expanded_prompt: str) -> str:
        """Generate an image for *expanded_prompt* without creating a request."""
        return self.generator.generate(expanded_prompt)


def build_orchestrator(config: PromptforgeConfig) -> RequestOrchestrator:
    """Wire an orchestrator from *config*: SQLite store, expander and generator."""
    return RequestOrchestrator(
        store=SQLiteRequestStore(config.database_path),
        expander=PromptExpander(max_idea_length=config.max_idea_length),
        generator=create_image_generator(config),
    )
