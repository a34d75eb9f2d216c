"""Image generation backends.

The orchestrator treats image generation as an opaque remote call: a prompt
goes in, an image URL or a failure comes out.  This module defines that
contract in :class:`ImageGenerator` and ships two backends:

- :class:`PlaceholderImageGenerator` returns a unique placeholder URL without
  any network access.  It is the default backend and is used in tests.
- :class:`HttpImageGenerator` POSTs the prompt to a remote generation
  service with ``httpx`` and reads the image URL from the JSON response.

Contract
--------
``generate(expanded_prompt)`` validates the prompt first (``ValidationError``
for a non-string, blank or over-long prompt).  It then makes exactly one
backend call; any exception raised by that call is re-raised as
``GenerationError`` with the original exception chained.  Retrying is left
to the caller.

Usage
-----
::

    from promptforge.core.config import PromptforgeConfig
    from promptforge.core.image_generator import create_image_generator

    generator = create_image_generator(PromptforgeConfig())
    url = generator.generate("a detailed image of a cat, natural lighting")
"""

from __future__ import annotations

import logging
import time
import uuid
from abc import ABC, abstractmethod

import httpx

from promptforge.core.config import PromptforgeConfig
from promptforge.core.errors import GenerationError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PROMPT_LENGTH = 2000


class ImageGenerator(ABC):
    """Base class for image generation backends.

    Subclasses implement :meth:`_invoke`; callers use :meth:`generate`,
    which adds validation and failure normalisation around it.

    Attributes
    ----------
    name : str
        Short backend identifier used in log messages
    max_prompt_length : int
        Longest accepted prompt, in characters
    """

    name: str = "base"

    def __init__(self, max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH):
        self.max_prompt_length = max_prompt_length

    def validate(self, expanded_prompt: object) -> str:
        """Validate a prompt before it is sent to the backend.

        Raises:
            ValidationError: If the prompt is not a string, is blank, or is too long
        """
        if not isinstance(expanded_prompt, str):
            raise ValidationError("Invalid expanded prompt: expected a string")
        if not expanded_prompt.strip():
            raise ValidationError("Expanded prompt cannot be empty")
        if len(expanded_prompt) > self.max_prompt_length:
            raise ValidationError(
                f"Expanded prompt is too long ({len(expanded_prompt)} characters). "
                f"Maximum is {self.max_prompt_length} characters."
            )
        return expanded_prompt

    def generate(self, expanded_prompt: object) -> str:
        """Generate an image for *expanded_prompt* and return its URL.

        Args:
            expanded_prompt: The prompt produced by the expander

        Returns:
            URL uniquely identifying the generated image

        Raises:
            ValidationError: If the prompt fails validation
            GenerationError: If the backend call fails for any reason
        """
        prompt = self.validate(expanded_prompt)

        try:
            image_url = self._invoke(prompt)
        except GenerationError:
            raise
        except Exception as e:
            logger.warning(f"{self.name} image generation failed: {e}")
            raise GenerationError(f"Image generation failed: {e}") from e

        logger.info(f"{self.name} generated image {image_url}")
        return image_url

    @abstractmethod
    def _invoke(self, prompt: str) -> str:
        """Make the single backend call and return the image URL."""
        pass


class PlaceholderImageGenerator(ImageGenerator):
    """Backend that fabricates a unique placeholder URL.

    URLs look like ``{base_url}/{epoch_ms}-{suffix}.jpg`` where ``suffix``
    is eight random lowercase hex characters.
    """

    name = "placeholder"

    def __init__(
        self,
        base_url: str = "https://ai-generated-images.example.com",
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ):
        super().__init__(max_prompt_length)
        self.base_url = base_url.rstrip("/")

    def _invoke(self, prompt: str) -> str:
        timestamp_ms = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:8]
        return f"{self.base_url}/{timestamp_ms}-{suffix}.jpg"


class HttpImageGenerator(ImageGenerator):
    """Backend that calls a remote image generation service over HTTP.

    The request body is ``{"prompt": ...}``.  A 2xx JSON response carrying
    ``image_url`` (or ``url``) is a success; anything else is a failure.

    Args:
        api_url: Endpoint to POST to
        api_key: Optional bearer token
        timeout: Client timeout in seconds
        client: Pre-built ``httpx.Client`` (tests inject a mock transport)
        max_prompt_length: Longest accepted prompt
    """

    name = "http"

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ):
        super().__init__(max_prompt_length)
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _invoke(self, prompt: str) -> str:
        if self._client is not None:
            response = self._client.post(self.api_url, json={"prompt": prompt}, headers=self._headers())
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.api_url, json={"prompt": prompt}, headers=self._headers())

        response.raise_for_status()
        data = response.json()

        image_url = None
        if isinstance(data, dict):
            image_url = data.get("image_url") or data.get("url")
        if not image_url:
            raise GenerationError("Image generation service returned no image URL")
        return image_url


def create_image_generator(config: PromptforgeConfig) -> ImageGenerator:
    """Build the image generator selected by ``config.image_backend``.

    Raises:
        ValueError: If the http backend is selected without an API URL
    """
    if config.image_backend == "http":
        if not config.image_api_url:
            raise ValueError("PROMPTFORGE_IMAGE_API_URL is required for the http image backend")
        return HttpImageGenerator(
            api_url=config.image_api_url,
            api_key=config.image_api_key,
            timeout=config.image_api_timeout,
            max_prompt_length=config.max_prompt_length,
        )

    return PlaceholderImageGenerator(
        base_url=config.image_base_url,
        max_prompt_length=config.max_prompt_length,
    )
