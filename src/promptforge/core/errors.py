"""Exception types raised by the Promptforge core.

The messages carried by these exceptions are intended to be shown to the
caller directly (the API layer returns them as the ``detail`` field).
"""


class PromptforgeError(Exception):
    """Base exception for all Promptforge errors."""

    pass


class ValidationError(PromptforgeError):
    """Malformed input to the expander or generator, or an inconsistent update."""

    pass


class GenerationError(PromptforgeError):
    """The remote image generation call failed, whatever the cause."""

    pass


class NotFoundError(PromptforgeError):
    """An operation referenced a request id that does not exist."""

    def __init__(self, request_id: int):
        super().__init__(f"Image generation request with id {request_id} not found")
        self.request_id = request_id


class StorageError(PromptforgeError):
    """The underlying request store failed."""

    pass


class ConflictError(StorageError):
    """A conditional update found the record in a different status than expected."""

    def __init__(self, request_id: int, expected: str, actual: str):
        super().__init__(
            f"Request {request_id} is '{actual}', expected '{expected}'; update skipped"
        )
        self.request_id = request_id
        self.expected = expected
        self.actual = actual
