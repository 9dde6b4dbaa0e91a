"""
Error taxonomy for the posting engine.

Field- and image-level errors are absorbed where they occur and only change a
per-field or per-image status. Attempt-level errors are reported upstream.
"""
from scraper.base import ExtractionError


class PostingError(Exception):
    """Base class for posting engine errors."""


class FieldNotFound(PostingError):
    """No selector resolved a form field; retried on the next observation pass."""

    def __init__(self, field: str):
        super().__init__(f"Field not found: {field}")
        self.field = field


class UploadError(PostingError):
    """One image could not be fetched or attached."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Image upload failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class FillExhausted(PostingError):
    """Attempt ceiling reached with fields still unresolved."""

    def __init__(self, attempts: int, unresolved):
        self.attempts = attempts
        self.unresolved = list(unresolved)
        super().__init__(
            f"Gave up after {attempts} fill attempts; unresolved fields: "
            f"{', '.join(self.unresolved) or 'none'}"
        )


class VerificationUncertain(PostingError):
    """A success message appeared but the listing index did not confirm it."""


class ContextInvalidated(PostingError):
    """The page or background context was torn down mid-operation."""

    def __init__(self, detail: str = ""):
        msg = "Execution context was invalidated; reload required"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


__all__ = [
    "ExtractionError",
    "PostingError",
    "FieldNotFound",
    "UploadError",
    "FillExhausted",
    "VerificationUncertain",
    "ContextInvalidated",
]
