"""Exception taxonomy for the document-intelligence pipeline.

Only InputError is ever surfaced to callers of DocumentProcessor. Every other
error is absorbed by the model cascade and answered with a deterministic
fallback.
"""

from typing import Optional


class DocIntelError(Exception):
    """Base class for all pipeline errors."""


class InputError(DocIntelError, ValueError):
    """Raised when the supplied document text is empty or unusable."""


class UpstreamError(DocIntelError):
    """Failure reported by (or while reaching) an external inference service.

    Attributes:
        model: Name of the model candidate that was being invoked
        status_code: HTTP status code, when the upstream returned one
        retryable: Whether the conditional retrier may try the same call again
    """

    retryable = False

    def __init__(self, message: str, model: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.model = model
        self.status_code = status_code


class TransientUpstreamError(UpstreamError):
    """Upstream failure that may succeed if the same call is repeated."""

    retryable = True


class ModelLoadingError(TransientUpstreamError):
    """The model is still being loaded by the inference service."""


class RateLimitedError(TransientUpstreamError):
    """The inference service rejected the call with a rate limit."""


class UpstreamTimeoutError(TransientUpstreamError):
    """The call exceeded the hard request timeout."""


class NetworkError(TransientUpstreamError):
    """The inference service could not be reached."""


class PermanentUpstreamError(UpstreamError):
    """Upstream failure that will not go away by retrying this candidate."""


class EndpointGoneError(PermanentUpstreamError):
    """The model endpoint has been deprecated or removed (HTTP 410)."""


class UpstreamClientError(PermanentUpstreamError):
    """Generic client or server error returned for this candidate."""


class CircuitOpenError(DocIntelError):
    """Raised by the circuit breaker when it rejects a call without running it."""


class OutputValidationError(DocIntelError):
    """A model response arrived but failed task-specific validation."""
