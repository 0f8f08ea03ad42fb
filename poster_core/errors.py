from typing import Optional


class PosterFlowError(Exception):
    """Base class for pipeline errors surfaced to callers."""


class ConfigurationError(PosterFlowError):
    """Required configuration (the generation credential) is missing."""


class ValidationError(PosterFlowError):
    """A required input field is missing."""


class ResolutionFailure(PosterFlowError):
    """Metadata lookup failed. Always absorbed by the resolver."""


class UpstreamError(PosterFlowError):
    """The generation endpoint failed or returned no content."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(PosterFlowError):
    """No usable structured data could be extracted from model output."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class TruncationWarning(UserWarning):
    """Model output hit the generation length cap."""
