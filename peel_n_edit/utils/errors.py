"""Custom exception classes for the edit assistant."""

from typing import Optional


class PeelNEditError(Exception):
    """Base exception for all assistant errors."""
    pass


class ConfigurationError(PeelNEditError):
    """Configuration or initialization errors."""
    pass


class APIError(PeelNEditError):
    """Base class for API-related errors."""
    pass


class ProviderError(APIError):
    """Generic provider API error with status code."""

    def __init__(self, provider: str, message: str, status_code: int = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class AuthenticationError(ProviderError):
    """API authentication failed."""

    def __init__(self, provider: str, status_code: int = 401):
        super().__init__(provider, "Authentication failed", status_code)


class RateLimitError(ProviderError):
    """API rate limit exceeded."""

    def __init__(self, provider: str, retry_after: int = None):
        self.retry_after = retry_after
        message = f"Rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after}s"
        super().__init__(provider, message, 429)


class ValidationError(PeelNEditError):
    """User input rejected before any backend call."""
    pass


class SessionNotFoundError(PeelNEditError):
    """No editing session with the given id."""
    pass


class SuggestionError(PeelNEditError):
    """Suggestion text generation failed."""
    pass


class ProcessingError(PeelNEditError):
    """An edit pipeline failed.

    ``step`` and ``prompt`` identify the failing step of a sequential run.
    """

    def __init__(
        self,
        message: str,
        step: Optional[int] = None,
        prompt: Optional[str] = None,
    ):
        self.step = step
        self.prompt = prompt
        super().__init__(message)


class SingleShotError(ProcessingError):
    """The single-shot alternative edit failed."""
    pass


class ImageProcessingError(PeelNEditError):
    """Error processing image data."""
    pass


class TimeoutError(PeelNEditError):
    """Operation exceeded timeout."""
    pass
