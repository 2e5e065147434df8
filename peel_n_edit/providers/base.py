"""Abstract base class for API providers."""

from abc import ABC, abstractmethod
import httpx
from typing import Optional

from ..utils.logger import get_logger
from ..utils.errors import ProviderError, AuthenticationError, RateLimitError

logger = get_logger(__name__)


class BaseProvider(ABC):
    """Abstract base class for all API providers."""

    provider_name = "provider"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60.0,
        max_attempts: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize provider.

        Args:
            api_key: API key for authentication
            base_url: Base URL for API endpoints
            timeout: Request timeout in seconds
            max_attempts: Attempts per remote call (1 means no retry)
            transport: Optional httpx transport, used to stub the network
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def initialize(self):
        """Initialize the HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._get_default_headers(),
                transport=self.transport,
            )
            logger.info(
                f"{self.__class__.__name__} initialized",
                extra={"provider": self.__class__.__name__}
            )

    async def close(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info(
                f"{self.__class__.__name__} closed",
                extra={"provider": self.__class__.__name__}
            )

    @abstractmethod
    def _get_default_headers(self) -> dict:
        """Get default headers for requests."""
        pass

    def _ensure_client(self):
        """Ensure client is initialized."""
        if self.client is None:
            raise RuntimeError(
                f"{self.__class__.__name__} not initialized. "
                "Call initialize() or use as async context manager."
            )

    def _handle_response_errors(self, response: httpx.Response):
        """Raise the matching ProviderError for a failed HTTP response."""
        if response.status_code in (401, 403):
            raise AuthenticationError(self.provider_name, response.status_code)
        elif response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.provider_name,
                int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        elif response.status_code >= 400:
            error_message = response.text
            try:
                error_data = response.json()
            except ValueError:
                error_data = None

            if isinstance(error_data, dict):
                error = error_data.get("error") or error_data.get("detail")
                if isinstance(error, dict):
                    error_message = error.get("message", response.text)
                elif error:
                    error_message = str(error)

            logger.error(
                f"{self.provider_name} request failed: {response.status_code}",
                extra={
                    "provider": self.provider_name,
                    "status": response.status_code,
                    "response": response.text[:500],
                }
            )

            raise ProviderError(
                self.provider_name,
                error_message,
                response.status_code
            )
