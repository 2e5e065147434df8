"""fal.ai queue API client for single-shot image edits."""

import asyncio
from typing import Any, Dict, Optional
import httpx

from .base import BaseProvider
from ..utils.logger import get_logger
from ..utils.errors import ProviderError
from ..utils.retry import retry_async, timeout_async

logger = get_logger(__name__)


class FalClient(BaseProvider):
    """Client for the fal.ai request queue."""

    provider_name = "fal"

    def __init__(
        self,
        api_key: str,
        timeout: float = 60.0,
        polling_timeout: float = 300.0,
        poll_interval: float = 1.0,
        max_attempts: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=api_key,
            base_url="https://queue.fal.run",
            timeout=timeout,
            max_attempts=max_attempts,
            transport=transport,
        )
        self.polling_timeout = polling_timeout
        self.poll_interval = poll_interval

    def _get_default_headers(self) -> dict:
        return {
            "Authorization": f"Key {self.api_key}",
            "Content-Type": "application/json",
        }

    async def edit_image(self, model: str, prompt: str, image_url: str) -> Optional[str]:
        """Edit an image with one queued request.

        Returns:
            URL of the first generated image, or None when the result has none
        """
        self._ensure_client()

        call = retry_async(
            max_attempts=self.max_attempts,
            exceptions=(httpx.RequestError, ProviderError),
        )(self._edit_once)
        return await call(model, prompt, image_url)

    async def _edit_once(self, model: str, prompt: str, image_url: str) -> Optional[str]:
        # STEP 1: Submit request
        logger.info(
            f"Submitting to fal: {model}",
            extra={"model": model, "prompt": prompt[:100]}
        )

        response = await self.client.post(
            f"{self.base_url}/{model}",
            json={"prompt": prompt, "image_url": image_url},
        )
        self._handle_response_errors(response)

        submitted = response.json()
        request_id = submitted.get("request_id")
        if not request_id:
            raise ProviderError(self.provider_name, "No request ID in response")

        status_url = submitted.get("status_url") or f"{self.base_url}/{model}/requests/{request_id}/status"
        response_url = submitted.get("response_url") or f"{self.base_url}/{model}/requests/{request_id}"

        logger.info(
            f"Request queued: {request_id}",
            extra={"model": model, "request_id": request_id}
        )

        # STEP 2: Poll for completion
        await timeout_async(
            self._poll_until_complete(status_url, request_id),
            self.polling_timeout,
        )

        # STEP 3: Fetch result
        response = await self.client.get(response_url)
        self._handle_response_errors(response)

        url = self._first_image_url(response.json())

        logger.info(
            "fal edit complete",
            extra={"model": model, "request_id": request_id, "has_url": bool(url)}
        )

        return url

    async def _poll_until_complete(self, status_url: str, request_id: str) -> None:
        while True:
            response = await self.client.get(status_url)
            self._handle_response_errors(response)

            data = response.json()
            status = data.get("status")

            logger.debug(
                f"Request status: {status}",
                extra={"request_id": request_id, "status": status}
            )

            if status == "COMPLETED":
                if data.get("error"):
                    raise ProviderError(self.provider_name, f"Request failed: {data['error']}")
                return
            if status not in ("IN_QUEUE", "IN_PROGRESS"):
                raise ProviderError(self.provider_name, f"Unexpected request status: {status}")

            await asyncio.sleep(self.poll_interval)

    def _first_image_url(self, data: Dict[str, Any]) -> Optional[str]:
        images = data.get("images") or []
        if images and isinstance(images[0], dict):
            return images[0].get("url") or None
        image = data.get("image")
        if isinstance(image, dict):
            return image.get("url") or None
        return None
