"""Gemini API client for image edits and edit suggestions."""

import json
from typing import Any, Dict, List, Optional, Tuple
import httpx

from .base import BaseProvider
from ..models.enums import SuggestionCategory
from ..utils.logger import get_logger
from ..utils.errors import ProviderError
from ..utils.images import base64_to_bytes, bytes_to_base64
from ..utils.retry import retry_async

logger = get_logger(__name__)

SUGGESTION_INSTRUCTION = """You are a creative photo editor. Look at this photo and suggest edits the user could apply to it.

Return three lists of short, self-contained edit instructions:
- "realistic": subtle, photographic improvements (lighting, color, background cleanup).
- "fun": playful changes (costumes, props, stylized scenes).
- "experimental": bold artistic transformations (art styles, surreal compositions).

Give three suggestions per list. Each suggestion is one imperative sentence an image-editing model can follow."""

SUGGESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        category.value: {"type": "ARRAY", "items": {"type": "STRING"}}
        for category in SuggestionCategory
    },
    "required": [category.value for category in SuggestionCategory],
}


class GeminiClient(BaseProvider):
    """Client for the Gemini generateContent API."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        edit_model: str = "gemini-2.5-flash-image-preview",
        suggestion_model: str = "gemini-2.5-flash",
        timeout: float = 120.0,
        max_attempts: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            edit_model: Image model used when ``edit_image`` gets no model
            suggestion_model: Text model used for edit suggestions
            timeout: Request timeout in seconds
            max_attempts: Attempts per remote call
            transport: Optional httpx transport
        """
        super().__init__(
            api_key=api_key,
            base_url="https://generativelanguage.googleapis.com/v1beta",
            timeout=timeout,
            max_attempts=max_attempts,
            transport=transport,
        )
        self.edit_model = edit_model
        self.suggestion_model = suggestion_model

    def _get_default_headers(self) -> dict:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    async def edit_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        model: Optional[str] = None,
    ) -> Tuple[bytes, str]:
        """
        Apply one edit prompt to an image.

        Returns:
            Tuple of (image_bytes, mime_type) of the edited image

        Raises:
            ProviderError: If the request fails or no image comes back
        """
        model = model or self.edit_model

        payload = {
            "contents": [{
                "parts": [
                    {"inlineData": {"mimeType": mime_type, "data": bytes_to_base64(image_bytes)}},
                    {"text": prompt},
                ]
            }],
            "generationConfig": {
                "responseModalities": ["IMAGE", "TEXT"],
            },
        }

        logger.info(
            f"Requesting Gemini edit: {model}",
            extra={
                "model": model,
                "prompt": prompt[:100],
                "input_kb": len(image_bytes) / 1024,
            }
        )

        data = await self._generate_content(model, payload)

        for part in self._first_candidate_parts(data):
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                edited = base64_to_bytes(inline["data"])
                edited_mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"

                logger.info(
                    "Gemini edit complete",
                    extra={"model": model, "output_kb": len(edited) / 1024}
                )
                return edited, edited_mime

        text = " ".join(
            part["text"] for part in self._first_candidate_parts(data) if part.get("text")
        )
        raise ProviderError(
            self.provider_name,
            f"No image in response{': ' + text[:200] if text else ''}"
        )

    async def suggest_edits(self, image_bytes: bytes, mime_type: str) -> Dict[str, List[str]]:
        """
        Ask the text model for categorized edit suggestions.

        Returns:
            Mapping of category name to prompt strings

        Raises:
            ProviderError: If the request fails or the answer is not valid JSON
        """
        payload = {
            "contents": [{
                "parts": [
                    {"inlineData": {"mimeType": mime_type, "data": bytes_to_base64(image_bytes)}},
                    {"text": SUGGESTION_INSTRUCTION},
                ]
            }],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": SUGGESTION_SCHEMA,
            },
        }

        data = await self._generate_content(self.suggestion_model, payload)

        text = "".join(
            part.get("text", "") for part in self._first_candidate_parts(data)
        )
        try:
            suggestions = json.loads(text)
        except ValueError:
            raise ProviderError(self.provider_name, f"Invalid suggestion JSON: {text[:200]}")

        if not isinstance(suggestions, dict):
            raise ProviderError(self.provider_name, "Suggestion response is not an object")

        logger.info(
            "Suggestions generated",
            extra={
                "model": self.suggestion_model,
                "counts": {
                    category.value: len(suggestions.get(category.value) or [])
                    for category in SuggestionCategory
                },
            }
        )

        return suggestions

    async def _generate_content(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_client()

        call = retry_async(
            max_attempts=self.max_attempts,
            exceptions=(httpx.RequestError, ProviderError),
        )(self._post_generate_content)
        return await call(model, payload)

    async def _post_generate_content(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.post(
            f"{self.base_url}/models/{model}:generateContent",
            json=payload,
        )

        self._handle_response_errors(response)

        data = response.json()

        if not data.get("candidates"):
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            raise ProviderError(
                self.provider_name,
                f"No candidates in response (block reason: {block_reason or 'unknown'})"
            )

        return data

    def _first_candidate_parts(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        candidate = data["candidates"][0]
        return (candidate.get("content") or {}).get("parts") or []
