"""Incremental assembly of categorized edit suggestions."""

import asyncio
from typing import Callable

from ..providers.gemini import GeminiClient
from ..models.enums import SuggestionCategory
from ..models.schemas import (
    PREVIEW_ERROR,
    EditSuggestionCategories,
    UploadedImage,
)
from ..utils.errors import SuggestionError
from ..utils.images import bytes_to_data_url, make_thumbnail
from ..utils.logger import get_logger

logger = get_logger(__name__)

SuggestionSink = Callable[[EditSuggestionCategories], None]


class SuggestionAggregator:
    """Builds suggestions in two phases and pushes each snapshot to a sink.

    Phase one asks for the prompt texts of all three categories and delivers
    them with every preview pending. Phase two requests one low-resolution
    preview per suggestion concurrently; each arrival replaces exactly one
    preview and delivers a new snapshot. Snapshots are immutable, so a sink
    may keep any of them.
    """

    def __init__(
        self,
        gemini_client: GeminiClient,
        preview_model: str = None,
        preview_max_side: int = 256,
    ):
        """
        Initialize suggestion aggregator.

        Args:
            gemini_client: Client for suggestion text and preview edits
            preview_model: Image model for previews (client default if None)
            preview_max_side: Longest side of the thumbnail sent for previews
        """
        self.client = gemini_client
        self.preview_model = preview_model
        self.preview_max_side = preview_max_side

    async def generate_suggestions(
        self,
        image: UploadedImage,
        on_update: SuggestionSink,
    ) -> EditSuggestionCategories:
        """
        Generate suggestions for an image.

        Args:
            image: Uploaded photo
            on_update: Called with every new snapshot, text-only one first

        Returns:
            The final snapshot

        Raises:
            SuggestionError: If the suggestion texts cannot be generated
        """
        if not image.content:
            raise SuggestionError("Cannot generate suggestions for an empty image")

        try:
            prompts = await self.client.suggest_edits(image.content, image.mime_type)
        except Exception as e:
            raise SuggestionError(f"Suggestion generation failed: {e}") from e

        current = EditSuggestionCategories.from_prompts(prompts)
        on_update(current)

        thumbnail, thumbnail_mime = make_thumbnail(image.content, self.preview_max_side)

        async def fetch(category: SuggestionCategory, index: int, prompt: str):
            nonlocal current
            preview = await self._fetch_preview(thumbnail, thumbnail_mime, prompt)
            current = current.with_preview(category, index, preview)
            on_update(current)

        await asyncio.gather(*(
            fetch(category, index, suggestion.prompt)
            for category, index, suggestion in current.iter_suggestions()
        ))

        logger.info(
            "Suggestions complete",
            extra={
                "image": image.name,
                "failed_previews": sum(
                    1 for _, _, suggestion in current.iter_suggestions() if suggestion.is_error
                ),
            }
        )

        return current

    async def _fetch_preview(self, thumbnail: bytes, mime_type: str, prompt: str) -> str:
        try:
            edited, edited_mime = await self.client.edit_image(
                thumbnail,
                mime_type,
                prompt,
                model=self.preview_model,
            )
        except Exception as e:
            logger.warning(
                "Preview generation failed",
                extra={"prompt": prompt[:100], "error": str(e)}
            )
            return PREVIEW_ERROR

        return bytes_to_data_url(edited, edited_mime)
