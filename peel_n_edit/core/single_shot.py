"""Single-call alternative edit."""

from typing import Optional, Sequence

from ..providers.fal import FalClient
from ..models.schemas import UploadedImage
from ..utils.errors import SingleShotError
from ..utils.logger import get_logger

logger = get_logger(__name__)

PROMPT_SEPARATOR = ". "


def compose_prompt(prompts: Sequence[str]) -> str:
    """Join ordered prompts into one composite instruction."""
    return PROMPT_SEPARATOR.join(prompts)


class SingleShotEditPipeline:
    """Sends all edits to the alternative editor in one request."""

    def __init__(self, fal_client: FalClient, model: str = "fal-ai/flux-pro/kontext/max"):
        self.client = fal_client
        self.model = model

    async def request_single_edit(
        self,
        model: Optional[str],
        composite_prompt: str,
        image: UploadedImage,
    ) -> str:
        """
        Request one edit and return the result image URL.

        Raises:
            SingleShotError: On any backend failure or an empty result URL
        """
        model = model or self.model

        logger.info(
            f"Requesting single-shot edit: {model}",
            extra={"model": model, "image": image.name, "prompt": composite_prompt[:200]}
        )

        try:
            url = await self.client.edit_image(model, composite_prompt, image.data_url)
        except Exception as e:
            raise SingleShotError(f"Alternative edit failed for {image.name}: {e}") from e

        if not url:
            raise SingleShotError(f"{model} returned an empty URL.")

        return url
