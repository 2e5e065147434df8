"""Chained multi-step image editing."""

from typing import Callable, Optional, Sequence, Tuple

from ..providers.gemini import GeminiClient
from ..models.schemas import UploadedImage
from ..utils.errors import ProcessingError, ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

StepCallback = Callable[[int], None]


class SequentialEditPipeline:
    """Applies prompts one at a time, each to the previous step's output."""

    def __init__(self, gemini_client: GeminiClient, model: Optional[str] = None):
        self.client = gemini_client
        self.model = model

    async def apply_edit_sequence(
        self,
        image: UploadedImage,
        prompts: Sequence[str],
        on_step: Optional[StepCallback] = None,
    ) -> Tuple[bytes, str]:
        """
        Fold the prompts over the image.

        ``on_step(index)`` is called before each step's request is issued.

        Args:
            image: Source image
            prompts: Edit prompts in application order
            on_step: Progress callback

        Returns:
            Tuple of (image_bytes, mime_type) after the last step

        Raises:
            ValidationError: If prompts is empty
            ProcessingError: If any step fails; no later step is attempted
        """
        if not prompts:
            raise ValidationError("At least one edit prompt is required.")

        current, mime_type = image.content, image.mime_type

        for index, prompt in enumerate(prompts):
            if on_step:
                on_step(index)

            logger.info(
                f"Edit step {index + 1}/{len(prompts)}",
                extra={"image": image.name, "step": index, "prompt": prompt[:100]}
            )

            try:
                current, mime_type = await self.client.edit_image(
                    current,
                    mime_type,
                    prompt,
                    model=self.model,
                )
            except Exception as e:
                raise ProcessingError(
                    f"Edit step {index + 1} of {len(prompts)} failed for {image.name}: {e}",
                    step=index,
                    prompt=prompt,
                ) from e

        return current, mime_type
