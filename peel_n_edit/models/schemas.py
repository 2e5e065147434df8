"""Pydantic schemas for session data.

Every model here is frozen: snapshots handed to subscribers and suggestion
sinks are never mutated afterwards, updates produce copies.
"""

from typing import Dict, Iterator, List, Optional, Tuple
from pydantic import BaseModel, Field

from .enums import AppState, PipelineState, SuggestionCategory
from ..utils.errors import ValidationError
from ..utils.images import bytes_to_data_url, guess_mime_type

# preview_image marker values; anything else is a data URL
PREVIEW_PENDING = ""
PREVIEW_ERROR = "error"


class UploadedImage(BaseModel):
    """Photo selected by the user."""
    content: bytes
    name: str
    mime_type: str = "image/png"

    class Config:
        frozen = True

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        name: str,
        mime_type: Optional[str] = None,
    ) -> "UploadedImage":
        """
        Build an upload, detecting the MIME type from content when possible.

        Raises:
            ValidationError: If the content is empty
        """
        if not content:
            raise ValidationError("Please select an image.")
        detected = guess_mime_type(content, default=mime_type or "image/png")
        return cls(content=content, name=name or "image", mime_type=detected)

    @property
    def data_url(self) -> str:
        return bytes_to_data_url(self.content, self.mime_type)


class SuggestionPreview(BaseModel):
    """A suggested edit prompt and its low-resolution preview."""
    prompt: str
    preview_image: str = PREVIEW_PENDING

    class Config:
        frozen = True

    @property
    def is_pending(self) -> bool:
        return self.preview_image == PREVIEW_PENDING

    @property
    def is_error(self) -> bool:
        return self.preview_image == PREVIEW_ERROR


class EditSuggestionCategories(BaseModel):
    """Suggestions grouped by category, in backend order."""
    realistic: Tuple[SuggestionPreview, ...] = ()
    fun: Tuple[SuggestionPreview, ...] = ()
    experimental: Tuple[SuggestionPreview, ...] = ()

    class Config:
        frozen = True

    @classmethod
    def from_prompts(cls, prompts: Dict[str, List[str]]) -> "EditSuggestionCategories":
        """Build categories with every preview pending.

        Missing or non-list categories become empty and blank prompts are dropped.
        """
        fields = {}
        for category in SuggestionCategory:
            texts = prompts.get(category.value)
            if not isinstance(texts, (list, tuple)):
                texts = []
            fields[category.value] = tuple(
                SuggestionPreview(prompt=text.strip())
                for text in texts
                if isinstance(text, str) and text.strip()
            )
        return cls(**fields)

    def category(self, category: SuggestionCategory) -> Tuple[SuggestionPreview, ...]:
        return getattr(self, SuggestionCategory(category).value)

    def iter_suggestions(self) -> Iterator[Tuple[SuggestionCategory, int, SuggestionPreview]]:
        for category in SuggestionCategory:
            for index, suggestion in enumerate(self.category(category)):
                yield category, index, suggestion

    def with_preview(
        self,
        category: SuggestionCategory,
        index: int,
        preview_image: str,
    ) -> "EditSuggestionCategories":
        """Return a copy with one suggestion's preview replaced."""
        category = SuggestionCategory(category)
        items = list(self.category(category))
        items[index] = items[index].model_copy(update={"preview_image": preview_image})
        return self.model_copy(update={category.value: tuple(items)})


class ProcessedImage(BaseModel):
    """Before/after pair produced by the sequential pipeline."""
    id: str
    original: str
    final: str
    name: str

    class Config:
        frozen = True


class PipelineStatus(BaseModel):
    """Independent status slot for one pipeline."""
    state: PipelineState = PipelineState.IDLE
    result: Optional[str] = None
    error: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def in_flight(cls) -> "PipelineStatus":
        return cls(state=PipelineState.IN_FLIGHT)

    @classmethod
    def succeeded(cls, result: str) -> "PipelineStatus":
        return cls(state=PipelineState.SUCCEEDED, result=result)

    @classmethod
    def failed(cls, error: str) -> "PipelineStatus":
        return cls(state=PipelineState.FAILED, error=error)

    @property
    def is_in_flight(self) -> bool:
        return self.state == PipelineState.IN_FLIGHT


class SessionState(BaseModel):
    """Complete state of one editing session."""
    session_id: Optional[str] = None
    run_id: Optional[str] = None
    app_state: AppState = AppState.UPLOAD

    image: Optional[UploadedImage] = Field(default=None, exclude=True)

    suggestions: Optional[EditSuggestionCategories] = None
    is_suggesting: bool = False
    suggestion_error: Optional[str] = None

    prompts: Tuple[str, ...] = ()
    processing_status: Optional[str] = None
    error: Optional[str] = None
    processed_image: Optional[ProcessedImage] = None

    sequential: PipelineStatus = PipelineStatus()
    single_shot: PipelineStatus = PipelineStatus()

    class Config:
        frozen = True

    @property
    def image_name(self) -> Optional[str]:
        return self.image.name if self.image else None
