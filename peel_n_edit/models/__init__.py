"""Data models and schemas for the edit assistant."""

from .schemas import (
    PREVIEW_ERROR,
    PREVIEW_PENDING,
    UploadedImage,
    SuggestionPreview,
    EditSuggestionCategories,
    ProcessedImage,
    PipelineStatus,
    SessionState,
)
from .enums import (
    AppState,
    PipelineState,
    SuggestionCategory,
)

__all__ = [
    "PREVIEW_ERROR",
    "PREVIEW_PENDING",
    "UploadedImage",
    "SuggestionPreview",
    "EditSuggestionCategories",
    "ProcessedImage",
    "PipelineStatus",
    "SessionState",
    "AppState",
    "PipelineState",
    "SuggestionCategory",
]
