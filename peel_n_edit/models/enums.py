"""Enumerations for the edit assistant."""

from enum import Enum


class AppState(str, Enum):
    """Lifecycle stage of an editing session."""
    UPLOAD = "upload"
    EDIT = "edit"
    PROCESS = "process"
    RESULTS = "results"


class PipelineState(str, Enum):
    """Status of one edit pipeline within a processing run."""
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SuggestionCategory(str, Enum):
    """Suggestion groups offered for an uploaded photo."""
    REALISTIC = "realistic"
    FUN = "fun"
    EXPERIMENTAL = "experimental"
