"""Events applied to a session's state.

Events raised by background work carry the ``session_id`` (and ``run_id`` for
processing) current when the work was launched, so that completions from a
superseded upload or run can be recognised and ignored.
"""

from typing import Tuple
from pydantic import BaseModel

from .schemas import EditSuggestionCategories, ProcessedImage, UploadedImage


class SessionEvent(BaseModel):
    session_id: str

    class Config:
        frozen = True


class RunEvent(SessionEvent):
    run_id: str


class FileSelected(SessionEvent):
    image: UploadedImage


class SuggestionsUpdated(SessionEvent):
    suggestions: EditSuggestionCategories


class SuggestionsFailed(SessionEvent):
    message: str


class SuggestionsFinished(SessionEvent):
    pass


class ValidationFailed(SessionEvent):
    message: str


class ProcessingStarted(RunEvent):
    prompts: Tuple[str, ...]


class StepStarted(RunEvent):
    index: int


class SequentialSucceeded(RunEvent):
    processed_image: ProcessedImage


class SequentialFailed(RunEvent):
    message: str


class SingleShotSucceeded(RunEvent):
    url: str


class SingleShotFailed(RunEvent):
    message: str
