"""Pure session state transitions.

``transition(state, event)`` never performs I/O. Events whose ``session_id``
(or ``run_id``) no longer matches the state come from superseded work and
leave the state untouched.
"""

from typing import Callable, Dict, Iterable, Optional, Tuple, Type

from ..models.enums import AppState
from ..models.events import (
    FileSelected,
    ProcessingStarted,
    RunEvent,
    SequentialFailed,
    SequentialSucceeded,
    SessionEvent,
    SingleShotFailed,
    SingleShotSucceeded,
    StepStarted,
    SuggestionsFailed,
    SuggestionsFinished,
    SuggestionsUpdated,
    ValidationFailed,
)
from ..models.schemas import PipelineStatus, SessionState
from ..utils.logger import get_logger

logger = get_logger(__name__)

PROMPTS_REQUIRED_MESSAGE = "Please select an image and add at least one edit prompt."
ALREADY_PROCESSING_MESSAGE = "Processing is already in progress."
SUGGESTION_ERROR_MESSAGE = "Could not generate suggestions for the image."
ALTERNATIVE_ERROR_MESSAGE = "An error occurred generating the alternative edit."


def processing_error_message(name: str) -> str:
    return f"An error occurred while processing {name}."


def normalize_prompts(prompts: Iterable[str]) -> Tuple[str, ...]:
    """Strip prompts and drop blank ones, keeping order."""
    return tuple(prompt.strip() for prompt in prompts if prompt and prompt.strip())


def validate_process_request(state: SessionState, prompts: Tuple[str, ...]) -> Optional[str]:
    """Return the user-facing reason processing cannot start, if any."""
    if state.image is None or not prompts:
        return PROMPTS_REQUIRED_MESSAGE
    if state.app_state == AppState.PROCESS:
        return ALREADY_PROCESSING_MESSAGE
    return None


def _on_suggestions_updated(state: SessionState, event: SuggestionsUpdated) -> SessionState:
    return state.model_copy(update={"suggestions": event.suggestions})


def _on_suggestions_failed(state: SessionState, event: SuggestionsFailed) -> SessionState:
    return state.model_copy(update={
        "suggestions": None,
        "is_suggesting": False,
        "suggestion_error": event.message,
    })


def _on_suggestions_finished(state: SessionState, event: SuggestionsFinished) -> SessionState:
    return state.model_copy(update={"is_suggesting": False})


def _on_validation_failed(state: SessionState, event: ValidationFailed) -> SessionState:
    return state.model_copy(update={"error": event.message})


def _on_processing_started(state: SessionState, event: ProcessingStarted) -> SessionState:
    return state.model_copy(update={
        "app_state": AppState.PROCESS,
        "run_id": event.run_id,
        "prompts": event.prompts,
        "error": None,
        "processed_image": None,
        "processing_status": f"Processing {state.image_name} with Gemini...",
        "sequential": PipelineStatus.in_flight(),
        "single_shot": PipelineStatus.in_flight(),
    })


def _on_step_started(state: SessionState, event: StepStarted) -> SessionState:
    if state.app_state != AppState.PROCESS:
        return state
    prompt = state.prompts[event.index] if event.index < len(state.prompts) else ""
    return state.model_copy(update={
        "processing_status": (
            f'Editing {state.image_name} with prompt {event.index + 1}: "{prompt}"'
        ),
    })


def _on_sequential_succeeded(state: SessionState, event: SequentialSucceeded) -> SessionState:
    return state.model_copy(update={
        "app_state": AppState.RESULTS,
        "processing_status": None,
        "error": None,
        "processed_image": event.processed_image,
        "sequential": PipelineStatus.succeeded(event.processed_image.final),
    })


def _on_sequential_failed(state: SessionState, event: SequentialFailed) -> SessionState:
    return state.model_copy(update={
        "app_state": AppState.RESULTS,
        "processing_status": None,
        "error": event.message,
        "sequential": PipelineStatus.failed(event.message),
    })


def _on_single_shot_succeeded(state: SessionState, event: SingleShotSucceeded) -> SessionState:
    return state.model_copy(update={"single_shot": PipelineStatus.succeeded(event.url)})


def _on_single_shot_failed(state: SessionState, event: SingleShotFailed) -> SessionState:
    return state.model_copy(update={"single_shot": PipelineStatus.failed(event.message)})


_HANDLERS: Dict[Type[SessionEvent], Callable[[SessionState, SessionEvent], SessionState]] = {
    SuggestionsUpdated: _on_suggestions_updated,
    SuggestionsFailed: _on_suggestions_failed,
    SuggestionsFinished: _on_suggestions_finished,
    ValidationFailed: _on_validation_failed,
    ProcessingStarted: _on_processing_started,
    StepStarted: _on_step_started,
    SequentialSucceeded: _on_sequential_succeeded,
    SequentialFailed: _on_sequential_failed,
    SingleShotSucceeded: _on_single_shot_succeeded,
    SingleShotFailed: _on_single_shot_failed,
}


def is_stale(state: SessionState, event: SessionEvent) -> bool:
    """True when the event belongs to a superseded upload or run."""
    if isinstance(event, FileSelected):
        return False
    if event.session_id != state.session_id:
        return True
    if isinstance(event, RunEvent) and not isinstance(event, ProcessingStarted):
        return event.run_id != state.run_id
    return False


def transition(state: SessionState, event: SessionEvent) -> SessionState:
    """Compute the next state for an event."""
    if isinstance(event, FileSelected):
        # New upload replaces everything, including in-flight results
        return SessionState(
            session_id=event.session_id,
            app_state=AppState.EDIT,
            image=event.image,
            is_suggesting=True,
        )

    if is_stale(state, event):
        logger.debug(
            f"Discarding stale {type(event).__name__}",
            extra={
                "event_session_id": event.session_id,
                "current_session_id": state.session_id,
            }
        )
        return state

    return _HANDLERS[type(event)](state, event)
