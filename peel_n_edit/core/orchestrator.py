"""Session controller coordinating suggestions and the two edit pipelines."""

import asyncio
import time
import uuid
from typing import Callable, Iterable, List, Optional, Set

from .suggestions import SuggestionAggregator
from .sequential import SequentialEditPipeline
from .single_shot import SingleShotEditPipeline, compose_prompt
from .state_machine import (
    ALTERNATIVE_ERROR_MESSAGE,
    SUGGESTION_ERROR_MESSAGE,
    normalize_prompts,
    processing_error_message,
    transition,
    validate_process_request,
)
from ..models.events import (
    FileSelected,
    ProcessingStarted,
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
from ..models.schemas import ProcessedImage, SessionState, UploadedImage
from ..utils.errors import ValidationError
from ..utils.images import bytes_to_data_url
from ..utils.logger import get_logger

logger = get_logger(__name__)

StateListener = Callable[[SessionState], None]


def _new_id() -> str:
    return uuid.uuid4().hex


class EditSession:
    """Owns one user's session state and the background work feeding it.

    All state changes go through :func:`transition`. Background tasks tag
    their events with the session and run they were started for, so results
    of superseded work never reach the state.
    """

    def __init__(
        self,
        aggregator: SuggestionAggregator,
        sequential: SequentialEditPipeline,
        single_shot: SingleShotEditPipeline,
        single_shot_model: Optional[str] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        """
        Initialize session.

        Args:
            aggregator: Suggestion aggregator
            sequential: Chained edit pipeline
            single_shot: Alternative single-call pipeline
            single_shot_model: Model passed to the single-shot pipeline
            id_factory: Generates session and run ids
        """
        self.aggregator = aggregator
        self.sequential = sequential
        self.single_shot = single_shot
        self.single_shot_model = single_shot_model
        self._new_id = id_factory

        self._state = SessionState()
        self._listeners: List[StateListener] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new state; returns an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, event: SessionEvent) -> SessionState:
        new_state = transition(self._state, event)
        if new_state is self._state:
            return new_state

        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error(
                    f"State listener failed: {e}",
                    extra={"event": type(event).__name__},
                    exc_info=True,
                )
        return new_state

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, session_id: str, run_id: Optional[str] = None) -> bool:
        if session_id != self._state.session_id:
            return False
        return run_id is None or run_id == self._state.run_id

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def select_file(self, image: UploadedImage) -> asyncio.Task:
        """
        Start a new session for ``image`` and begin fetching suggestions.

        The state enters ``edit`` immediately; suggestion snapshots arrive
        while the returned task runs. Must be called from a running loop.

        Raises:
            ValidationError: If the image is empty
        """
        if not image.content:
            raise ValidationError("Please select an image.")

        session_id = self._new_id()
        self._dispatch(FileSelected(session_id=session_id, image=image))

        logger.info(
            f"File selected: {image.name}",
            extra={
                "session_id": session_id,
                "image": image.name,
                "size_kb": len(image.content) / 1024,
            }
        )

        return self._spawn(
            self._run_suggestions(session_id, image),
            name=f"suggestions-{session_id}",
        )

    async def _run_suggestions(self, session_id: str, image: UploadedImage):
        def on_update(snapshot):
            self._dispatch(SuggestionsUpdated(session_id=session_id, suggestions=snapshot))

        try:
            await self.aggregator.generate_suggestions(image, on_update)
        except Exception as e:
            if self._is_current(session_id):
                logger.error(
                    f"Failed to get suggestions: {e}",
                    extra={"session_id": session_id, "image": image.name},
                    exc_info=True,
                )
            self._dispatch(SuggestionsFailed(session_id=session_id, message=SUGGESTION_ERROR_MESSAGE))
        else:
            self._dispatch(SuggestionsFinished(session_id=session_id))

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def start_processing(self, prompts: Iterable[str]) -> asyncio.Task:
        """
        Launch both pipelines for the current image.

        The single-shot pipeline runs detached; the returned task settles
        when the sequential pipeline does, at which point the state is in
        ``results``. Must be called from a running loop.

        Raises:
            ValidationError: If no image is selected, the prompt sequence is
                empty, or a run is already in progress. No backend call is made.
        """
        prompts = normalize_prompts(prompts)
        state = self._state

        message = validate_process_request(state, prompts)
        if message:
            if state.session_id:
                self._dispatch(ValidationFailed(session_id=state.session_id, message=message))
            raise ValidationError(message)

        session_id = state.session_id
        run_id = self._new_id()
        image = state.image

        self._dispatch(ProcessingStarted(session_id=session_id, run_id=run_id, prompts=prompts))

        logger.info(
            f"Processing {image.name}",
            extra={
                "session_id": session_id,
                "run_id": run_id,
                "prompt_count": len(prompts),
            }
        )

        self._spawn(
            self._run_single_shot(session_id, run_id, image, prompts),
            name=f"single-shot-{run_id}",
        )
        return self._spawn(
            self._run_sequential(session_id, run_id, image, prompts),
            name=f"sequential-{run_id}",
        )

    async def process(self, prompts: Iterable[str]) -> SessionState:
        """Start processing and wait until the state reaches ``results``."""
        await self.start_processing(prompts)
        return self._state

    async def _run_sequential(self, session_id, run_id, image: UploadedImage, prompts):
        def on_step(index: int):
            self._dispatch(StepStarted(session_id=session_id, run_id=run_id, index=index))

        try:
            final_bytes, final_mime = await self.sequential.apply_edit_sequence(image, prompts, on_step)
        except Exception as e:
            if self._is_current(session_id, run_id):
                logger.error(
                    f"Failed to process {image.name}: {e}",
                    extra={"session_id": session_id, "run_id": run_id},
                    exc_info=True,
                )
            self._dispatch(SequentialFailed(
                session_id=session_id,
                run_id=run_id,
                message=processing_error_message(image.name),
            ))
            return

        processed = ProcessedImage(
            id=f"{image.name}{int(time.time() * 1000)}",
            original=image.data_url,
            final=bytes_to_data_url(final_bytes, final_mime),
            name=image.name,
        )
        self._dispatch(SequentialSucceeded(session_id=session_id, run_id=run_id, processed_image=processed))

    async def _run_single_shot(self, session_id, run_id, image: UploadedImage, prompts):
        try:
            url = await self.single_shot.request_single_edit(
                self.single_shot_model,
                compose_prompt(prompts),
                image,
            )
        except Exception as e:
            if self._is_current(session_id, run_id):
                logger.error(
                    f"Alternative edit failed: {e}",
                    extra={"session_id": session_id, "run_id": run_id},
                    exc_info=True,
                )
            self._dispatch(SingleShotFailed(
                session_id=session_id,
                run_id=run_id,
                message=ALTERNATIVE_ERROR_MESSAGE,
            ))
            return

        self._dispatch(SingleShotSucceeded(session_id=session_id, run_id=run_id, url=url))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_idle(self):
        """Wait for every background task, including superseded ones."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self):
        """Cancel outstanding background work."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._listeners.clear()
