"""Core business logic components."""

from .suggestions import SuggestionAggregator
from .sequential import SequentialEditPipeline
from .single_shot import SingleShotEditPipeline, compose_prompt
from .state_machine import transition
from .orchestrator import EditSession
from .sessions import SessionRegistry

__all__ = [
    "SuggestionAggregator",
    "SequentialEditPipeline",
    "SingleShotEditPipeline",
    "compose_prompt",
    "transition",
    "EditSession",
    "SessionRegistry",
]
