"""Pytest configuration and shared fixtures."""

import asyncio
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import pytest
from PIL import Image

from peel_n_edit.core import (
    EditSession,
    SequentialEditPipeline,
    SingleShotEditPipeline,
    SuggestionAggregator,
)
from peel_n_edit.models import UploadedImage
from peel_n_edit.utils.errors import ProviderError


class FakeGeminiClient:
    """Stands in for GeminiClient.

    Edits append ``|<prompt>`` to the input bytes so chained steps are
    visible in the output. ``gates`` holds asyncio.Events keyed by prompt;
    an edit for a gated prompt waits until its event is set.
    """

    def __init__(
        self,
        suggestions: Optional[Dict[str, List[str]]] = None,
        suggestion_error: Optional[Exception] = None,
        failing_prompts: Tuple[str, ...] = (),
    ):
        self.suggestions = suggestions or {}
        self.suggestion_error = suggestion_error
        self.failing_prompts = set(failing_prompts)
        self.gates: Dict[str, asyncio.Event] = {}
        self.suggest_calls: List[bytes] = []
        self.edit_calls: List[Tuple[bytes, str, str, Optional[str]]] = []

    async def suggest_edits(self, image_bytes: bytes, mime_type: str):
        self.suggest_calls.append(image_bytes)
        await asyncio.sleep(0)
        if self.suggestion_error:
            raise self.suggestion_error
        return self.suggestions

    async def edit_image(self, image_bytes, mime_type, prompt, model=None):
        self.edit_calls.append((image_bytes, mime_type, prompt, model))
        if prompt in self.gates:
            await self.gates[prompt].wait()
        else:
            await asyncio.sleep(0)
        if prompt in self.failing_prompts:
            raise ProviderError("gemini", f"edit failed for {prompt}", 500)
        return image_bytes + b"|" + prompt.encode(), "image/png"


class FakeFalClient:
    """Stands in for FalClient; an optional gate delays the result."""

    def __init__(self, url: Optional[str] = "https://fal.example/result.png", error: Exception = None):
        self.url = url
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[Tuple[str, str, str]] = []

    async def edit_image(self, model, prompt, image_url):
        self.calls.append((model, prompt, image_url))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.url


def make_png(width: int = 64, height: int = 48, color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def image_a() -> UploadedImage:
    return UploadedImage.from_bytes(make_png(color="red"), "a.png")


@pytest.fixture
def image_b() -> UploadedImage:
    return UploadedImage.from_bytes(make_png(color="blue"), "b.png")


@pytest.fixture
def sample_suggestions() -> Dict[str, List[str]]:
    return {
        "realistic": ["p1", "p2"],
        "fun": ["p3"],
        "experimental": ["p4"],
    }


@pytest.fixture
def gemini(sample_suggestions) -> FakeGeminiClient:
    return FakeGeminiClient(suggestions=sample_suggestions)


@pytest.fixture
def fal() -> FakeFalClient:
    return FakeFalClient()


@pytest.fixture
def session_factory(gemini, fal):
    def factory() -> EditSession:
        return EditSession(
            aggregator=SuggestionAggregator(gemini, preview_model="preview-model"),
            sequential=SequentialEditPipeline(gemini, model="edit-model"),
            single_shot=SingleShotEditPipeline(fal, model="fal-ai/flux-pro/kontext/max"),
        )

    return factory


@pytest.fixture
def session(session_factory) -> EditSession:
    return session_factory()
