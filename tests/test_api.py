"""Test the HTTP API through an in-process ASGI transport."""

import httpx
import pytest

from peel_n_edit.core import SessionRegistry
from peel_n_edit.core.state_machine import PROMPTS_REQUIRED_MESSAGE
from peel_n_edit.main import create_app


@pytest.fixture
def registry(session_factory) -> SessionRegistry:
    return SessionRegistry(session_factory)


@pytest.fixture
def app(registry):
    return create_app(registry=registry)


def make_client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health_endpoints(app):
    async with make_client(app) as client:
        health = await client.get("/health/")
        ready = await client.get("/health/ready")
        root = await client.get("/")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert ready.json()["ready"] is True
    assert root.json()["service"] == "peel-n-edit"


@pytest.mark.asyncio
async def test_upload_and_process_flow(app, registry, png_bytes, fal):
    async with make_client(app) as client:
        created = await client.post("/sessions")
        assert created.status_code == 201
        session_id = created.json()["session_id"]
        assert created.json()["state"]["app_state"] == "upload"

        uploaded = await client.post(
            f"/sessions/{session_id}/image",
            files={"file": ("photo.png", png_bytes, "image/png")},
        )
        assert uploaded.status_code == 200
        assert uploaded.json()["app_state"] == "edit"
        assert uploaded.json()["image_name"] == "photo.png"
        assert "image" not in uploaded.json()

        await registry.get(session_id).wait_idle()

        state = (await client.get(f"/sessions/{session_id}")).json()
        assert [s["prompt"] for s in state["suggestions"]["realistic"]] == ["p1", "p2"]
        assert not state["is_suggesting"]

        started = await client.post(f"/sessions/{session_id}/process", json={"prompts": ["p1", "p3"]})
        assert started.status_code == 202
        assert started.json()["app_state"] == "process"
        assert started.json()["sequential"]["state"] == "in_flight"

        await registry.get(session_id).wait_idle()

        state = (await client.get(f"/sessions/{session_id}")).json()

    assert state["app_state"] == "results"
    assert state["processed_image"]["name"] == "photo.png"
    assert state["processed_image"]["final"].startswith("data:image/png;base64,")
    assert state["single_shot"] == {
        "state": "succeeded",
        "result": "https://fal.example/result.png",
        "error": None,
    }
    assert fal.calls[0][1] == "p1. p3"


@pytest.mark.asyncio
async def test_process_with_no_prompts_is_rejected(app, registry, png_bytes):
    async with make_client(app) as client:
        session_id = (await client.post("/sessions")).json()["session_id"]
        await client.post(
            f"/sessions/{session_id}/image",
            files={"file": ("photo.png", png_bytes, "image/png")},
        )

        response = await client.post(f"/sessions/{session_id}/process", json={"prompts": []})
        state = (await client.get(f"/sessions/{session_id}")).json()

        await registry.get(session_id).wait_idle()

    assert response.status_code == 422
    assert response.json()["detail"] == PROMPTS_REQUIRED_MESSAGE
    assert state["app_state"] == "edit"
    assert state["error"] == PROMPTS_REQUIRED_MESSAGE


@pytest.mark.asyncio
async def test_empty_upload_is_rejected(app):
    async with make_client(app) as client:
        session_id = (await client.post("/sessions")).json()["session_id"]

        response = await client.post(
            f"/sessions/{session_id}/image",
            files={"file": ("empty.png", b"", "image/png")},
        )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_session_is_404(app):
    async with make_client(app) as client:
        assert (await client.get("/sessions/nope")).status_code == 404
        assert (await client.post("/sessions/nope/process", json={"prompts": ["p"]})).status_code == 404
        assert (await client.delete("/sessions/nope")).status_code == 404


@pytest.mark.asyncio
async def test_delete_session(app, registry):
    async with make_client(app) as client:
        session_id = (await client.post("/sessions")).json()["session_id"]

        response = await client.delete(f"/sessions/{session_id}")
        follow_up = await client.get(f"/sessions/{session_id}")

    assert response.status_code == 204
    assert follow_up.status_code == 404
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_not_ready_without_registry():
    app = create_app()

    async with make_client(app) as client:
        ready = await client.get("/health/ready")
        response = await client.post("/sessions")

    assert ready.json()["ready"] is False
    assert response.status_code == 503
