"""Browser-facing session endpoints."""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from pydantic import BaseModel

from ..core.orchestrator import EditSession
from ..core.sessions import SessionRegistry
from ..models.schemas import SessionState, UploadedImage
from ..utils.errors import SessionNotFoundError, ValidationError

router = APIRouter()


class ProcessRequest(BaseModel):
    """Ordered edit prompts to apply."""
    prompts: List[str]


class SessionCreated(BaseModel):
    session_id: str
    state: Dict[str, Any]


def state_view(state: SessionState) -> Dict[str, Any]:
    """JSON view of a session state; images appear only as data URLs."""
    view = state.model_dump(mode="json")
    view["image_name"] = state.image_name
    return view


def get_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return registry


def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> EditSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SessionCreated)
async def create_session(registry: SessionRegistry = Depends(get_registry)):
    """Open a new session in the ``upload`` state."""
    session_id, session = await registry.create()
    return SessionCreated(session_id=session_id, state=state_view(session.state))


@router.get("/{session_id}")
async def get_session_state(session: EditSession = Depends(get_session)):
    """Current state; clients poll this while suggestions and edits arrive."""
    return state_view(session.state)


@router.post("/{session_id}/image")
async def upload_image(
    file: UploadFile = File(...),
    session: EditSession = Depends(get_session),
):
    """Select a photo, discarding all previous suggestions and results."""
    content = await file.read()

    try:
        image = UploadedImage.from_bytes(content, file.filename, file.content_type)
        session.select_file(image)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return state_view(session.state)


@router.post("/{session_id}/process", status_code=status.HTTP_202_ACCEPTED)
async def process(request: ProcessRequest, session: EditSession = Depends(get_session)):
    """Launch both edit pipelines; progress is visible through polling."""
    try:
        session.start_processing(request.prompts)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return state_view(session.state)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Close a session and cancel its background work."""
    try:
        await registry.remove(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
