"""Live session API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from kbtracker.config import get_settings
from kbtracker.cv.motion_engine import FrameResult
from kbtracker.schemas.session import (
    FrameIn,
    FrameResponse,
    RepResponse,
    SessionCreate,
    SessionResponse,
    SessionSummary,
)
from kbtracker.services.session_store import (
    LiveSession,
    SessionLimitReached,
    SessionNotFound,
    SessionStore,
    get_session_store,
)

router = APIRouter()
settings = get_settings()


def _get_session(session_id: str, store: SessionStore) -> LiveSession:
    try:
        return store.get(session_id)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )


def _session_response(session: LiveSession) -> SessionResponse:
    engine = session.engine
    return SessionResponse(
        id=session.id,
        frame_height=engine.frame_height,
        frame_width=engine.frame_width,
        created_at=session.created_at,
        calibrated=engine.is_calibrated,
        locked_side=engine.locked_side.value if engine.locked_side else None,
        total_reps=session.aggregator.total_reps,
    )


def _frame_response(result: FrameResult, session: LiveSession) -> FrameResponse:
    rep = None
    if result.rep is not None:
        rep = RepResponse(
            movement=result.rep.movement.value,
            peak_velocity=result.rep.peak_velocity,
            side=result.rep.side.value if result.rep.side else None,
            timestamp_ms=result.rep.timestamp_ms,
            duration_ms=result.rep.duration_ms,
        )
    return FrameResponse(
        frame_number=result.frame_number,
        status=result.status.value,
        calibrated=result.calibrated,
        locked_side=result.locked_side.value if result.locked_side else None,
        phase=result.phase.value,
        velocity=result.velocity,
        speed=result.speed,
        rep=rep,
        set_ended=result.set_ended,
        total_reps=session.aggregator.total_reps,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreate,
    store: SessionStore = Depends(get_session_store)
):
    """Open a live tracking session for one video stream."""
    try:
        session = store.create(payload.frame_height, payload.frame_width)
    except SessionLimitReached as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(e)
        )
    return _session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Get live session status."""
    return _session_response(_get_session(session_id, store))


@router.post("/{session_id}/frames", response_model=FrameResponse)
async def submit_frame(
    session_id: str,
    frame: FrameIn,
    store: SessionStore = Depends(get_session_store)
):
    """
    Feed one frame of pose data.
    
    Returns the current velocity and, when a rep just finished, the
    classified rep.
    """
    session = _get_session(session_id, store)
    result = session.process(frame, min_visibility=settings.landmark_min_visibility)
    return _frame_response(result, session)


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Discard calibration, tracking state and all counted reps."""
    session = _get_session(session_id, store)
    session.reset()
    return _session_response(session)


@router.post("/{session_id}/sets/close", response_model=SessionSummary)
async def close_set(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Close the current set and return the updated summary."""
    session = _get_session(session_id, store)
    if session.aggregator.close_set() is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No open set to close"
        )
    return SessionSummary(session_id=session.id, **session.aggregator.summary())


@router.get("/{session_id}/summary", response_model=SessionSummary)
async def get_summary(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Per-type rep counts, peak velocities and sets."""
    session = _get_session(session_id, store)
    return SessionSummary(session_id=session.id, **session.aggregator.summary())


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Close a live session."""
    try:
        store.delete(session_id)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
