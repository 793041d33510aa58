"""Pydantic schemas for API request/response models."""

from kbtracker.schemas.session import (
    KeypointIn,
    SessionCreate,
    SessionResponse,
    FrameIn,
    FrameResponse,
    RepResponse,
    RepSetResponse,
    SessionSummary,
)

__all__ = [
    "KeypointIn",
    "SessionCreate",
    "SessionResponse",
    "FrameIn",
    "FrameResponse",
    "RepResponse",
    "RepSetResponse",
    "SessionSummary",
]
