"""Live session schemas."""

from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, model_validator

from kbtracker.cv.landmarks import Joint, Side


class KeypointIn(BaseModel):
    """A single landmark as delivered by the pose detector."""
    x: float
    y: float
    z: Optional[float] = 0.0
    visibility: Optional[float] = None


class SessionCreate(BaseModel):
    """Schema for opening a live session."""
    frame_height: float = Field(..., gt=0, description="Stream height in pixels")
    frame_width: Optional[float] = Field(None, gt=0, description="Stream width in pixels")


class SessionResponse(BaseModel):
    """Schema for a live session."""
    id: str
    frame_height: float
    frame_width: Optional[float] = None
    created_at: datetime
    calibrated: bool
    locked_side: Optional[str] = None
    total_reps: int


class FrameIn(BaseModel):
    """
    One frame of detector output.
    
    Send either ``pose`` (side -> joint -> keypoint) or the raw 33-point
    MediaPipe ``landmarks`` list. Sending neither means no pose was detected.
    """
    timestamp_ms: float = Field(..., ge=0, description="Monotonic frame timestamp")
    pose: Optional[Dict[Side, Dict[Joint, KeypointIn]]] = None
    landmarks: Optional[List[Optional[KeypointIn]]] = None
    
    @model_validator(mode="after")
    def check_single_source(self) -> "FrameIn":
        if self.pose is not None and self.landmarks is not None:
            raise ValueError("Send either pose or landmarks, not both")
        if self.landmarks and len(self.landmarks) != 33:
            raise ValueError(f"landmarks must contain 33 points, got {len(self.landmarks)}")
        return self


class RepResponse(BaseModel):
    """Schema for a classified rep."""
    movement: str
    peak_velocity: float
    side: Optional[str] = None
    timestamp_ms: Optional[float] = None
    duration_ms: Optional[float] = None
    
    class Config:
        from_attributes = True


class FrameResponse(BaseModel):
    """Per-frame engine output."""
    frame_number: int
    status: str
    calibrated: bool
    locked_side: Optional[str] = None
    phase: str
    velocity: float
    speed: float = 0.0
    rep: Optional[RepResponse] = None
    set_ended: bool = False
    total_reps: int


class RepSetResponse(BaseModel):
    """Schema for one set in the session summary."""
    set_order: int
    hand: Optional[str] = None
    rep_count: int
    peak_velocity_avg: float
    peak_velocity_best: float
    velocity_loss_percent: float
    movements: List[str]
    raw_peaks: List[float]


class SessionSummary(BaseModel):
    """Session summary."""
    session_id: str
    session_date: datetime
    total_reps: int
    counts: Dict[str, int]
    peak_velocity: Dict[str, float]
    session_peak_velocity: float
    session_avg_velocity: float
    sets: List[RepSetResponse]
