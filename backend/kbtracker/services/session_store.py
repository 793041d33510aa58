"""In-memory registry of live tracking sessions."""

import time
import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Dict, List, Optional

from kbtracker.config import Settings, get_settings
from kbtracker.cv.landmarks import Keypoint, PoseFrame, pose_frame_from_landmarks
from kbtracker.cv.motion_engine import FrameResult, MotionEngine, create_motion_engine
from kbtracker.cv.session import SessionAggregator
from kbtracker.schemas.session import FrameIn

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """No live session with the requested id."""


class SessionLimitReached(RuntimeError):
    """The registry is at capacity."""


@dataclass
class LiveSession:
    """An engine plus the aggregator consuming its reps."""
    id: str
    engine: MotionEngine
    aggregator: SessionAggregator = field(default_factory=SessionAggregator)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    clock: Callable[[], float] = time.monotonic
    last_frame_at: float = field(default_factory=time.monotonic)  # clock() seconds
    
    def idle_seconds(self) -> float:
        return self.clock() - self.last_frame_at
    
    def process(self, frame: FrameIn, min_visibility: float = 0.5) -> FrameResult:
        """Feed one frame; reps and set-end gestures go to the aggregator."""
        pose = to_pose_frame(frame, min_visibility)
        result = self.engine.process_frame(pose, frame.timestamp_ms)
        self.aggregator.consume(result)
        self.last_frame_at = self.clock()
        return result
    
    def reset(self):
        self.engine.reset()
        self.aggregator.reset()
        logger.info(f"Session {self.id} reset")


def to_pose_frame(frame: FrameIn, min_visibility: float = 0.5) -> Optional[PoseFrame]:
    """Convert request payload into a PoseFrame (None = no pose)."""
    if frame.landmarks:
        return pose_frame_from_landmarks(frame.landmarks, min_visibility=min_visibility)
    if not frame.pose:
        return None
    
    pose: PoseFrame = {}
    for side, joints in frame.pose.items():
        points = {}
        for joint, kp in joints.items():
            if kp.visibility is not None and kp.visibility < min_visibility:
                continue
            points[joint] = Keypoint(x=kp.x, y=kp.y, z=kp.z or 0.0)
        if points:
            pose[side] = points
    return pose


class SessionStore:
    """Holds live sessions by id. Nothing is persisted."""
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self._sessions: Dict[str, LiveSession] = {}
    
    def __len__(self) -> int:
        return len(self._sessions)
    
    def evict_idle(self) -> List[str]:
        """Drop sessions that have not received a frame within the idle timeout."""
        timeout = self.settings.session_idle_timeout_s
        expired = [sid for sid, s in self._sessions.items() if s.idle_seconds() > timeout]
        for sid in expired:
            del self._sessions[sid]
            logger.info(f"Live session {sid} expired after {timeout:.0f}s idle")
        return expired
    
    def create(self, frame_height: float, frame_width: Optional[float] = None) -> LiveSession:
        self.evict_idle()
        if len(self._sessions) >= self.settings.max_live_sessions:
            raise SessionLimitReached(
                f"Maximum of {self.settings.max_live_sessions} live sessions reached"
            )
        
        session = LiveSession(
            id=str(uuid.uuid4()),
            engine=create_motion_engine(frame_height, frame_width, self.settings),
            clock=self.clock,
            last_frame_at=self.clock(),
        )
        self._sessions[session.id] = session
        logger.info(f"Live session {session.id} created ({frame_height}px)")
        return session
    
    def get(self, session_id: str) -> LiveSession:
        self.evict_idle()
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None
    
    def delete(self, session_id: str):
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFound(session_id)
        logger.info(f"Live session {session_id} closed")
    
    def clear(self):
        self._sessions.clear()


@lru_cache
def get_session_store() -> SessionStore:
    """Get the process-wide session store."""
    return SessionStore()
