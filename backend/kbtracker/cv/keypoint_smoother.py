"""
Temporal landmark smoothing using an Exponential Moving Average.

Pose detectors jitter by a few pixels frame to frame even when the athlete is
still. Velocity is a derivative of position, so that jitter is amplified
before it ever reaches the rep state machine. An EMA per side and per joint
removes most of it at the cost of a small phase lag.

SMOOTHING RULES:
1. First observation of a joint seeds the state verbatim (no blending)
2. Later observations blend: smoothed = alpha * raw + (1 - alpha) * previous
3. Joints missing from a frame hold their last smoothed value
"""

import logging
from typing import Optional

from kbtracker.cv.landmarks import Keypoint, PoseFrame

logger = logging.getLogger(__name__)


class LandmarkSmoother:
    """
    Per-side, per-joint EMA smoother.
    
    Owns the previous smoothed Pose Frame exclusively; ``process`` replaces
    it with the newly smoothed frame.
    """
    
    def __init__(self, alpha: float = 0.3):
        """
        Initialize smoother.
        
        Args:
            alpha: EMA smoothing factor (small = heavy smoothing, 1 = no history)
        """
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self._smoothed: PoseFrame = {}
    
    @property
    def state(self) -> PoseFrame:
        """Current smoothed frame (copy)."""
        return {side: dict(joints) for side, joints in self._smoothed.items()}
    
    def process(self, raw: PoseFrame) -> PoseFrame:
        """
        Blend a raw frame into the smoothing state.
        
        Args:
            raw: Raw detector output for this frame
            
        Returns:
            The new smoothed PoseFrame
        """
        result: PoseFrame = {side: dict(joints) for side, joints in self._smoothed.items()}
        
        for side, joints in raw.items():
            side_state = result.setdefault(side, {})
            for joint, point in joints.items():
                prev = side_state.get(joint)
                side_state[joint] = self._blend(prev, point)
        
        self._smoothed = result
        return self.state
    
    def _blend(self, prev: Optional[Keypoint], raw: Keypoint) -> Keypoint:
        """Apply EMA to one keypoint."""
        raw_z = raw.z if raw.z is not None else 0.0
        if prev is None:
            return Keypoint(x=raw.x, y=raw.y, z=raw_z)
        
        a = self.alpha
        return Keypoint(
            x=a * raw.x + (1 - a) * prev.x,
            y=a * raw.y + (1 - a) * prev.y,
            z=a * raw_z + (1 - a) * prev.z,
        )
    
    def reset(self):
        """Reset all smoothing history."""
        self._smoothed = {}
