"""
Frame-rate-normalized wrist velocity.

V_y convention: image y grows downward, so negative V_y = moving UP.

PIPELINE PER FRAME:
1. dt plausibility window: dt < 16ms is a duplicate frame, dt > 100ms is a
   stall. Both refresh the stored position but produce no sample.
2. Pixel displacement -> meters via the calibration scale factor, / dt
3. Re-normalize to the 30fps reference interval
4. EMA on the vertical component only -> Smoothed Velocity (drives the FSM)
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from kbtracker.cv.landmarks import Keypoint

logger = logging.getLogger(__name__)


@dataclass
class VelocitySample:
    """One velocity measurement (m/s)."""
    vx: float
    vy: float
    speed: float


@dataclass
class _WristSample:
    x: float
    y: float
    t: float  # ms


class VelocityEstimator:
    """
    Wrist velocity estimator with its own previous-position state.
    
    Independent of the landmark smoother's state: the smoother holds the
    previous smoothed pose, this holds the previous tracked wrist and its
    timestamp.
    """
    
    def __init__(
        self,
        frame_height: float,
        frame_width: Optional[float] = None,
        alpha: float = 0.15,
        min_dt_ms: float = 16.0,
        max_dt_ms: float = 100.0,
        reference_frame_ms: float = 1000.0 / 30.0,
        zero_band: float = 0.1,
        max_realistic_velocity: float = 8.0,
    ):
        if frame_height <= 0:
            raise ValueError(f"frame_height must be positive, got {frame_height}")
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.frame_height = frame_height
        self.frame_width = frame_width or frame_height
        self.alpha = alpha
        self.min_dt_ms = min_dt_ms
        self.max_dt_ms = max_dt_ms
        self.reference_frame_ms = reference_frame_ms
        self.zero_band = zero_band
        self.max_realistic_velocity = max_realistic_velocity
        
        self._prev: Optional[_WristSample] = None
        self.smoothed_vy = 0.0
        self.last_sample: Optional[VelocitySample] = None
        self.rejected_intervals = 0
    
    @property
    def display_velocity(self) -> float:
        """Smoothed vertical speed, clamped for display."""
        return min(abs(self.smoothed_vy), self.max_realistic_velocity)
    
    def update(
        self,
        wrist: Keypoint,
        timestamp_ms: float,
        scale_factor: float,
    ) -> Optional[VelocitySample]:
        """
        Feed the tracked wrist's smoothed position.
        
        Args:
            wrist: Smoothed wrist of the locked side
            timestamp_ms: Monotonic frame timestamp in milliseconds
            scale_factor: Calibration pixels-per-meter
            
        Returns:
            VelocitySample, or None when no sample was produced this frame
            (first frame or implausible dt)
        """
        prev = self._prev
        self._prev = _WristSample(x=wrist.x, y=wrist.y, t=timestamp_ms)
        
        if prev is None:
            return None
        
        # Both dt and the normalization ratio come from this one delta
        dt_ms = timestamp_ms - prev.t
        if dt_ms < self.min_dt_ms or dt_ms > self.max_dt_ms:
            self.rejected_intervals += 1
            logger.debug(f"Rejected frame interval: dt={dt_ms:.1f}ms "
                         f"(window {self.min_dt_ms:.0f}-{self.max_dt_ms:.0f}ms)")
            return None
        
        dt = dt_ms / 1000.0
        dx_px = (wrist.x - prev.x) * self.frame_width
        dy_px = (wrist.y - prev.y) * self.frame_height
        
        vx = (dx_px / scale_factor) / dt
        vy = (dy_px / scale_factor) / dt
        
        # Normalize to the reference frame rate
        time_ratio = self.reference_frame_ms / dt_ms
        vx *= time_ratio
        vy *= time_ratio
        
        speed = float(np.hypot(vx, vy))
        if speed < self.zero_band:
            speed = 0.0
        
        self.smoothed_vy = self.alpha * vy + (1 - self.alpha) * self.smoothed_vy
        
        sample = VelocitySample(vx=float(vx), vy=float(vy), speed=speed)
        self.last_sample = sample
        return sample
    
    def reset(self):
        self._prev = None
        self.smoothed_vy = 0.0
        self.last_sample = None
        self.rejected_intervals = 0
