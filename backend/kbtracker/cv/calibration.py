"""
Pixel-to-meters calibration from body proportions.

During a warm-up window the athlete stands roughly still in frame. The
estimator watches both sides' wrist, hip and shoulder positions and derives:

- A neutral wrist offset: mean (wrist.y - hip.y) across sides and frames
- A scale factor: longest observed torso span in pixels divided by an assumed
  torso length in meters, clamped to a floor so a tiny or foreshortened torso
  can never blow velocities up

Calibration happens once per session. Only a full engine reset restarts it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from kbtracker.cv.landmarks import Joint, PoseFrame, Side, get_joint, has_joints

logger = logging.getLogger(__name__)

REQUIRED_JOINTS = (Joint.WRIST, Joint.HIP, Joint.SHOULDER)


@dataclass
class Calibration:
    """Immutable calibration result."""
    scale_factor: float  # pixels per meter
    neutral_wrist_offset: float  # normalized units, positive = wrist below hip
    max_torso_length: float  # normalized units
    frames_used: int


class CalibrationEstimator:
    """
    Warm-up accumulator producing a Calibration.
    
    Frames missing any of the required joints on either side are skipped and
    do not consume a warm-up slot.
    """
    
    def __init__(
        self,
        frame_height: float,
        warmup_frames: int = 30,
        torso_meters: float = 0.45,
        min_scale: float = 50.0,
    ):
        if frame_height <= 0:
            raise ValueError(f"frame_height must be positive, got {frame_height}")
        self.frame_height = frame_height
        self.warmup_frames = warmup_frames
        self.torso_meters = torso_meters
        self.min_scale = min_scale
        
        self.frames_captured = 0
        self.neutral_wrist_offset = 0.0  # running sum until calibrated
        self.max_torso_length = 0.0
        self.calibration: Optional[Calibration] = None
    
    @property
    def is_calibrated(self) -> bool:
        return self.calibration is not None
    
    @property
    def scale_factor(self) -> Optional[float]:
        return self.calibration.scale_factor if self.calibration else None
    
    def observe(self, frame: PoseFrame) -> bool:
        """
        Feed one smoothed frame into the warm-up window.
        
        Returns:
            True if the frame was accepted (consumed a warm-up slot)
        """
        if self.is_calibrated:
            return False
        
        if not all(has_joints(frame, side, REQUIRED_JOINTS) for side in Side):
            return False
        
        offsets = []
        for side in Side:
            wrist = get_joint(frame, side, Joint.WRIST)
            hip = get_joint(frame, side, Joint.HIP)
            shoulder = get_joint(frame, side, Joint.SHOULDER)
            offsets.append(wrist.y - hip.y)
            self.max_torso_length = max(self.max_torso_length, abs(shoulder.y - hip.y))
        
        self.neutral_wrist_offset += sum(offsets) / len(offsets)
        self.frames_captured += 1
        
        if self.frames_captured >= self.warmup_frames:
            self._finalize()
        return True
    
    def _finalize(self):
        """Collapse the warm-up accumulators into a Calibration."""
        baseline = self.neutral_wrist_offset / self.frames_captured
        torso_px = self.max_torso_length * self.frame_height
        scale = max(self.min_scale, torso_px / self.torso_meters)
        
        self.calibration = Calibration(
            scale_factor=scale,
            neutral_wrist_offset=baseline,
            max_torso_length=self.max_torso_length,
            frames_used=self.frames_captured,
        )
        self.neutral_wrist_offset = baseline
        logger.info(f"Calibration complete after {self.frames_captured} frames: "
                    f"scale={scale:.1f} px/m, torso={self.max_torso_length:.3f}, "
                    f"neutral_wrist_offset={baseline:.3f}")
    
    def reset(self):
        self.frames_captured = 0
        self.neutral_wrist_offset = 0.0
        self.max_torso_length = 0.0
        self.calibration = None
