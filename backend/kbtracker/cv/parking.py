"""
Set-end gesture detection.

Athletes end a set by parking the bell: the working wrist drops below the
knee and stays there (or the head dips while it is there), then the lifter
stands back up with the wrist still low. The detector only reports the
gesture; closing the set is up to the session aggregator, and the engine's
calibration and side lock are untouched.

GESTURE:
1. Wrist below knee (floor zone)
2. Parked: floor zone held for ``dwell_frames`` consecutive frames, or a
   head dip while in the floor zone
3. Stand-up: parked, still in the floor zone, V_y < -stand_up_vy
"""

import logging
from typing import Optional

from kbtracker.cv.landmarks import Keypoint

logger = logging.getLogger(__name__)


def is_wrist_in_floor_zone(wrist: Optional[Keypoint], knee: Optional[Keypoint]) -> bool:
    """Wrist lower in the image than the knee."""
    if wrist is None or knee is None:
        return False
    return wrist.y > knee.y


class ParkingDetector:
    """Recognizes the park-then-stand gesture on the locked side."""

    def __init__(
        self,
        dwell_frames: int = 15,
        head_dip_threshold: float = 0.03,
        stand_up_vy: float = 0.3,
    ):
        self.dwell_frames = dwell_frames
        self.head_dip_threshold = head_dip_threshold
        self.stand_up_vy = stand_up_vy
        self.reset()

    def reset(self):
        self.frames_in_zone = 0
        self.parked = False
        self._prev_head_y: Optional[float] = None

    def update(
        self,
        wrist: Keypoint,
        knee: Optional[Keypoint],
        nose: Optional[Keypoint],
        v_y: float,
    ) -> bool:
        """
        Feed one tracked frame.

        Returns:
            True on the frame the lifter stands up from a confirmed park
        """
        in_zone = is_wrist_in_floor_zone(wrist, knee)
        head_lowering = (
            nose is not None
            and self._prev_head_y is not None
            and nose.y > self._prev_head_y + self.head_dip_threshold
        )
        self._prev_head_y = nose.y if nose is not None else None

        if not in_zone:
            self.frames_in_zone = 0
            self.parked = False
            return False

        self.frames_in_zone += 1
        if not self.parked and (self.frames_in_zone >= self.dwell_frames or head_lowering):
            self.parked = True
            logger.debug(f"Bell parked after {self.frames_in_zone} frames in floor zone")

        if self.parked and v_y < -self.stand_up_vy:
            logger.info(f"Set-end gesture: stood up from park (v={v_y:.2f})")
            self.frames_in_zone = 0
            self.parked = False
            return True
        return False
