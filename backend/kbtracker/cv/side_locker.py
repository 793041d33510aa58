"""
Working-side detection.

Single-kettlebell lifts are done one arm at a time. The arm holding the bell
hangs lower than the free arm, so once the two wrists are clearly apart
vertically the lower one is taken as the working side and kept for the rest
of the session.
"""

import logging
from typing import Optional

from kbtracker.cv.landmarks import Joint, PoseFrame, Side, get_joint

logger = logging.getLogger(__name__)


class SideLocker:
    """Locks onto the working side once the wrists disambiguate it."""
    
    def __init__(self, threshold: float = 0.1):
        self.threshold = threshold
        self.locked_side: Optional[Side] = None
    
    @property
    def is_locked(self) -> bool:
        return self.locked_side is not None
    
    def update(self, frame: PoseFrame) -> Optional[Side]:
        """
        Try to lock a side from this frame.
        
        Returns:
            The locked side, or None while still ambiguous
        """
        if self.locked_side is not None:
            return self.locked_side
        
        left = get_joint(frame, Side.LEFT, Joint.WRIST)
        right = get_joint(frame, Side.RIGHT, Joint.WRIST)
        if left is None or right is None:
            return None
        
        if abs(left.y - right.y) <= self.threshold:
            return None
        
        # Larger y = lower in the image = the hand carrying the bell
        self.locked_side = Side.LEFT if left.y > right.y else Side.RIGHT
        logger.info(f"Working side locked: {self.locked_side.value} "
                    f"(left_y={left.y:.3f}, right_y={right.y:.3f})")
        return self.locked_side
    
    def reset(self):
        self.locked_side = None
