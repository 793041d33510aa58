"""
Body landmark types shared by the motion engine.

A Pose Frame is a two-level mapping: side -> joint -> Keypoint. Joint sets are
closed, so both levels are keyed by small enums rather than free-form strings.
Joints the detector failed to find are simply absent from the inner mapping.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence


class Side(str, Enum):
    """Body side."""
    LEFT = "left"
    RIGHT = "right"


class Joint(str, Enum):
    """Tracked anatomical landmarks."""
    WRIST = "wrist"
    SHOULDER = "shoulder"
    HIP = "hip"
    KNEE = "knee"
    NOSE = "nose"
    ELBOW = "elbow"


@dataclass(frozen=True)
class Keypoint:
    """Normalized landmark position (0-1, y grows downward)."""
    x: float
    y: float
    z: float = 0.0


PoseFrame = Dict[Side, Dict[Joint, Keypoint]]


def get_joint(frame: Optional[Mapping], side: Side, joint: Joint) -> Optional[Keypoint]:
    """Look up one joint, tolerating missing sides."""
    if not frame:
        return None
    return frame.get(side, {}).get(joint)


def has_joints(frame: Optional[Mapping], side: Side, joints: Iterable[Joint]) -> bool:
    """True when every joint in ``joints`` is present for ``side``."""
    return all(get_joint(frame, side, j) is not None for j in joints)


def is_empty(frame: Optional[Mapping]) -> bool:
    """A frame with no detected landmarks at all."""
    if not frame:
        return True
    return not any(frame.get(side) for side in Side)


# =============================================================================
# MediaPipe adapter
# =============================================================================

class MediaPipeLandmark(IntEnum):
    """MediaPipe Pose landmark indices used by the engine."""
    NOSE = 0
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26


MEDIAPIPE_NUM_LANDMARKS = 33

MEDIAPIPE_INDEX: Dict[Side, Dict[Joint, int]] = {
    Side.LEFT: {
        Joint.WRIST: MediaPipeLandmark.LEFT_WRIST,
        Joint.SHOULDER: MediaPipeLandmark.LEFT_SHOULDER,
        Joint.ELBOW: MediaPipeLandmark.LEFT_ELBOW,
        Joint.HIP: MediaPipeLandmark.LEFT_HIP,
        Joint.KNEE: MediaPipeLandmark.LEFT_KNEE,
        Joint.NOSE: MediaPipeLandmark.NOSE,
    },
    Side.RIGHT: {
        Joint.WRIST: MediaPipeLandmark.RIGHT_WRIST,
        Joint.SHOULDER: MediaPipeLandmark.RIGHT_SHOULDER,
        Joint.ELBOW: MediaPipeLandmark.RIGHT_ELBOW,
        Joint.HIP: MediaPipeLandmark.RIGHT_HIP,
        Joint.KNEE: MediaPipeLandmark.RIGHT_KNEE,
        Joint.NOSE: MediaPipeLandmark.NOSE,
    },
}


def _read(landmark: Any, name: str, default: Optional[float] = None) -> Optional[float]:
    if isinstance(landmark, Mapping):
        value = landmark.get(name, default)
    else:
        value = getattr(landmark, name, default)
    return None if value is None else float(value)


def pose_frame_from_landmarks(
    landmarks: Optional[Sequence[Any]],
    min_visibility: float = 0.5,
) -> PoseFrame:
    """
    Convert a MediaPipe pose landmark list into a PoseFrame.

    Args:
        landmarks: 33 landmarks, either objects with x/y/z/visibility
            attributes (MediaPipe Tasks results) or plain mappings.
        min_visibility: Landmarks reporting a lower visibility are dropped.

    Returns:
        PoseFrame; empty when ``landmarks`` is empty or None.
    """
    if not landmarks:
        return {}
    if len(landmarks) != MEDIAPIPE_NUM_LANDMARKS:
        raise ValueError(
            f"Expected {MEDIAPIPE_NUM_LANDMARKS} MediaPipe landmarks, got {len(landmarks)}"
        )

    frame: PoseFrame = {}
    for side, joints in MEDIAPIPE_INDEX.items():
        side_points: Dict[Joint, Keypoint] = {}
        for joint, idx in joints.items():
            lm = landmarks[idx]
            if lm is None:
                continue
            visibility = _read(lm, "visibility")
            if visibility is not None and visibility < min_visibility:
                continue
            x, y = _read(lm, "x"), _read(lm, "y")
            if x is None or y is None:
                continue
            side_points[joint] = Keypoint(x=x, y=y, z=_read(lm, "z", 0.0) or 0.0)
        if side_points:
            frame[side] = side_points
    return frame
