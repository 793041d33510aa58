"""
Motion classification engine for kettlebell rep tracking.

PIPELINE COMPONENTS:
1. LandmarkSmoother: Per-side, per-joint EMA over raw landmarks
2. CalibrationEstimator: Pixel-to-meters scale from torso length
3. SideLocker: Permanent working-arm selection
4. VelocityEstimator: dt-windowed, frame-rate-normalized wrist velocity
5. RepetitionStateMachine: IDLE → PULLING → LOCKED rep segmentation and
   clean / press / snatch / swing classification
6. MotionEngine: Per-frame orchestration and reset
7. ParkingDetector: Set-end gesture (bell parked below the knee, stand up)
8. SessionAggregator: Per-type counts, peak velocities, sets

Usage:
    from kbtracker.cv import MotionEngine, SessionAggregator, pose_frame_from_landmarks
    
    engine = MotionEngine(frame_height=720)
    session = SessionAggregator()
    for timestamp_ms, landmarks in stream:
        result = engine.process_frame(pose_frame_from_landmarks(landmarks), timestamp_ms)
        session.consume(result)
"""

from kbtracker.cv.landmarks import (
    Side, Joint, Keypoint, PoseFrame, MediaPipeLandmark, pose_frame_from_landmarks
)
from kbtracker.cv.thresholds import MotionThresholds
from kbtracker.cv.keypoint_smoother import LandmarkSmoother
from kbtracker.cv.calibration import Calibration, CalibrationEstimator
from kbtracker.cv.side_locker import SideLocker
from kbtracker.cv.velocity import VelocityEstimator, VelocitySample
from kbtracker.cv.kinematic_classifier import (
    RepetitionStateMachine,
    KinematicFrame,
    ClassifiedRep,
    MovementType,
    RepPhase,
    IdleState,
    PullingState,
    LockedState,
)
from kbtracker.cv.motion_engine import (
    MotionEngine, FrameResult, FrameStatus, create_motion_engine
)
from kbtracker.cv.parking import ParkingDetector
from kbtracker.cv.session import SessionAggregator, RepSet

__all__ = [
    # Landmarks
    "Side",
    "Joint",
    "Keypoint",
    "PoseFrame",
    "MediaPipeLandmark",
    "pose_frame_from_landmarks",
    
    # Configuration
    "MotionThresholds",
    
    # Signal conditioning
    "LandmarkSmoother",
    "Calibration",
    "CalibrationEstimator",
    "SideLocker",
    "VelocityEstimator",
    "VelocitySample",
    "ParkingDetector",
    
    # State machine
    "RepetitionStateMachine",
    "KinematicFrame",
    "ClassifiedRep",
    "MovementType",
    "RepPhase",
    "IdleState",
    "PullingState",
    "LockedState",
    
    # Engine
    "MotionEngine",
    "FrameResult",
    "FrameStatus",
    "create_motion_engine",
    
    # Session
    "SessionAggregator",
    "RepSet",
]
