"""
Per-frame motion classification engine.

PIPELINE (one call per delivered frame):
1. No pose at all -> skip, no state change
2. LandmarkSmoother: EMA over raw landmarks
3. CalibrationEstimator: warm-up window (frames routed here until calibrated)
4. SideLocker: pick the working arm once, permanently (both raw wrists required)
5. VelocityEstimator: dt-windowed, frame-rate-normalized wrist velocity
6. RepetitionStateMachine: phase transitions + classification
7. ParkingDetector: set-end gesture (bell parked below the knee, stand up)

The engine never raises for bad input frames; every degraded case is
reported as a FrameStatus with no rep.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kbtracker.cv.calibration import REQUIRED_JOINTS as CALIBRATION_JOINTS
from kbtracker.cv.calibration import CalibrationEstimator
from kbtracker.cv.keypoint_smoother import LandmarkSmoother
from kbtracker.cv.kinematic_classifier import (
    ClassifiedRep,
    KinematicFrame,
    RepetitionStateMachine,
    RepPhase,
)
from kbtracker.cv.landmarks import Joint, PoseFrame, Side, get_joint, has_joints, is_empty
from kbtracker.cv.parking import ParkingDetector
from kbtracker.cv.side_locker import SideLocker
from kbtracker.cv.thresholds import MotionThresholds
from kbtracker.cv.velocity import VelocityEstimator

logger = logging.getLogger(__name__)

TRACKING_JOINTS = (Joint.WRIST, Joint.HIP, Joint.SHOULDER, Joint.NOSE)


class FrameStatus(str, Enum):
    """What the engine did with a frame."""
    NO_POSE = "no_pose"
    INCOMPLETE_FRAME = "incomplete_frame"
    CALIBRATING = "calibrating"
    AMBIGUOUS_SIDE = "ambiguous_side"
    WARMING_VELOCITY = "warming_velocity"
    IMPLAUSIBLE_INTERVAL = "implausible_interval"
    TRACKING = "tracking"


@dataclass
class FrameResult:
    """Per-frame engine output."""
    frame_number: int
    status: FrameStatus
    velocity: float  # |Smoothed Velocity|, clamped for display
    smoothed_vy: float
    phase: RepPhase
    calibrated: bool
    locked_side: Optional[Side] = None
    rep: Optional[ClassifiedRep] = None
    speed: float = 0.0  # Last sample's total speed, zero-banded
    set_ended: bool = False  # Park-then-stand gesture seen this frame


class MotionEngine:
    """
    Explicit engine instance replacing global per-session state.
    
    Usage:
        engine = MotionEngine(frame_height=720)
        for timestamp_ms, pose in stream:
            result = engine.process_frame(pose, timestamp_ms)
            aggregator.consume(result)
    """
    
    def __init__(
        self,
        frame_height: float,
        frame_width: Optional[float] = None,
        thresholds: Optional[MotionThresholds] = None,
    ):
        if frame_height <= 0:
            raise ValueError(f"frame_height must be positive, got {frame_height}")
        self.frame_height = frame_height
        self.frame_width = frame_width
        self.thresholds = thresholds or MotionThresholds()
        self._build()
        logger.info(f"MotionEngine initialized: {frame_height}px frame, "
                    f"{self.thresholds.calibration_frames} calibration frames")
        logger.debug(f"Motion thresholds: {self.thresholds.as_dict()}")
    
    def _build(self):
        """(Re)create every stateful component."""
        th = self.thresholds
        self.smoother = LandmarkSmoother(alpha=th.position_alpha)
        self.calibration = CalibrationEstimator(
            frame_height=self.frame_height,
            warmup_frames=th.calibration_frames,
            torso_meters=th.torso_meters,
            min_scale=th.min_scale,
        )
        self.side_locker = SideLocker(threshold=th.side_lock_threshold)
        self.velocity = VelocityEstimator(
            frame_height=self.frame_height,
            frame_width=self.frame_width,
            alpha=th.velocity_alpha,
            min_dt_ms=th.min_dt_ms,
            max_dt_ms=th.max_dt_ms,
            reference_frame_ms=th.reference_frame_ms,
            zero_band=th.zero_band,
            max_realistic_velocity=th.max_realistic_velocity,
        )
        self.state_machine = RepetitionStateMachine(th)
        self.parking = ParkingDetector(
            dwell_frames=th.parking_dwell_frames,
            head_dip_threshold=th.head_dip_threshold,
            stand_up_vy=th.stand_up_vy,
        )
        self.frame_number = 0
    
    @property
    def is_calibrated(self) -> bool:
        return self.calibration.is_calibrated
    
    @property
    def locked_side(self) -> Optional[Side]:
        return self.side_locker.locked_side
    
    def process_frame(self, pose: Optional[PoseFrame], timestamp_ms: float) -> FrameResult:
        """
        Run one frame through the pipeline.
        
        Args:
            pose: Raw PoseFrame from the detector (None/empty = no pose)
            timestamp_ms: Monotonic, non-decreasing frame timestamp
            
        Returns:
            FrameResult with an optional ClassifiedRep
        """
        self.frame_number += 1
        
        if is_empty(pose):
            return self._result(FrameStatus.NO_POSE)
        
        smoothed = self.smoother.process(pose)
        
        # Warm-up: frames feed the calibration accumulator, not the FSM
        if not self.calibration.is_calibrated:
            if all(has_joints(pose, side, CALIBRATION_JOINTS) for side in Side):
                self.calibration.observe(smoothed)
                return self._result(FrameStatus.CALIBRATING)
            return self._result(FrameStatus.INCOMPLETE_FRAME)
        
        if not self.side_locker.is_locked:
            if not all(has_joints(pose, s, (Joint.WRIST,)) for s in Side):
                return self._result(FrameStatus.INCOMPLETE_FRAME)
            side = self.side_locker.update(smoothed)
            if side is None:
                if self.frame_number % 10 == 0:
                    logger.debug(f"Frame {self.frame_number}: working side still ambiguous")
                return self._result(FrameStatus.AMBIGUOUS_SIDE)
            self.state_machine.side = side
        
        side = self.side_locker.locked_side
        if not has_joints(pose, side, TRACKING_JOINTS):
            if self.frame_number % 10 == 0:
                logger.debug(f"Frame {self.frame_number}: missing joints for {side.value} side")
            return self._result(FrameStatus.INCOMPLETE_FRAME)
        
        wrist = get_joint(smoothed, side, Joint.WRIST)
        rejected_before = self.velocity.rejected_intervals
        sample = self.velocity.update(wrist, timestamp_ms, self.calibration.scale_factor)
        if sample is None:
            if self.velocity.rejected_intervals > rejected_before:
                return self._result(FrameStatus.IMPLAUSIBLE_INTERVAL)
            return self._result(FrameStatus.WARMING_VELOCITY)
        
        kinematic = KinematicFrame(
            wrist=wrist,
            hip=get_joint(smoothed, side, Joint.HIP),
            shoulder=get_joint(smoothed, side, Joint.SHOULDER),
            nose=get_joint(smoothed, side, Joint.NOSE),
            v_y=self.velocity.smoothed_vy,
            timestamp_ms=timestamp_ms,
            frame_number=self.frame_number,
        )
        rep = self.state_machine.process_frame(kinematic)
        
        knee = get_joint(smoothed, side, Joint.KNEE) if has_joints(pose, side, (Joint.KNEE,)) else None
        set_ended = self.parking.update(wrist, knee, kinematic.nose, kinematic.v_y)
        
        if self.frame_number % 10 == 0:
            logger.debug(f"Frame {self.frame_number}: phase={self.state_machine.phase.value}, "
                         f"vy={self.velocity.smoothed_vy:.2f}, wrist_y={wrist.y:.3f}")
        
        return self._result(FrameStatus.TRACKING, rep, set_ended)
    
    def _result(
        self,
        status: FrameStatus,
        rep: Optional[ClassifiedRep] = None,
        set_ended: bool = False,
    ) -> FrameResult:
        last = self.velocity.last_sample
        return FrameResult(
            frame_number=self.frame_number,
            status=status,
            velocity=self.velocity.display_velocity,
            smoothed_vy=self.velocity.smoothed_vy,
            phase=self.state_machine.phase,
            calibrated=self.calibration.is_calibrated,
            locked_side=self.side_locker.locked_side,
            rep=rep,
            speed=last.speed if last is not None else 0.0,
            set_ended=set_ended,
        )
    
    def reset(self) -> "MotionEngine":
        """Discard smoothing, calibration and FSM state (pre-warm-up condition)."""
        self._build()
        logger.info("MotionEngine reset")
        return self


def create_motion_engine(
    frame_height: float,
    frame_width: Optional[float] = None,
    settings=None,
) -> MotionEngine:
    """
    Factory function building an engine from application settings.
    
    Args:
        frame_height: Stream height in pixels
        frame_width: Stream width in pixels (defaults to height)
        settings: Optional Settings instance (defaults to get_settings())
    """
    return MotionEngine(
        frame_height=frame_height,
        frame_width=frame_width,
        thresholds=MotionThresholds.from_settings(settings),
    )
