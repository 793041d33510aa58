"""
Kettlebell Repetition State Machine

Segments the continuous vertical wrist velocity of the working arm into
discrete repetitions and labels each one.

DATA INPUT CONTEXT (per valid frame):
- V_y: Smoothed vertical wrist velocity in m/s (negative = ascending)
- Wrist, hip, shoulder and nose positions of the locked side (normalized,
  0 = top of frame)

STATES:
    IDLE ──(V_y < -trigger)──> PULLING ──(lockout)──> LOCKED ──(|V_y| > trigger again)──> IDLE

LOCKED re-arms only once |V_y| has first dropped to the trigger; the
deceleration tail of the rep that just locked never starts a new pull.

SUPPORTED MOVEMENTS:
1. Clean:  bell from the hinge, through the hip, held at the shoulder (~1s)
2. Press:  bell driven overhead without a hinge/hip pass
3. Snatch: bell from the hinge, through the hip, straight overhead
4. Swing:  bell from the hinge, through the hip, floated and dropped

A pull that ends without qualifying for any of these is discarded silently.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from kbtracker.cv.landmarks import Keypoint, Side
from kbtracker.cv.thresholds import MotionThresholds

logger = logging.getLogger(__name__)


# =============================================================================
# SECTION 1: Core Data Structures
# =============================================================================

class MovementType(str, Enum):
    """Classified movement types."""
    CLEAN = "clean"
    PRESS = "press"
    SNATCH = "snatch"
    SWING = "swing"


class RepPhase(str, Enum):
    """State machine phases."""
    IDLE = "idle"        # No rep in progress
    PULLING = "pulling"  # Rep in progress, tracking peak + positional flags
    LOCKED = "locked"    # Rep concluded, inert until new movement


@dataclass(frozen=True)
class IdleState:
    phase = RepPhase.IDLE


@dataclass
class PullingState:
    """Payload carried only while a pull is in progress."""
    phase = RepPhase.PULLING
    current_rep_peak: float = 0.0
    hip_crossed_upward: bool = False
    shoulder_hold_frames: int = 0
    started_at_ms: Optional[float] = None


@dataclass
class LockedState:
    """Rep concluded. Re-arms only after velocity has first settled."""
    phase = RepPhase.LOCKED
    settled: bool = False  # |V_y| has dropped to the trigger since lockout


PhaseState = Union[IdleState, PullingState, LockedState]


@dataclass
class KinematicFrame:
    """
    Single frame of kinematic data for the locked side.
    
    All positions are smoothed and normalized (0 = top of frame).
    """
    wrist: Keypoint
    hip: Keypoint
    shoulder: Keypoint
    nose: Keypoint
    v_y: float  # Smoothed vertical velocity, m/s, negative = ascending
    timestamp_ms: Optional[float] = None
    frame_number: int = 0
    
    @property
    def torso_span(self) -> float:
        return abs(self.shoulder.y - self.hip.y)


@dataclass(frozen=True)
class ClassifiedRep:
    """A finished, labelled repetition."""
    movement: MovementType
    peak_velocity: float  # m/s, max |V_y| during the pull
    side: Optional[Side] = None
    timestamp_ms: Optional[float] = None
    duration_ms: Optional[float] = None


# =============================================================================
# SECTION 2: Repetition State Machine
# =============================================================================

class RepetitionStateMachine:
    """
    Hysteresis FSM turning smoothed velocity into classified reps.
    
    ``has_visited_hinge`` is a memory flag: it is set whenever the wrist has
    dipped below the hip by more than the hinge depth, in any phase, and is
    cleared only on the LOCKED -> IDLE transition. It therefore records the
    backswing that precedes a pull.
    
    Emission happens only on the PULLING -> LOCKED transition, at most once.
    """
    
    def __init__(self, thresholds: Optional[MotionThresholds] = None, side: Optional[Side] = None):
        self.thresholds = thresholds or MotionThresholds()
        self.side = side
        self.state: PhaseState = IdleState()
        self.has_visited_hinge = False
        self.detected_reps: List[ClassifiedRep] = []
        self.discarded_pulls = 0
    
    @property
    def phase(self) -> RepPhase:
        return self.state.phase
    
    @property
    def current_rep_peak(self) -> float:
        if isinstance(self.state, PullingState):
            return self.state.current_rep_peak
        return 0.0
    
    def process_frame(self, frame: KinematicFrame) -> Optional[ClassifiedRep]:
        """
        Advance the state machine by one valid frame.
        
        Returns:
            ClassifiedRep if a rep just completed, None otherwise
        """
        th = self.thresholds
        speed = abs(frame.v_y)
        
        if isinstance(self.state, LockedState):
            if self.state.settled and speed > th.pull_velocity_trigger:
                # New movement beginning - re-arm
                self.state = IdleState()
                self.has_visited_hinge = False
                logger.debug(f"Frame {frame.frame_number}: LOCKED → IDLE (|v|={speed:.2f})")
                return None
            if speed <= th.pull_velocity_trigger:
                self.state.settled = True
            self._track_hinge(frame)
            return None
        
        self._track_hinge(frame)
        
        if isinstance(self.state, IdleState):
            if frame.v_y < -th.pull_velocity_trigger:
                self.state = PullingState(current_rep_peak=speed, started_at_ms=frame.timestamp_ms)
                logger.debug(f"Frame {frame.frame_number}: IDLE → PULLING "
                             f"(v={frame.v_y:.2f}, hinge={self.has_visited_hinge})")
            return None
        
        return self._process_pulling(frame, self.state)
    
    def _track_hinge(self, frame: KinematicFrame):
        if frame.wrist.y - frame.hip.y > self.thresholds.hinge_depth:
            self.has_visited_hinge = True
    
    def _process_pulling(self, frame: KinematicFrame, pull: PullingState) -> Optional[ClassifiedRep]:
        """PULLING phase: peak tracking, flags, lockout rules."""
        th = self.thresholds
        speed = abs(frame.v_y)
        
        pull.current_rep_peak = max(pull.current_rep_peak, speed)
        if frame.wrist.y < frame.hip.y:
            pull.hip_crossed_upward = True
        
        at_shoulder = abs(frame.wrist.y - frame.shoulder.y) <= th.shoulder_zone
        overhead = frame.wrist.y < frame.nose.y - th.overhead_margin
        hinged = frame.torso_span < th.hinged_torso_span
        nearly_stopped = speed < th.lockout_vy_cutoff
        ballistic = self.has_visited_hinge and pull.hip_crossed_upward
        
        # Clean hold takes precedence over immediate lockout
        if nearly_stopped and at_shoulder and not hinged and not overhead:
            pull.shoulder_hold_frames += 1
            if pull.shoulder_hold_frames >= th.clean_hold_frames:
                movement = MovementType.CLEAN if ballistic else None
                return self._lock(frame, pull, movement)
            return None
        
        pull.shoulder_hold_frames = 0
        
        if nearly_stopped:
            if overhead:
                movement = MovementType.SNATCH if ballistic else MovementType.PRESS
            elif ballistic:
                movement = MovementType.SWING
            else:
                movement = None
            return self._lock(frame, pull, movement)
        
        return None
    
    def _lock(
        self,
        frame: KinematicFrame,
        pull: PullingState,
        movement: Optional[MovementType],
    ) -> Optional[ClassifiedRep]:
        """PULLING → LOCKED, emitting at most one rep."""
        self.state = LockedState()
        
        if movement is None:
            self.discarded_pulls += 1
            logger.info(f"Frame {frame.frame_number}: PULLING → LOCKED, pull discarded "
                        f"(hinge={self.has_visited_hinge}, hip_crossed={pull.hip_crossed_upward})")
            return None
        
        duration = None
        if frame.timestamp_ms is not None and pull.started_at_ms is not None:
            duration = frame.timestamp_ms - pull.started_at_ms
        
        rep = ClassifiedRep(
            movement=movement,
            peak_velocity=pull.current_rep_peak,
            side=self.side,
            timestamp_ms=frame.timestamp_ms,
            duration_ms=duration,
        )
        self.detected_reps.append(rep)
        logger.info(f"Frame {frame.frame_number}: PULLING → LOCKED, {movement.value.upper()} "
                    f"peak={pull.current_rep_peak:.2f} m/s")
        return rep
    
    def reset(self):
        self.state = IdleState()
        self.has_visited_hinge = False
        self.detected_reps = []
        self.discarded_pulls = 0
