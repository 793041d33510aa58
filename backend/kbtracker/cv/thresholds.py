"""Named threshold set for the motion engine."""

from dataclasses import dataclass, fields
from typing import Optional

from kbtracker.config import Settings, get_settings


@dataclass(frozen=True)
class MotionThresholds:
    """
    Every tunable constant of the motion engine.

    Distances are in normalized image units (0-1, y grows downward),
    velocities in m/s, times in milliseconds.
    """
    # Smoothing
    position_alpha: float = 0.3
    velocity_alpha: float = 0.15
    
    # Calibration
    calibration_frames: int = 30
    torso_meters: float = 0.45
    min_scale: float = 50.0  # px per meter
    
    # Side locker
    side_lock_threshold: float = 0.1
    
    # Velocity estimator
    min_dt_ms: float = 16.0
    max_dt_ms: float = 100.0
    reference_fps: float = 30.0
    zero_band: float = 0.1
    max_realistic_velocity: float = 8.0
    
    # Repetition state machine
    pull_velocity_trigger: float = 0.4
    lockout_vy_cutoff: float = 0.6
    shoulder_zone: float = 0.12
    hinge_depth: float = 0.05
    overhead_margin: float = 0.05
    hinged_torso_span: float = 0.08
    clean_hold_frames: int = 30
    
    # Set-end gesture
    parking_dwell_frames: int = 15
    head_dip_threshold: float = 0.03
    stand_up_vy: float = 0.3
    
    def __post_init__(self):
        for name in ("position_alpha", "velocity_alpha"):
            alpha = getattr(self, name)
            if not 0.0 < alpha <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {alpha}")
        if self.calibration_frames < 1:
            raise ValueError("calibration_frames must be at least 1")
        if self.min_dt_ms > self.max_dt_ms:
            raise ValueError("min_dt_ms must not exceed max_dt_ms")
    
    @property
    def reference_frame_ms(self) -> float:
        return 1000.0 / self.reference_fps
    
    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MotionThresholds":
        """Build thresholds from application settings."""
        s = settings or get_settings()
        return cls(
            position_alpha=s.position_smoothing_alpha,
            velocity_alpha=s.velocity_smoothing_alpha,
            calibration_frames=s.calibration_frames,
            torso_meters=s.torso_meters,
            min_scale=s.min_scale_px_per_meter,
            side_lock_threshold=s.side_lock_threshold,
            min_dt_ms=s.min_dt_ms,
            max_dt_ms=s.max_dt_ms,
            reference_fps=s.reference_fps,
            zero_band=s.zero_band,
            max_realistic_velocity=s.max_realistic_velocity,
            pull_velocity_trigger=s.pull_velocity_trigger,
            lockout_vy_cutoff=s.lockout_vy_cutoff,
            shoulder_zone=s.shoulder_zone,
            hinge_depth=s.hinge_depth,
            overhead_margin=s.overhead_margin,
            hinged_torso_span=s.hinged_torso_span,
            clean_hold_frames=s.clean_hold_frames,
            parking_dwell_frames=s.parking_dwell_frames,
            head_dip_threshold=s.head_dip_threshold,
            stand_up_vy=s.stand_up_vy,
        )
    
    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
