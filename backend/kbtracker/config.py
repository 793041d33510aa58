"""Application configuration."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Application
    app_name: str = "Kettlebell Velocity Tracker"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    
    # Live sessions (in-memory only)
    max_live_sessions: int = 32
    
    # Pose input
    landmark_min_visibility: float = 0.5  # Matches the detector's 0.5 tracking confidence
    
    # Smoothing
    position_smoothing_alpha: float = 0.3
    velocity_smoothing_alpha: float = 0.15
    
    # Calibration
    calibration_frames: int = 30  # ~1s warm-up at 30fps
    torso_meters: float = 0.45
    min_scale_px_per_meter: float = 50.0
    
    # Side locking
    side_lock_threshold: float = 0.1  # Normalized wrist y difference
    
    # Velocity physics
    min_dt_ms: float = 16.0   # Shorter = duplicate frame
    max_dt_ms: float = 100.0  # Longer = stall / dropped frames
    reference_fps: float = 30.0
    zero_band: float = 0.1  # m/s - ignore micro-movements
    max_realistic_velocity: float = 8.0  # m/s
    
    # Repetition state machine
    pull_velocity_trigger: float = 0.4  # m/s
    lockout_vy_cutoff: float = 0.6  # m/s
    shoulder_zone: float = 0.12
    hinge_depth: float = 0.05
    overhead_margin: float = 0.05
    hinged_torso_span: float = 0.08
    clean_hold_frames: int = 30  # ~1s at 30fps
    
    # Set-end gesture (bell parked below the knee, then stand up)
    parking_dwell_frames: int = 15  # ~0.5s at 30fps
    head_dip_threshold: float = 0.03
    stand_up_vy: float = 0.3  # m/s upward
    
    # Live session expiry
    session_idle_timeout_s: float = 300.0
    
    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
