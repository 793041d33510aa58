import pytest

from kbtracker.config import Settings
from kbtracker.cv.thresholds import MotionThresholds


def test_defaults_match_settings():
    assert MotionThresholds.from_settings(Settings()) == MotionThresholds()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PULL_VELOCITY_TRIGGER", "0.5")
    monkeypatch.setenv("CLEAN_HOLD_FRAMES", "45")
    
    thresholds = MotionThresholds.from_settings(Settings())
    
    assert thresholds.pull_velocity_trigger == 0.5
    assert thresholds.clean_hold_frames == 45


def test_reference_frame_interval():
    assert MotionThresholds(reference_fps=30).reference_frame_ms == pytest.approx(1000 / 30)


@pytest.mark.parametrize("kwargs", [
    {"position_alpha": 0.0},
    {"velocity_alpha": 1.2},
    {"calibration_frames": 0},
    {"min_dt_ms": 120.0},
])
def test_invalid_thresholds(kwargs):
    with pytest.raises(ValueError):
        MotionThresholds(**kwargs)


def test_as_dict_uses_field_names():
    values = MotionThresholds().as_dict()
    
    assert values["lockout_vy_cutoff"] == 0.6
    assert MotionThresholds(**values) == MotionThresholds()
