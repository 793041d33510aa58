import pytest

from kbtracker.cv.landmarks import Keypoint
from kbtracker.cv.velocity import VelocityEstimator

FRAME_MS = 1000.0 / 30.0
SCALE = 100.0  # px per meter


@pytest.fixture
def estimator():
    return VelocityEstimator(frame_height=1000, alpha=0.15)


def test_first_frame_only_seeds(estimator):
    assert estimator.update(Keypoint(0.5, 0.5), 0.0, SCALE) is None
    assert estimator.smoothed_vy == 0.0
    assert estimator.rejected_intervals == 0


def test_velocity_at_reference_interval(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    
    sample = estimator.update(Keypoint(0.5, 0.51), FRAME_MS, SCALE)
    
    # 10px = 0.1m over 1/30s
    assert sample.vy == pytest.approx(3.0)
    assert sample.vx == pytest.approx(0.0)
    assert sample.speed == pytest.approx(3.0)
    assert estimator.smoothed_vy == pytest.approx(0.45)


def test_velocity_is_normalized_to_reference_frame_rate(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    
    sample = estimator.update(Keypoint(0.5, 0.51), 50.0, SCALE)
    
    # 2.0 m/s raw, scaled by 33.3ms / 50ms
    assert sample.vy == pytest.approx(2.0 * FRAME_MS / 50.0)


def test_ascending_wrist_is_negative(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    sample = estimator.update(Keypoint(0.5, 0.49), FRAME_MS, SCALE)
    
    assert sample.vy < 0
    assert estimator.display_velocity == pytest.approx(0.45)


def test_horizontal_velocity_uses_frame_width():
    estimator = VelocityEstimator(frame_height=1000, frame_width=2000)
    estimator.update(Keypoint(0.50, 0.5), 0.0, SCALE)
    
    sample = estimator.update(Keypoint(0.51, 0.5), FRAME_MS, SCALE)
    
    assert sample.vx == pytest.approx(6.0)
    assert sample.speed == pytest.approx(6.0)
    assert estimator.smoothed_vy == pytest.approx(0.0)


def test_duplicate_frame_leaves_smoothed_velocity_unchanged(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    estimator.update(Keypoint(0.5, 0.51), FRAME_MS, SCALE)
    before = estimator.smoothed_vy
    
    assert estimator.update(Keypoint(0.5, 0.60), FRAME_MS + 5.0, SCALE) is None
    
    assert estimator.smoothed_vy == before
    assert estimator.rejected_intervals == 1


def test_stalled_stream_is_rejected(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    
    assert estimator.update(Keypoint(0.5, 0.60), 150.0, SCALE) is None
    assert estimator.smoothed_vy == 0.0
    assert estimator.rejected_intervals == 1


def test_rejected_frame_still_refreshes_previous_position(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    estimator.update(Keypoint(0.5, 0.60), 500.0, SCALE)
    
    sample = estimator.update(Keypoint(0.5, 0.61), 500.0 + FRAME_MS, SCALE)
    
    assert sample.vy == pytest.approx(3.0)


def test_micro_movement_speed_is_zeroed(estimator):
    estimator.update(Keypoint(0.5, 0.5), 0.0, SCALE)
    
    sample = estimator.update(Keypoint(0.5, 0.5001), FRAME_MS, SCALE)
    
    assert sample.speed == 0.0
    assert sample.vy == pytest.approx(0.03)


def test_display_velocity_is_clamped(estimator):
    estimator.update(Keypoint(0.5, 0.2), 0.0, SCALE)
    estimator.update(Keypoint(0.5, 0.7), FRAME_MS, SCALE)
    
    assert abs(estimator.smoothed_vy) > 8.0
    assert estimator.display_velocity == 8.0


def test_reset(estimator):
    estimator.update(Keypoint(0.5, 0.50), 0.0, SCALE)
    estimator.update(Keypoint(0.5, 0.51), FRAME_MS, SCALE)
    estimator.reset()
    
    assert estimator.smoothed_vy == 0.0
    assert estimator.last_sample is None
    assert estimator.update(Keypoint(0.5, 0.52), 100.0, SCALE) is None
