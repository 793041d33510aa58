import pytest

from kbtracker.cv.calibration import CalibrationEstimator
from kbtracker.cv.landmarks import Joint, Keypoint, Side

from tests.synthetic import EXPECTED_SCALE, FRAME_HEIGHT, make_pose


def test_completes_after_warmup_window():
    estimator = CalibrationEstimator(frame_height=FRAME_HEIGHT, warmup_frames=30)
    
    for _ in range(29):
        assert estimator.observe(make_pose(0.62, 0.62))
    assert not estimator.is_calibrated
    
    estimator.observe(make_pose(0.62, 0.62))
    
    assert estimator.is_calibrated
    assert estimator.calibration.frames_used == 30
    assert estimator.scale_factor == pytest.approx(EXPECTED_SCALE)


def test_neutral_offset_is_mean_over_sides_and_frames():
    estimator = CalibrationEstimator(frame_height=FRAME_HEIGHT, warmup_frames=2)
    
    estimator.observe(make_pose(0.70, 0.60))  # offsets 0.10, 0.00
    estimator.observe(make_pose(0.64, 0.64))  # offsets 0.04, 0.04
    
    assert estimator.calibration.neutral_wrist_offset == pytest.approx(0.045)


def test_incomplete_frames_do_not_consume_slots():
    estimator = CalibrationEstimator(frame_height=FRAME_HEIGHT, warmup_frames=2)
    
    assert not estimator.observe(make_pose(0.62, 0.62, omit={Side.RIGHT: [Joint.HIP]}))
    assert not estimator.observe({Side.LEFT: make_pose(0.62, 0.62)[Side.LEFT]})
    assert estimator.frames_captured == 0
    
    estimator.observe(make_pose(0.62, 0.62))
    estimator.observe(make_pose(0.62, 0.62))
    assert estimator.is_calibrated


def test_scale_uses_longest_torso():
    estimator = CalibrationEstimator(frame_height=1000, warmup_frames=2)
    short = make_pose(0.62, 0.62)
    estimator.observe(short)
    
    tall = make_pose(0.62, 0.62)
    tall[Side.RIGHT][Joint.SHOULDER] = Keypoint(x=0.55, y=0.15)
    estimator.observe(tall)
    
    assert estimator.calibration.max_torso_length == pytest.approx(0.45)
    assert estimator.scale_factor == pytest.approx(1000.0)


def test_scale_is_clamped_for_tiny_torso():
    estimator = CalibrationEstimator(frame_height=100, warmup_frames=1)
    
    estimator.observe(make_pose(0.62, 0.62))  # 25px / 0.45m = 55.6 px/m
    assert estimator.scale_factor == pytest.approx(25 / 0.45)
    
    estimator = CalibrationEstimator(frame_height=50, warmup_frames=1)
    estimator.observe(make_pose(0.62, 0.62))  # 12.5px / 0.45m < floor
    assert estimator.scale_factor == 50.0


def test_calibrated_estimator_ignores_frames():
    estimator = CalibrationEstimator(frame_height=FRAME_HEIGHT, warmup_frames=1)
    estimator.observe(make_pose(0.62, 0.62))
    
    assert not estimator.observe(make_pose(0.90, 0.90))
    assert estimator.calibration.neutral_wrist_offset == pytest.approx(0.02)


def test_reset():
    estimator = CalibrationEstimator(frame_height=FRAME_HEIGHT, warmup_frames=1)
    estimator.observe(make_pose(0.62, 0.62))
    estimator.reset()
    
    assert not estimator.is_calibrated
    assert estimator.scale_factor is None
    assert estimator.frames_captured == 0


def test_non_positive_height_rejected():
    with pytest.raises(ValueError):
        CalibrationEstimator(frame_height=0)
