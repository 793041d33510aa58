from kbtracker.cv.landmarks import Keypoint
from kbtracker.cv.parking import ParkingDetector, is_wrist_in_floor_zone

KNEE = Keypoint(0.45, 0.80)
NOSE = Keypoint(0.50, 0.20)


def frame(detector, wrist_y, v_y=0.0, nose=NOSE, knee=KNEE):
    return detector.update(Keypoint(0.45, wrist_y), knee, nose, v_y)


def test_floor_zone():
    assert is_wrist_in_floor_zone(Keypoint(0.5, 0.85), KNEE)
    assert not is_wrist_in_floor_zone(Keypoint(0.5, 0.75), KNEE)
    assert not is_wrist_in_floor_zone(Keypoint(0.5, 0.85), None)


def test_dwell_then_stand_up():
    detector = ParkingDetector(dwell_frames=5)
    
    assert [frame(detector, 0.9) for _ in range(5)] == [False] * 5
    assert detector.parked
    
    assert frame(detector, 0.88, v_y=-0.5)
    assert not detector.parked


def test_stand_up_without_park_is_ignored():
    detector = ParkingDetector(dwell_frames=5)
    frame(detector, 0.9)
    
    assert not frame(detector, 0.88, v_y=-1.0)


def test_head_dip_confirms_park_early():
    detector = ParkingDetector(dwell_frames=30, head_dip_threshold=0.03)
    frame(detector, 0.9, nose=Keypoint(0.5, 0.20))
    frame(detector, 0.9, nose=Keypoint(0.5, 0.25))
    
    assert detector.parked
    assert frame(detector, 0.88, v_y=-0.4, nose=Keypoint(0.5, 0.22))


def test_leaving_zone_cancels_park():
    detector = ParkingDetector(dwell_frames=3)
    for _ in range(3):
        frame(detector, 0.9)
    
    frame(detector, 0.6, v_y=-1.0)
    
    assert not detector.parked
    assert detector.frames_in_zone == 0


def test_slow_rise_in_zone_does_not_trigger():
    detector = ParkingDetector(dwell_frames=3, stand_up_vy=0.3)
    for _ in range(3):
        frame(detector, 0.9)
    
    assert not frame(detector, 0.89, v_y=-0.3)
    assert detector.parked


def test_missing_knee_is_never_in_zone():
    detector = ParkingDetector(dwell_frames=1)
    
    assert not frame(detector, 0.95, v_y=-1.0, knee=None)
    assert not detector.parked
