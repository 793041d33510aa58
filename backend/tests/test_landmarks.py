import pytest

from kbtracker.cv.landmarks import (
    Joint,
    Keypoint,
    MediaPipeLandmark,
    Side,
    get_joint,
    has_joints,
    is_empty,
    pose_frame_from_landmarks,
)


def _landmarks(visibility=0.9):
    return [{"x": i / 100, "y": i / 50, "z": -0.1, "visibility": visibility} for i in range(33)]


def test_is_empty():
    assert is_empty(None)
    assert is_empty({})
    assert is_empty({Side.LEFT: {}})
    assert not is_empty({Side.LEFT: {Joint.WRIST: Keypoint(0.5, 0.5)}})


def test_get_joint_tolerates_missing_side():
    frame = {Side.LEFT: {Joint.WRIST: Keypoint(0.4, 0.6)}}
    assert get_joint(frame, Side.RIGHT, Joint.WRIST) is None
    assert get_joint(frame, Side.LEFT, Joint.WRIST) == Keypoint(0.4, 0.6)
    assert has_joints(frame, Side.LEFT, [Joint.WRIST])
    assert not has_joints(frame, Side.LEFT, [Joint.WRIST, Joint.HIP])


def test_mediapipe_indices_map_to_sides():
    frame = pose_frame_from_landmarks(_landmarks())
    
    left_wrist = frame[Side.LEFT][Joint.WRIST]
    assert left_wrist.x == pytest.approx(MediaPipeLandmark.LEFT_WRIST / 100)
    assert left_wrist.z == pytest.approx(-0.1)
    assert frame[Side.RIGHT][Joint.HIP].y == pytest.approx(MediaPipeLandmark.RIGHT_HIP / 50)
    # Both sides share the nose
    assert frame[Side.LEFT][Joint.NOSE] == frame[Side.RIGHT][Joint.NOSE]


def test_low_visibility_landmarks_are_dropped():
    landmarks = _landmarks()
    landmarks[MediaPipeLandmark.LEFT_WRIST]["visibility"] = 0.2
    landmarks[MediaPipeLandmark.RIGHT_KNEE] = None
    
    frame = pose_frame_from_landmarks(landmarks, min_visibility=0.5)
    
    assert Joint.WRIST not in frame[Side.LEFT]
    assert Joint.KNEE not in frame[Side.RIGHT]
    assert Joint.WRIST in frame[Side.RIGHT]


def test_attribute_style_landmarks():
    class Landmark:
        def __init__(self, i):
            self.x, self.y, self.z, self.visibility = 0.5, i / 40, 0.0, 1.0
    
    frame = pose_frame_from_landmarks([Landmark(i) for i in range(33)])
    assert frame[Side.LEFT][Joint.SHOULDER].y == pytest.approx(11 / 40)


def test_empty_landmarks_mean_no_pose():
    assert pose_frame_from_landmarks([]) == {}
    assert pose_frame_from_landmarks(None) == {}


def test_wrong_landmark_count_raises():
    with pytest.raises(ValueError):
        pose_frame_from_landmarks(_landmarks()[:17])
