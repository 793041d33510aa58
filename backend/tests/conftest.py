import pytest
from fastapi.testclient import TestClient

from kbtracker.config import Settings
from kbtracker.cv.kinematic_classifier import RepetitionStateMachine
from kbtracker.cv.motion_engine import MotionEngine
from kbtracker.cv.session import SessionAggregator
from kbtracker.services.session_store import SessionStore, get_session_store

from tests.synthetic import FRAME_HEIGHT, Stream


@pytest.fixture
def engine():
    return MotionEngine(frame_height=FRAME_HEIGHT)


@pytest.fixture
def stream(engine):
    return Stream(engine, SessionAggregator())


@pytest.fixture
def fsm():
    return RepetitionStateMachine()


@pytest.fixture
def store():
    return SessionStore(Settings(max_live_sessions=2))


@pytest.fixture
def client(store):
    from kbtracker.main import app
    
    app.dependency_overrides[get_session_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
