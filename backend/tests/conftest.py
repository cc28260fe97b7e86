"""
Shared pytest fixtures for backend tests.
Each test gets a fresh in-memory TaskStore and a scripted completion bridge.
"""
import pytest
import sys
import os
from datetime import datetime

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import Task
from orchestrator import PlannerSession
from store import TaskStore

TODAY = "2025-09-28"


class FakeBridge:
    """Stands in for CompletionBridge: returns queued replies or raises a set error."""

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    async def complete(self, history, context):
        self.calls.append((list(history), context))
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)


def make_task(text, **fields) -> Task:
    return Task.new(text=text, **fields)


@pytest.fixture
def store():
    return TaskStore()


@pytest.fixture
def bridge():
    return FakeBridge()


@pytest.fixture
def session(store, bridge):
    return PlannerSession(store, bridge, clock=lambda: datetime(2025, 9, 28, 9, 30))


@pytest.fixture
def app_client():
    """
    Test client for the FastAPI app with the Claude bridge replaced by a FakeBridge.
    Pins the session clock so the active date is predictable.
    """
    from fastapi.testclient import TestClient
    import main

    with TestClient(main.app) as client:
        fake = FakeBridge()
        session = main.app.state.session
        session.bridge = fake
        session.clock = lambda: datetime(2025, 9, 28, 9, 30)
        session.switch_date(TODAY)
        client.fake_bridge = fake
        yield client
