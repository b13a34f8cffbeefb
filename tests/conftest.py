import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules import metrics
from modules.fault_tolerance import CancellationToken


class RecordingToken(CancellationToken):
    """Token that records requested waits instead of sleeping."""

    def __init__(self):
        super().__init__()
        self.waits = []

    def wait(self, timeout):
        self.waits.append(timeout)
        return self.cancelled


@pytest.fixture(autouse=True)
def fresh_metrics():
    metrics.reset_all()
    yield
    metrics.reset_all()


@pytest.fixture
def recording_token():
    return RecordingToken()
