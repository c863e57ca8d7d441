import pytest

from helpers import ManualScheduler, RecordingChannel
from layers.model import GlobalConfig


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def config():
    return GlobalConfig(size=(800, 600), background="#000000")
