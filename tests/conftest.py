"""
Pytest configuration and fixtures for snipbox tests.
"""

import os

import pytest
from hypothesis import Verbosity, settings

from docker_fakes import FakeDockerClient, RecordingSink
from snipbox.core.config import RunnerConfig
from snipbox.sandbox.client import check_health

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def runner_config():
    """Short limits so timeout paths finish quickly."""
    return RunnerConfig(timeout_seconds=2.0, drain_grace_seconds=1.0)


@pytest.fixture
def fake_client():
    return FakeDockerClient()


@pytest.fixture
def event_sink():
    return RecordingSink()


def pytest_collection_modifyitems(config, items):
    """Skip tests marked ``docker`` when no daemon is reachable."""
    docker_items = [item for item in items if item.get_closest_marker("docker")]
    if not docker_items:
        return
    healthy, detail = check_health()
    if healthy:
        return
    skip = pytest.mark.skip(reason=detail)
    for item in docker_items:
        item.add_marker(skip)
