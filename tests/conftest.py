"""Pytest configuration for the triage engine."""
import os

import pytest

from triage.base.clock import ManualClock
from triage.base.config import set_config


def pytest_configure():
    # Keep test runs quiet and independent of the caller's shell.
    os.environ.setdefault("TRIAGE_LOG_LEVEL", "WARNING")
    os.environ.setdefault("TRIAGE_AUTOSTART", "false")


@pytest.fixture(autouse=True)
def reset_global_config():
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def clock():
    return ManualClock()
