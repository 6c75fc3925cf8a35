"""Shared fixtures for the listener tests."""

import pytest

from fakes import QUEUE_URL
from sqs_listener.config import ListenerConfig


@pytest.fixture
def config():
    return ListenerConfig(queue_url=QUEUE_URL, batch_size=10, visibility_timeout=10, wait_time=0)
