"""Shared fixtures for the relay test suite."""

import pytest
from fastapi.testclient import TestClient

from helpers import VERIFY_TOKEN, WEBHOOK_SECRET
from main import create_app
from models import EventRelay
from utilities import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        webhook_secret=WEBHOOK_SECRET,
        verify_token=VERIFY_TOKEN,
        history_size=10,
        replay_interval=0.05,
        log_level="WARNING",
    )


@pytest.fixture
def relay(settings: Settings) -> EventRelay:
    return EventRelay.from_settings(settings)


@pytest.fixture
def client(settings: Settings, relay: EventRelay):
    app = create_app(settings, relay)
    with TestClient(app) as test_client:
        yield test_client
