"""
Test Configuration and Fixtures

Provides shared fixtures for the relay test suite.
"""

import os

import pytest

# Set test environment variables before importing the app.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SESSION_STORE_BACKEND", "memory")
os.environ.setdefault("SLACK_BOT_USER_ID", "UBOT")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from assistant_relay.config import Settings  # noqa: E402
from assistant_relay.conversation.handler import ConversationHandler, build_conversation_handler  # noqa: E402
from assistant_relay.storage.kv import InMemoryKeyValueStore  # noqa: E402
from tests.support.events import BOT_USER_ID  # noqa: E402
from tests.support.fakes import FakeAssistantClient, FakeSearchClient, FakeSlackClient  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Everything outside tests/integration/ is a unit test."""
    for item in items:
        if item.get_closest_marker("integration") or item.get_closest_marker("unit"):
            continue
        path = str(getattr(item, "fspath", ""))
        if "/tests/integration/" in path:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the settings cache before each test to allow env overrides."""
    from assistant_relay.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        slack_bot_user_id=BOT_USER_ID,
        slack_signing_secret="test_slack_signing_secret",
        run_poll_interval_seconds=0.001,
        run_max_poll_attempts=5,
        session_store_backend="memory",
        google_api_key="google-key",
        google_search_engine_id="engine-id",
    )


@pytest.fixture
def fake_assistant() -> FakeAssistantClient:
    return FakeAssistantClient()


@pytest.fixture
def fake_slack() -> FakeSlackClient:
    return FakeSlackClient()


@pytest.fixture
def fake_search() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def handler(settings, fake_assistant, fake_slack, fake_search, kv_store) -> ConversationHandler:
    return build_conversation_handler(
        settings,
        slack=fake_slack,
        assistant=fake_assistant,
        search=fake_search,
        store=kv_store,
    )
