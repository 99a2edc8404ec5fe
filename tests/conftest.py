"""Shared test fixtures for gcproxy.

Fixtures here never touch the network: upstream Gemini calls go through a
fake model client or ``pytest_httpx``, and image fetches through
``httpx.MockTransport``.
"""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr
from tests.helpers.fakes import FakeImageResolver, FakeModelClient

from gcproxy.api.app import create_app
from gcproxy.config.gemini import GeminiSettings, ImageFetchSettings
from gcproxy.config.settings import Settings, get_settings
from gcproxy.core.logging import setup_logging


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"

    # Reuse the application logging pipeline so processors behave as in production
    setup_logging(json_logs=False, log_level_name="DEBUG", configure_uvicorn=False)


@pytest.fixture(autouse=True)
def isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Keep developer config files and API keys out of the tests."""
    for name in (
        "CONFIG_FILE",
        "GEMINI_API_KEY",
        "GOOGLE_API_KEY",
        "SERVER__HOST",
        "SERVER__PORT",
        "LOGGING__LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a dummy API key and a 1 KiB image ceiling."""
    return Settings(
        gemini=GeminiSettings(
            api_key=SecretStr("test-key"),
            model="gemini-test",
            base_url="https://gemini.test/v1beta",
        ),
        image_fetch=ImageFetchSettings(timeout_seconds=2.0, max_size_bytes=1024),
    )


@pytest.fixture
def image_resolver() -> FakeImageResolver:
    return FakeImageResolver()


@pytest.fixture
def fake_model_client() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def app_client_factory(
    test_settings: Settings,
) -> Callable[[FakeModelClient], TestClient]:
    """Build a TestClient around an app wired to the given fake model client."""

    def _create(model_client: FakeModelClient) -> TestClient:
        app = create_app(settings=test_settings, model_client=model_client)
        return TestClient(app)

    return _create


@pytest.fixture
def client(
    app_client_factory: Callable[[FakeModelClient], TestClient],
    fake_model_client: FakeModelClient,
) -> Generator[TestClient, None, None]:
    with app_client_factory(fake_model_client) as test_client:
        yield test_client
