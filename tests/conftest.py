import httpx
import pytest

from nimproxy.app import create_app
from nimproxy.config import Settings
from nimproxy.streaming.merger import DisplayPolicy

UPSTREAM_URL = "http://test-upstream:8000/v1"


@pytest.fixture
def settings():
    """Test settings pointing at a fake upstream."""
    return Settings(
        upstream_base_url=UPSTREAM_URL,
        upstream_api_key="nvapi-test",
        reasoning_display=DisplayPolicy.HIDE,
    )


@pytest.fixture
def show_settings(settings):
    return settings.model_copy(update={"reasoning_display": DisplayPolicy.SHOW})


@pytest.fixture
def client_factory():
    """Build an in-process client for the app with a mocked upstream.

    ASGITransport does not run the lifespan, so the upstream client is
    attached to app state directly.
    """

    def _make(settings: Settings, handler) -> httpx.AsyncClient:
        app = create_app(settings)
        app.state.http_client = httpx.AsyncClient(
            base_url=settings.upstream_base_url,
            transport=httpx.MockTransport(handler),
        )
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    return _make
