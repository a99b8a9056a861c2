import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from nimproxy.app import create_app


@pytest.mark.asyncio
async def test_health_endpoint(settings):
    app = create_app(settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "OpenAI to NVIDIA NIM Proxy"
        assert data["reasoning_display"] is False
        assert data["thinking_mode"] is False
        assert data["upstream_reachable"] is False
        assert "version" in data


@pytest.mark.asyncio
async def test_health_reports_flags_and_upstream(show_settings, client_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/models"
        return httpx.Response(200, json={"object": "list", "data": []})

    async with client_factory(show_settings, handler) as client:
        data = (await client.get("/health")).json()
        assert data["reasoning_display"] is True
        assert data["upstream_reachable"] is True


@pytest.mark.asyncio
async def test_health_upstream_down(settings, client_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused")

    async with client_factory(settings, handler) as client:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["upstream_reachable"] is False
