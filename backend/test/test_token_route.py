"""토큰 릴레이 라우터 테스트."""

import aiohttp
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from modules.shared import Settings, get_settings
from routes import get_provider_client, health_router, token_router


class StubProvider:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.keys = []

    async def create_ephemeral_session(self, api_key):
        self.keys.append(api_key)
        if self.error is not None:
            raise self.error
        return self.result


def make_client(api_key, provider):
    app = FastAPI()
    app.include_router(token_router)
    app.include_router(health_router)
    app.dependency_overrides[get_settings] = lambda: Settings(OPENAI_API_KEY=api_key)
    app.dependency_overrides[get_provider_client] = lambda: provider
    return TestClient(app)


def test_token_without_server_key_returns_500():
    provider = StubProvider()
    response = make_client(None, provider).get("/token")

    assert response.status_code == 500
    assert response.json() == {
        "error": {"message": "OpenAI API key not configured", "type": "server_error"}
    }
    assert provider.keys == []


def test_token_returns_upstream_body_verbatim():
    upstream = {"id": "sess_1", "client_secret": {"value": "ek_123", "expires_at": 1}}
    provider = StubProvider(result=(200, upstream))

    response = make_client("sk-server", provider).get("/token")

    assert response.status_code == 200
    assert response.json() == upstream
    assert provider.keys == ["sk-server"]


@pytest.mark.parametrize("error", [
    aiohttp.ClientConnectionError("connection refused"),
    ValueError("Expecting value"),
])
def test_token_upstream_failure_returns_500(error):
    response = make_client("sk-server", StubProvider(error=error)).get("/token")

    assert response.status_code == 500
    body = response.json()
    assert body["error"]["type"] == "server_error"
    assert body["error"]["message"]


def test_health_reports_relay_configuration():
    response = make_client(None, StubProvider()).get("/api/health")

    assert response.status_code == 200
    assert response.json()["token_relay"] == "not_configured"
