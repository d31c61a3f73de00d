"""Shared test fixtures and configuration."""
import os

import httpx
import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("DASHBOARD_PASSWORD", "testpass123")

from omnivoice.main import app
from omnivoice.core.config import Settings
from omnivoice.core.dependencies import get_initiation_client, get_search_service
from omnivoice.services.initiation.client import SessionInitiationClient
from omnivoice.services.providers.models import VoiceProvider
from omnivoice.services.search.service import SearchService
from omnivoice.services.session.controller import build_controller
from omnivoice.services.tools.executor import build_default_executor

from tests.fakes import (
    ConnectionRecorder,
    FakeCredentialSource,
    FakeUltravoxSession,
    FakeVapi,
    FakeVogentCall,
    RecordingSearch,
)


@pytest.fixture
def test_settings():
    """Settings with every provider configured."""
    return Settings(
        vogent_public_api_key="vogent-key",
        vogent_call_agent_id="agt-1",
        vapi_api_key="vapi-key",
        ultravox_api_key="ultravox-key",
        dashboard_password="testpass123",
        request_timeout=5.0,
        _env_file=None,
    )


class HttpRecorder:
    """httpx.MockTransport handler that records requests and replays queued responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def queue(self, status_code: int = 200, **kwargs) -> None:
        self.responses.append(httpx.Response(status_code, **kwargs))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, text="no response queued")
        return self.responses.pop(0)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def http():
    """Recorder for outbound HTTP calls."""
    return HttpRecorder()


@pytest.fixture
def initiation_client(test_settings, http):
    """Initiation client wired to the mock transport."""
    return SessionInitiationClient(config=test_settings, transport=httpx.MockTransport(http))


@pytest.fixture
def search_service(test_settings, http):
    """Search service wired to the mock transport."""
    return SearchService(config=test_settings, transport=httpx.MockTransport(http))


@pytest.fixture
def test_client(initiation_client, search_service, test_settings, monkeypatch):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_initiation_client] = lambda: initiation_client
    app.dependency_overrides[get_search_service] = lambda: search_service

    monkeypatch.setattr("omnivoice.core.config.settings", test_settings)
    monkeypatch.setattr("omnivoice.api.auth.settings", test_settings)

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(test_client, test_settings, clean_auth_sessions):
    """Create test client with valid session cookie."""
    response = test_client.post(
        "/api/auth/login",
        json={"password": test_settings.dashboard_password},
    )
    assert response.status_code == 200

    return test_client


@pytest.fixture
def clean_auth_sessions():
    """Clean up login sessions before and after tests."""
    from omnivoice.api import auth
    auth.login_sessions.clear()
    yield
    auth.login_sessions.clear()


@pytest.fixture
def credentials():
    """Fake credential source."""
    return FakeCredentialSource()


@pytest.fixture
def connections():
    """One recording connection factory per provider."""
    return {
        VoiceProvider.VOGENT: ConnectionRecorder(FakeVogentCall),
        VoiceProvider.VAPI: ConnectionRecorder(FakeVapi),
        VoiceProvider.ULTRAVOX: ConnectionRecorder(FakeUltravoxSession),
    }


@pytest.fixture
def search_backend():
    return RecordingSearch(summary="Paris is the capital of France.")


@pytest.fixture
def tool_executor(search_backend):
    return build_default_executor(search_backend)


@pytest.fixture
def make_controller(credentials, connections, tool_executor):
    """Factory building a controller over the fakes."""

    def _make(provider: VoiceProvider = VoiceProvider.VOGENT, **kwargs):
        return build_controller(
            provider,
            credentials,
            connections,
            tools=tool_executor,
            **kwargs,
        )

    return _make
