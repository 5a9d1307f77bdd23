import pytest
from fastapi.testclient import TestClient

from app.config import RelayConfig
from app.main import create_app
from app.upstream import UpstreamResponse

API_KEY = "testkey"


class FakeUpstream:
    """Scripted outbound client: returns queued responses, records every call."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def reply(self, status_code=200, body=b"", content_type="application/json"):
        if isinstance(body, str):
            body = body.encode()
        self.responses.append(UpstreamResponse(status_code, body, content_type))

    def fail(self, exc):
        self.responses.append(exc)

    async def post(self, url, *, headers, json=None, data=None, files=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "data": data, "files": files})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def config():
    return RelayConfig(
        openai_api_key="sk-test",
        webhook_url="https://hooks.example.com/webhook/voice",
    )


@pytest.fixture
def make_client(upstream):
    def _make(config):
        return TestClient(create_app(config, upstream))
    return _make


@pytest.fixture
def client(make_client, config):
    return make_client(config)
