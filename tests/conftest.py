import pytest

from app import create_app
from models import PendingFile
from session_store import SessionState


class FakeClient:
    """Stands in for GeminiClient; records the requests it was asked to summarize."""

    def __init__(self, reply="Vendor: Acme", error=None):
        self.reply = reply
        self.error = error
        self.requests = []
        self.api_keys = []

    def summarize(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeClientFactory:
    def __init__(self, client):
        self.client = client

    def __call__(self, api_key):
        self.client.api_keys.append(api_key)
        return self.client


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def client_factory(fake_client):
    return FakeClientFactory(fake_client)


@pytest.fixture
def state():
    s = SessionState()
    s.set_api_key("test-key")
    return s


@pytest.fixture
def pdf_file():
    return PendingFile(name="invoice.pdf", size=9, mime_type="application/pdf", data=b"%PDF-1.4\n")


@pytest.fixture
def app(client_factory):
    flask_app = create_app({'TESTING': True, 'SECRET_KEY': 'test'}, client_factory=client_factory)
    return flask_app


@pytest.fixture
def http(app):
    return app.test_client()


