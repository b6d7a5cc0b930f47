import httpx
import pytest

from quakestats.quakes.errors import PublishFailed
from quakestats.quakes.publishers.base import Publisher
from quakestats.quakes.publishers import bluesky
from quakestats.quakes.publishers.bluesky import BlueskyPublisher, POST_COLLECTION

SESSION = {"accessJwt": "access-token", "refreshJwt": "refresh-token", "handle": "quakes.example", "did": "did:plc:abc123"}
CREATED = {"uri": "at://did:plc:abc123/app.bsky.feed.post/3k", "cid": "bafy"}


class DummyResp:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload
    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class DummyClient:
    def __init__(self, sequence):
        self.sequence = sequence
        self.calls = []
    def __enter__(self):
        return self
    def __exit__(self, exc_type, exc, tb):
        return False
    def post(self, url, json=None, headers=None):
        self.calls.append({"url": url, "json": json, "headers": headers})
        item = self.sequence[len(self.calls) - 1]
        if isinstance(item, Exception):
            raise item
        return DummyResp(*item)


def _publisher(**kw):
    return BlueskyPublisher(host="https://pds.example.test", identifier="quakes.example", password="app-pw", **kw)


def test_module_docstring():
    assert bluesky.__doc__.startswith("Bluesky publisher")


def test_is_publisher():
    assert isinstance(_publisher(), Publisher)


def test_publish_happy(monkeypatch):
    client = DummyClient([(200, SESSION), (200, CREATED)])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    _publisher().publish("Weekly Earthquake Report\n\nTotal: 2")
    assert client.calls[0]["url"] == "https://pds.example.test/xrpc/com.atproto.server.createSession"
    assert client.calls[0]["json"] == {"identifier": "quakes.example", "password": "app-pw"}
    second = client.calls[1]
    assert second["url"] == "https://pds.example.test/xrpc/com.atproto.repo.createRecord"
    assert second["headers"] == {"Authorization": "Bearer access-token"}
    assert second["json"]["repo"] == "did:plc:abc123"
    assert second["json"]["collection"] == POST_COLLECTION
    record = second["json"]["record"]
    assert record["text"] == "Weekly Earthquake Report\n\nTotal: 2"
    assert record["createdAt"].endswith("Z")


def test_missing_credentials(monkeypatch):
    monkeypatch.delenv("BLUESKY_IDENTIFIER", raising=False)
    monkeypatch.delenv("BLUESKY_PASSWORD", raising=False)
    with pytest.raises(PublishFailed):
        BlueskyPublisher().publish("text")


def test_credentials_from_env(monkeypatch):
    monkeypatch.setenv("BLUESKY_IDENTIFIER", "env.example")
    monkeypatch.setenv("BLUESKY_PASSWORD", "env-pw")
    client = DummyClient([(200, SESSION), (200, CREATED)])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    BlueskyPublisher(host="https://pds.example.test").publish("text")
    assert client.calls[0]["json"] == {"identifier": "env.example", "password": "env-pw"}


def test_auth_rejected(monkeypatch):
    client = DummyClient([(401, {"error": "AuthenticationRequired"})])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    with pytest.raises(PublishFailed) as ei:
        _publisher().publish("text")
    assert ei.value.status == 401
    assert len(client.calls) == 1


def test_create_record_upstream_error(monkeypatch):
    client = DummyClient([(200, SESSION), (502, None)])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    with pytest.raises(PublishFailed) as ei:
        _publisher().publish("text")
    assert ei.value.status == 502


def test_session_without_token(monkeypatch):
    client = DummyClient([(200, {"handle": "quakes.example"})])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    with pytest.raises(PublishFailed):
        _publisher().publish("text")


def test_invalid_json(monkeypatch):
    client = DummyClient([(200, None)])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    with pytest.raises(PublishFailed) as ei:
        _publisher().publish("text")
    assert isinstance(ei.value.__cause__, ValueError)


def test_network_error(monkeypatch):
    client = DummyClient([httpx.ConnectTimeout("timed out")])
    monkeypatch.setattr("httpx.Client", lambda timeout: client)
    with pytest.raises(PublishFailed) as ei:
        _publisher().publish("text")
    assert isinstance(ei.value.__cause__, httpx.ConnectTimeout)
