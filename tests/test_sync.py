import io
import json
import urllib.error
import urllib.parse
import urllib.request

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database import get_db, init_db, make_engine
from integrations.cloud import CloudClient, RemoteSyncError, _api_url, client_from_env
from main import app
from schemas import RemoteReading
from routers import params, sync


class _FakeResponse:
    def __init__(self, body: bytes):
        self._body = body

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def remote(tmp_path):
    """A second logbook with its own database, reachable through urlopen."""
    engine = make_engine(f"sqlite:///{tmp_path / 'remote.db'}")
    init_db(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    remote_app = FastAPI()
    remote_app.include_router(params.router)
    remote_app.dependency_overrides[get_db] = override_get_db
    with TestClient(remote_app) as c:
        yield c
    engine.dispose()


@pytest.fixture
def wired(client, remote, monkeypatch):
    calls = []

    def fake_urlopen(req, timeout=None):
        path = urllib.parse.urlsplit(req.full_url).path
        calls.append((req.get_method(), path))
        resp = remote.request(req.get_method(), path, content=req.data, headers={"Content-Type": "application/json"})
        if resp.status_code >= 400:
            raise urllib.error.HTTPError(req.full_url, resp.status_code, resp.reason_phrase, None, io.BytesIO(resp.content))
        return _FakeResponse(resp.content)

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    app.dependency_overrides[sync.get_cloud_client] = lambda: CloudClient(base_url="http://cloud.example")
    return calls


def test_upload_is_one_batched_request(client, remote, wired):
    client.post("/api/params", json={"date": "2026-04-01", "alk": 8.1})
    client.post("/api/params", json={"date": "2026-04-02", "alk": 8.3})

    res = client.post("/api/sync/upload")
    assert res.status_code == 200
    assert res.json() == {"uploaded": 2, "inserted": 2, "updated": 0}
    assert wired == [("POST", "/api/params/batch")]
    assert len(remote.get("/api/params").json()) == 2


def test_repeated_upload_does_not_duplicate_remote_rows(client, remote, wired):
    client.post("/api/params", json={"date": "2026-04-01", "alk": 8.1})
    client.post("/api/sync/upload")
    client.post("/api/params", json={"date": "2026-04-02", "ca": 430})
    res = client.post("/api/sync/upload")
    assert res.json() == {"uploaded": 2, "inserted": 1, "updated": 1}
    assert len(remote.get("/api/params").json()) == 2


def test_download_replaces_local_readings(client, remote, wired):
    client.post("/api/params", json={"date": "2020-01-01", "alk": 6.0})
    remote.post("/api/params", json={"date": "2026-04-01", "alk": 8.1, "mg": 1380})
    remote.post("/api/params", json={"date": "2026-04-03", "ph": 8.2})

    res = client.post("/api/sync/download")
    assert res.json() == {"downloaded": 2}
    local = client.get("/api/params").json()
    assert [r["date"] for r in local] == ["2026-04-03", "2026-04-01"]
    assert local[1]["mg"] == 1380
    remote_ids = {r["id"] for r in remote.get("/api/params").json()}
    assert {r["id"] for r in local} == remote_ids


def test_download_rejects_malformed_rows_and_keeps_local_data(client, monkeypatch):
    payload = json.dumps([{"id": "a1", "date": "2026-04-01", "alk": "high"}]).encode("utf-8")
    monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(payload))
    app.dependency_overrides[sync.get_cloud_client] = lambda: CloudClient(base_url="http://cloud.example")
    client.post("/api/params", json={"date": "2020-01-01", "alk": 6.0})

    res = client.post("/api/sync/download")
    assert res.status_code == 502
    assert "malformed" in res.json()["detail"]
    assert len(client.get("/api/params").json()) == 1


def test_unreachable_remote_surfaces_single_error(client, monkeypatch):
    def refuse(req, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", refuse)
    app.dependency_overrides[sync.get_cloud_client] = lambda: CloudClient(base_url="http://cloud.example")
    client.post("/api/params", json={"date": "2026-04-01", "alk": 8.1})
    res = client.post("/api/sync/upload")
    assert res.status_code == 502
    assert res.json()["detail"].startswith("Upload failed: Unable to reach remote logbook")


def test_remote_not_configured(client):
    assert client.post("/api/sync/upload").status_code == 503
    assert client.post("/api/sync/download").status_code == 503


def test_only_one_sync_in_flight(client):
    app.dependency_overrides[sync.get_cloud_client] = lambda: CloudClient(base_url="http://cloud.example")
    assert sync._sync_lock.acquire(blocking=False)
    try:
        assert client.post("/api/sync/download").status_code == 409
    finally:
        sync._sync_lock.release()


class TestCloudClient:
    """Remote client helpers."""

    @pytest.mark.parametrize("base,expected", [
        ("http://cloud.example", "http://cloud.example/api/params"),
        ("http://cloud.example/", "http://cloud.example/api/params"),
        ("cloud.example:8000", "http://cloud.example:8000/api/params"),
        ("https://cloud.example/api", "https://cloud.example/api/params"),
        ("https://cloud.example/reef", "https://cloud.example/reef/api/params"),
    ])
    def test_api_url(self, base, expected):
        assert _api_url(base, "params") == expected

    def test_http_error_detail(self, monkeypatch):
        def fail(req, timeout=None):
            raise urllib.error.HTTPError(req.full_url, 500, "Server Error", None, io.BytesIO(b'{"error": "db down"}'))

        monkeypatch.setattr(urllib.request, "urlopen", fail)
        with pytest.raises(RemoteSyncError, match="500: db down"):
            CloudClient(base_url="http://cloud.example").list_params()

    def test_bearer_token_sent(self, monkeypatch):
        seen = {}

        def capture(req, timeout=None):
            seen["auth"] = req.get_header("Authorization")
            seen["timeout"] = timeout
            return _FakeResponse(b"[]")

        monkeypatch.setattr(urllib.request, "urlopen", capture)
        assert CloudClient(base_url="http://cloud.example", api_token="s3cret", timeout=4).list_params() == []
        assert seen == {"auth": "Bearer s3cret", "timeout": 4}

    def test_numeric_strings_are_coerced(self, monkeypatch):
        body = json.dumps([{"id": 7, "date": "2026-04-01T00:00:00Z", "alk": "8.20", "ammonia": None}]).encode("utf-8")
        monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(body))
        [reading] = CloudClient(base_url="http://cloud.example").list_params()
        assert reading.id == "7"
        assert reading.date == "2026-04-01"
        assert reading.alk == 8.2
        assert reading.ammonia is None

    def test_client_from_env(self, monkeypatch):
        monkeypatch.delenv("REEF_REMOTE_URL", raising=False)
        assert client_from_env() is None
        monkeypatch.setenv("REEF_REMOTE_URL", "http://cloud.example")
        monkeypatch.setenv("REEF_REMOTE_TOKEN", "tok")
        monkeypatch.setenv("REEF_REMOTE_TIMEOUT", "nope")
        c = client_from_env()
        assert c.base_url == "http://cloud.example"
        assert c.api_token == "tok"
        assert c.timeout == 10


class _SlowResponse(_FakeResponse):
    def read(self):
        raise TimeoutError("timed out")


def test_download_rejects_repeated_ids(client, monkeypatch):
    rows = [{"id": "dup", "date": "2026-04-01", "alk": 8.1}, {"id": "dup", "date": "2026-04-02", "alk": 8.2}]
    payload = json.dumps(rows).encode("utf-8")
    monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(payload))
    app.dependency_overrides[sync.get_cloud_client] = lambda: CloudClient(base_url="http://cloud.example")
    client.post("/api/params", json={"date": "2020-01-01", "alk": 6.0})

    res = client.post("/api/sync/download")
    assert res.status_code == 502
    assert "repeats id dup" in res.json()["detail"]
    assert [r["date"] for r in client.get("/api/params").json()] == ["2020-01-01"]


def test_download_storage_failure_rolls_back(client):
    class DuplicatingClient:
        def list_params(self):
            return [RemoteReading(id="same", date="2026-04-01"), RemoteReading(id="same", date="2026-04-02")]

    app.dependency_overrides[sync.get_cloud_client] = lambda: DuplicatingClient()
    client.post("/api/params", json={"date": "2020-01-01", "alk": 6.0})

    res = client.post("/api/sync/download")
    assert res.status_code == 502
    assert "could not store remote readings" in res.json()["detail"]
    assert len(client.get("/api/params").json()) == 1
    assert not sync._sync_lock.locked()


def test_upload_read_timeout_is_reported(client, monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: _SlowResponse(b""))
    app.dependency_overrides[sync.get_cloud_client] = lambda: CloudClient(base_url="http://cloud.example")
    client.post("/api/params", json={"date": "2026-04-01", "alk": 8.1})

    res = client.post("/api/sync/upload")
    assert res.status_code == 502
    assert "timed out" in res.json()["detail"]


def test_undecodable_body(monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(b"\xff\xfe\x00"))
    with pytest.raises(RemoteSyncError, match="not UTF-8"):
        CloudClient(base_url="http://cloud.example").list_params()


def test_non_numeric_batch_counts(monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", lambda req, timeout=None: _FakeResponse(b'{"inserted": "many"}'))
    with pytest.raises(RemoteSyncError, match="non-numeric"):
        CloudClient(base_url="http://cloud.example").upsert_params([])
