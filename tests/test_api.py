"""Integration tests for ouilookup.web.api (FastAPI endpoints).

The registry dependency is overridden with an in-memory table, so no
download is attempted.
"""
from __future__ import annotations

from unittest.mock import patch

import pytest

import ouilookup.web.api as api_module
from ouilookup.resolver import Oui


@pytest.fixture
def client(sample_table):
    """Provide a Starlette TestClient wired to the FastAPI app."""
    from starlette.testclient import TestClient

    api_module.app.dependency_overrides[api_module.get_registry] = lambda: Oui(sample_table)
    with patch.object(api_module, "_api_key", None):
        yield TestClient(api_module.app)
    api_module.app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "entries": 10}


class TestLookup:
    def test_lookup_found(self, client):
        resp = client.get("/api/v1/oui/48:57:dd:01:02:03")
        assert resp.status_code == 200
        assert resp.json() == {
            "address": "48:57:dd:01:02:03",
            "oui": "4857DD",
            "organization": "Facebook Inc",
        }

    def test_lookup_not_found(self, client):
        resp = client.get("/api/v1/oui/FFFFFF")
        assert resp.status_code == 404

    def test_lookup_garbage(self, client):
        resp = client.get("/api/v1/oui/not-an-oui")
        assert resp.status_code == 404


class TestEntries:
    def test_entries_prefix(self, client):
        resp = client.get("/api/v1/entries", params={"prefix": "00:0"})
        data = resp.json()
        assert resp.status_code == 200
        assert [item["oui"] for item in data["items"]] == ["000347", "0004AC", "000B38"]
        assert data["total"] == 3

    def test_entries_paging(self, client):
        data = client.get("/api/v1/entries", params={"limit": 2, "offset": 1}).json()
        assert data["total"] == 10
        assert [item["oui"] for item in data["items"]] == ["0004AC", "000B38"]

    def test_entries_limit_validated(self, client):
        assert client.get("/api/v1/entries", params={"limit": 0}).status_code == 422


class TestAuth:
    def test_missing_key_rejected(self, client):
        with patch.object(api_module, "_api_key", "secret"):
            assert client.get("/api/v1/oui/00CDFE").status_code == 401

    def test_bearer_and_query_token(self, client):
        with patch.object(api_module, "_api_key", "secret"):
            headers = {"Authorization": "Bearer secret"}
            assert client.get("/api/v1/oui/00CDFE", headers=headers).status_code == 200
            assert client.get("/api/v1/oui/00CDFE", params={"token": "secret"}).status_code == 200


@pytest.fixture
def fresh_registry(monkeypatch):
    """Forget any loaded table, stored failure or configured source."""
    monkeypatch.setattr(api_module, "_registry", None)
    monkeypatch.setattr(api_module, "_last_failure", None)
    monkeypatch.setattr(api_module, "_source", None)
    monkeypatch.setattr(api_module, "_timeout", 30.0)
    monkeypatch.setattr(api_module, "_retry_interval", 60.0)
    yield


class TestRegistryLoading:
    def test_unavailable_source_is_503(self, tmp_path, monkeypatch, fresh_registry):
        from starlette.testclient import TestClient

        monkeypatch.setenv("OUILOOKUP_SOURCE", str(tmp_path / "missing.csv"))
        resp = TestClient(api_module.app).get("/health")
        assert resp.status_code == 503
        assert "X-Response-Time-Ms" in resp.headers

    def test_registry_is_loaded_once(self, sample_csv, monkeypatch, fresh_registry):
        monkeypatch.setenv("OUILOOKUP_SOURCE", str(sample_csv))
        first = api_module.get_registry()
        assert api_module.get_registry() is first
        assert first.get_name("00CDFE") == "Apple, Inc."

    def test_failure_is_remembered(self, tmp_path, monkeypatch, fresh_registry):
        from fastapi import HTTPException

        monkeypatch.setenv("OUILOOKUP_SOURCE", str(tmp_path / "missing.csv"))
        with patch.object(api_module.Oui, "load", side_effect=api_module.OuiLookupError("down")) as mock_load:
            for _ in range(3):
                with pytest.raises(HTTPException) as excinfo:
                    api_module.get_registry()
                assert excinfo.value.status_code == 503
        assert mock_load.call_count == 1

    def test_retry_after_interval(self, sample_csv, tmp_path, monkeypatch, fresh_registry):
        from fastapi import HTTPException

        monkeypatch.setattr(api_module, "_retry_interval", 0.0)
        monkeypatch.setenv("OUILOOKUP_SOURCE", str(tmp_path / "missing.csv"))
        with pytest.raises(HTTPException):
            api_module.get_registry()
        monkeypatch.setenv("OUILOOKUP_SOURCE", str(sample_csv))
        assert len(api_module.get_registry()) == 10

    def test_configure_overrides_environment(self, sample_csv, tmp_path, monkeypatch, fresh_registry):
        monkeypatch.setenv("OUILOOKUP_SOURCE", str(tmp_path / "missing.csv"))
        api_module.configure(source=str(sample_csv), timeout=5.0)
        assert api_module._timeout == 5.0
        assert api_module.get_registry().get_name("0004AC") == "IBM Corp"
