"""
HTTP API tests - invoke/query endpoints, convenience reads and error mapping.
"""

import pytest
from fastapi.testclient import TestClient

from datashare.api.main import app, get_ledger_dependency
from datashare.core.ledger import InMemoryLedger


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def client(ledger, monkeypatch):
    """Test client backed by a fresh in-memory ledger."""
    monkeypatch.setenv("LEDGER_BACKEND", "memory")
    app.dependency_overrides[get_ledger_dependency] = lambda: ledger
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def invoke(client, function, *args):
    return client.post("/invoke", json={"function": function, "args": list(args)})


class TestHealth:
    def test_health(self, client):
        invoke(client, "publishData", "d1", "c", "date", "time", "alice")
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["backend"] == "memory"
        assert body["record_count"] == 1
        assert body["config_issues"] == []


class TestInvokeEndpoint:
    """Test committed invocations over HTTP."""

    def test_publish_then_read(self, client):
        response = invoke(client, "publishData", "d1", "meta", "2024-01-01", "10:00", "Alice")
        assert response.status_code == 200
        assert response.json() == {"status": 200, "payload": None, "message": ""}

        response = invoke(client, "showDataInfo", "d1")
        assert response.status_code == 200
        assert response.json()["payload"]["owner"] == "alice"

    def test_duplicate_publish_is_conflict(self, client):
        invoke(client, "publishData", "d1", "c", "date", "time", "alice")
        response = invoke(client, "publishData", "d1", "c", "date", "time", "alice")

        assert response.status_code == 409
        assert response.json() == {"error_type": "AlreadyExists", "message": "This data already exists: d1"}

    def test_invalid_argument_is_bad_request(self, client):
        response = invoke(client, "requestData", "r1", "", "carol")

        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidArgument"

    def test_unknown_function_is_bad_request(self, client):
        response = invoke(client, "transferOwnership", "d1")

        assert response.status_code == 400
        assert response.json()["error_type"] == "UnknownFunction"

    def test_missing_record_is_not_found(self, client):
        response = invoke(client, "showDataInfo", "ghost")
        assert response.status_code == 404

    def test_empty_function_rejected_by_schema(self, client):
        response = client.post("/invoke", json={"function": "  ", "args": []})
        assert response.status_code == 422


class TestQueryEndpoint:
    def test_query_does_not_commit(self, client, ledger):
        response = client.post("/query", json={
            "function": "publishData",
            "args": ["d1", "c", "date", "time", "alice"],
        })

        assert response.status_code == 200
        assert ledger.get("d1") is None


class TestRecordEndpoints:
    """Test convenience read endpoints."""

    def test_get_record(self, client):
        invoke(client, "requestData", "r1", "d1", "Carol")
        response = client.get("/records/r1")

        assert response.status_code == 200
        assert response.json() == {"docType": "request", "name": "r1", "datatxid": "d1", "requestor": "carol"}

    def test_get_missing_record(self, client):
        response = client.get("/records/ghost")

        assert response.status_code == 404
        assert response.json()["error_type"] == "NotFound"

    def test_pending_requests(self, client):
        invoke(client, "publishData", "d1", "c", "date", "time", "alice")
        invoke(client, "publishData", "d2", "c", "date", "time", "bob")
        invoke(client, "requestData", "r1", "d1", "carol")
        invoke(client, "requestData", "r2", "d2", "carol")
        invoke(client, "requestData", "r3", "d1", "dave")

        response = client.get("/owners/Alice/pending-requests")

        assert response.status_code == 200
        body = response.json()
        assert body["owner"] == "alice"
        assert {item["Key"] for item in body["requests"]} == {"r1", "r3"}

    def test_resolve_flow(self, client):
        invoke(client, "publishData", "d1", "c", "date", "time", "alice")
        invoke(client, "requestData", "r1", "d1", "carol")

        response = invoke(client, "handleRequest", "resp1", "r1", "approved")
        assert response.status_code == 200

        assert client.get("/owners/alice/pending-requests").json()["requests"] == []
        assert client.get("/records/r1").status_code == 404
        assert client.get("/records/resp1").json()["reply"] == "approved"
