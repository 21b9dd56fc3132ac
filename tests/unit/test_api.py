"""Unit tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from roomforge.agents import MockRoleLookup
from roomforge.api import build_container, create_app
from roomforge.db import MockQueryExecutor
from roomforge.embedding import MockEmbeddingClient
from roomforge.inference import MockInferenceClient
from roomforge.knowledge import MockPendingKnowledgeStore
from roomforge.settings import GenerationSettings, RagSettings, Settings
from roomforge.vector_store import MockVectorStore

ROOMS = [{"id": "1", "slug": "phong-go-vap", "title": "Phòng Gò Vấp"}]


def route(messages):
    prompt = messages[-1].content
    if "orchestrator of a rental-marketplace" in prompt:
        request_type = "GREETING" if "xin chào" in prompt.lower() else "QUERY"
        return (
            f"REQUEST_TYPE: {request_type}\nINTENT_ACTION: search\nMODE_HINT: LIST\n"
            "ENTITY_HINT: room\nTABLES_HINT: rooms\nMISSING_PARAMS: none\nRESPONSE: Chào bạn!"
        )
    if "PostgreSQL expert" in prompt:
        return "SELECT r.id, r.slug, r.name AS title FROM rooms r LIMIT 10"
    if "You judge whether" in prompt:
        return "IS_VALID: true\nSEVERITY: NONE\nREASON: OK\nEVALUATION: Lists rooms."
    if "You rewrite follow-up questions" in prompt:
        return "Phòng giá rẻ dưới 6 triệu"
    return "Có 1 phòng.\n---END"


@pytest.fixture
def client():
    settings = Settings(
        generation=GenerationSettings(auto_persist=False, retry_delay_seconds=0),
        rag=RagSettings(tenant_id="test"),
    )
    container = build_container(
        settings,
        llm=MockInferenceClient(handler=route),
        embedder=MockEmbeddingClient(),
        store=MockVectorStore(),
        executor=MockQueryExecutor(handler=lambda sql: ROOMS),
        pending_store=MockPendingKnowledgeStore(),
        role_lookup=MockRoleLookup(),
    )
    with TestClient(create_app(container)) as test_client:
        yield test_client


def queue_pending(client) -> int:
    response = client.post("/api/v1/chat", json={"message": "phòng dưới 4 triệu"}, headers={"X-User-Id": "42"})
    assert response.json()["meta"]["persistence"]["mode"] == "pending"
    return response.json()["meta"]["persistence"]["record_id"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestChat:
    def test_greeting_envelope(self, client):
        response = client.post(
            "/api/v1/chat",
            json={"message": "xin chào", "currentPage": "/rooms/phong-go-vap"},
            headers={"X-User-Id": "42"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "CONTENT"
        assert data["sessionId"] == "user_42"
        assert data["message"] == "Chào bạn!"

    def test_data_envelope(self, client):
        response = client.post("/api/v1/chat", json={"message": "phòng giá rẻ"})

        data = response.json()
        assert data["kind"] == "DATA"
        assert data["payload"]["mode"] == "LIST"
        assert data["payload"]["items"][0]["path"] == "/rooms/phong-go-vap"
        assert data["sessionId"].startswith("ip_")

    def test_empty_message_rejected(self, client):
        response = client.post("/api/v1/chat", json={"message": ""})

        assert response.status_code == 422

    def test_history_roundtrip(self, client):
        headers = {"X-User-Id": "42"}
        client.post("/api/v1/chat", json={"message": "xin chào"}, headers=headers)

        history = client.get("/api/v1/chat/history", headers=headers).json()
        assert history["session_id"] == "user_42"
        assert [m["role"] for m in history["messages"]] == ["user", "assistant"]

        assert client.delete("/api/v1/chat/history", headers=headers).json() == {"success": True}
        assert client.get("/api/v1/chat/history", headers=headers).json()["messages"] == []


class TestKnowledgeAdmin:
    def test_teach_list_update_delete(self, client):
        taught = client.post(
            "/api/v1/admin/knowledge/teach",
            json={"question": "phòng dưới 4 triệu", "sql": "SELECT id FROM rooms"},
        )
        assert taught.status_code == 200
        record_id = taught.json()["sql_qa_id"]
        assert taught.json()["is_update"] is False

        items = client.get("/api/v1/admin/knowledge").json()["items"]
        assert items[0]["sql"] == "SELECT id FROM rooms LIMIT 100;"

        updated = client.post(
            "/api/v1/admin/knowledge/teach",
            json={"question": "phòng dưới 4 triệu", "sql": "SELECT id FROM rooms LIMIT 5", "id": record_id},
        )
        assert updated.json()["is_update"] is True

        assert client.delete(f"/api/v1/admin/knowledge/{record_id}").json() == {"success": True, "id": record_id}
        assert client.delete(f"/api/v1/admin/knowledge/{record_id}").status_code == 404

    def test_unsafe_sql_rejected(self, client):
        response = client.post(
            "/api/v1/admin/knowledge/teach",
            json={"question": "xóa phòng", "sql": "DELETE FROM rooms"},
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("SQL rejected:")

    def test_update_unknown_id(self, client):
        response = client.post(
            "/api/v1/admin/knowledge/teach",
            json={"question": "phòng", "sql": "SELECT id FROM rooms", "id": 999},
        )

        assert response.status_code == 404


class TestPendingAdmin:
    def test_approve_flow(self, client):
        pending_id = queue_pending(client)

        listing = client.get("/api/v1/admin/pending").json()
        assert listing["total"] == 1
        assert client.get(f"/api/v1/admin/pending/{pending_id}").json()["status"] == "pending"

        approved = client.post(f"/api/v1/admin/pending/{pending_id}/approve", headers={"X-User-Id": "admin"})
        assert approved.status_code == 200
        assert approved.json()["sql_qa_id"] is not None

        again = client.post(f"/api/v1/admin/pending/{pending_id}/approve")
        assert again.status_code == 400
        assert again.json()["detail"] == "Item already approved"

        assert client.get("/api/v1/admin/pending", params={"status": "approved"}).json()["total"] == 1
        assert len(client.get("/api/v1/admin/knowledge").json()["items"]) == 1

    def test_reject_flow(self, client):
        pending_id = queue_pending(client)

        rejected = client.post(f"/api/v1/admin/pending/{pending_id}/reject", json={"reason": "wrong scope"})

        assert rejected.status_code == 200
        assert rejected.json()["message"] == "Item rejected"
        record = client.get(f"/api/v1/admin/pending/{pending_id}").json()
        assert record["rejection_reason"] == "wrong scope"

    def test_unknown_ids(self, client):
        assert client.get("/api/v1/admin/pending/999").status_code == 404
        assert client.post("/api/v1/admin/pending/999/approve").status_code == 404
        assert client.post("/api/v1/admin/pending/999/reject").status_code == 404
