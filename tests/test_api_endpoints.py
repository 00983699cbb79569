import pytest
from fastapi.testclient import TestClient

from davemode.api.app import app
from davemode.api.dependencies import get_orchestrator

SHOP = {"name": "Shop", "description": "build a shop with cart and checkout", "type": "web-app"}


@pytest.fixture
def client(orchestrator, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DAVEMODE_API_TOKEN", raising=False)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client) -> None:
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_then_answer_over_http(client) -> None:
    parked = client.post("/api/create", json={"requirements": SHOP}).json()

    assert parked["needs_clarification"] is True
    assert parked["contextual_matches"] == ["e-commerce"]

    answers = ["catalog" if "features" in q else None for q in parked["questions"]]
    resp = client.post(
        "/api/clarification/response",
        json={"interactionId": parked["interaction_id"], "responses": answers},
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "success"

    history = client.get("/api/clarification/history/web-app").json()
    assert [entry["interaction_id"] for entry in history] == [parked["interaction_id"]]
    assert history[0]["updated_requirements"]["features"][0]["name"] == "catalog"


def test_create_accepts_plain_text_sections(client) -> None:
    requirements = {**SHOP, "timeline": "2 weeks", "users": "small team"}

    resp = client.post("/api/create", json={"requirements": requirements})

    assert resp.status_code == 200
    assert "missing-timeline" not in resp.json()["ambiguities"]
    assert "missing-users" not in resp.json()["ambiguities"]


def test_unknown_interaction_is_404(client) -> None:
    resp = client.post("/api/clarification/response", json={"interactionId": "missing", "responses": []})

    assert resp.status_code == 404
    assert "missing" in resp.json()["error"]


def test_malformed_body_is_422(client) -> None:
    resp = client.post("/api/clarification/response", json={"responses": ["x"]})

    assert resp.status_code == 422


def test_analyze_asks_for_focus(client) -> None:
    resp = client.post(
        "/api/analyze",
        json={"files": [{"path": "src/App.jsx", "content": "import React from 'react';"}]},
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["needs_clarification"] is True
    assert body["confidence"] == pytest.approx(0.7)


def test_extend_runs_with_complete_requirements(client) -> None:
    resp = client.post(
        "/api/extend",
        json={
            "files": [{"path": "src/App.jsx", "content": "export default App;"}],
            "newRequirements": {
                "features": [{"name": "Orders", "type": "api-endpoint"}],
                "backend": "node",
                "users": {"description": "staff"},
                "deployment": {"platform": "aws"},
                "timeline": {"urgency": "low"},
            },
            "projectContext": {"type": "api"},
        },
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["project_type"] == "api"
    assert body["dependencies"] == {"express": "^4.18.2"}


def test_catalog_endpoints(client) -> None:
    templates = client.get("/api/templates").json()
    patterns = client.get("/api/learning").json()
    agents = client.get("/api/learning/agents").json()

    assert [t["id"] for t in templates] == ["react-app", "node-api", "full-stack"]
    assert set(patterns) == {"creation", "analysis", "hybrid"}
    assert agents == {}


def test_api_token_enforced(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAVEMODE_API_TOKEN", "secret")

    assert client.get("/api/templates").status_code == 401
    assert client.get("/api/templates", headers={"Authorization": "Bearer secret"}).status_code == 200
    assert client.get("/api/templates", headers={"X-DaveMode-Token": "secret"}).status_code == 200
    assert client.get("/api/health").status_code == 200


def test_error_shape_documented(client) -> None:
    openapi = client.get("/openapi.json").json()

    responses = openapi["paths"]["/api/clarification/response"]["post"]["responses"]
    assert responses["404"]["content"]["application/json"]["schema"]["$ref"] == "#/components/schemas/ErrorOut"
    assert "ErrorOut" in openapi["components"]["schemas"]
