"""Health and example gallery endpoints."""
from fastapi.testclient import TestClient

from crackcheck.models import CrackAnalysis


def test_health_returns_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j.get("status") == "ok"
    assert j.get("openrouter_configured") is True
    assert j.get("kie_configured") is False
    assert j.get("database") == "ok"


def test_request_id_header(client: TestClient):
    r = client.get("/health")
    assert r.headers.get("X-Request-ID")


def test_examples_fallback_when_no_analyses(client: TestClient):
    r = client.get("/api/examples")
    assert r.status_code == 200
    examples = r.json()["examples"]
    assert len(examples) == 3
    assert examples[0]["id"] == "fallback-1"


def test_examples_from_stored_analyses(client: TestClient, db):
    db.add(
        CrackAnalysis(
            user_id="u",
            crack_type="Stair-step crack in brick veneer",
            crack_cause="1) VISUAL ASSESSMENT: Stepped crack along mortar joints.\n2) RISK: Moderate.",
            risk_level="moderate",
            image_urls=["http://img/1.jpg"],
            processed_image_url="http://img/annotated.jpg",
        )
    )
    # Incomplete analyses are not shown
    db.add(CrackAnalysis(user_id="u", crack_type=None, image_urls=["http://img/2.jpg"]))
    db.commit()
    examples = client.get("/api/examples").json()["examples"]
    assert len(examples) == 1
    ex = examples[0]
    assert ex["image_url"] == "http://img/annotated.jpg"
    assert ex["severity"] == "moderate"
    assert "VISUAL ASSESSMENT" not in ex["description"]
    assert ex["description"].startswith("Stepped crack along mortar joints.")


def test_unknown_route_uses_error_envelope(client: TestClient):
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert r.json()["error"] == "Not Found"
    assert r.json()["status_code"] == 404


def test_validation_error_envelope(client: TestClient):
    r = client.get("/api/articles/not-a-number")
    assert r.status_code == 422
    j = r.json()
    assert j["status_code"] == 422
    assert j["error"].startswith("Input should be a valid integer")
    assert j["detail"][0]["loc"] == ["path", "article_id"]
    assert j["request_id"] == r.headers["X-Request-ID"]
