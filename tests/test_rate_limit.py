"""Rate limit: analysis endpoints allow ANALYZE_RATE_LIMIT_PER_MINUTE (5 in tests) per client."""
from fastapi.testclient import TestClient


def test_analyze_200_then_429(client: TestClient, auth_headers):
    # Empty image list fails inside the handler, after the limiter has counted the call
    for i in range(5):
        r = client.post("/api/analyze-homeowner", json={"imageUrls": []}, headers=auth_headers)
        assert r.status_code == 400, f"Request {i+1} should reach the handler"
    r = client.post("/api/analyze-homeowner", json={"imageUrls": []}, headers=auth_headers)
    assert r.status_code == 429
    j = r.json()
    assert j.get("error") == "Too many requests"
    assert j["status_code"] == 429
    assert j["detail"].startswith("Rate limit exceeded: ")


def test_limit_is_per_client_ip(client: TestClient, auth_headers):
    for _ in range(5):
        client.post("/api/analyze", json={"imageUrls": []}, headers=auth_headers)
    blocked = client.post("/api/analyze", json={"imageUrls": []}, headers=auth_headers)
    assert blocked.status_code == 429
    other = client.post(
        "/api/analyze",
        json={"imageUrls": []},
        headers={**auth_headers, "X-Forwarded-For": "203.0.113.9"},
    )
    assert other.status_code == 400


def test_client_ip_prefers_first_forwarded_hop():
    from starlette.requests import Request

    from crackcheck.core.rate_limit import client_ip

    def request(headers, client=("10.0.0.5", 1234)):
        scope = {
            "type": "http",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
            "client": client,
        }
        return Request(scope)

    assert client_ip(request({"X-Forwarded-For": "198.51.100.7, 10.0.0.1"})) == "198.51.100.7"
    assert client_ip(request({})) == "10.0.0.5"
    assert client_ip(request({}, client=None)) == "127.0.0.1"
