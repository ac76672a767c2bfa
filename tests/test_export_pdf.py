"""PDF export: charged once per analysis, download gated on export."""
import pytest
from fastapi.testclient import TestClient

from crackcheck.models import CrackAnalysis
from crackcheck.services.credits import add_credits
from crackcheck.services.report_pdf import analysis_to_context, format_crack_cause, render_html


@pytest.fixture
def analysis_id(db):
    rec = CrackAnalysis(
        user_id="user_1",
        crack_type="Horizontal crack",
        crack_cause="Seen from outside.\n1) VISUAL ASSESSMENT: Long horizontal crack.\n2) RISK: High.",
        crack_width="3 mm",
        crack_length="1.2 m",
        repair_steps=["Call an engineer", "Install wall anchors"],
        risk_level="high",
        image_urls=["https://cdn.example.com/a.jpg"],
        model_used="google/gemini-2.0-flash-001",
    )
    db.add(rec)
    db.commit()
    db.refresh(rec)
    return rec.id


def test_export_charges_once(client: TestClient, auth_headers, db, analysis_id):
    add_credits(db, "user_1", 150)
    r = client.post("/api/export-pdf", json={"analysisId": analysis_id}, headers=auth_headers)
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["alreadyExported"] is False
    assert j["creditsCharged"] == 100
    assert j["remainingCredits"] == 50
    assert j["downloadUrl"] == f"/api/analyses/{analysis_id}/pdf"

    again = client.post("/api/export-pdf", json={"analysisId": analysis_id}, headers=auth_headers).json()
    assert again["alreadyExported"] is True
    assert again["creditsCharged"] == 0
    assert client.get("/api/credits/check", headers=auth_headers).json()["credits"] == 50


def test_export_insufficient_credits(client: TestClient, auth_headers, analysis_id):
    r = client.post("/api/export-pdf", json={"analysisId": analysis_id}, headers=auth_headers)
    assert r.status_code == 402
    assert r.json()["requiredCredits"] == 100
    assert r.json()["currentCredits"] == 20


def test_export_errors(client: TestClient, auth_headers, other_headers, analysis_id):
    r = client.post("/api/export-pdf", json={}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Analysis ID is required"
    r = client.post("/api/export-pdf", json={"analysisId": 9999}, headers=auth_headers)
    assert r.status_code == 404
    r = client.post("/api/export-pdf", json={"analysisId": analysis_id}, headers=other_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "Access denied - analysis belongs to another user"


def test_download_requires_export(client: TestClient, auth_headers, db, analysis_id, monkeypatch):
    monkeypatch.setattr("crackcheck.api.analysis.build_report_pdf", lambda rec: b"%PDF-1.7 fake")
    r = client.get(f"/api/analyses/{analysis_id}/pdf", headers=auth_headers)
    assert r.status_code == 402

    add_credits(db, "user_1", 100)
    client.post("/api/export-pdf", json={"analysisId": analysis_id}, headers=auth_headers)
    r = client.get(f"/api/analyses/{analysis_id}/pdf", headers=auth_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert f'crack-analysis-{analysis_id}.pdf' in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_format_crack_cause_sections():
    sections = format_crack_cause("Intro text.\n1) VISUAL ASSESSMENT: Wide crack.\n2) PROBABLE CAUSE: Settlement.")
    assert sections == [
        {"header": "", "content": "Intro text."},
        {"header": "1) VISUAL ASSESSMENT:", "content": "Wide crack."},
        {"header": "2) PROBABLE CAUSE:", "content": "Settlement."},
    ]
    assert format_crack_cause("No numbered headers here") == [{"header": "", "content": "No numbered headers here"}]
    assert format_crack_cause("") == []
    assert format_crack_cause(None) == []


def test_report_html_contains_analysis(db, analysis_id):
    rec = db.get(CrackAnalysis, analysis_id)
    ctx = analysis_to_context(rec, report_date="March 5, 2025 10:00")
    assert ctx["report_id"] == f"CRK-{analysis_id:06d}"
    assert ctx["risk_label"] == "HIGH RISK"
    html = render_html(ctx)
    assert "Horizontal crack" in html
    assert "1) VISUAL ASSESSMENT:" in html
    assert "Install wall anchors" in html
    assert "risk-high" in html
