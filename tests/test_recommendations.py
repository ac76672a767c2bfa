"""Repair-product recommendations: matching, DIY top-up, keyword search, tracking."""
import pytest
from sqlmodel import select

from crackcheck.models import CrackAnalysis, ProductRecommendation, RepairProduct
from crackcheck.services.recommendations import (
    RecommendationContext,
    analysis_based_recommendations,
    chat_based_recommendations,
    diy_recommendations,
    extract_search_keywords,
    generate_recommendation_reason,
)


@pytest.fixture
def products(db):
    rows = [
        RepairProduct(asin="B001", title="DAP Spackling Paste for Hairline Cracks", url="https://amazon.com/dp/B001",
                      price=8.0, rating=4.7, product_type="spackling_paste", material_type="compound",
                      skill_level="beginner", suitable_for_severity=["low"], suitable_for_crack_types=["hairline"],
                      search_keywords=["spackle", "crack", "repair"]),
        RepairProduct(asin="B002", title="Mesh Tape Drywall Repair", url="https://amazon.com/dp/B002",
                      price=12.0, rating=4.2, product_type="mesh_tape", material_type="mesh",
                      skill_level="intermediate", suitable_for_severity=["moderate", "high"],
                      suitable_for_crack_types=["horizontal", "vertical", "stepped"],
                      search_keywords=["crack", "repair", "wall"]),
        RepairProduct(asin="B003", title="Contractor Patch Kit", url="https://amazon.com/dp/B003",
                      price=40.0, rating=4.0, product_type="patch_kit", material_type="compound",
                      skill_level="professional", suitable_for_severity=["moderate", "high"],
                      suitable_for_crack_types=["wide", "stepped"], search_keywords=["patch", "kit"]),
        RepairProduct(asin="B004", title="Cheap Caulk Sealant", url="https://amazon.com/dp/B004",
                      price=5.0, rating=2.5, product_type="caulk", material_type="acrylic",
                      skill_level="beginner", suitable_for_severity=["low", "moderate"],
                      suitable_for_crack_types=["hairline", "horizontal", "vertical"],
                      search_keywords=["crack", "caulk"]),
    ]
    db.add_all(rows)
    db.commit()
    return {p.asin: p.id for p in rows}


def _analysis(db, user_id="user_1", risk="low", crack_type="Hairline crack") -> CrackAnalysis:
    a = CrackAnalysis(user_id=user_id, crack_type=crack_type, risk_level=risk, image_urls=["https://x/1.jpg"])
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


def _asins(recs):
    return [r.product.asin for r in recs]


def test_extract_search_keywords_drops_stop_words():
    assert extract_search_keywords("Which filler for my wall crack?") == ["filler", "wall", "crack"]
    assert extract_search_keywords("I need the product") == []


def test_recommendation_reason_combines_product_and_query_signals(db, products):
    product = db.get(RepairProduct, products["B001"])
    reason = generate_recommendation_reason(product, "quick fix for a small crack")
    assert reason == (
        "Recommended because it's highly rated, budget-friendly, easy to use, "
        "quick application, perfect for minor repairs"
    )
    plain = db.get(RepairProduct, products["B003"])
    assert generate_recommendation_reason(plain) == "Good match for your crack repair needs"


def test_analysis_based_matches_severity_and_crack_type(db, products):
    analysis = _analysis(db)
    recs = analysis_based_recommendations(db, analysis, RecommendationContext(user_id="user_1", analysis_id=analysis.id))
    assert _asins(recs) == ["B001", "B004"]
    assert recs[0].score == pytest.approx(0.997)
    assert recs[0].reason == "Suitable for low severity and this crack type repairs"
    assert all(r.recommendation_type == "analysis_based" for r in recs)
    stored = db.exec(select(ProductRecommendation)).all()
    assert len(stored) == 2
    assert {r.id for r in recs} == {s.id for s in stored}
    assert all(s.analysis_id == analysis.id for s in stored)


def test_analysis_based_moderate_risk_uses_moderate_product_tags(db, products):
    analysis = _analysis(db, risk="moderate", crack_type="Stepped crack")
    recs = analysis_based_recommendations(db, analysis, RecommendationContext(user_id="user_1", analysis_id=analysis.id))
    assert _asins(recs) == ["B002", "B003", "B004"]
    assert recs[2].reason == "Suitable for moderate severity repairs"


def test_diy_recommendations_boost_and_top_up_with_beginner_products(db, products):
    analysis = _analysis(db, risk="moderate", crack_type="Stepped crack")
    recs = diy_recommendations(db, analysis, RecommendationContext(user_id="user_1", analysis_id=analysis.id))
    assert _asins(recs) == ["B004", "B001"]
    assert recs[0].score == pytest.approx(0.925)
    assert recs[0].reason.endswith(" - Perfect for DIY repair")
    assert recs[1].score == 0.8
    assert recs[1].reason == "Highly rated DIY-friendly crack repair solution"
    assert all(r.recommendation_type == "diy_focused" for r in recs)


def test_chat_based_ranks_by_keyword_hits_and_skips_low_rated(db, products):
    recs = chat_based_recommendations(db, "quick spackle for small crack", RecommendationContext(user_id="user_1"))
    assert _asins(recs) == ["B001", "B002"]
    assert recs[0].score == pytest.approx(0.75)
    assert recs[1].score == pytest.approx(0.625)
    assert "B004" not in _asins(recs)


def test_chat_based_applies_budget_and_skill_filters(db, products):
    query = "quick spackle for small crack"
    cheap = chat_based_recommendations(db, query, RecommendationContext(user_id="user_1", budget=10))
    assert _asins(cheap) == ["B001"]
    skilled = chat_based_recommendations(
        db, query, RecommendationContext(user_id="user_1", preferred_skill_level="intermediate")
    )
    assert _asins(skilled) == ["B002"]


def test_chat_based_without_keywords_returns_nothing(db, products):
    assert chat_based_recommendations(db, "I need the product", RecommendationContext(user_id="user_1")) == []
    assert db.exec(select(ProductRecommendation)).all() == []


def test_recommendations_require_auth(client):
    r = client.post("/api/recommendations", json={"recommendationType": "chat_based", "userQuery": "crack"})
    assert r.status_code == 401


def test_post_analysis_based(client, db, products, auth_headers):
    analysis = _analysis(db)
    r = client.post(
        "/api/recommendations",
        json={"recommendationType": "analysis_based", "analysisId": analysis.id},
        headers=auth_headers,
    )
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert [rec["product"]["asin"] for rec in data["recommendations"]] == ["B001", "B004"]
    assert data["recommendations"][0]["id"] is not None
    assert data["context"] == {
        "recommendationType": "analysis_based",
        "analysisId": analysis.id,
        "conversationId": None,
        "userQuery": None,
        "totalResults": 2,
    }


def test_post_validation_errors(client, db, products, auth_headers):
    r = client.post("/api/recommendations", json={"recommendationType": "analysis_based"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Analysis ID is required for analysis-based recommendations"

    r = client.post("/api/recommendations", json={"recommendationType": "chat_based"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "User query is required for chat-based recommendations"

    r = client.post("/api/recommendations", json={"recommendationType": "random"}, headers=auth_headers)
    assert r.status_code == 422


def test_post_for_someone_elses_analysis_is_404(client, db, products, auth_headers):
    analysis = _analysis(db, user_id="user_2")
    r = client.post(
        "/api/recommendations",
        json={"recommendationType": "diy_focused", "analysisId": analysis.id},
        headers=auth_headers,
    )
    assert r.status_code == 404
    assert r.json()["error"] == "Analysis not found"


def test_get_quick_recommendations(client, products, auth_headers):
    r = client.get("/api/recommendations", params={"type": "chat_based", "query": "spackle crack"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["recommendations"][0]["product"]["asin"] == "B001"

    r = client.get("/api/recommendations", headers=auth_headers)
    assert r.status_code == 400


@pytest.mark.parametrize(
    "interaction, column",
    [("view", "viewed_at"), ("click", "clicked_at"), ("purchase", "purchased_at")],
)
def test_track_interaction_stamps_column(client, db, products, auth_headers, interaction, column):
    r = client.post(
        "/api/recommendations", json={"recommendationType": "chat_based", "userQuery": "spackle"}, headers=auth_headers
    )
    rec_id = r.json()["recommendations"][0]["id"]
    r = client.post(
        "/api/recommendations/track",
        json={"recommendationId": rec_id, "interactionType": interaction},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": f"{interaction} tracked successfully"}
    db.expire_all()
    assert getattr(db.get(ProductRecommendation, rec_id), column) is not None


def test_track_validation_and_ownership(client, products, auth_headers, other_headers):
    r = client.post("/api/recommendations/track", json={"interactionType": "view"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Recommendation ID is required"

    r = client.post(
        "/api/recommendations/track", json={"recommendationId": 1, "interactionType": "share"}, headers=auth_headers
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid interaction type. Must be: view, click, or purchase"

    r = client.post(
        "/api/recommendations", json={"recommendationType": "chat_based", "userQuery": "spackle"}, headers=auth_headers
    )
    rec_id = r.json()["recommendations"][0]["id"]
    r = client.post(
        "/api/recommendations/track",
        json={"recommendationId": rec_id, "interactionType": "click"},
        headers=other_headers,
    )
    assert r.status_code == 404
    assert r.json()["error"] == "Recommendation not found"
