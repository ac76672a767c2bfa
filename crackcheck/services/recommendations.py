"""
Repair-product recommendations (analysis-based, DIY-focused and chat/text search).
Every recommendation shown is stored so views, clicks and purchases can be tracked.
"""
import logging
import re
from dataclasses import dataclass, field

from sqlmodel import Session, select

from crackcheck.models import CrackAnalysis, ProductRecommendation, RepairProduct
from crackcheck.models.base import utcnow

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
CHAT_CANDIDATES = 8
CHAT_MIN_RATING = 3.0

_STOP_WORDS = {
    "i", "need", "want", "buy", "purchase", "recommend", "what", "how", "which", "use",
    "fix", "material", "product", "the", "a", "an", "for", "my", "to", "of", "in", "on", "is",
}
_IMPORTANT_WORDS = {"crack", "fissure", "gap", "repair", "fill", "seal", "adhesive", "paste", "patch"}

INTERACTION_FIELDS = {
    "view": "viewed_at",
    "click": "clicked_at",
    "purchase": "purchased_at",
}


@dataclass
class RecommendationContext:
    user_id: str
    analysis_id: int | None = None
    conversation_id: int | None = None
    user_query: str | None = None
    crack_severity: str | None = None
    crack_type: str | None = None
    budget: float | None = None
    preferred_skill_level: str | None = None


@dataclass
class Recommendation:
    product: RepairProduct
    score: float
    reason: str
    recommendation_type: str
    id: int | None = field(default=None)

    def to_dict(self) -> dict:
        p = self.product
        return {
            "id": self.id,
            "product": {
                "id": p.id,
                "asin": p.asin,
                "title": p.title,
                "url": p.url,
                "price": p.price,
                "rating": p.rating,
                "image_url": p.image_url,
                "product_type": p.product_type,
                "material_type": p.material_type,
                "suitable_for_severity": p.suitable_for_severity,
                "suitable_for_crack_types": p.suitable_for_crack_types,
                "skill_level": p.skill_level,
                "coverage_area": p.coverage_area,
                "drying_time": p.drying_time,
            },
            "recommendation_score": round(self.score, 3),
            "recommendation_reason": self.reason,
            "recommendation_type": self.recommendation_type,
        }


def extract_search_keywords(query: str) -> list[str]:
    words = [re.sub(r"[^\w]", "", w) for w in query.lower().split()]
    return [w for w in words if w and (w in _IMPORTANT_WORDS or (w not in _STOP_WORDS and len(w) > 1))]


def generate_recommendation_reason(product: RepairProduct, query: str = "") -> str:
    reasons = []
    if product.rating and product.rating >= 4.5:
        reasons.append("highly rated")
    if product.price and product.price < 15:
        reasons.append("budget-friendly")
    if product.skill_level == "beginner":
        reasons.append("easy to use")
    q = query.lower()
    if "quick" in q or "fast" in q:
        reasons.append("quick application")
    if "small" in q or "minor" in q:
        reasons.append("perfect for minor repairs")
    if reasons:
        return f"Recommended because it's {', '.join(reasons)}"
    return "Good match for your crack repair needs"


def apply_context_filtering(recs: list[Recommendation], ctx: RecommendationContext) -> list[Recommendation]:
    filtered = recs
    if ctx.budget:
        filtered = [r for r in filtered if not r.product.price or r.product.price <= ctx.budget]
    if ctx.preferred_skill_level:
        filtered = [
            r for r in filtered if not r.product.skill_level or r.product.skill_level == ctx.preferred_skill_level
        ]
    return sorted(filtered, key=lambda r: r.score, reverse=True)


def _severity_tag(risk_level: str | None) -> str:
    # Product tags use low | moderate | high; "medium" comes from the professional-finder scale
    risk = (risk_level or "low").lower()
    return "moderate" if risk == "medium" else risk


def _crack_type_matches(product: RepairProduct, crack_type: str | None) -> bool:
    if not crack_type:
        return False
    ct = crack_type.lower()
    return any(tag.lower() in ct for tag in product.suitable_for_crack_types or [])


def save_recommendations(db: Session, recs: list[Recommendation], ctx: RecommendationContext) -> None:
    rows = []
    for rec in recs:
        row = ProductRecommendation(
            analysis_id=ctx.analysis_id,
            conversation_id=ctx.conversation_id,
            user_id=ctx.user_id,
            product_id=rec.product.id,
            recommendation_score=rec.score,
            recommendation_reason=rec.reason,
            recommendation_type=rec.recommendation_type,
            user_query=ctx.user_query,
        )
        db.add(row)
        rows.append(row)
    db.commit()
    for rec, row in zip(recs, rows):
        db.refresh(row)
        rec.id = row.id
    logger.debug("Stored %s %s recommendations for user %s", len(rows), recs[0].recommendation_type if recs else "-", ctx.user_id)


def _analysis_candidates(db: Session, analysis: CrackAnalysis, ctx: RecommendationContext) -> list[Recommendation]:
    severity = _severity_tag(ctx.crack_severity or analysis.risk_level)
    crack_type = ctx.crack_type or analysis.crack_type
    recs = []
    for product in db.exec(select(RepairProduct)):
        severity_ok = severity in (product.suitable_for_severity or [])
        type_ok = _crack_type_matches(product, crack_type)
        if not (severity_ok or type_ok):
            continue
        score = 0.6 + (0.2 if severity_ok else 0) + (0.15 if type_ok else 0) + (product.rating or 0) / 100
        parts = []
        if severity_ok:
            parts.append(f"{severity} severity")
        if type_ok:
            parts.append("this crack type")
        reason = f"Suitable for {' and '.join(parts)} repairs"
        recs.append(Recommendation(product, min(score, 1.0), reason, "analysis_based"))
    recs.sort(key=lambda r: (r.score, r.product.rating or 0), reverse=True)
    return recs[:MAX_RESULTS]


def analysis_based_recommendations(
    db: Session, analysis: CrackAnalysis, ctx: RecommendationContext
) -> list[Recommendation]:
    recs = _analysis_candidates(db, analysis, ctx)
    save_recommendations(db, recs, ctx)
    return recs


def diy_recommendations(db: Session, analysis: CrackAnalysis, ctx: RecommendationContext) -> list[Recommendation]:
    """Beginner-friendly picks, topped up with the best low-severity beginner products."""
    recs = [
        Recommendation(r.product, min(r.score + 0.1, 1.0), f"{r.reason} - Perfect for DIY repair", "diy_focused")
        for r in _analysis_candidates(db, analysis, ctx)
        if r.product.skill_level in ("beginner", None)
    ]
    if len(recs) < 3:
        seen = {r.product.id for r in recs}
        extra = db.exec(
            select(RepairProduct)
            .where(RepairProduct.skill_level == "beginner")
            .order_by(RepairProduct.rating.desc())
        ).all()
        for product in extra:
            if product.id in seen or "low" not in (product.suitable_for_severity or []):
                continue
            recs.append(
                Recommendation(product, 0.8, "Highly rated DIY-friendly crack repair solution", "diy_focused")
            )
            if len(recs) >= MAX_RESULTS:
                break
    recs = recs[:MAX_RESULTS]
    save_recommendations(db, recs, ctx)
    return recs


def chat_based_recommendations(db: Session, query: str, ctx: RecommendationContext) -> list[Recommendation]:
    keywords = extract_search_keywords(query)
    if not keywords:
        return []
    stmt = select(RepairProduct).where(RepairProduct.rating >= CHAT_MIN_RATING)
    scored = []
    for product in db.exec(stmt):
        haystack = " ".join(
            [product.title, product.product_type or "", product.material_type or "", *(product.search_keywords or [])]
        ).lower()
        hits = sum(1 for k in keywords if k in haystack)
        if hits:
            scored.append((hits, product))
    scored.sort(key=lambda t: (t[0], t[1].rating or 0), reverse=True)
    recs = [
        Recommendation(product, 0.5 + 0.5 * hits / len(keywords), generate_recommendation_reason(product, query), "chat_based")
        for hits, product in scored[:CHAT_CANDIDATES]
    ]
    recs = apply_context_filtering(recs, ctx)[:MAX_RESULTS]
    save_recommendations(db, recs, ctx)
    return recs


def track_interaction(db: Session, recommendation_id: int, interaction_type: str, user_id: str) -> bool:
    """Stamps viewed_at / clicked_at / purchased_at. False when the recommendation is not the user's."""
    column = INTERACTION_FIELDS[interaction_type]
    rec = db.get(ProductRecommendation, recommendation_id)
    if not rec or rec.user_id != user_id:
        return False
    setattr(rec, column, utcnow())
    db.add(rec)
    db.commit()
    return True
