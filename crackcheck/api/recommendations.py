"""Repair-product recommendations and interaction tracking."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from crackcheck.api.analysis import get_owned_analysis
from crackcheck.api.deps import CurrentUser, get_current_user
from crackcheck.core.database import get_db
from crackcheck.schemas import RecommendationRequest, TrackRequest
from crackcheck.services.recommendations import (
    INTERACTION_FIELDS,
    RecommendationContext,
    analysis_based_recommendations,
    chat_based_recommendations,
    diy_recommendations,
    track_interaction,
)

log = logging.getLogger("crackcheck")

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


def _recommend(db: Session, user: CurrentUser, recommendation_type: str, ctx: RecommendationContext) -> list[dict]:
    if recommendation_type in ("analysis_based", "diy_focused"):
        if not ctx.analysis_id:
            raise HTTPException(status_code=400, detail="Analysis ID is required for analysis-based recommendations")
        analysis = get_owned_analysis(db, ctx.analysis_id, user)
        if recommendation_type == "diy_focused":
            recs = diy_recommendations(db, analysis, ctx)
        else:
            recs = analysis_based_recommendations(db, analysis, ctx)
    else:
        if not (ctx.user_query or "").strip():
            raise HTTPException(status_code=400, detail="User query is required for chat-based recommendations")
        recs = chat_based_recommendations(db, ctx.user_query, ctx)
    return [r.to_dict() for r in recs]


@router.post("")
def recommend(
    body: RecommendationRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ctx = RecommendationContext(
        user_id=user.id,
        analysis_id=body.analysis_id,
        conversation_id=body.conversation_id,
        user_query=body.user_query,
        crack_severity=body.crack_severity,
        crack_type=body.crack_type,
        budget=body.budget,
        preferred_skill_level=body.preferred_skill_level,
    )
    recommendations = _recommend(db, user, body.recommendation_type, ctx)
    log.info(
        "recommendations: user=%s type=%s results=%s", user.id, body.recommendation_type, len(recommendations)
    )
    return {
        "success": True,
        "recommendations": recommendations,
        "context": {
            "recommendationType": body.recommendation_type,
            "analysisId": body.analysis_id,
            "conversationId": body.conversation_id,
            "userQuery": body.user_query,
            "totalResults": len(recommendations),
        },
    }


@router.get("")
def quick_recommend(
    type: str = "analysis_based",
    analysisId: int | None = None,
    conversationId: int | None = None,
    query: str | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Shortcut for links: ?type=chat_based&query=... or ?analysisId=..."""
    if type == "chat_based" and query:
        ctx = RecommendationContext(user_id=user.id, conversation_id=conversationId, user_query=query)
    elif type == "analysis_based" and analysisId:
        ctx = RecommendationContext(user_id=user.id, analysis_id=analysisId, conversation_id=conversationId)
    else:
        raise HTTPException(status_code=400, detail="Invalid parameters. Provide analysisId or query with appropriate type.")
    return {"success": True, "recommendations": _recommend(db, user, type, ctx)}


@router.post("/track")
def track(
    body: TrackRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.recommendation_id:
        raise HTTPException(status_code=400, detail="Recommendation ID is required")
    if body.interaction_type not in INTERACTION_FIELDS:
        raise HTTPException(status_code=400, detail="Invalid interaction type. Must be: view, click, or purchase")
    if not track_interaction(db, body.recommendation_id, body.interaction_type, user.id):
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return {"success": True, "message": f"{body.interaction_type} tracked successfully"}
