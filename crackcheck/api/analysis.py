"""Crack analysis: AI diagnosis, history, PDF export."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlmodel import Session, select

from crackcheck.api.deps import CurrentUser, get_current_user
from crackcheck.constants import CREDIT_COSTS, DEFAULT_ANALYSIS_MODEL, MAX_IMAGES_PER_ANALYSIS, get_credit_cost
from crackcheck.core.config import is_kie_configured, settings
from crackcheck.core.database import get_db
from crackcheck.core.rate_limit import ANALYZE_RATE_LIMIT, limiter
from crackcheck.models import CrackAnalysis
from crackcheck.schemas import ExportPdfRequest, HomeownerAnalyzeRequest, QuickAnalyzeRequest
from crackcheck.services import chat as chat_service
from crackcheck.services.credits import (
    deduct_credits,
    ensure_user_credits,
    export_pdf_and_deduct_credits,
    get_pdf_export,
    record_credit_transaction,
    refund_credits,
)
from crackcheck.services.kie import annotate_analysis
from crackcheck.services.openrouter import AnalysisUnavailable, analyze_for_homeowner
from crackcheck.services.report_pdf import build_report_pdf, format_crack_cause

log = logging.getLogger("crackcheck")

router = APIRouter(prefix="/api", tags=["analysis"])


def validate_image_urls(image_urls: list[str]) -> list[str]:
    urls = [u.strip() for u in image_urls if u and u.strip()]
    if not urls:
        raise HTTPException(status_code=400, detail="Image URLs are required")
    if len(urls) > MAX_IMAGES_PER_ANALYSIS:
        raise HTTPException(status_code=400, detail=f"Maximum {MAX_IMAGES_PER_ANALYSIS} images allowed")
    return urls


def serialize_analysis(rec: CrackAnalysis) -> dict:
    data = rec.model_dump(mode="json")
    data["processed_images"] = [rec.processed_image_url] if rec.processed_image_url else []
    data["crack_cause_sections"] = format_crack_cause(rec.crack_cause)
    return data


def get_owned_analysis(db: Session, analysis_id: int, user: CurrentUser) -> CrackAnalysis:
    rec = db.get(CrackAnalysis, analysis_id)
    if not rec or rec.user_id != user.id:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return rec


@router.post("/analyze-homeowner")
@limiter.limit(ANALYZE_RATE_LIMIT)
def analyze_homeowner(
    request: Request,
    body: HomeownerAnalyzeRequest,
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Charges the model cost up front, refunds it if the model fails, then stores the
    analysis and queues AR annotation of the photos.
    """
    image_urls = validate_image_urls(body.image_urls)
    if body.model not in CREDIT_COSTS:
        raise HTTPException(status_code=400, detail="Invalid model specified")
    cost = get_credit_cost(body.model)

    ensure_user_credits(db, user.id)
    remaining = deduct_credits(db, user.id, cost)
    tx = record_credit_transaction(
        db, user.id, "deduct", cost, f"Crack analysis ({body.model})", model_used=body.model
    )
    log.info("analyze-homeowner: user=%s model=%s images=%s", user.id, body.model, len(image_urls))

    try:
        result = analyze_for_homeowner(image_urls, body.description, body.model)
    except AnalysisUnavailable as e:
        log.warning("Analysis failed for user %s, refunding %s credits: %s", user.id, cost, e)
        refund_credits(db, user.id, cost, f"Refund: AI analysis failed ({body.model})", model_used=body.model)
        raise HTTPException(status_code=502, detail="AI analysis failed. Your credits have been refunded.")

    rec = CrackAnalysis(
        user_id=user.id,
        description=body.description,
        crack_type=result.crack_type,
        crack_cause=result.crack_cause,
        crack_width=result.crack_width,
        crack_length=result.crack_length,
        repair_steps=result.repair_steps,
        risk_level=result.risk_level,
        image_urls=image_urls,
        model_used=body.model,
    )
    db.add(rec)
    db.commit()
    db.refresh(rec)
    tx.related_analysis_id = rec.id
    db.add(tx)
    db.commit()

    if is_kie_configured():
        annotation_input = {
            "crack_width": result.crack_width,
            "crack_length": result.crack_length,
            "crack_type": result.crack_type,
            "risk_level": result.risk_level,
        }
        background_tasks.add_task(annotate_analysis, rec.id, image_urls, annotation_input)
        message = "Analysis completed. AR-enhanced images are being processed and will be available shortly."
    else:
        message = "Analysis completed."

    return {
        "success": True,
        "analysis": result.model_dump(),
        "analysisId": rec.id,
        "modelUsed": body.model,
        "creditsCharged": cost,
        "remainingCredits": remaining,
        "message": message,
    }


@router.post("/analyze")
@limiter.limit(ANALYZE_RATE_LIMIT)
def analyze_quick(
    request: Request,
    body: QuickAnalyzeRequest,
    user: CurrentUser = Depends(get_current_user),
):
    """Free quick look: crack count, findings and recommendations."""
    image_urls = validate_image_urls(body.image_urls)
    try:
        result = chat_service.quick_analysis(image_urls, body.description)
    except Exception as e:
        log.exception("Quick analysis failed for user %s: %s", user.id, e)
        raise HTTPException(status_code=502, detail="Analysis failed. Please try again.")
    return {"success": True, "analysis": result.model_dump()}


@router.get("/analyses")
def list_analyses(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    stmt = (
        select(CrackAnalysis)
        .where(CrackAnalysis.user_id == user.id)
        .order_by(CrackAnalysis.created_at.desc(), CrackAnalysis.id.desc())
    )
    return {"success": True, "analyses": [r.model_dump(mode="json") for r in db.exec(stmt).all()]}


@router.get("/analyses/{analysis_id}")
def get_analysis(
    analysis_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return serialize_analysis(get_owned_analysis(db, analysis_id, user))


@router.get("/conversations/{conversation_id}/analyses")
def conversation_analyses(
    conversation_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Analyses are listed per user; the conversation id only scopes the client view
    stmt = (
        select(CrackAnalysis)
        .where(CrackAnalysis.user_id == user.id)
        .order_by(CrackAnalysis.created_at.asc(), CrackAnalysis.id.asc())
    )
    return {"success": True, "analyses": [r.model_dump(mode="json") for r in db.exec(stmt).all()]}


@router.post("/export-pdf")
def export_pdf(
    body: ExportPdfRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.analysis_id:
        raise HTTPException(status_code=400, detail="Analysis ID is required")
    rec = db.get(CrackAnalysis, body.analysis_id)
    if not rec:
        raise HTTPException(status_code=404, detail="Analysis not found or access denied")
    if rec.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied - analysis belongs to another user")

    ensure_user_credits(db, user.id)
    cost = settings.pdf_export_cost
    result = export_pdf_and_deduct_credits(
        db, user.id, rec.id, rec.model_used or DEFAULT_ANALYSIS_MODEL, cost
    )
    download_url = f"/api/analyses/{rec.id}/pdf"
    if result.already_exported:
        return {
            "success": True,
            "alreadyExported": True,
            "message": "PDF was already exported for this analysis. No additional credits charged.",
            "export": result.export.model_dump(mode="json"),
            "creditsCharged": 0,
            "downloadUrl": download_url,
        }
    return {
        "success": True,
        "alreadyExported": False,
        "message": f"PDF export successful. {cost} credits charged.",
        "export": result.export.model_dump(mode="json"),
        "creditsCharged": cost,
        "remainingCredits": result.remaining_credits,
        "downloadUrl": download_url,
    }


@router.get("/analyses/{analysis_id}/pdf")
def download_analysis_pdf(
    analysis_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """WeasyPrint report; available once the export has been paid for."""
    rec = get_owned_analysis(db, analysis_id, user)
    if not get_pdf_export(db, user.id, rec.id):
        raise HTTPException(
            status_code=402,
            detail=f"Export this analysis first ({settings.pdf_export_cost} credits).",
        )
    try:
        pdf_bytes = build_report_pdf(rec)
    except Exception as e:
        log.exception("PDF render failed for analysis %s", rec.id)
        raise HTTPException(status_code=500, detail=f"PDF generation failed: {e!s}")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="crack-analysis-{rec.id}.pdf"'},
    )
