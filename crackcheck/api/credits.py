from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from crackcheck.api.deps import CurrentUser, get_current_user, is_admin, require_admin
from crackcheck.constants import CREDIT_COSTS, PACKAGES
from crackcheck.core.config import settings
from crackcheck.core.database import get_db
from crackcheck.schemas import GrantCreditsRequest
from crackcheck.services.credits import (
    add_credits,
    ensure_user_credits,
    get_credit_transaction_history,
)

router = APIRouter(prefix="/api", tags=["credits"])


@router.get("/me")
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    row = ensure_user_credits(db, user.id)
    return {
        "id": user.id,
        "email": user.email,
        "isAdmin": is_admin(user),
        "credits": row.credits_remaining,
    }


@router.get("/credits/check")
def credits_check(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    credits = ensure_user_credits(db, user.id).credits_remaining
    return {"success": True, "credits": credits, "hasCredits": credits > 0}


@router.get("/credits/history")
def credits_history(
    limit: int = Query(50, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = get_credit_transaction_history(db, user.id, limit=limit)
    return {"success": True, "transactions": [r.model_dump(mode="json") for r in rows]}


@router.get("/credits/packages")
def credits_packages():
    return {
        "success": True,
        "packages": [{"id": key, **pkg} for key, pkg in PACKAGES.items()],
        "modelCosts": CREDIT_COSTS,
        "pdfExportCost": settings.pdf_export_cost,
    }


@router.post("/credits/grant")
def credits_grant(
    body: GrantCreditsRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Support grant or manual top-up after an out-of-band payment."""
    try:
        balance = add_credits(db, body.user_id, body.amount, body.description, creem_id=body.creem_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "userId": body.user_id, "credits": balance}
