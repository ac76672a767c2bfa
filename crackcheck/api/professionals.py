import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from crackcheck.api.deps import CurrentUser, get_current_user
from crackcheck.core.database import get_db
from crackcheck.models import CrackAnalysis
from crackcheck.schemas import ProfessionalSearchRequest
from crackcheck.services.location import is_valid_us_zip, normalize_zip
from crackcheck.services.professional_finder import (
    AnalysisNotFound,
    SearchParams,
    emergency_message,
    find_professionals_for_analysis,
    format_professional,
    get_professional_details,
)

log = logging.getLogger("crackcheck")

router = APIRouter(prefix="/api/professional-finder", tags=["professionals"])

_PUBLIC_FIELDS = (
    "id",
    "company_name",
    "rating",
    "review_count",
    "is_top_pro",
    "is_licensed",
    "response_time_minutes",
    "estimate_fee_amount",
    "estimate_fee_waived_if_hired",
    "description",
    "phone",
    "thumbtack_url",
    "primary_city",
    "distance",
)


@router.post("")
def find_professionals(
    body: ProfessionalSearchRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Structural engineers near the user, filtered by the analysed crack's risk."""
    if not body.crack_analysis_id:
        raise HTTPException(status_code=400, detail="Crack analysis ID is required")

    location = SearchParams(max_distance=body.max_distance)
    if body.zip_code:
        if not is_valid_us_zip(body.zip_code):
            raise HTTPException(status_code=400, detail="Invalid ZIP code format")
        location.zip_code = normalize_zip(body.zip_code)
    elif body.latitude is not None and body.longitude is not None:
        location.latitude = body.latitude
        location.longitude = body.longitude
    else:
        raise HTTPException(status_code=400, detail="Either ZIP code or coordinates are required")

    analysis = db.get(CrackAnalysis, body.crack_analysis_id)
    if analysis and analysis.user_id != user.id:
        raise HTTPException(status_code=404, detail="Crack analysis not found")
    try:
        professionals, params = find_professionals_for_analysis(db, body.crack_analysis_id, location)
    except AnalysisNotFound:
        raise HTTPException(status_code=404, detail="Crack analysis not found")

    level = body.emergency_level or params.emergency_level
    log.info(
        "professional-finder: user=%s analysis=%s level=%s results=%s",
        user.id, body.crack_analysis_id, level, len(professionals),
    )
    return {
        "success": True,
        "data": {
            "recommendation_message": emergency_message(level),
            "professionals": [
                {**{k: prof.get(k) for k in _PUBLIC_FIELDS}, "formatted_display": format_professional(prof)}
                for prof in professionals
            ],
            "search_metadata": {
                "search_location": params.zip_code or f"{params.latitude}, {params.longitude}",
                "results_count": len(professionals),
                "emergency_level": level,
                "max_distance": params.max_distance,
            },
        },
    }


@router.get("")
def professional_details(id: int | None = None, db: Session = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="Professional ID is required")
    professional = get_professional_details(db, id)
    if not professional:
        raise HTTPException(status_code=404, detail="Professional not found")
    return {"success": True, "data": professional}
