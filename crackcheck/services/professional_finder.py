"""Finds local structural engineers for an analysed crack, stricter for higher risk."""
import logging
from dataclasses import asdict, dataclass

import httpx
from sqlmodel import Session, or_, select

from crackcheck.models import CrackAnalysis, Professional, ProfessionalSearchLog, UsCity
from crackcheck.services.location import calculate_distance, find_nearest_city, get_city_from_zip

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
SERVICE_TYPE = "structural-engineering"

# risk level -> (emergency level, max response minutes, min rating)
_RISK_SEARCH = {
    "critical": ("critical", 60, 4.5),
    "high": ("high", 120, 4.0),
    "medium": ("medium", 480, 3.5),
    "moderate": ("medium", 480, 3.5),
}

EMERGENCY_MESSAGES = {
    "critical": (
        "⚠️ **Critical Issue** - Serious structural problems detected. Contact a professional structural "
        "engineer immediately for assessment. Avoid the affected area for safety."
    ),
    "high": (
        "🔶 **High Priority** - Structural issues requiring professional attention found. Contact a "
        "structural engineer within 24 hours for inspection."
    ),
    "medium": (
        "🔷 **Needs Attention** - Recommend contacting a professional structural engineer for evaluation "
        "to determine if repairs are needed."
    ),
}
DEFAULT_EMERGENCY_MESSAGE = (
    "💡 **Professional Consultation** - If you need professional advice, these engineers can provide "
    "consultation services."
)


class AnalysisNotFound(LookupError):
    pass


@dataclass
class SearchParams:
    zip_code: str | None = None
    city_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    service_type: str = SERVICE_TYPE
    emergency_level: str = "low"
    max_distance: float = 50
    min_rating: float | None = None
    max_response_time: int | None = None


def search_params_for_risk(risk_level: str | None, base: SearchParams) -> SearchParams:
    level, response, rating = _RISK_SEARCH.get((risk_level or "medium").lower(), ("low", None, 3.0))
    base.emergency_level = level
    base.max_response_time = response
    base.min_rating = rating
    return base


def emergency_message(level: str | None) -> str:
    return EMERGENCY_MESSAGES.get((level or "").lower(), DEFAULT_EMERGENCY_MESSAGE)


def _resolve_city(db: Session, params: SearchParams, http: httpx.Client | None = None) -> UsCity | None:
    if params.city_id:
        return db.get(UsCity, params.city_id)
    if params.zip_code:
        return get_city_from_zip(db, params.zip_code, http=http)
    if params.latitude is not None and params.longitude is not None:
        nearest = find_nearest_city(db, params.latitude, params.longitude, params.max_distance)
        return nearest[0] if nearest else None
    return None


def search_professionals(db: Session, params: SearchParams, http: httpx.Client | None = None) -> list[dict]:
    """Active professionals in the resolved city, top pros first, then rating and hires."""
    city = _resolve_city(db, params, http=http)
    if not city:
        logger.info("No city resolved for search %s", params)
        return []
    stmt = select(Professional).where(Professional.is_active == True, Professional.primary_city_id == city.id)  # noqa: E712
    if params.min_rating:
        stmt = stmt.where(Professional.rating >= params.min_rating)
    if params.max_response_time:
        stmt = stmt.where(
            or_(
                Professional.response_time_minutes.is_(None),
                Professional.response_time_minutes <= params.max_response_time,
            )
        )
    stmt = stmt.order_by(
        Professional.is_top_pro.desc(), Professional.rating.desc(), Professional.hire_count.desc()
    ).limit(SEARCH_LIMIT)

    distance = None
    if params.latitude is not None and params.longitude is not None and city.latitude is not None:
        distance = round(calculate_distance(params.latitude, params.longitude, city.latitude, city.longitude), 1)

    results = []
    for prof in db.exec(stmt):
        row = prof.model_dump()
        row["primary_city"] = {"city_name": city.city_name, "state_code": city.state_code}
        row["distance"] = distance
        results.append(row)
    return results


def log_search(
    db: Session,
    crack_analysis_id: int | None,
    params: SearchParams,
    results_count: int,
    selected_professional_id: int | None = None,
) -> None:
    db.add(
        ProfessionalSearchLog(
            crack_analysis_id=crack_analysis_id,
            search_query="structural-engineer",
            zip_code=params.zip_code,
            results_count=results_count,
            selected_professional_id=selected_professional_id,
            search_context=asdict(params),
        )
    )
    db.commit()


def find_professionals_for_analysis(
    db: Session,
    crack_analysis_id: int,
    location: SearchParams,
    http: httpx.Client | None = None,
) -> tuple[list[dict], SearchParams]:
    analysis = db.get(CrackAnalysis, crack_analysis_id)
    if not analysis:
        raise AnalysisNotFound(crack_analysis_id)
    params = search_params_for_risk(analysis.risk_level, location)
    professionals = search_professionals(db, params, http=http)
    log_search(db, crack_analysis_id, params, len(professionals))
    return professionals, params


def get_professional_details(db: Session, professional_id: int) -> dict | None:
    prof = db.get(Professional, professional_id)
    if not prof:
        return None
    data = prof.model_dump()
    city = db.get(UsCity, prof.primary_city_id) if prof.primary_city_id else None
    data["primary_city"] = (
        {
            "city_name": city.city_name,
            "state_code": city.state_code,
            "latitude": city.latitude,
            "longitude": city.longitude,
        }
        if city
        else None
    )
    return data


def format_professional(prof: dict) -> str:
    """Markdown card for chat and result pages."""
    rating = f"⭐ {prof['rating']}/5.0" if prof.get("rating") else "No rating yet"
    reviews = f"({prof['review_count']} reviews)" if prof.get("review_count") else ""
    response = (
        f"Responds in about {prof['response_time_minutes']} min"
        if prof.get("response_time_minutes")
        else "Response time unknown"
    )
    badges = []
    if prof.get("is_top_pro"):
        badges.append("🏆 Top Pro")
    if prof.get("is_licensed"):
        badges.append("📜 Licensed")
    city = prof.get("primary_city")
    location = f"{city['city_name']}, {city['state_code']}" if city else "Location unknown"
    fee = f"${prof['estimate_fee_amount']:g}" if prof.get("estimate_fee_amount") else "Free"
    lines = [
        f"**{prof['company_name']}**",
        " ".join(part for part in (rating, reviews, " ".join(badges)) if part),
        f"📍 Service area: {location}",
        f"⏱️ {response}",
        f"💰 On-site estimate: {fee}" + (" (waived if hired)" if prof.get("estimate_fee_waived_if_hired") else ""),
        "",
        prof.get("description") or "Professional structural engineering services",
        "",
        f"📞 Contact: {prof.get('phone') or 'Contact through the platform'}",
    ]
    if prof.get("website_url"):
        lines.append(f"🌐 Website: {prof['website_url']}")
    return "\n".join(lines)
