"""Health probe and the public example gallery."""
import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from crackcheck.core.config import is_kie_configured, is_openrouter_configured
from crackcheck.core.database import check_db, get_db
from crackcheck.models import CrackAnalysis
from crackcheck.services.report_pdf import SECTION_HEADER

log = logging.getLogger("crackcheck")

router = APIRouter(tags=["service"])

EXAMPLES_LIMIT = 6
DEFAULT_EXAMPLE_IMAGE = "/crack_example.jpg"

FALLBACK_EXAMPLES = [
    {
        "id": "fallback-1",
        "title": "Diagonal tension crack near window corner",
        "description": (
            "Hairline diagonal crack at 45° from window corner. Likely due to localized tensile stress "
            "and minor settlement."
        ),
        "severity": "low",
        "crack_type": "Diagonal tension crack (45° orientation)",
        "crack_width": "< 0.3 mm",
        "crack_length": "15–25 cm",
        "image_url": DEFAULT_EXAMPLE_IMAGE,
        "analysis_summary": (
            "Minor diagonal cracking consistent with stress concentration near openings. Monitor and seal "
            "to prevent moisture ingress."
        ),
        "crack_cause": (
            "1) VISUAL ASSESSMENT: Hairline diagonal crack extending from window corner at ~45°.\n"
            "2) PROBABLE CAUSE: Localized tensile stress and minor differential settlement.\n"
            "3) RISK: Low; primarily aesthetic with limited structural impact.\n"
            "4) RECOMMENDATION: Seal with acrylic filler; monitor for widening."
        ),
        "repair_steps": [
            "Clean and dry the area; remove loose material.",
            "Apply acrylic crack filler suitable for hairline cracks.",
            "Feather and sand; prime and repaint to finish.",
            "Monitor for changes over 3–6 months.",
        ],
    },
    {
        "id": "fallback-2",
        "title": "Vertical shrinkage crack on plaster wall",
        "description": "Narrow vertical crack typical of drying shrinkage in plaster; limited structural significance.",
        "severity": "low",
        "crack_type": "Vertical shrinkage crack",
        "crack_width": "≈ 0.5 mm",
        "crack_length": "40–60 cm",
        "image_url": DEFAULT_EXAMPLE_IMAGE,
        "analysis_summary": (
            "Drying/shrinkage-related cracking. Address with flexible filler and repaint; monitor for recurrence."
        ),
        "crack_cause": (
            "1) VISUAL ASSESSMENT: Vertical fine crack without displacement.\n"
            "2) PROBABLE CAUSE: Material shrinkage from curing/drying.\n"
            "3) RISK: Low; mainly cosmetic.\n"
            "4) RECOMMENDATION: Flexible filler and repaint."
        ),
        "repair_steps": [
            "Open up the crack slightly to form a V-groove.",
            "Fill with flexible acrylic/latex compound; allow to cure.",
            "Sand smooth; apply primer and finish coat.",
        ],
    },
    {
        "id": "fallback-3",
        "title": "Horizontal crack along mortar joint",
        "description": (
            "Crack following mortar joint indicates thermal movement or minor support issues; inspect if widening."
        ),
        "severity": "moderate",
        "crack_type": "Horizontal mortar joint crack",
        "crack_width": "0.5–1.0 mm",
        "crack_length": "80+ cm",
        "image_url": DEFAULT_EXAMPLE_IMAGE,
        "analysis_summary": (
            "Movement along masonry joint. Repoint with compatible mortar; assess support/anchorage if "
            "progression noted."
        ),
        "crack_cause": (
            "1) VISUAL ASSESSMENT: Crack tracking along mortar bed joint.\n"
            "2) PROBABLE CAUSE: Thermal movement and minor differential support.\n"
            "3) RISK: Moderate if active movement persists.\n"
            "4) RECOMMENDATION: Rake and repoint with compatible mortar; monitor."
        ),
        "repair_steps": [
            "Rake out deteriorated mortar to appropriate depth.",
            "Repoint using compatible mortar; ensure proper curing.",
            "Install/verify movement joints where appropriate.",
            "Monitor for recurrence or widening (>2 mm).",
        ],
    },
]


def _preview(crack_cause: str | None, length: int = 120) -> str:
    if not crack_cause:
        return ""
    clean = " ".join(SECTION_HEADER.sub("", crack_cause).split())
    return clean[:length] + ("..." if len(clean) > length else "")


def example_from_analysis(rec: CrackAnalysis) -> dict:
    title = rec.crack_type or "Crack Analysis"
    if len(title) > 60:
        title = title[:60] + "..."
    if rec.processed_image_url:
        image_url = rec.processed_image_url
    elif rec.image_urls:
        image_url = rec.image_urls[0]
    else:
        image_url = DEFAULT_EXAMPLE_IMAGE
    description = _preview(rec.crack_cause)
    return {
        "id": rec.id,
        "title": title,
        "description": description,
        "severity": rec.risk_level,
        "crack_type": rec.crack_type or "Unknown Type",
        "crack_width": rec.crack_width,
        "crack_length": rec.crack_length,
        "image_url": image_url,
        "analysis_summary": description,
        "crack_cause": rec.crack_cause or "",
        "repair_steps": rec.repair_steps or [],
        "created_at": rec.created_at.isoformat() if rec.created_at else None,
    }


@router.get("/health")
def health():
    return {
        "status": "ok",
        "openrouter_configured": is_openrouter_configured(),
        "kie_configured": is_kie_configured(),
        "database": "ok" if check_db() else "unavailable",
    }


@router.get("/api/examples")
def examples(db: Session = Depends(get_db)):
    """Latest complete analyses; the static set when there are none yet."""
    stmt = (
        select(CrackAnalysis)
        .where(CrackAnalysis.crack_type.is_not(None), CrackAnalysis.crack_cause.is_not(None))
        .order_by(CrackAnalysis.created_at.desc(), CrackAnalysis.id.desc())
        .limit(EXAMPLES_LIMIT * 3)
    )
    recs = [r for r in db.exec(stmt).all() if r.image_urls][:EXAMPLES_LIMIT]
    if not recs:
        log.info("No stored analyses to show, serving fallback examples")
        return {"examples": FALLBACK_EXAMPLES}
    return {"examples": [example_from_analysis(r) for r in recs]}
