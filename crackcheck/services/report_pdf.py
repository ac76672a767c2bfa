"""
Structural crack analysis PDF report: CrackAnalysis row -> context -> Jinja2 -> WeasyPrint -> PDF bytes.
"""
import re
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
_ENV = Environment(loader=FileSystemLoader(str(_TEMPLATES_DIR)), autoescape=True)

# "1) VISUAL ASSESSMENT:" style headers inside crack_cause
SECTION_HEADER = re.compile(r"(\d+\)\s+[A-Z\s]+:)")

RISK_LABELS = {
    "high": "HIGH RISK",
    "moderate": "MODERATE RISK",
    "low": "LOW RISK",
}


def format_crack_cause(crack_cause: str | None) -> list[dict]:
    """
    Splits the numbered engineering sections into [{header, content}].
    Text before the first header, or text with no headers at all, becomes a header-less section.
    """
    if not crack_cause or not crack_cause.strip():
        return []
    matches = list(SECTION_HEADER.finditer(crack_cause))
    if not matches:
        return [{"header": "", "content": crack_cause.strip()}]
    sections = []
    lead = crack_cause[: matches[0].start()].strip()
    if lead:
        sections.append({"header": "", "content": lead})
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(crack_cause)
        content = crack_cause[m.end() : end].strip()
        if content:
            sections.append({"header": m.group(1).strip(), "content": content})
    return sections or [{"header": "", "content": crack_cause.strip()}]


def analysis_to_context(analysis, report_date: str | None = None) -> dict:
    """Template context for one CrackAnalysis."""
    if report_date is None:
        created = getattr(analysis, "created_at", None) or datetime.now(timezone.utc)
        report_date = created.strftime("%B %d, %Y %H:%M")
    risk = (analysis.risk_level or "").lower()
    return {
        "title": "Structural Crack Analysis Report",
        "report_date": report_date,
        "report_id": f"CRK-{analysis.id:06d}" if analysis.id else "CRK-DRAFT",
        "risk_level": risk or "unknown",
        "risk_label": RISK_LABELS.get(risk, "RISK NOT ASSESSED"),
        "crack_type": analysis.crack_type or "",
        "crack_width": analysis.crack_width or "",
        "crack_length": analysis.crack_length or "",
        "description": analysis.description or "",
        "cause_sections": format_crack_cause(analysis.crack_cause),
        "repair_steps": list(analysis.repair_steps or []),
        "image_urls": list(analysis.image_urls or []),
        "processed_image_url": analysis.processed_image_url,
        "model_used": analysis.model_used or "",
    }


def render_html(context: dict) -> str:
    return _ENV.get_template("report_pdf.html").render(**context)


def render_pdf(context: dict) -> bytes:
    """WeasyPrint is imported lazily so its system libraries are only needed when a PDF is built."""
    from weasyprint import HTML

    html_doc = HTML(string=render_html(context), base_url=str(_TEMPLATES_DIR))
    return html_doc.write_pdf()


def build_report_pdf(analysis, report_date: str | None = None) -> bytes:
    return render_pdf(analysis_to_context(analysis, report_date=report_date))
