"""
Homeowner crack analysis through OpenRouter (OpenAI-compatible chat completions).
The model must answer with the crack_analysis JSON schema; invalid replies are retried.
"""
import json
import logging
import time

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from crackcheck.constants import DEFAULT_ANALYSIS_MODEL
from crackcheck.core.config import is_openrouter_configured, settings
from crackcheck.schemas.analysis import HomeownerAnalysis

logger = logging.getLogger(__name__)

OPENROUTER_TIMEOUT = 120.0
MAX_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 2.0
MAX_CONTENT_CHARS = 50_000

ANALYSIS_PROMPT = """You are a P.Eng certified structural engineer with 25+ years of experience in forensic building diagnostics, crack analysis, and structural rehabilitation. Conduct a comprehensive professional assessment following engineering standards and building codes.
{context}
Provide your analysis in the following JSON format with highly detailed, professional-grade content:

{{
  "crack_cause": "A comprehensive structural engineering analysis structured as: 1) VISUAL ASSESSMENT: crack geometry, pattern, orientation relative to structural elements and associated deformation. 2) STRUCTURAL ANALYSIS: stress distribution, load paths, thermal effects, differential settlement. 3) ROOT CAUSE DETERMINATION: foundation movement, overloading, material degradation, construction defects or environmental factors. 4) ENGINEERING EVALUATION: structural significance, load-bearing impact and code compliance (CSA A23.3, NBC). 5) RISK ASSESSMENT: immediate safety concerns and monitoring requirements. 6) PROFESSIONAL RECOMMENDATIONS: urgency, further investigation (NDT, material testing) and intervention requirements.",
  "repair_steps": ["6-10 detailed repair specifications, each with material specifications (CSA, ASTM), application procedure and safety requirements."],
  "risk_level": "low|moderate|high",
  "crack_type": "Precise structural classification, e.g. 'Diagonal tension crack (45 degree orientation)', 'Stair-step crack following mortar joints', 'Non-structural surface crack'.",
  "crack_width": "Width in millimeters, e.g. '2-3mm', '0.5-1.0mm', '>5mm'",
  "crack_length": "Length in metric units, e.g. '450mm', '1.2m'"
}}

CRITICAL REQUIREMENTS:
- Apply CSA and NBC structural engineering standards
- Specify material properties using recognized standards (CSA, ASTM, ACI)
- Include NDT recommendations where appropriate
- Address structural load capacity and factor of safety implications
- Consider long-term durability and service life"""

CRACK_ANALYSIS_SCHEMA = {
    "name": "crack_analysis",
    "schema": {
        "type": "object",
        "properties": {
            "crack_cause": {
                "type": "string",
                "description": "Comprehensive structural engineering analysis of crack causes",
            },
            "repair_steps": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 6,
                "maxItems": 10,
                "description": "Detailed professional repair steps with specifications and procedures",
            },
            "risk_level": {"type": "string", "enum": ["low", "moderate", "high"]},
            "crack_type": {"type": "string", "description": "Crack classification (e.g., Diagonal crack)"},
            "crack_width": {"type": "string", "description": "Width measurement (e.g., 2-4mm)"},
            "crack_length": {"type": "string", "description": "Length measurement (e.g., 45cm)"},
        },
        "required": ["crack_cause", "repair_steps", "risk_level", "crack_type", "crack_width", "crack_length"],
        "additionalProperties": False,
    },
}


class AnalysisUnavailable(Exception):
    """Every attempt failed; callers refund the user instead of storing a diagnosis."""


class InvalidAnalysisResponse(ValueError):
    pass


_client: OpenAI | None = None


def get_client() -> OpenAI:
    global _client
    if not is_openrouter_configured():
        raise AnalysisUnavailable("OPENROUTER_API_KEY is not configured")
    if _client is None:
        _client = OpenAI(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            timeout=OPENROUTER_TIMEOUT,
            max_retries=0,
            default_headers={
                "HTTP-Referer": settings.openrouter_site_url,
                "X-Title": settings.openrouter_app_title,
            },
        )
    return _client


def build_messages(image_urls: list[str], description: str | None = None) -> list[dict]:
    context = f'\nContext provided: "{description}"\n' if description else ""
    content: list[dict] = [{"type": "text", "text": ANALYSIS_PROMPT.format(context=context)}]
    content.extend({"type": "image_url", "image_url": {"url": url}} for url in image_urls)
    return [{"role": "user", "content": content}]


def parse_analysis(content: str | None) -> HomeownerAnalysis:
    if not content or not content.strip():
        raise InvalidAnalysisResponse("No content received from OpenRouter")
    if len(content) > MAX_CONTENT_CHARS:
        raise InvalidAnalysisResponse("Response too long, may be truncated")
    text = content.strip()
    if not (text.startswith("{") and text.endswith("}")):
        raise InvalidAnalysisResponse("Invalid JSON format received from API")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidAnalysisResponse(f"Invalid JSON: {e}") from e
    try:
        return HomeownerAnalysis.model_validate(data)
    except ValidationError as e:
        raise InvalidAnalysisResponse(f"Invalid response format from OpenRouter: {e.error_count()} errors") from e


def analyze_for_homeowner(
    image_urls: list[str],
    description: str | None = None,
    model: str = DEFAULT_ANALYSIS_MODEL,
    client: OpenAI | None = None,
) -> HomeownerAnalysis:
    """
    Sends the photos to the model and returns the validated analysis.
    Retries up to MAX_ATTEMPTS with attempt * RETRY_BACKOFF_SECONDS between tries;
    raises AnalysisUnavailable when all of them fail.
    """
    client = client or get_client()
    messages = build_messages(image_urls, description)
    last_exc: Exception | None = None
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            response = client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=6000,
                temperature=0.1,
                response_format={"type": "json_schema", "json_schema": CRACK_ANALYSIS_SCHEMA},
            )
            content = response.choices[0].message.content if response.choices else None
            return parse_analysis(content)
        except (OpenAIError, InvalidAnalysisResponse) as e:
            last_exc = e
            logger.warning("OpenRouter analysis attempt %s/%s failed: %s", attempt, MAX_ATTEMPTS, e)
            if attempt < MAX_ATTEMPTS:
                time.sleep(attempt * RETRY_BACKOFF_SECONDS)
    logger.error("All OpenRouter analysis attempts failed (model=%s): %s", model, last_exc)
    raise AnalysisUnavailable(str(last_exc)) from last_exc
