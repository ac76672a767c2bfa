"""KIE image-edit API: overlays AR-style measurement labels on crack photos."""
import json
import logging
import time

import httpx
from sqlmodel import Session

from crackcheck.core.config import settings

logger = logging.getLogger(__name__)

KIE_BASE_URL = "https://api.kie.ai/api/v1"
KIE_MODEL = "google/nano-banana-edit"
KIE_TIMEOUT = 30.0

_GENERIC_PROMPT = (
    "Add minimal AR-style floating indicators around the crack. Show clean, simple measurements "
    "with thin connecting lines. Keep it minimal like iPhone measuring app style."
)


class KIEError(Exception):
    pass


class KIETimeout(KIEError):
    pass


def build_prompt(analysis_data: dict | None) -> str:
    if not analysis_data:
        return _GENERIC_PROMPT
    risk = str(analysis_data.get("risk_level") or "").upper()
    return (
        "Add minimal AR-style floating indicators around the crack. "
        "Show these exact measurements with clean, simple floating labels:\n"
        f"- Width: {analysis_data.get('crack_width', '')}\n"
        f"- Length: {analysis_data.get('crack_length', '')}\n"
        f"- Type: {analysis_data.get('crack_type', '')}\n"
        f"- Risk Level: {risk}\n\n"
        "Use thin connecting lines pointing to the crack. Keep it minimal and professional like iPhone "
        "measuring app style. Use white/semi-transparent backgrounds for labels with clear, readable text."
    )


class KIEClient:
    def __init__(self, api_key: str | None = None, base_url: str = KIE_BASE_URL, http: httpx.Client | None = None):
        api_key = (api_key if api_key is not None else settings.kie_api_key).strip()
        if not api_key:
            raise ValueError("KIE_API_KEY is required")
        self.base_url = base_url.rstrip("/")
        self._http = http or httpx.Client(timeout=KIE_TIMEOUT)
        self._headers = {"Authorization": f"Bearer {api_key}"}

    def create_task(self, image_urls: list[str], analysis_data: dict | None = None) -> str:
        payload = {
            "model": KIE_MODEL,
            "callBackUrl": "",
            "input": {
                "prompt": build_prompt(analysis_data),
                "image_urls": image_urls,
                "output_format": "png",
                "image_size": "16:9",
                "enable_translation": False,
            },
        }
        try:
            r = self._http.post(f"{self.base_url}/jobs/createTask", json=payload, headers=self._headers)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise KIEError(f"KIE API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise KIEError(f"KIE API unreachable: {e}") from e
        data = r.json()
        task_id = (data.get("data") or {}).get("taskId")
        if data.get("code") != 200 or not task_id:
            raise KIEError(f"KIE task creation failed: {data.get('message') or 'Unknown error'}")
        return task_id

    def _fetch_task(self, task_id: str) -> dict:
        r = self._http.get(f"{self.base_url}/jobs/recordInfo", params={"taskId": task_id}, headers=self._headers)
        r.raise_for_status()
        data = r.json()
        if data.get("code") != 200:
            raise httpx.HTTPError(f"KIE polling failed: {data.get('message') or 'Unknown error'}")
        return data.get("data") or {}

    def poll_task_result(self, task_id: str, max_attempts: int = 30, interval: float = 2.0) -> list[str]:
        """
        Polls until the task succeeds or fails. A failed task raises at once; transport
        errors are retried and only the one on the final attempt propagates.
        """
        for attempt in range(max_attempts):
            last = attempt == max_attempts - 1
            try:
                task = self._fetch_task(task_id)
            except httpx.HTTPError as e:
                logger.warning("KIE polling attempt %s failed: %s", attempt + 1, e)
                if last:
                    raise KIEError(str(e)) from e
                time.sleep(interval)
                continue
            state = task.get("state")
            if state == "success" and task.get("resultJson"):
                result = json.loads(task["resultJson"])
                return list(result.get("resultUrls") or [])
            if state == "failed":
                raise KIEError(f"KIE task failed: {task.get('failMsg') or 'Unknown error'}")
            if not last:
                time.sleep(interval)
        raise KIETimeout(f"KIE task polling timeout after {max_attempts} attempts")

    def process_image(self, image_urls: list[str], analysis_data: dict | None = None) -> list[str]:
        task_id = self.create_task(image_urls, analysis_data)
        logger.info("KIE task created: %s", task_id)
        return self.poll_task_result(task_id)


def annotate_analysis(
    analysis_id: int,
    image_urls: list[str],
    analysis_data: dict,
    client: KIEClient | None = None,
) -> None:
    """Background job: stores the first annotated image URL, or the error, on the analysis row."""
    from crackcheck.core.database import engine
    from crackcheck.models import CrackAnalysis

    processed_url = None
    error = None
    try:
        client = client or KIEClient(api_key=settings.kie_api_key, base_url=settings.kie_base_url)
        urls = client.process_image(image_urls, analysis_data)
        if urls:
            processed_url = urls[0]
        else:
            error = "KIE returned no images"
    except (KIEError, ValueError) as e:
        logger.warning("KIE annotation failed for analysis %s: %s", analysis_id, e)
        error = str(e)[:500]

    with Session(engine) as db:
        rec = db.get(CrackAnalysis, analysis_id)
        if not rec:
            logger.warning("Analysis %s vanished before annotation finished", analysis_id)
            return
        rec.processed_image_url = processed_url
        rec.processing_error = error
        db.add(rec)
        db.commit()
