"""KIE annotation client against an httpx MockTransport."""
import json

import httpx
import pytest

from crackcheck.models import CrackAnalysis
from crackcheck.services import kie
from crackcheck.services.kie import KIEClient, KIEError, KIETimeout, annotate_analysis, build_prompt


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(kie.time, "sleep", lambda s: None)


def make_client(handler) -> KIEClient:
    return KIEClient(api_key="kie-test", base_url="https://kie.test/api/v1", http=httpx.Client(transport=httpx.MockTransport(handler)))


def success_handler(states: list[str]):
    polls = iter(states)

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer kie-test"
        if request.url.path.endswith("/jobs/createTask"):
            body = json.loads(request.content)
            assert body["model"] == "google/nano-banana-edit"
            return httpx.Response(200, json={"code": 200, "data": {"taskId": "task-1"}})
        assert request.url.params["taskId"] == "task-1"
        state = next(polls)
        data = {"state": state}
        if state == "success":
            data["resultJson"] = json.dumps({"resultUrls": ["https://kie.test/out.png"]})
        if state == "failed":
            data["failMsg"] = "bad image"
        return httpx.Response(200, json={"code": 200, "data": data})

    return handler


def test_build_prompt_uses_measurements():
    prompt = build_prompt({"crack_width": "2 mm", "crack_length": "30 cm", "crack_type": "diagonal", "risk_level": "high"})
    assert "Width: 2 mm" in prompt
    assert "Risk Level: HIGH" in prompt
    assert "measurements" in build_prompt(None)


def test_process_image_polls_until_success():
    client = make_client(success_handler(["waiting", "generating", "success"]))
    assert client.process_image(["https://img/a.jpg"], {"risk_level": "low"}) == ["https://kie.test/out.png"]


def test_failed_task_raises_immediately():
    client = make_client(success_handler(["waiting", "failed"]))
    with pytest.raises(KIEError, match="bad image"):
        client.process_image(["https://img/a.jpg"])


def test_poll_timeout():
    client = make_client(success_handler(["waiting"] * 3))
    task_id = client.create_task(["https://img/a.jpg"])
    with pytest.raises(KIETimeout):
        client.poll_task_result(task_id, max_attempts=3)


def test_create_task_error_code():
    client = make_client(lambda req: httpx.Response(200, json={"code": 401, "message": "bad key"}))
    with pytest.raises(KIEError, match="bad key"):
        client.create_task(["https://img/a.jpg"])


def test_create_task_http_error():
    client = make_client(lambda req: httpx.Response(500, json={}))
    with pytest.raises(KIEError, match="500"):
        client.create_task(["https://img/a.jpg"])


def test_missing_api_key():
    with pytest.raises(ValueError):
        KIEClient(api_key="  ")


def test_annotate_analysis_stores_result(db):
    rec = CrackAnalysis(user_id="u", image_urls=["https://img/a.jpg"])
    db.add(rec)
    db.commit()
    db.refresh(rec)
    annotate_analysis(rec.id, rec.image_urls, {}, client=make_client(success_handler(["success"])))
    db.expire_all()
    stored = db.get(CrackAnalysis, rec.id)
    assert stored.processed_image_url == "https://kie.test/out.png"
    assert stored.processing_error is None


def test_annotate_analysis_stores_error(db):
    rec = CrackAnalysis(user_id="u", image_urls=["https://img/a.jpg"])
    db.add(rec)
    db.commit()
    db.refresh(rec)
    annotate_analysis(rec.id, rec.image_urls, {}, client=make_client(success_handler(["failed"])))
    db.expire_all()
    stored = db.get(CrackAnalysis, rec.id)
    assert stored.processed_image_url is None
    assert "bad image" in stored.processing_error
