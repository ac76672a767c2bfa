"""Conversations and the SSE chat stream."""
import inspect
import json

import pytest
from fastapi.testclient import TestClient

from crackcheck.api.chat import chat as chat_route
from crackcheck.models import ConversationMessage
from crackcheck.services.chat import HISTORY_LIMIT, build_chat_messages


def sse_events(text: str) -> list[dict]:
    return [json.loads(line[len("data: "):]) for line in text.splitlines() if line.startswith("data: ")]


@pytest.fixture
def fake_stream(monkeypatch):
    seen = {}

    async def fake(message, model, history=None):
        seen.update(message=message, model=model, history=history)
        for part in ("Hairline cracks ", "are usually ", "cosmetic."):
            yield part

    monkeypatch.setattr("crackcheck.services.chat.stream_chat_reply", fake)
    return seen


def test_conversation_crud(client: TestClient, auth_headers, other_headers):
    r = client.post("/api/conversations", json={"title": "Basement wall"}, headers=auth_headers)
    assert r.status_code == 200
    conv = r.json()["conversation"]
    assert conv["title"] == "Basement wall"
    default = client.post("/api/conversations", headers=auth_headers).json()["conversation"]
    assert default["title"] == "New Conversation"

    listed = client.get("/api/conversations", headers=auth_headers).json()["conversations"]
    assert {c["id"] for c in listed} == {conv["id"], default["id"]}
    assert client.get("/api/conversations", headers=other_headers).json()["conversations"] == []

    r = client.get(f"/api/conversations/{conv['id']}/messages", headers=other_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Conversation not found"


def test_chat_streams_and_saves(client: TestClient, auth_headers, fake_stream, db):
    conv_id = client.post("/api/conversations", headers=auth_headers).json()["conversation"]["id"]
    r = client.post(
        "/api/chat",
        json={"message": "Is this crack dangerous?", "conversationId": conv_id},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    events = sse_events(r.text)
    assert events[0] == {"success": True, "chunk": {"type": "chat_start"}}
    chunks = [e["chunk"]["content"] for e in events if e.get("chunk", {}).get("type") == "chat_chunk"]
    assert "".join(chunks) == "Hairline cracks are usually cosmetic."
    assert events[-1] == {"done": True}
    assert fake_stream["model"] == "gemini-2.0-flash"

    messages = client.get(f"/api/conversations/{conv_id}/messages", headers=auth_headers).json()["messages"]
    assert [(m["message_type"], m["content"]) for m in messages] == [
        ("user", "Is this crack dangerous?"),
        ("assistant", "Hairline cracks are usually cosmetic."),
    ]


def test_chat_passes_history(client: TestClient, auth_headers, fake_stream, db):
    conv_id = client.post("/api/conversations", headers=auth_headers).json()["conversation"]["id"]
    db.add(ConversationMessage(conversation_id=conv_id, message_type="user", content="First question"))
    db.add(ConversationMessage(conversation_id=conv_id, message_type="assistant", content="First answer"))
    db.commit()
    client.post("/api/chat", json={"message": "Follow up", "conversationId": conv_id}, headers=auth_headers)
    assert fake_stream["history"] == [("user", "First question"), ("assistant", "First answer")]


def test_chat_error_event(client: TestClient, auth_headers, monkeypatch):
    async def broken(message, model, history=None):
        yield "partial"
        raise RuntimeError("upstream reset")

    monkeypatch.setattr("crackcheck.services.chat.stream_chat_reply", broken)
    events = sse_events(client.post("/api/chat", json={"message": "hi"}, headers=auth_headers).text)
    assert events[-1] == {"error": "Chat failed. Please try again."}


def test_chat_save_failure_ends_with_error_event(client: TestClient, auth_headers, fake_stream, monkeypatch):
    def failing_save(conversation_id, message, reply):
        raise RuntimeError("database is locked")

    monkeypatch.setattr("crackcheck.api.chat._save_exchange", failing_save)
    conv_id = client.post("/api/conversations", headers=auth_headers).json()["conversation"]["id"]
    r = client.post("/api/chat", json={"message": "hi", "conversationId": conv_id}, headers=auth_headers)
    events = sse_events(r.text)
    assert events[-1] == {"error": "Chat reply could not be saved."}
    assert {"done": True} not in events


def test_chat_validation(client: TestClient, auth_headers, other_headers, fake_stream):
    r = client.post("/api/chat", json={"message": "  "}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Message is required"
    r = client.post("/api/chat", json={"message": "hi", "model": "gpt-4"}, headers=auth_headers)
    assert r.json()["error"] == "Invalid model specified"
    conv_id = client.post("/api/conversations", headers=auth_headers).json()["conversation"]["id"]
    r = client.post("/api/chat", json={"message": "hi", "conversationId": conv_id}, headers=other_headers)
    assert r.status_code == 404


def test_chat_requires_credits(client: TestClient, auth_headers, fake_stream, db):
    from crackcheck.services.credits import deduct_credits, ensure_user_credits

    ensure_user_credits(db, "user_1")
    deduct_credits(db, "user_1", 20)
    r = client.post("/api/chat", json={"message": "hi"}, headers=auth_headers)
    assert r.status_code == 402
    assert r.json()["requiredCredits"] == 1
    assert r.json()["currentCredits"] == 0


def test_build_chat_messages_limits_history():
    history = [("user" if i % 2 == 0 else "assistant", f"m{i}") for i in range(15)]
    messages = build_chat_messages("now", history)
    assert messages[0].type == "system"
    assert len(messages) == HISTORY_LIMIT + 2
    assert messages[1].content == "m5"
    assert messages[-1].content == "now"


def test_chat_route_runs_database_work_off_the_event_loop():
    # Sync endpoints are run in the threadpool; the SSE generator itself stays async
    assert not inspect.iscoroutinefunction(chat_route)
