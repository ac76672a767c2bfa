"""Conversations and the streaming chat assistant (Server-Sent Events)."""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool
from sqlmodel import Session, select

from crackcheck.api.deps import CurrentUser, get_current_user
from crackcheck.constants import CHAT_MIN_CREDITS, CHAT_MODELS
from crackcheck.core.database import engine, get_db
from crackcheck.core.rate_limit import DEFAULT_RATE_LIMIT, limiter
from crackcheck.models import Conversation, ConversationMessage
from crackcheck.models.base import utcnow
from crackcheck.schemas import ChatRequest, ConversationCreate
from crackcheck.services import chat as chat_service
from crackcheck.services.credits import InsufficientCredits, ensure_user_credits

log = logging.getLogger("crackcheck")

router = APIRouter(prefix="/api", tags=["chat"])


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def get_owned_conversation(db: Session, conversation_id: int, user: CurrentUser) -> Conversation:
    conv = db.get(Conversation, conversation_id)
    if not conv or conv.user_id != user.id:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conv


@router.get("/conversations")
def list_conversations(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    stmt = (
        select(Conversation)
        .where(Conversation.user_id == user.id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
    )
    return {"success": True, "conversations": [c.model_dump(mode="json") for c in db.exec(stmt).all()]}


@router.post("/conversations")
def create_conversation(
    body: ConversationCreate | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    title = ((body.title if body else "") or "").strip() or "New Conversation"
    conv = Conversation(user_id=user.id, title=title[:255])
    db.add(conv)
    db.commit()
    db.refresh(conv)
    return {"success": True, "conversation": conv.model_dump(mode="json")}


@router.get("/conversations/{conversation_id}/messages")
def list_messages(
    conversation_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_owned_conversation(db, conversation_id, user)
    stmt = (
        select(ConversationMessage)
        .where(ConversationMessage.conversation_id == conversation_id)
        .order_by(ConversationMessage.created_at.asc(), ConversationMessage.id.asc())
    )
    return {"success": True, "messages": [m.model_dump(mode="json") for m in db.exec(stmt).all()]}


def _save_exchange(conversation_id: int, message: str, reply: str) -> None:
    # Runs after the response has started streaming, so it uses its own session
    with Session(engine) as db:
        db.add(ConversationMessage(conversation_id=conversation_id, message_type="user", content=message))
        db.add(ConversationMessage(conversation_id=conversation_id, message_type="assistant", content=reply))
        conv = db.get(Conversation, conversation_id)
        if conv:
            conv.updated_at = utcnow()
            db.add(conv)
        db.commit()


@router.post("/chat")
@limiter.limit(DEFAULT_RATE_LIMIT)
def chat(
    request: Request,
    body: ChatRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Chat is free, but a user needs a non-empty balance to use it."""
    message = (body.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")
    if body.model not in CHAT_MODELS:
        raise HTTPException(status_code=400, detail="Invalid model specified")

    credits = ensure_user_credits(db, user.id).credits_remaining
    if credits < CHAT_MIN_CREDITS:
        raise InsufficientCredits(CHAT_MIN_CREDITS, credits)

    history: list[tuple[str, str]] = []
    conversation_id = body.conversation_id
    if conversation_id is not None:
        get_owned_conversation(db, conversation_id, user)
        stmt = (
            select(ConversationMessage)
            .where(ConversationMessage.conversation_id == conversation_id)
            .order_by(ConversationMessage.created_at.asc(), ConversationMessage.id.asc())
        )
        history = [(m.message_type, m.content or "") for m in db.exec(stmt).all()]

    async def generate():
        yield _sse({"success": True, "chunk": {"type": "chat_start"}})
        parts: list[str] = []
        try:
            async for content in chat_service.stream_chat_reply(message, body.model, history):
                parts.append(content)
                yield _sse({"success": True, "chunk": {"type": "chat_chunk", "content": content}})
        except Exception as e:
            log.exception("Chat stream failed for user %s: %s", user.id, e)
            yield _sse({"error": "Chat failed. Please try again."})
            return
        reply = "".join(parts)
        if conversation_id is not None and reply:
            try:
                await run_in_threadpool(_save_exchange, conversation_id, message, reply)
            except Exception as e:
                log.exception("Saving chat exchange failed for conversation %s: %s", conversation_id, e)
                yield _sse({"error": "Chat reply could not be saved."})
                return
        yield _sse({"done": True})

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
