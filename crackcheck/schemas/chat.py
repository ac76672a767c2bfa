from pydantic import BaseModel, ConfigDict, Field

from crackcheck.constants import DEFAULT_CHAT_MODEL


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    model: str = DEFAULT_CHAT_MODEL
    conversation_id: int | None = Field(default=None, alias="conversationId")


class ConversationCreate(BaseModel):
    title: str = "New Conversation"
