from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from .base import UTCDateTime, utcnow


class CrackRecord(SQLModel, table=True):
    """Manually logged crack with its photos and notes (user-owned)."""

    __tablename__ = "cracks"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    description: str = ""
    image_urls: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    ai_notes: str | None = None
    expert_notes: str | None = None
    risk_level: str | None = None  # low | moderate | high
    conversation_id: int | None = Field(default=None, index=True)
    detailed_analysis: dict | None = Field(default=None, sa_column=Column(JSON))
    user_question: str | None = None
    additional_info: str | None = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
