from datetime import datetime

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import UTCDateTime, utcnow


class CrackAnalysis(SQLModel, table=True):
    """AI homeowner analysis of up to three crack photos."""

    __tablename__ = "crack_analyses"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    description: str | None = None
    crack_type: str | None = None
    crack_cause: str | None = None
    crack_width: str | None = None
    crack_length: str | None = None
    repair_steps: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    risk_level: str | None = None  # low | moderate | high
    image_urls: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # Filled in by the KIE background job
    processed_image_url: str | None = None
    processing_error: str | None = None
    model_used: str | None = None
    conversation_id: int | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)


class PDFExport(SQLModel, table=True):
    """One row per exported analysis; its presence means the export was already paid for."""

    __tablename__ = "pdf_exports"
    __table_args__ = (UniqueConstraint("user_id", "analysis_id", name="uq_pdf_exports_user_analysis"),)
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    analysis_id: int = Field(foreign_key="crack_analyses.id", index=True)
    model_used: str
    credits_charged: int
    exported_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
