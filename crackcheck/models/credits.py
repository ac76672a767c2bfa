from datetime import datetime

from sqlmodel import Field, SQLModel

from .base import UTCDateTime, utcnow


class UserCredits(SQLModel, table=True):
    """Prepaid credit balance, one row per user."""

    __tablename__ = "user_credits"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True)
    credits_remaining: int = 0
    creem_id: str | None = None  # last purchase reference from the payment provider
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class CreditTransaction(SQLModel, table=True):
    __tablename__ = "credit_transactions"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    transaction_type: str = Field(index=True)  # add | deduct | refund | initial
    amount: int
    description: str = ""
    related_analysis_id: int | None = Field(default=None, index=True)
    pdf_export_id: int | None = None
    model_used: str | None = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
