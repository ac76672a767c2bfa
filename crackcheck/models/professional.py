"""Structural-engineer directory: cities, professionals, search log."""
from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from .base import UTCDateTime, utcnow


class UsCity(SQLModel, table=True):
    __tablename__ = "us_cities"
    id: int | None = Field(default=None, primary_key=True)
    city_name: str = Field(index=True)
    state_code: str = Field(max_length=8, index=True)
    state_name: str | None = None
    county_name: str | None = None
    zip_codes: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    latitude: float | None = None
    longitude: float | None = None
    population: int | None = None


class Professional(SQLModel, table=True):
    __tablename__ = "professionals"
    id: int | None = Field(default=None, primary_key=True)
    company_name: str
    rating: float | None = None
    review_count: int = 0
    hire_count: int = 0
    is_top_pro: bool = False
    is_licensed: bool = False
    response_time_minutes: int | None = None
    estimate_fee_amount: float | None = None  # USD; None/0 = free on-site estimate
    estimate_fee_waived_if_hired: bool = False
    description: str | None = None
    phone: str | None = None
    email: str | None = None
    website_url: str | None = None
    thumbtack_url: str | None = None
    service_areas: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    primary_city_id: int | None = Field(default=None, foreign_key="us_cities.id", index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class ProfessionalSearchLog(SQLModel, table=True):
    __tablename__ = "professional_search_logs"
    id: int | None = Field(default=None, primary_key=True)
    crack_analysis_id: int | None = Field(default=None, index=True)
    search_query: str = "structural-engineer"
    zip_code: str | None = None
    results_count: int = 0
    selected_professional_id: int | None = None
    search_context: dict | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
