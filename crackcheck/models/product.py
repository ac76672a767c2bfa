from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from .base import UTCDateTime, utcnow


class RepairProduct(SQLModel, table=True):
    """Repair material imported from the Amazon product scrape."""

    __tablename__ = "repair_products"
    id: int | None = Field(default=None, primary_key=True)
    asin: str = Field(unique=True, index=True)
    title: str
    url: str
    price: float | None = None
    before_price: float | None = None
    price_symbol: str = "$"
    rating: float | None = None
    reviews: str | None = None
    amazon_prime: bool = False
    amazon_choice: bool = False
    best_seller: bool = False
    image_url: str | None = None
    product_type: str | None = None  # spackling_paste | patch_kit | caulk | mesh_tape | primer | paint | tools | other
    material_type: str | None = None
    suitable_for_severity: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    suitable_for_crack_types: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    search_keywords: list[str] | None = Field(default=None, sa_column=Column(JSON))
    skill_level: str | None = None  # beginner | intermediate | professional
    coverage_area: str | None = None
    drying_time: str | None = None
    original_keyword: str = ""
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class ProductRecommendation(SQLModel, table=True):
    __tablename__ = "product_recommendations"
    id: int | None = Field(default=None, primary_key=True)
    analysis_id: int | None = Field(default=None, index=True)
    conversation_id: int | None = None
    user_id: str = Field(index=True)
    product_id: int = Field(foreign_key="repair_products.id", index=True)
    recommendation_score: float = 0.0
    recommendation_reason: str = ""
    recommendation_type: str = "analysis_based"  # analysis_based | chat_based | diy_focused
    user_query: str | None = None
    viewed_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    clicked_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    purchased_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
