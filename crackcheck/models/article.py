"""Blog article: markdown body, unique slug."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from .base import UTCDateTime, utcnow


class Article(SQLModel, table=True):
    __tablename__ = "articles"
    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    slug: str = Field(unique=True, index=True, max_length=255)
    content: str  # markdown
    excerpt: str | None = None
    cover_image: str | None = None  # public URL, usually a blog_thumbnails/ upload
    author_name: str = "CrackCheck Team"
    reading_time: int | None = None  # minutes
    published: bool = True
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
