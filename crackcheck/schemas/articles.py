from pydantic import BaseModel, ConfigDict, Field


class ArticleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    slug: str = ""
    content: str = ""
    excerpt: str | None = None
    cover_image: str | None = Field(default=None, alias="coverImage")
    author_name: str | None = Field(default=None, alias="authorName")
    reading_time: int | None = Field(default=None, alias="readingTime")
    published: bool = True


class ArticleUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    slug: str | None = None
    content: str | None = None
    excerpt: str | None = None
    cover_image: str | None = Field(default=None, alias="coverImage")
    author_name: str | None = Field(default=None, alias="authorName")
    reading_time: int | None = Field(default=None, alias="readingTime")
    published: bool | None = None
