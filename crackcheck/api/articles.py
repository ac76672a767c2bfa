"""Blog CMS API: public reads, admin-only writes."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from crackcheck.api.deps import CurrentUser, get_optional_user, is_admin, require_admin
from crackcheck.core.database import get_db
from crackcheck.models import Article
from crackcheck.models.base import utcnow
from crackcheck.schemas import ArticleCreate, ArticleUpdate
from crackcheck.services.blog import generate_slug, reading_time, truncate_content

log = logging.getLogger("crackcheck")

router = APIRouter(prefix="/api/articles", tags=["articles"])


def _slug_taken(db: Session, slug: str, exclude_id: int | None = None) -> bool:
    stmt = select(Article.id).where(Article.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Article.id != exclude_id)
    return db.exec(stmt).first() is not None


def _visible(article: Article | None, user: CurrentUser | None) -> bool:
    return bool(article) and (article.published or is_admin(user))


@router.get("")
def list_articles(
    include_drafts: bool = False,
    user: CurrentUser | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    stmt = select(Article).order_by(Article.created_at.desc(), Article.id.desc())
    if not (include_drafts and is_admin(user)):
        stmt = stmt.where(Article.published == True)  # noqa: E712
    return [a.model_dump(mode="json") for a in db.exec(stmt).all()]


@router.post("", status_code=201)
def create_article(
    body: ArticleCreate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    title = body.title.strip()
    slug = generate_slug(body.slug or "")
    if not title or not slug or not body.content.strip():
        raise HTTPException(status_code=400, detail="Missing required fields")
    if _slug_taken(db, slug):
        raise HTTPException(status_code=409, detail="Slug already exists")
    article = Article(
        title=title,
        slug=slug,
        content=body.content,
        excerpt=body.excerpt or truncate_content(body.content),
        cover_image=body.cover_image,
        author_name=body.author_name or "CrackCheck Team",
        reading_time=body.reading_time or reading_time(body.content),
        published=body.published,
    )
    db.add(article)
    db.commit()
    db.refresh(article)
    log.info("Article created: id=%s slug=%s by=%s", article.id, article.slug, admin.email)
    return article.model_dump(mode="json")


@router.get("/slug/{slug}")
def get_article_by_slug(
    slug: str,
    user: CurrentUser | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    article = db.exec(select(Article).where(Article.slug == slug)).first()
    if not _visible(article, user):
        raise HTTPException(status_code=404, detail="Article not found")
    return article.model_dump(mode="json")


@router.get("/{article_id}")
def get_article(
    article_id: int,
    user: CurrentUser | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    article = db.get(Article, article_id)
    if not _visible(article, user):
        raise HTTPException(status_code=404, detail="Article not found")
    return article.model_dump(mode="json")


@router.put("/{article_id}")
def update_article(
    article_id: int,
    body: ArticleUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    article = db.get(Article, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    changes = body.model_dump(exclude_unset=True)
    for key in ("author_name", "published"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    if "title" in changes and not (changes["title"] or "").strip():
        raise HTTPException(status_code=400, detail="Missing required fields")
    if "content" in changes and not (changes["content"] or "").strip():
        raise HTTPException(status_code=400, detail="Missing required fields")
    if "slug" in changes:
        changes["slug"] = generate_slug(changes["slug"] or "")
        if not changes["slug"]:
            raise HTTPException(status_code=400, detail="Missing required fields")
        if _slug_taken(db, changes["slug"], exclude_id=article.id):
            raise HTTPException(status_code=409, detail="Slug already exists")
    for key, value in changes.items():
        setattr(article, key, value)
    if "content" in changes and "reading_time" not in changes:
        article.reading_time = reading_time(article.content)
    article.updated_at = utcnow()
    db.add(article)
    db.commit()
    db.refresh(article)
    return article.model_dump(mode="json")


@router.delete("/{article_id}")
def delete_article(
    article_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    article = db.get(Article, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    db.delete(article)
    db.commit()
    log.info("Article deleted: id=%s by=%s", article_id, admin.email)
    return {"success": True}
