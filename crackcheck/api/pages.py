"""Server-rendered blog pages and sitemap.xml."""
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from markupsafe import Markup
from sqlmodel import Session, select

from crackcheck.core.config import settings
from crackcheck.core.database import get_db
from crackcheck.models import Article
from crackcheck.models.base import utcnow
from crackcheck.services.blog import format_date, render_markdown, truncate_content

router = APIRouter(include_in_schema=False)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

# (path, changefreq, priority)
STATIC_ROUTES = [
    ("", "weekly", "1.0"),
    ("/dashboard", "daily", "0.9"),
    ("/dashboard/history", "daily", "0.8"),
    ("/example", "monthly", "0.8"),
    ("/blog", "weekly", "0.8"),
    ("/pricing", "monthly", "0.7"),
    ("/support", "monthly", "0.6"),
    ("/privacy", "yearly", "0.5"),
    ("/terms", "yearly", "0.5"),
]


def _published(db: Session) -> list[Article]:
    stmt = (
        select(Article)
        .where(Article.published == True)  # noqa: E712
        .order_by(Article.created_at.desc(), Article.id.desc())
    )
    return list(db.exec(stmt).all())


@router.get("/blog")
def blog_index(request: Request, db: Session = Depends(get_db)):
    posts = [
        {
            "title": a.title,
            "slug": a.slug,
            "excerpt": a.excerpt or truncate_content(a.content),
            "date": format_date(a.created_at),
            "reading_time": a.reading_time,
            "cover_image": a.cover_image,
        }
        for a in _published(db)
    ]
    return templates.TemplateResponse(request, "blog_list.html", {"posts": posts})


@router.get("/blog/{slug}")
def blog_post(slug: str, request: Request, db: Session = Depends(get_db)):
    article = db.exec(select(Article).where(Article.slug == slug, Article.published == True)).first()  # noqa: E712
    if not article:
        return templates.TemplateResponse(request, "blog_not_found.html", {"slug": slug}, status_code=404)
    context = {
        "article": article,
        "date": format_date(article.created_at),
        # Article bodies are written by the admin only
        "body_html": Markup(render_markdown(article.content)),
        "description": article.excerpt or truncate_content(article.content, 160),
        "canonical_url": f"{settings.site_url}/blog/{article.slug}",
    }
    return templates.TemplateResponse(request, "blog_post.html", context)


@router.get("/sitemap.xml")
def sitemap(request: Request, db: Session = Depends(get_db)):
    today = utcnow().date().isoformat()
    urls = [
        {"loc": f"{settings.site_url}{path}", "lastmod": today, "changefreq": freq, "priority": prio}
        for path, freq, prio in STATIC_ROUTES
    ]
    for a in _published(db):
        urls.append(
            {
                "loc": f"{settings.site_url}/blog/{a.slug}",
                "lastmod": (a.updated_at or a.created_at).date().isoformat(),
                "changefreq": "monthly",
                "priority": "0.7",
            }
        )
    return templates.TemplateResponse(request, "sitemap.xml", {"urls": urls}, media_type="application/xml")
