"""Blog helpers: slugs, plain-text excerpts, dates, reading time and Markdown rendering."""
import math
import re
from datetime import datetime

import markdown as md

WORDS_PER_MINUTE = 200

_HEADER = re.compile(r"#{1,6}\s+")
_EMPHASIS = re.compile(r"\*{1,2}(.*?)\*{1,2}")
_CODE = re.compile(r"`{1,3}(.*?)`{1,3}")
_LINK = re.compile(r"\[(.*?)\]\(.*?\)")
_NEWLINES = re.compile(r"\n+")


def generate_slug(title: str) -> str:
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def strip_markdown(content: str) -> str:
    text = _HEADER.sub("", content or "")
    text = _EMPHASIS.sub(r"\1", text)
    text = _CODE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    return _NEWLINES.sub(" ", text).strip()


def truncate_content(content: str, length: int = 150) -> str:
    plain = strip_markdown(content)
    if len(plain) <= length:
        return plain
    return plain[:length].strip() + "..."


def format_date(value: datetime | str) -> str:
    """'March 5, 2025'"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def reading_time(content: str) -> int:
    words = len(strip_markdown(content).split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def render_markdown(content: str) -> str:
    return md.markdown(content or "", extensions=["extra", "sane_lists"])
