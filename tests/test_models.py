"""Table defaults: UTC-aware timestamps."""
from datetime import timezone

from sqlmodel import select

from crackcheck.models import Article, CrackRecord, ProductRecommendation
from crackcheck.models.base import utcnow


def test_utcnow_is_timezone_aware():
    assert utcnow().tzinfo is timezone.utc


def test_timestamp_defaults_are_utc_aware():
    crack = CrackRecord(user_id="u", image_urls=["a"])
    article = Article(title="t", slug="t", content="c")
    assert crack.created_at.tzinfo is timezone.utc
    assert article.created_at.tzinfo is timezone.utc
    assert article.updated_at.tzinfo is timezone.utc


def test_rows_with_default_timestamps_insert(db):
    db.add(CrackRecord(user_id="u", image_urls=["a"]))
    db.commit()
    stored = db.exec(select(CrackRecord)).one()
    assert stored.created_at is not None


def test_interaction_timestamps_default_to_none():
    rec = ProductRecommendation(user_id="u", product_id=1)
    assert rec.viewed_at is None
    assert rec.clicked_at is None
    assert rec.purchased_at is None
