"""
Repair-product catalogue import.
Raw scraped Amazon records are classified by title keywords (product type, material,
skill level, suitable severity and crack types) before they are stored.
"""
import logging
import re

from sqlmodel import Session, select

from crackcheck.models import RepairProduct

logger = logging.getLogger(__name__)

DEFAULT_KEYWORD = "cracks in wall"
_KEY_TERMS = re.compile(r"\b(crack|hole|repair|fix|fill|patch|spackle|putty|drywall|wall|quick|easy|diy)\b")
_TYPE_KEYWORDS = {
    "spackling_paste": ["spackle", "spackling", "paste", "compound"],
    "patch_kit": ["patch", "kit", "repair kit"],
    "caulk": ["caulk", "sealant", "flexible"],
}


def classify_product(title: str) -> tuple[str, str, str]:
    """(product_type, material_type, skill_level) from the listing title."""
    t = title.lower()
    product_type, material_type = "other", "other"
    if "spackle" in t or "spackling" in t:
        product_type, material_type = "spackling_paste", "compound"
    elif "patch" in t and "kit" in t:
        product_type, material_type = "patch_kit", "compound"
    elif "caulk" in t or "sealant" in t:
        product_type, material_type = "caulk", "acrylic"
    elif "mesh" in t or "tape" in t:
        product_type, material_type = "mesh_tape", "mesh"
    elif "putty" in t or "filler" in t:
        product_type, material_type = "spackling_paste", "compound"
    elif "primer" in t:
        product_type, material_type = "primer", "acrylic"
    elif "paint" in t:
        product_type, material_type = "paint", "acrylic"
    elif "scraper" in t or "tool" in t:
        product_type = "tools"

    for material in ("acrylic", "vinyl", "plaster", "fiberglass"):
        if material in t:
            material_type = material
            break

    skill_level = "beginner"
    if any(w in t for w in ("professional", "contractor", "commercial")):
        skill_level = "professional"
    elif any(w in t for w in ("diy", "easy", "quick", "simple")):
        skill_level = "beginner"
    elif "heavy duty" in t or "industrial" in t:
        skill_level = "intermediate"
    return product_type, material_type, skill_level


def determine_suitability(title: str, product_type: str, price: float) -> tuple[list[str], list[str]]:
    t = title.lower()
    if product_type in ("spackling_paste", "patch_kit"):
        if any(w in t for w in ("hairline", "small", "minor")) or price < 15:
            severity = ["low"]
        elif any(w in t for w in ("heavy", "large", "deep")) or price > 25:
            severity = ["moderate", "high"]
        else:
            severity = ["low", "moderate"]
    elif product_type == "mesh_tape":
        severity = ["moderate", "high"]
    else:
        severity = ["low", "moderate"]

    if "hairline" in t or "fine" in t:
        crack_types = ["hairline"]
    elif "wide" in t or "large" in t:
        crack_types = ["wide", "stepped"]
    elif product_type == "mesh_tape":
        crack_types = ["horizontal", "vertical", "stepped"]
    elif product_type == "caulk":
        crack_types = ["hairline", "horizontal", "vertical"]
    else:
        crack_types = ["horizontal", "vertical", "diagonal", "random"]
    return severity, crack_types


def extract_drying_time(title: str) -> str | None:
    t = title.lower()
    if "15 min" in t:
        return "15 minutes"
    if "30 min" in t:
        return "30 minutes"
    if "1 hour" in t:
        return "1 hour"
    if "quick dry" in t or "fast dry" in t:
        return "30 minutes"
    if "instant" in t:
        return "15 minutes"
    return None


def generate_search_keywords(title: str, product_type: str) -> list[str]:
    keywords = _KEY_TERMS.findall(title.lower()) + _TYPE_KEYWORDS.get(product_type, [])
    return list(dict.fromkeys(keywords))


def _to_float(value) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _to_bool(value) -> bool:
    return value is True or value == "true"


def product_from_record(record: dict) -> RepairProduct:
    title = record["title"]
    price = _to_float(record.get("price"))
    product_type, material_type, skill_level = classify_product(title)
    severity, crack_types = determine_suitability(title, product_type, price or 0)
    return RepairProduct(
        asin=record["asin"],
        title=title,
        url=record["url"],
        price=price,
        before_price=_to_float(record.get("beforePrice")),
        price_symbol=record.get("priceSymbol") or "$",
        rating=_to_float(record.get("rating")),
        reviews=record.get("reviews") or None,
        amazon_prime=_to_bool(record.get("amazonPrime")),
        amazon_choice=_to_bool(record.get("amazonChoice")),
        best_seller=_to_bool(record.get("bestSeller")),
        image_url=record.get("image"),
        product_type=product_type,
        material_type=material_type,
        suitable_for_severity=severity,
        suitable_for_crack_types=crack_types,
        search_keywords=generate_search_keywords(title, product_type),
        skill_level=skill_level,
        drying_time=extract_drying_time(title),
        original_keyword=record.get("keyword") or DEFAULT_KEYWORD,
    )


def import_products(db: Session, records: list[dict], update_existing: bool = True) -> int:
    """
    Inserts new products and, with update_existing, refreshes rows already stored under the
    same ASIN. Rows are never deleted because recommendations reference them. Returns rows written.
    """
    existing = {p.asin: p for p in db.exec(select(RepairProduct)).all()}
    seen: set[str] = set()
    count = 0
    for record in records:
        asin = record.get("asin")
        if not asin or not record.get("title") or asin in seen:
            logger.warning("Skipping product record without asin/title or duplicated: %s", asin)
            continue
        seen.add(asin)
        product = product_from_record(record)
        current = existing.get(asin)
        if current is None:
            db.add(product)
        elif update_existing:
            for key, value in product.model_dump(exclude={"id", "created_at"}).items():
                setattr(current, key, value)
            db.add(current)
        else:
            continue
        count += 1
    db.commit()
    logger.info("Imported %s repair products", count)
    return count
