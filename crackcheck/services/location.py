"""US ZIP codes and cities: validation, distance, DB lookup with a zippopotam.us fallback."""
import logging
import math
import re

import httpx
from sqlalchemy import String, cast
from sqlmodel import Session, select

from crackcheck.models import UsCity

logger = logging.getLogger(__name__)

ZIP_API_URL = "https://api.zippopotam.us/us/{zip}"
EARTH_RADIUS_MILES = 3959
_ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")


def is_valid_us_zip(zip_code: str | None) -> bool:
    return bool(zip_code) and bool(_ZIP_RE.match(zip_code))


def normalize_zip(zip_code: str) -> str:
    """'12345-6789' -> '12345'"""
    return zip_code.split("-")[0]


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def find_city_by_zip(db: Session, zip_code: str) -> UsCity | None:
    # zip_codes is a JSON list; match the quoted value in its text form
    stmt = select(UsCity).where(cast(UsCity.zip_codes, String).like(f'%"{zip_code}"%'))
    return db.exec(stmt).first()


def fetch_city_from_zip_api(db: Session, zip_code: str, http: httpx.Client | None = None) -> UsCity | None:
    """Looks the ZIP up on zippopotam.us and caches the city row."""
    try:
        if http is None:
            with httpx.Client(timeout=10.0) as client:
                r = client.get(ZIP_API_URL.format(zip=zip_code))
        else:
            r = http.get(ZIP_API_URL.format(zip=zip_code))
        if r.status_code != 200:
            return None
        places = r.json().get("places") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("ZIP lookup failed for %s: %s", zip_code, e)
        return None
    if not places:
        return None
    place = places[0]
    city = UsCity(
        city_name=place.get("place name") or "Unknown",
        state_code=place.get("state abbreviation") or "",
        state_name=place.get("state"),
        zip_codes=[zip_code],
        latitude=float(place["latitude"]) if place.get("latitude") else None,
        longitude=float(place["longitude"]) if place.get("longitude") else None,
    )
    db.add(city)
    db.commit()
    db.refresh(city)
    logger.info("Cached city %s, %s for ZIP %s", city.city_name, city.state_code, zip_code)
    return city


def get_city_from_zip(db: Session, zip_code: str, http: httpx.Client | None = None) -> UsCity | None:
    return find_city_by_zip(db, zip_code) or fetch_city_from_zip_api(db, zip_code, http=http)


def find_nearest_city(
    db: Session, latitude: float, longitude: float, max_distance: float | None = None
) -> tuple[UsCity, float] | None:
    """Closest known city with coordinates, optionally within max_distance miles."""
    stmt = select(UsCity).where(UsCity.latitude.is_not(None), UsCity.longitude.is_not(None))
    best: tuple[UsCity, float] | None = None
    for city in db.exec(stmt):
        d = calculate_distance(latitude, longitude, city.latitude, city.longitude)
        if best is None or d < best[1]:
            best = (city, d)
    if best and max_distance is not None and best[1] > max_distance:
        return None
    return best


def seed_cities(db: Session, cities: list[dict]) -> int:
    """Loads the city table once; returns 0 when it already holds data."""
    if db.exec(select(UsCity.id)).first() is not None:
        logger.info("us_cities already populated, skipping seed")
        return 0
    for data in cities:
        db.add(UsCity(**data))
    db.commit()
    logger.info("Seeded %s US cities", len(cities))
    return len(cities)
