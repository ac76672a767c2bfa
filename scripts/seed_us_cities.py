#!/usr/bin/env python3
"""Seeds us_cities with major US metros for the professional finder.
   From the project root: python3 scripts/seed_us_cities.py"""
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import Session  # noqa: E402

from crackcheck.core.database import engine, init_db  # noqa: E402
from crackcheck.logging import setup_logging  # noqa: E402
from crackcheck.services.location import seed_cities  # noqa: E402


def _zips(start: int, count: int = 10) -> list[str]:
    return [f"{n:05d}" for n in range(start, start + count)]


# (city, state code, state, county, zip codes, lat, lon, population)
MAJOR_CITIES = [
    ("Los Angeles", "CA", "California", "Los Angeles County", _zips(90001), 34.0522, -118.2437, 3898747),
    ("San Francisco", "CA", "California", "San Francisco County",
     ["94102", "94103", "94104", "94105", "94107", "94108", "94109", "94110", "94111", "94112"],
     37.7749, -122.4194, 873965),
    ("San Diego", "CA", "California", "San Diego County", _zips(92101), 32.7157, -117.1611, 1386932),
    ("New York", "NY", "New York", "New York County", _zips(10001), 40.7128, -74.0060, 8336817),
    ("Houston", "TX", "Texas", "Harris County", _zips(77001), 29.7604, -95.3698, 2320268),
    ("Dallas", "TX", "Texas", "Dallas County", _zips(75201), 32.7767, -96.7970, 1343573),
    ("Miami", "FL", "Florida", "Miami-Dade County",
     ["33101", "33102", "33109", "33111", "33112", "33114", "33116", "33119", "33122", "33124"],
     25.7617, -80.1918, 467963),
    ("Chicago", "IL", "Illinois", "Cook County", _zips(60601), 41.8781, -87.6298, 2693976),
    ("Phoenix", "AZ", "Arizona", "Maricopa County",
     ["85001", "85002", "85003", "85004", "85006", "85007", "85008", "85009", "85012", "85013"],
     33.4484, -112.0740, 1608139),
    ("Philadelphia", "PA", "Pennsylvania", "Philadelphia County", _zips(19101), 39.9526, -75.1652, 1584064),
    ("Seattle", "WA", "Washington", "King County", _zips(98101), 47.6062, -122.3321, 749256),
    ("Boston", "MA", "Massachusetts", "Suffolk County", _zips(2101), 42.3601, -71.0589, 692600),
    ("Denver", "CO", "Colorado", "Denver County", _zips(80201), 39.7392, -104.9903, 715522),
    ("Washington", "DC", "District of Columbia", "District of Columbia", _zips(20001), 38.9072, -77.0369, 692683),
    ("Portland", "OR", "Oregon", "Multnomah County", _zips(97201), 45.5152, -122.6784, 652503),
    ("Las Vegas", "NV", "Nevada", "Clark County", _zips(89101), 36.1699, -115.1398, 641903),
]

FIELDS = (
    "city_name", "state_code", "state_name", "county_name", "zip_codes", "latitude", "longitude", "population",
)


def main() -> int:
    setup_logging()
    init_db()
    with Session(engine) as db:
        count = seed_cities(db, [dict(zip(FIELDS, row)) for row in MAJOR_CITIES])
    logging.getLogger("crackcheck").info("Seeded %s cities", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
