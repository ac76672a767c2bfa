#!/usr/bin/env python3
"""Imports the scraped Amazon repair-product JSON into repair_products.
   From the project root: python3 scripts/import_products.py [Amazon_data.json] [--no-update]"""
import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import Session  # noqa: E402

from crackcheck.core.database import engine, init_db  # noqa: E402
from crackcheck.logging import setup_logging  # noqa: E402
from crackcheck.services.catalog import import_products  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", nargs="?", default=str(ROOT / "Amazon_data.json"))
    parser.add_argument("--no-update", action="store_true", help="keep rows already stored under the same ASIN")
    args = parser.parse_args()

    setup_logging()
    log = logging.getLogger("crackcheck")
    path = Path(args.path)
    if not path.is_file():
        log.error("Not found: %s", path)
        return 1
    records = json.loads(path.read_text(encoding="utf-8"))
    log.info("Found %s products in %s", len(records), path.name)

    init_db()
    with Session(engine) as db:
        count = import_products(db, records, update_existing=not args.no_update)
    log.info("Imported %s products", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
