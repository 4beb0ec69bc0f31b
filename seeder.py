#!/usr/bin/env python3
"""
Load or wipe DevCamper seed data.

The data directory holds ``users.json``, ``bootcamps.json``,
``courses.json`` and ``reviews.json``, each a JSON array of documents.
``_id`` is accepted as an alias of ``id``.  User passwords are given in
plain text and hashed on import; bootcamp addresses are geocoded when a
geocoder API key is configured.  Bootcamp aggregates are recomputed once
everything is loaded.

Usage:
    python seeder.py import --data ./_data
    python seeder.py destroy
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from devcamper_api.app.core.config import settings
from devcamper_api.app.core.db import SQLiteDocumentStore
from devcamper_api.app.core.errors import ApiError
from devcamper_api.app.core.logging_config import setup_logging
from devcamper_api.app.core.security import hash_password
from devcamper_api.app.core.store import BOOTCAMPS, COURSES, KINDS, REVIEWS, USERS, DocumentStore
from devcamper_api.app.services.aggregate_service import AggregateService
from devcamper_api.app.services.bootcamp_service import DEFAULT_PHOTO, slugify
from devcamper_api.app.services.geocoder import build_geocoder

logger = logging.getLogger("seeder")

# Parents before children so references resolve.
IMPORT_ORDER = (USERS, BOOTCAMPS, COURSES, REVIEWS)


def load(data_dir: Path, kind: str) -> List[Dict[str, Any]]:
    path = data_dir / f"{kind}.json"
    if not path.exists():
        logger.warning("No %s found, skipping %s", path, kind)
        return []
    with path.open(encoding="utf-8") as fh:
        documents = json.load(fh)
    for document in documents:
        if "_id" in document:
            document["id"] = str(document.pop("_id"))
    return documents


def prepare(kind: str, document: Dict[str, Any], geocoder) -> Dict[str, Any]:
    if kind == USERS:
        document["email"] = document["email"].lower()
        document["password"] = hash_password(document["password"])
    elif kind == BOOTCAMPS:
        document.setdefault("slug", slugify(document["name"]))
        document.setdefault("photo", DEFAULT_PHOTO)
        address = document.pop("address", None)
        if address and "location" not in document:
            location = geocoder.geocode(address)
            if location is not None:
                document["location"] = location.to_document()
    return document


def import_data(store: DocumentStore, data_dir: Path) -> None:
    geocoder = build_geocoder(settings)
    # Geocode before taking the write lock.
    batches = [
        (kind, [prepare(kind, document, geocoder) for document in load(data_dir, kind)])
        for kind in IMPORT_ORDER
    ]
    with store.atomic():
        for kind, documents in batches:
            for document in documents:
                store.create(kind, document)
            logger.info("Imported %d %s", len(documents), kind)
    aggregates = AggregateService(store)
    for bootcamp in store.find_all(BOOTCAMPS):
        aggregates.recompute_all(bootcamp["id"])


def destroy_data(store: DocumentStore) -> None:
    with store.atomic():
        for kind in KINDS:
            removed = store.delete_many(kind, ())
            logger.info("Deleted %d %s", removed, kind)


def main() -> None:
    ap = argparse.ArgumentParser(description="Import or destroy DevCamper seed data.")
    ap.add_argument("action", choices=("import", "destroy"))
    ap.add_argument("--data", default="_data", help="Directory with the seed JSON files (default: ./_data)")
    ap.add_argument("--db", help="SQLite database file (default: DATABASE_URL)")
    args = ap.parse_args()

    setup_logging(settings.log_level)
    store = SQLiteDocumentStore(args.db)
    store.migrate()
    try:
        if args.action == "import":
            import_data(store, Path(args.data))
        else:
            destroy_data(store)
    except ApiError as exc:
        logger.error("Seeding failed: %s", exc.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
