"""
Business logic for bootcamps.

Publishers own bootcamps: a publisher may create one bootcamp and only
its owner (or an administrator) may change, re‑photograph or delete
it.  Deleting a bootcamp removes its courses and reviews in the same
transaction.  The address given on create/update is geocoded into a
``location`` point used by the radius search.
"""

import asyncio
import logging
import math
import os
import re
from typing import Any, Dict, List, Mapping, Optional

from ..core.config import settings
from ..core.errors import NotFoundError, ValidationError
from ..core.permissions import ADMINS, PUBLISHERS, Identity, Verb, check
from ..core.query import EQ, IN, Condition, QueryValue, parse_bool, parse_number
from ..core.store import BOOTCAMPS, COURSES, Document, DocumentStore
from ..schemas.bootcamp import BootcampCreate, BootcampUpdate
from .aggregate_service import AggregateService
from .base import Page, list_documents, query_options
from .geocoder import Geocoder, Location, NullGeocoder
from .photo_storage import LocalPhotoStorage, PhotoStorage

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3963.0

BOOTCAMP_QUERY = query_options(
    default_sort="-createdAt",
    casts={
        "averageCost": parse_number,
        "averageRating": parse_number,
        "housing": parse_bool,
        "jobAssistance": parse_bool,
        "jobGuarantee": parse_bool,
        "acceptGi": parse_bool,
    },
)

DEFAULT_PHOTO = "no-photo.jpg"


def slugify(value: str) -> str:
    """``"Devworks Bootcamp!"`` -> ``"devworks-bootcamp"``."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return slug.strip("-")


def distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great‑circle distance between two points (haversine formula)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(a)))


class BootcampService:
    """Service for managing bootcamps."""

    def __init__(
        self,
        store: DocumentStore,
        geocoder: Optional[Geocoder] = None,
        photo_storage: Optional[PhotoStorage] = None,
    ) -> None:
        self.store = store
        self.geocoder = geocoder or NullGeocoder()
        self.photo_storage = photo_storage or LocalPhotoStorage(settings.file_upload_path)
        self.aggregates = AggregateService(store)

    def _get_or_404(self, bootcamp_id: str) -> Document:
        bootcamp = self.store.get_by_id(BOOTCAMPS, bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(f"Bootcamp not found with id of {bootcamp_id}")
        return bootcamp

    def _attach_courses(self, records: List[Document]) -> None:
        ids = tuple(r["id"] for r in records if "id" in r)
        if not ids:
            return
        grouped: Dict[str, List[Document]] = {}
        for course in self.store.find_all(COURSES, (Condition("bootcamp", IN, ids),)):
            grouped.setdefault(course["bootcamp"], []).append(course)
        for record in records:
            record["courses"] = grouped.get(record["id"], [])

    async def _locate(self, address: str) -> Optional[Location]:
        # requests is blocking; keep the event loop free.
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.geocoder.geocode, address)

    async def _geocode(self, address: str) -> Optional[Dict[str, Any]]:
        location = await self._locate(address)
        return location.to_document() if location else None

    async def list_bootcamps(self, query_params: Mapping[str, QueryValue]) -> Page:
        """Return one page of bootcamps, each with its courses embedded."""
        page = list_documents(self.store, BOOTCAMPS, query_params, BOOTCAMP_QUERY)
        if "select" not in query_params:
            self._attach_courses(page.data)
        return page

    async def get_bootcamp(self, bootcamp_id: str) -> Document:
        bootcamp = self._get_or_404(bootcamp_id)
        self._attach_courses([bootcamp])
        return bootcamp

    async def create_bootcamp(self, data: BootcampCreate, identity: Optional[Identity]) -> Document:
        """Create a bootcamp owned by the caller.

        Publishers may publish a single bootcamp; administrators are not
        limited.  ``averageCost`` starts at 0 and ``averageRating`` is
        absent until the first review arrives.
        """
        check(identity, Verb.CREATE, roles=PUBLISHERS)
        if identity.role not in ADMINS:
            _, published = self.store.find(
                BOOTCAMPS, (Condition("user", EQ, identity.id),), projection=("id",)
            )
            if published:
                raise ValidationError(f"The user with ID {identity.id} has already published a bootcamp")

        document = data.to_document()
        address = document.pop("address")
        document.update(
            slug=slugify(data.name),
            user=identity.id,
            photo=DEFAULT_PHOTO,
            averageCost=0,
        )
        location = await self._geocode(address)
        if location is not None:
            document["location"] = location
        bootcamp = self.store.create(BOOTCAMPS, document)
        logger.info("User %s created bootcamp %s (%s)", identity.id, bootcamp["id"], bootcamp["name"])
        return bootcamp

    async def update_bootcamp(
        self,
        bootcamp_id: str,
        data: BootcampUpdate,
        identity: Optional[Identity],
    ) -> Document:
        bootcamp = self._get_or_404(bootcamp_id)
        check(
            identity,
            Verb.UPDATE,
            owner_id=bootcamp.get("user"),
            roles=PUBLISHERS,
            message=f"User {{user}} is not authorized to update bootcamp {bootcamp_id}",
        )
        changes = data.to_changes()
        unset: List[str] = []
        if "name" in changes:
            changes["slug"] = slugify(changes["name"])
        address = changes.pop("address", None)
        if address is not None:
            location = await self._geocode(address)
            if location is None:
                unset.append("location")
            else:
                changes["location"] = location
        if not changes and not unset:
            return bootcamp
        updated = self.store.update(BOOTCAMPS, bootcamp_id, changes, unset)
        if updated is None:
            raise NotFoundError(f"Bootcamp not found with id of {bootcamp_id}")
        logger.info("User %s updated bootcamp %s: %s", identity.id, bootcamp_id, sorted(changes))
        return updated

    async def delete_bootcamp(self, bootcamp_id: str, identity: Optional[Identity]) -> None:
        bootcamp = self._get_or_404(bootcamp_id)
        check(
            identity,
            Verb.DELETE,
            owner_id=bootcamp.get("user"),
            roles=PUBLISHERS,
            message=f"User {{user}} is not authorized to delete bootcamp {bootcamp_id}",
        )
        if not self.aggregates.delete_bootcamp_cascade(bootcamp_id):
            raise NotFoundError(f"Bootcamp not found with id of {bootcamp_id}")

    async def bootcamps_in_radius(self, zipcode: str, distance: float) -> List[Document]:
        """Bootcamps within ``distance`` miles of the centre of ``zipcode``."""
        if distance <= 0:
            raise ValidationError("Distance must be a positive number of miles")
        centre = await self._locate(zipcode)
        if centre is None:
            raise ValidationError(f"Could not locate zipcode {zipcode}")
        candidates = self.store.find_all(BOOTCAMPS, (Condition("location.type", EQ, "Point"),))
        nearby: List[Document] = []
        for bootcamp in candidates:
            lng, lat = bootcamp["location"]["coordinates"]
            if distance_miles(centre.latitude, centre.longitude, lat, lng) <= distance:
                nearby.append(bootcamp)
        return nearby

    async def upload_photo(
        self,
        bootcamp_id: str,
        identity: Optional[Identity],
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """Validate and store a bootcamp photo, returning its file name."""
        bootcamp = self._get_or_404(bootcamp_id)
        check(
            identity,
            Verb.UPDATE,
            owner_id=bootcamp.get("user"),
            roles=PUBLISHERS,
            message=f"User {{user}} is not authorized to update bootcamp {bootcamp_id}",
        )
        if not content:
            raise ValidationError("Please upload a file")
        if not (content_type or "").startswith("image"):
            raise ValidationError("Please upload an image file")
        if len(content) > settings.max_file_upload:
            raise ValidationError(f"Please upload an image less than {settings.max_file_upload} bytes")
        extension = os.path.splitext(filename or "")[1].lower()
        name = self.photo_storage.save(f"photo_{bootcamp_id}{extension}", content)
        self.store.update(BOOTCAMPS, bootcamp_id, {"photo": name})
        logger.info("Bootcamp %s photo set to %s", bootcamp_id, name)
        return name

    async def recompute(self, bootcamp_id: str, identity: Optional[Identity]) -> Document:
        """Rebuild both aggregates of a bootcamp (administrators only)."""
        check(identity, Verb.UPDATE, roles=ADMINS)
        self._get_or_404(bootcamp_id)
        self.aggregates.recompute_all(bootcamp_id)
        return self._get_or_404(bootcamp_id)
