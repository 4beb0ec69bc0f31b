"""
Maintenance of the derived fields stored on bootcamps.

``averageCost`` and ``averageRating`` are denormalised summaries of a
bootcamp's courses and reviews.  They are never accepted from clients;
the course and review services call ``AggregateService`` right after
each committed mutation, so the stored value is up to date at the end
of every request and reads never recompute.

Each recompute reads the child collection first and writes the parent
only once the read succeeded; a store failure propagates as
``UpstreamError`` and leaves the previous value in place.  Concurrent
recomputes for one bootcamp are last‑writer‑wins, and any later
mutation (or ``recompute_all``) repairs a stale value.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

from ..core.query import EQ, Condition
from ..core.store import BOOTCAMPS, COURSES, REVIEWS, DocumentStore

logger = logging.getLogger(__name__)

Number = Union[int, float]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def rounded_mean(values: Iterable[Number]) -> Optional[int]:
    """Mean rounded half‑up to the nearest integer; ``None`` for no values."""
    numbers = [Decimal(str(value)) for value in values]
    if not numbers:
        return None
    mean = sum(numbers) / Decimal(len(numbers))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class AggregateService:
    """Recomputes bootcamp aggregates and performs the cascading delete."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _children(self, kind: str, bootcamp_id: str):
        return self.store.find_all(kind, (Condition("bootcamp", EQ, bootcamp_id),))

    def recompute_average_cost(self, bootcamp_id: str) -> int:
        """Store the rounded mean course cost of a bootcamp (0 without courses)."""
        courses = self._children(COURSES, bootcamp_id)
        average = rounded_mean(c["cost"] for c in courses if _is_number(c.get("cost")))
        if average is None:
            average = 0
        if self.store.update(BOOTCAMPS, bootcamp_id, {"averageCost": average}) is None:
            logger.debug("Bootcamp %s is gone, averageCost not stored", bootcamp_id)
        else:
            logger.debug("Bootcamp %s averageCost=%s over %d courses", bootcamp_id, average, len(courses))
        return average

    def recompute_average_rating(self, bootcamp_id: str) -> Optional[int]:
        """Store the rounded mean review rating, or remove it when there are no reviews.

        0 is below the valid rating range, so "no reviews" is expressed
        by the absence of the field rather than by a sentinel value.
        """
        reviews = self._children(REVIEWS, bootcamp_id)
        average = rounded_mean(r["rating"] for r in reviews if _is_number(r.get("rating")))
        if average is None:
            updated = self.store.update(BOOTCAMPS, bootcamp_id, {}, unset=("averageRating",))
        else:
            updated = self.store.update(BOOTCAMPS, bootcamp_id, {"averageRating": average})
        if updated is None:
            logger.debug("Bootcamp %s is gone, averageRating not stored", bootcamp_id)
        else:
            logger.debug("Bootcamp %s averageRating=%s over %d reviews", bootcamp_id, average, len(reviews))
        return average

    def recompute_all(self, bootcamp_id: str) -> None:
        self.recompute_average_cost(bootcamp_id)
        self.recompute_average_rating(bootcamp_id)

    def delete_bootcamp_cascade(self, bootcamp_id: str) -> bool:
        """Delete a bootcamp together with its courses and reviews.

        The three deletes run in one store transaction, children first,
        so no reader ever sees a course or review whose bootcamp is
        gone.  Returns whether the bootcamp existed.
        """
        children = (Condition("bootcamp", EQ, bootcamp_id),)
        with self.store.atomic():
            courses = self.store.delete_many(COURSES, children)
            reviews = self.store.delete_many(REVIEWS, children)
            deleted = self.store.delete(BOOTCAMPS, bootcamp_id)
        logger.info(
            "Deleted bootcamp %s with %d courses and %d reviews", bootcamp_id, courses, reviews
        )
        return deleted
