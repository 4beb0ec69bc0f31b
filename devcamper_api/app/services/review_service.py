"""
Business logic for reviews.

Users (and administrators) may review a bootcamp once; only the author
or an administrator may change or remove a review.  After each
mutation the bootcamp's ``averageRating`` is recomputed.
"""

import logging
from typing import Mapping, Optional

from ..core.errors import DuplicateError, NotFoundError
from ..core.permissions import REVIEWERS, Identity, Verb, check
from ..core.query import EQ, Condition, QueryValue, parse_number
from ..core.store import BOOTCAMPS, REVIEWS, Document, DocumentStore
from ..schemas.review import ReviewCreate, ReviewUpdate
from .aggregate_service import AggregateService
from .base import Page, list_documents, populate_bootcamps, query_options

logger = logging.getLogger(__name__)

REVIEW_QUERY = query_options(default_sort="-createdAt", casts={"rating": parse_number})


class ReviewService:
    """Service for handling bootcamp reviews."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.aggregates = AggregateService(store)

    def _review_or_404(self, review_id: str) -> Document:
        review = self.store.get_by_id(REVIEWS, review_id)
        if review is None:
            raise NotFoundError(f"No review found with the id of {review_id}")
        return review

    def _bootcamp_or_404(self, bootcamp_id: str) -> Document:
        bootcamp = self.store.get_by_id(BOOTCAMPS, bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(f"No bootcamp with the id of {bootcamp_id}")
        return bootcamp

    async def list_reviews(self, query_params: Mapping[str, QueryValue]) -> Page:
        page = list_documents(self.store, REVIEWS, query_params, REVIEW_QUERY)
        populate_bootcamps(self.store, page.data)
        return page

    async def list_bootcamp_reviews(self, bootcamp_id: str) -> Page:
        self._bootcamp_or_404(bootcamp_id)
        reviews = self.store.find_all(REVIEWS, (Condition("bootcamp", EQ, bootcamp_id),))
        return Page(reviews, len(reviews))

    async def get_review(self, review_id: str) -> Document:
        review = self._review_or_404(review_id)
        populate_bootcamps(self.store, [review])
        return review

    async def create_review(
        self,
        bootcamp_id: str,
        data: ReviewCreate,
        identity: Optional[Identity],
    ) -> Document:
        """Create a review of a bootcamp by the caller.

        The store's unique index on (bootcamp, user) rejects a second
        review by the same user with ``DuplicateError``.
        """
        self._bootcamp_or_404(bootcamp_id)
        check(identity, Verb.CREATE, roles=REVIEWERS)
        document = data.to_document()
        document.update(bootcamp=bootcamp_id, user=identity.id)
        try:
            review = self.store.create(REVIEWS, document)
        except DuplicateError as exc:
            raise DuplicateError("You have already submitted a review for this bootcamp") from exc
        logger.info("User %s reviewed bootcamp %s (rating %s)", identity.id, bootcamp_id, data.rating)
        self.aggregates.recompute_average_rating(bootcamp_id)
        return review

    async def update_review(
        self,
        review_id: str,
        data: ReviewUpdate,
        identity: Optional[Identity],
    ) -> Document:
        review = self._review_or_404(review_id)
        check(
            identity,
            Verb.UPDATE,
            owner_id=review.get("user"),
            roles=REVIEWERS,
            message=f"User {{user}} is not authorized to update review {review_id}",
        )
        changes = data.to_changes()
        if not changes:
            return review
        updated = self.store.update(REVIEWS, review_id, changes)
        if updated is None:
            raise NotFoundError(f"No review found with the id of {review_id}")
        if "rating" in changes:
            self.aggregates.recompute_average_rating(review["bootcamp"])
        return updated

    async def delete_review(self, review_id: str, identity: Optional[Identity]) -> None:
        review = self._review_or_404(review_id)
        check(
            identity,
            Verb.DELETE,
            owner_id=review.get("user"),
            roles=REVIEWERS,
            message=f"User {{user}} is not authorized to delete review {review_id}",
        )
        if not self.store.delete(REVIEWS, review_id):
            raise NotFoundError(f"No review found with the id of {review_id}")
        logger.info("User %s deleted review %s", identity.id, review_id)
        self.aggregates.recompute_average_rating(review["bootcamp"])
