"""
Business logic for courses.

Courses belong to a bootcamp and may only be added, changed or removed
by that bootcamp's owner or an administrator.  Every mutation that can
affect a bootcamp's average cost (a new or deleted course, a changed
cost, a course moved to another bootcamp) is followed by a recompute of
``averageCost`` on each bootcamp involved.
"""

import logging
from typing import Mapping, Optional

from ..core.errors import NotFoundError
from ..core.permissions import PUBLISHERS, Identity, Verb, check
from ..core.query import EQ, Condition, QueryValue, parse_bool, parse_number
from ..core.store import BOOTCAMPS, COURSES, Document, DocumentStore
from ..schemas.course import CourseCreate, CourseUpdate
from .aggregate_service import AggregateService
from .base import Page, list_documents, populate_bootcamps, query_options

logger = logging.getLogger(__name__)

COURSE_QUERY = query_options(
    default_sort="-createdAt",
    casts={
        "cost": parse_number,
        "weeks": parse_number,
        "scholarshipAvailable": parse_bool,
    },
)


class CourseService:
    """Service for managing bootcamp courses."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.aggregates = AggregateService(store)

    def _bootcamp_or_404(self, bootcamp_id: str) -> Document:
        bootcamp = self.store.get_by_id(BOOTCAMPS, bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(f"No bootcamp with the id of {bootcamp_id}")
        return bootcamp

    def _course_or_404(self, course_id: str) -> Document:
        course = self.store.get_by_id(COURSES, course_id)
        if course is None:
            raise NotFoundError(f"No course with the id of {course_id}")
        return course

    def _owner_of(self, course: Document) -> Optional[str]:
        # The owning bootcamp decides; fall back to the course creator.
        bootcamp = self.store.get_by_id(BOOTCAMPS, course.get("bootcamp"), projection=("user",))
        return bootcamp.get("user") if bootcamp else course.get("user")

    async def list_courses(self, query_params: Mapping[str, QueryValue]) -> Page:
        """Return one page of courses with a summary of their bootcamp."""
        page = list_documents(self.store, COURSES, query_params, COURSE_QUERY)
        populate_bootcamps(self.store, page.data)
        return page

    async def list_bootcamp_courses(self, bootcamp_id: str) -> Page:
        """All courses of one bootcamp, unpaginated."""
        self._bootcamp_or_404(bootcamp_id)
        courses = self.store.find_all(COURSES, (Condition("bootcamp", EQ, bootcamp_id),))
        return Page(courses, len(courses))

    async def get_course(self, course_id: str) -> Document:
        course = self._course_or_404(course_id)
        populate_bootcamps(self.store, [course])
        return course

    async def create_course(
        self,
        bootcamp_id: str,
        data: CourseCreate,
        identity: Optional[Identity],
    ) -> Document:
        bootcamp = self._bootcamp_or_404(bootcamp_id)
        check(
            identity,
            Verb.CREATE,
            owner_id=bootcamp.get("user"),
            roles=PUBLISHERS,
            message=f"User {{user}} is not authorized to add a course to bootcamp {bootcamp_id}",
        )
        document = data.to_document()
        document.update(bootcamp=bootcamp_id, user=identity.id)
        course = self.store.create(COURSES, document)
        logger.info("User %s added course %s to bootcamp %s", identity.id, course["id"], bootcamp_id)
        self.aggregates.recompute_average_cost(bootcamp_id)
        return course

    async def update_course(
        self,
        course_id: str,
        data: CourseUpdate,
        identity: Optional[Identity],
    ) -> Document:
        course = self._course_or_404(course_id)
        check(
            identity,
            Verb.UPDATE,
            owner_id=self._owner_of(course),
            roles=PUBLISHERS,
            message=f"User {{user}} is not authorized to update course {course_id}",
        )
        changes = data.to_changes()
        previous_bootcamp = course.get("bootcamp")
        moved_to = changes.get("bootcamp")
        if moved_to is not None and moved_to != previous_bootcamp:
            target = self._bootcamp_or_404(moved_to)
            check(
                identity,
                Verb.UPDATE,
                owner_id=target.get("user"),
                roles=PUBLISHERS,
                message=f"User {{user}} is not authorized to add a course to bootcamp {moved_to}",
            )
        else:
            moved_to = None
        if not changes:
            return course

        updated = self.store.update(COURSES, course_id, changes)
        if updated is None:
            raise NotFoundError(f"No course with the id of {course_id}")
        logger.info("User %s updated course %s: %s", identity.id, course_id, sorted(changes))
        if "cost" in changes or moved_to is not None:
            self.aggregates.recompute_average_cost(previous_bootcamp)
        if moved_to is not None:
            self.aggregates.recompute_average_cost(moved_to)
        return updated

    async def delete_course(self, course_id: str, identity: Optional[Identity]) -> None:
        course = self._course_or_404(course_id)
        check(
            identity,
            Verb.DELETE,
            owner_id=self._owner_of(course),
            roles=PUBLISHERS,
            message=f"User {{user}} is not authorized to delete course {course_id}",
        )
        if not self.store.delete(COURSES, course_id):
            raise NotFoundError(f"No course with the id of {course_id}")
        logger.info("User %s deleted course %s", identity.id, course_id)
        self.aggregates.recompute_average_cost(course["bootcamp"])
