"""
Document store abstraction.

Every resource is kept as a JSON document in a collection ("kind").
Services only talk to the ``DocumentStore`` interface below, so the
SQLite implementation in ``core.db`` and the in‑memory implementation in
this module are interchangeable.

``apply_descriptor`` is the single place where a compiled
``FilterDescriptor`` meets a store call.
"""

import abc
import copy
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import DuplicateError, ValidationError
from .query import EQ, GT, GTE, IN, LT, LTE, IDENTITY_FIELD, Condition, FilterDescriptor, PageSpec, SortKey

USERS = "users"
BOOTCAMPS = "bootcamps"
COURSES = "courses"
REVIEWS = "reviews"

KINDS = (USERS, BOOTCAMPS, COURSES, REVIEWS)

# Field tuples that must be unique within a kind.
UNIQUE_FIELDS: Dict[str, Tuple[Tuple[str, ...], ...]] = {
    USERS: (("email",),),
    BOOTCAMPS: (("name",),),
    COURSES: (),
    REVIEWS: (("bootcamp", "user"),),
}

Document = Dict[str, Any]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_document(document: Mapping[str, Any]) -> Document:
    """Copy ``document`` and assign ``id`` and ``createdAt`` when missing."""
    doc = dict(document)
    doc.setdefault(IDENTITY_FIELD, uuid.uuid4().hex)
    doc.setdefault("createdAt", utcnow_iso())
    return doc


def project(document: Document, projection: Optional[Iterable[str]]) -> Document:
    """Keep only the top‑level fields named in ``projection``.

    Dotted names keep their top‑level parent.
    """
    if projection is None:
        return document
    roots = {name.split(".", 1)[0] for name in projection}
    return {key: value for key, value in document.items() if key in roots}


def check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise ValidationError(f"Unknown collection {kind!r}")


class DocumentStore(abc.ABC):
    """Interface implemented by every storage backend.

    Each method is atomic on its own.  ``atomic`` groups several calls
    into one unit that observers see either completely or not at all.
    """

    @abc.abstractmethod
    def migrate(self) -> None:
        """Create collections and indexes if they do not exist yet."""

    @abc.abstractmethod
    def find(
        self,
        kind: str,
        conditions: Sequence[Condition] = (),
        sort: Sequence[SortKey] = (),
        projection: Optional[Iterable[str]] = None,
        page: Optional[PageSpec] = None,
    ) -> Tuple[List[Document], int]:
        """Return the matching documents (one page of them) and the total count."""

    @abc.abstractmethod
    def get_by_id(self, kind: str, doc_id: str, projection: Optional[Iterable[str]] = None) -> Optional[Document]:
        ...

    @abc.abstractmethod
    def create(self, kind: str, document: Mapping[str, Any]) -> Document:
        ...

    @abc.abstractmethod
    def update(
        self,
        kind: str,
        doc_id: str,
        changes: Mapping[str, Any],
        unset: Iterable[str] = (),
    ) -> Optional[Document]:
        """Set ``changes`` and remove ``unset`` fields; ``None`` if missing."""

    @abc.abstractmethod
    def delete(self, kind: str, doc_id: str) -> bool:
        ...

    @abc.abstractmethod
    def delete_many(self, kind: str, conditions: Sequence[Condition]) -> int:
        ...

    @abc.abstractmethod
    def atomic(self):
        """Context manager grouping calls into one transaction."""

    def find_all(self, kind: str, conditions: Sequence[Condition] = (), sort: Sequence[SortKey] = ()) -> List[Document]:
        records, _ = self.find(kind, conditions, sort)
        return records


def apply_descriptor(
    store: DocumentStore,
    kind: str,
    descriptor: FilterDescriptor,
    extra_conditions: Sequence[Condition] = (),
) -> Tuple[List[Document], int]:
    """Run a compiled list query against ``store``.

    ``extra_conditions`` are ANDed with the request filters, e.g. to
    scope a listing to one bootcamp.
    """
    conditions = tuple(extra_conditions) + descriptor.conditions
    return store.find(kind, conditions, descriptor.sort, descriptor.projection, descriptor.page)


# ---------------------------------------------------------------------------
# In‑memory implementation
# ---------------------------------------------------------------------------

_MISSING = object()


def _lookup(document: Mapping[str, Any], field: str) -> Any:
    value: Any = document
    for part in field.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _comparable(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return True
    return isinstance(left, str) and isinstance(right, str)


def _compare(op: str, left: Any, right: Any) -> bool:
    if not _comparable(left, right):
        return False
    if op == GT:
        return left > right
    if op == GTE:
        return left >= right
    if op == LT:
        return left < right
    return left <= right


def _scalar_matches(condition: Condition, value: Any) -> bool:
    if condition.op == EQ:
        return value == condition.value
    if condition.op == IN:
        return any(value == item for item in condition.value)
    if condition.op in (GT, GTE, LT, LTE):
        return _compare(condition.op, value, condition.value)
    return False


def matches(document: Mapping[str, Any], condition: Condition) -> bool:
    """Evaluate one condition; array fields match when any element does."""
    value = _lookup(document, condition.field)
    if value is _MISSING:
        return False
    if isinstance(value, list):
        return any(_scalar_matches(condition, item) for item in value)
    return _scalar_matches(condition, value)


def _sort_rank(value: Any) -> Tuple[int, Any]:
    # NULL < numbers < text < everything else, as SQLite orders values.
    if value is _MISSING or value is None:
        return (0, 0)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, str(value))


class InMemoryDocumentStore(DocumentStore):
    """Dictionary backed store used by tests and throwaway setups.

    A re‑entrant lock serialises all access; ``atomic`` holds it for the
    whole block and restores a snapshot if the block raises.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {kind: {} for kind in KINDS}
        self._lock = threading.RLock()
        self._depth = 0

    def migrate(self) -> None:
        return None

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = copy.deepcopy(self._collections) if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if snapshot is not None:
                    self._collections = snapshot
                raise
            finally:
                self._depth -= 1

    def _check_unique(self, kind: str, document: Document) -> None:
        for fields in UNIQUE_FIELDS[kind]:
            key = tuple(document.get(name) for name in fields)
            if any(part is None for part in key):
                continue
            for other in self._collections[kind].values():
                if other[IDENTITY_FIELD] == document[IDENTITY_FIELD]:
                    continue
                if tuple(other.get(name) for name in fields) == key:
                    raise DuplicateError("Duplicate field value entered")

    def find(self, kind, conditions=(), sort=(), projection=None, page=None):
        check_kind(kind)
        with self._lock:
            records = [
                doc for doc in self._collections[kind].values()
                if all(matches(doc, condition) for condition in conditions)
            ]
            # Stable sorts applied from the least to the most significant key.
            for key in reversed(list(sort)):
                records.sort(key=lambda doc, f=key.field: _sort_rank(_lookup(doc, f)), reverse=key.descending)
            total = len(records)
            if page is not None:
                records = records[page.skip:page.skip + page.limit]
            return [project(copy.deepcopy(doc), projection) for doc in records], total

    def get_by_id(self, kind, doc_id, projection=None):
        check_kind(kind)
        with self._lock:
            doc = self._collections[kind].get(doc_id)
            return project(copy.deepcopy(doc), projection) if doc is not None else None

    def create(self, kind, document):
        check_kind(kind)
        doc = new_document(copy.deepcopy(dict(document)))
        with self._lock:
            if doc[IDENTITY_FIELD] in self._collections[kind]:
                raise DuplicateError("Duplicate field value entered")
            self._check_unique(kind, doc)
            self._collections[kind][doc[IDENTITY_FIELD]] = doc
            return copy.deepcopy(doc)

    def update(self, kind, doc_id, changes, unset=()):
        check_kind(kind)
        with self._lock:
            current = self._collections[kind].get(doc_id)
            if current is None:
                return None
            updated = dict(current)
            updated.update(copy.deepcopy(dict(changes)))
            for name in unset:
                updated.pop(name, None)
            updated[IDENTITY_FIELD] = doc_id
            self._check_unique(kind, updated)
            self._collections[kind][doc_id] = updated
            return copy.deepcopy(updated)

    def delete(self, kind, doc_id):
        check_kind(kind)
        with self._lock:
            return self._collections[kind].pop(doc_id, None) is not None

    def delete_many(self, kind, conditions):
        check_kind(kind)
        with self._lock:
            doomed = [
                doc_id for doc_id, doc in self._collections[kind].items()
                if all(matches(doc, condition) for condition in conditions)
            ]
            for doc_id in doomed:
                del self._collections[kind][doc_id]
            return len(doomed)
