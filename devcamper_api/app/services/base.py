"""
Helpers shared by the resource services.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.config import settings
from ..core.query import IDENTITY_FIELD, IN, Condition, QueryOptions, QueryValue, compile_query, identity
from ..core.store import BOOTCAMPS, Document, DocumentStore, apply_descriptor


# Ids are opaque strings even when they look numeric.
REFERENCE_FIELDS = (IDENTITY_FIELD, "bootcamp", "user")


def query_options(**kwargs: Any) -> QueryOptions:
    """``QueryOptions`` with the configured page size defaults and string id casts."""
    casts = {name: identity for name in REFERENCE_FIELDS}
    casts.update(kwargs.pop("casts", None) or {})
    kwargs["casts"] = casts
    kwargs.setdefault("default_page_size", settings.default_page_size)
    kwargs.setdefault("max_page_size", settings.max_page_size)
    return QueryOptions(**kwargs)


@dataclass
class Page:
    """One page of a list query and the links to its neighbours."""

    data: List[Document]
    total: int
    pagination: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def envelope(self) -> Dict[str, Any]:
        return {
            "success": True,
            "count": len(self.data),
            "total": self.total,
            "pagination": self.pagination,
            "data": self.data,
        }


def list_documents(
    store: DocumentStore,
    kind: str,
    query_params: Mapping[str, QueryValue],
    options: QueryOptions,
    extra_conditions: Sequence[Condition] = (),
) -> Page:
    descriptor = compile_query(query_params, options)
    records, total = apply_descriptor(store, kind, descriptor, extra_conditions)
    return Page(records, total, descriptor.pagination(total))


def populate_bootcamps(store: DocumentStore, records: List[Document], fields=("name", "description")) -> None:
    """Replace the ``bootcamp`` id of each record with a short bootcamp summary."""
    ids = sorted({r["bootcamp"] for r in records if isinstance(r.get("bootcamp"), str)})
    if not ids:
        return
    summaries = {
        b["id"]: b
        for b in store.find_all(BOOTCAMPS, (Condition("id", IN, tuple(ids)),))
    }
    for record in records:
        bootcamp: Optional[Document] = summaries.get(record.get("bootcamp"))
        if bootcamp is not None:
            record["bootcamp"] = {"id": bootcamp["id"], **{f: bootcamp.get(f) for f in fields}}
