"""
Query‑string to store query compiler.

List endpoints accept an open‑ended query grammar::

    /bootcamps?averageCost[lte]=10000&careers[in]=Business,Other
              &select=name,description&sort=-averageRating,name
              &page=2&limit=10

``compile_query`` turns such a parameter map into a ``FilterDescriptor``,
a plain value describing the filter conditions, the sort order, the
projection and the requested page.  The descriptor performs no I/O;
stores translate it into their own query language (see
``core.store.apply_descriptor``).

Parsing is tolerant: a malformed or unknown operator never raises, it
degrades to an exact match on the literal value so that a sloppy query
string cannot crash a list endpoint.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union

IDENTITY_FIELD = "id"

EQ = "eq"
GT = "gt"
GTE = "gte"
LT = "lt"
LTE = "lte"
IN = "in"

OPERATORS = frozenset({GT, GTE, LT, LTE, IN})
COMPARISON_OPERATORS = frozenset({GT, GTE, LT, LTE})

RESERVED_KEYS = frozenset({"select", "sort", "page", "limit"})

# Stores bind integers as signed 64-bit values.
INT64_MAX = 2**63 - 1

_BRACKET_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]*)\]$")
_INT_VALUE = re.compile(r"^-?\d+$")
_FLOAT_VALUE = re.compile(r"^-?\d*\.\d+$")

QueryValue = Union[str, Sequence[str]]


@dataclass(frozen=True)
class Condition:
    """A single field predicate.

    ``value`` is a scalar for equality and comparisons and a tuple for
    ``in``.
    """

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class PageSpec:
    """1‑based page index and page size."""

    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class QueryOptions:
    """Per‑resource compiler configuration.

    Attributes
    ----------
    excluded_keys : frozenset
        Keys that must never become filters (in addition to the
        reserved control words), e.g. ``password`` for users.
    default_sort : str
        Sort expression used when the request has no ``sort``.
    default_page_size, max_page_size : int
        Page size used when ``limit`` is absent, and its upper bound.
    casts : mapping, optional
        Field name to a callable converting the raw string value.  A
        cast raising ``ValueError`` or ``TypeError`` leaves the literal
        string in place.  Fields without a cast get a best‑effort
        coercion of numbers and booleans.
    """

    excluded_keys: FrozenSet[str] = frozenset()
    default_sort: str = "-createdAt"
    default_page_size: int = 25
    max_page_size: int = 100
    casts: Optional[Mapping[str, Callable[[str], Any]]] = None


@dataclass(frozen=True)
class FilterDescriptor:
    conditions: Tuple[Condition, ...]
    sort: Tuple[SortKey, ...]
    projection: Optional[FrozenSet[str]]
    page: PageSpec

    def has_next(self, total: int) -> bool:
        return self.page.skip + self.page.limit < total

    def has_prev(self) -> bool:
        return self.page.skip > 0

    def pagination(self, total: int) -> Dict[str, Dict[str, int]]:
        """Return the ``next``/``prev`` links for a result of ``total`` matches."""
        links: Dict[str, Dict[str, int]] = {}
        if self.has_next(total):
            links["next"] = {"page": self.page.page + 1, "limit": self.page.limit}
        if self.has_prev():
            links["prev"] = {"page": self.page.page - 1, "limit": self.page.limit}
        return links


def parse_bool(value: str) -> bool:
    """Cast for boolean fields.  Raises ``ValueError`` on anything else."""
    lowered = value.strip().lower()
    if lowered in {"true", "1", "yes"}:
        return True
    if lowered in {"false", "0", "no"}:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_number(stripped: str) -> Union[int, float]:
    if _INT_VALUE.match(stripped):
        number = int(stripped)
        if -INT64_MAX - 1 <= number <= INT64_MAX:
            return number
    result = float(stripped)
    if not math.isfinite(result):
        raise ValueError(f"number out of range: {stripped!r}")
    return result


def parse_number(value: str) -> Union[int, float]:
    """Cast for numeric fields: ``int`` when integral, else ``float``.

    Integers outside the signed 64-bit range become floats.
    """
    return _to_number(value.strip())


def identity(value: str) -> str:
    """Cast for id and reference fields: keep the literal string."""
    return value


def _coerce(value: str, cast: Optional[Callable[[str], Any]]) -> Any:
    if cast is not None:
        try:
            return cast(value)
        except (TypeError, ValueError):
            return value
    stripped = value.strip()
    if stripped.lower() in {"true", "false"}:
        return stripped.lower() == "true"
    if _INT_VALUE.match(stripped) or _FLOAT_VALUE.match(stripped):
        try:
            return _to_number(stripped)
        except ValueError:
            return value
    return value


def _as_list(value: QueryValue) -> List[str]:
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _last(value: QueryValue) -> str:
    values = _as_list(value)
    return values[-1] if values else ""


def _parse_int(raw: Optional[QueryValue], default: int) -> int:
    if raw is None:
        return default
    try:
        return int(_last(raw).strip())
    except ValueError:
        return default


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_sort(expression: str) -> List[SortKey]:
    """Parse ``"name,-createdAt"`` into sort keys, skipping blank entries."""
    keys: List[SortKey] = []
    for token in _split_csv(expression):
        descending = token.startswith("-")
        name = token[1:].strip() if descending else token.lstrip("+").strip()
        if name:
            keys.append(SortKey(name, descending))
    return keys


def _compile_filter(
    key: str,
    values: List[str],
    casts: Mapping[str, Callable[[str], Any]],
    excluded: FrozenSet[str],
) -> Optional[Condition]:
    match = _BRACKET_KEY.match(key)
    if match is None:
        if "[" in key or "]" in key:
            # Malformed bracket syntax: exact match on the raw key.
            return Condition(key, EQ, values[-1])
        if len(values) > 1:
            return Condition(key, IN, tuple(_coerce(v, casts.get(key)) for v in values))
        return Condition(key, EQ, _coerce(values[0], casts.get(key)))

    field, op = match.group("field"), match.group("op")
    if field in excluded:
        return None
    cast = casts.get(field)
    if op == IN:
        items: List[Any] = []
        for value in values:
            items.extend(_coerce(part, cast) for part in _split_csv(value))
        return Condition(field, IN, tuple(items))
    if op in COMPARISON_OPERATORS:
        return Condition(field, op, _coerce(values[-1], cast))
    # Unknown operator: literal equality on the base field.
    return Condition(field, EQ, values[-1])


def compile_query(
    query_params: Mapping[str, QueryValue],
    options: Optional[QueryOptions] = None,
) -> FilterDescriptor:
    """Compile request query parameters into a ``FilterDescriptor``.

    Parameters
    ----------
    query_params : mapping
        Parameter name to a string or a list of strings (repeated keys).
    options : QueryOptions, optional
        Resource specific configuration; defaults apply when omitted.

    Returns
    -------
    FilterDescriptor
        The compiled filter, sort, projection and page.  Never raises
        for malformed input.
    """
    options = options or QueryOptions()
    casts = options.casts or {}
    excluded = RESERVED_KEYS | options.excluded_keys

    conditions: List[Condition] = []
    for key, raw in query_params.items():
        if key in excluded:
            continue
        values = _as_list(raw)
        if not values:
            continue
        condition = _compile_filter(key, values, casts, excluded)
        if condition is not None:
            conditions.append(condition)

    projection: Optional[FrozenSet[str]] = None
    if "select" in query_params:
        fields = _split_csv(_last(query_params["select"]))
        if fields:
            projection = frozenset(fields) | {IDENTITY_FIELD}

    sort_keys: List[SortKey] = []
    if "sort" in query_params:
        sort_keys = parse_sort(_last(query_params["sort"]))
    if not sort_keys:
        sort_keys = parse_sort(options.default_sort)
    if not any(key.field == IDENTITY_FIELD for key in sort_keys):
        sort_keys.append(SortKey(IDENTITY_FIELD))

    limit = _parse_int(query_params.get("limit"), options.default_page_size)
    limit = min(max(limit, 1), options.max_page_size)
    # The offset must stay a 64-bit integer.
    last_page = INT64_MAX // limit
    page = min(max(_parse_int(query_params.get("page"), 1), 1), last_page)

    return FilterDescriptor(
        conditions=tuple(conditions),
        sort=tuple(sort_keys),
        projection=projection,
        page=PageSpec(page=page, limit=limit),
    )


def query_params_to_dict(items: Sequence[Tuple[str, str]]) -> Dict[str, List[str]]:
    """Group ``(key, value)`` pairs (e.g. ``request.query_params.multi_items()``)."""
    grouped: Dict[str, List[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return grouped
