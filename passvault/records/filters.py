"""
Filter argument resolution — raw request parameters to a typed FilterSpec.

String options: ``search``, ``search_field``, ``order``, ``direction``.
Integer options: ``offset``, ``limit``.

Parameter names are case-insensitive. Pagination values that are missing,
unparseable, negative or beyond bigint range fall back to ``UNSET`` rather
than failing the request. Sorting or searching on a field outside the kind's allowlist fails
with ``InvalidFilterField``; sensitive fields are never on the allowlist.

Usage:
    from passvault.records.filters import resolve_filters
    from passvault.records.models import LOGIN

    spec = resolve_filters({"search": "dummy", "order": "url", "limit": "10"}, LOGIN)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from passvault.errors import InvalidFilterField, ValidationError
from passvault.records.models import RecordKind

UNSET = -1
# Largest value PostgreSQL accepts for LIMIT/OFFSET (bigint).
MAX_PAGE_VALUE = 2**63 - 1

STRING_OPTIONS = ("search", "search_field", "order", "direction")
INT_OPTIONS = ("offset", "limit")
DIRECTIONS = ("asc", "desc")


@dataclass
class FilterSpec:
    """Resolved search/sort/pagination parameters for a single request."""

    strings: dict[str, str] = field(default_factory=lambda: {k: "" for k in STRING_OPTIONS})
    ints: dict[str, int] = field(default_factory=lambda: {k: UNSET for k in INT_OPTIONS})

    def __post_init__(self) -> None:
        for key in STRING_OPTIONS:
            self.strings.setdefault(key, "")
        for key in INT_OPTIONS:
            self.ints.setdefault(key, UNSET)
        if not self.strings["direction"]:
            self.strings["direction"] = "asc"

    @property
    def search(self) -> str:
        return self.strings["search"]

    @property
    def search_field(self) -> str:
        return self.strings["search_field"]

    @property
    def order(self) -> str:
        return self.strings["order"]

    @property
    def descending(self) -> bool:
        return self.strings["direction"] == "desc"

    @property
    def offset(self) -> int:
        return self.ints["offset"]

    @property
    def limit(self) -> int:
        return self.ints["limit"]

    @property
    def paginated(self) -> bool:
        """Offset/limit apply only when both are set."""
        return self.offset >= 0 and self.limit >= 0


def _parse_int(value: Any) -> int:
    if isinstance(value, bool):
        return UNSET
    if isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            return UNSET
    return parsed if 0 <= parsed <= MAX_PAGE_VALUE else UNSET


def _normalize(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Lower-case keys; for repeated query params keep the last value."""
    normalized: dict[str, Any] = {}
    for key, value in (params or {}).items():
        if isinstance(value, (list, tuple)):
            value = value[-1] if value else ""
        normalized[str(key).lower()] = value
    return normalized


def resolve_filters(params: Mapping[str, Any] | None, kind: RecordKind) -> FilterSpec:
    """Build a FilterSpec for ``kind`` from raw request parameters."""
    raw = _normalize(params)

    strings = {k: str(raw.get(k) or "").strip() for k in STRING_OPTIONS}

    order = strings["order"]
    if order and order not in kind.sort_fields:
        raise InvalidFilterField(order, kind.name)

    search_field = strings["search_field"]
    if search_field and search_field not in kind.search_fields:
        raise InvalidFilterField(search_field, kind.name)

    direction = strings["direction"].lower() or "asc"
    if direction not in DIRECTIONS:
        raise ValidationError(f"direction must be 'asc' or 'desc', got {direction[:20]!r}")
    strings["direction"] = direction

    ints = {k: _parse_int(raw.get(k)) if k in raw else UNSET for k in INT_OPTIONS}
    return FilterSpec(strings=strings, ints=ints)
