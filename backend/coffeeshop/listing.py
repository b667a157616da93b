# Overview: List query builder; parses page/limit/search/sort/order and applies them to a query.

"""
Listing helpers shared by every admin list endpoint.

Request parameters are normalized into ``ListParams``. A per-entity
``ListSpec`` maps the external sort keys to SQL expressions; only keys in
that allow-list ever reach ORDER BY. Search terms are always bound
parameters with LIKE wildcards escaped.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Any, Mapping
from urllib.parse import urlencode

from werkzeug.datastructures import MultiDict

from .exceptions import ValidationError
from .extensions import db

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_MAX_LIMIT = 100
LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class ListSpec:
    sort_columns: Mapping[str, Any]
    search_columns: tuple = ()
    default_sort: str = "created_at"
    # Secondary ORDER BY so pages stay stable when the sort column ties
    tiebreaker: Any = None


@dataclass(frozen=True)
class ListParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    search: str = ""
    sort: str = "created_at"
    order: str = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def cache_key(self, prefix: str) -> str:
        return f"{prefix}:{self.page}:{self.limit}:{self.search}:{self.sort}:{self.order}"


def _positive_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value >= 1 else default


def parse_page_limit(args: Mapping[str, str], *, max_limit: int = DEFAULT_MAX_LIMIT) -> tuple[int, int]:
    page = _positive_int(args.get("page"), DEFAULT_PAGE)
    limit = min(_positive_int(args.get("limit"), DEFAULT_LIMIT), max_limit)
    return page, limit


def parse_list_params(
    args: Mapping[str, str],
    spec: ListSpec,
    *,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> ListParams:
    """
    Normalize raw query-string values.

    - page/limit fall back to 1/10 when missing, unparsable or < 1
    - limit is clamped to max_limit
    - unknown sort keys raise ValidationError keyed on "sort"
    - order is asc/desc (case-insensitive), anything else means desc
    """
    page, limit = parse_page_limit(args, max_limit=max_limit)

    search = (args.get("search") or "").strip()

    sort = (args.get("sort") or "").strip() or spec.default_sort
    if sort not in spec.sort_columns:
        allowed = ", ".join(sorted(spec.sort_columns))
        raise ValidationError({"sort": f"Invalid sort key, allowed: {allowed}"})

    order = (args.get("order") or "").strip().lower()
    if order not in ("asc", "desc"):
        order = "desc"

    return ListParams(page=page, limit=limit, search=search, sort=sort, order=order)


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def apply_search(query, spec: ListSpec, params: ListParams):
    if not params.search or not spec.search_columns:
        return query
    pattern = f"%{escape_like(params.search)}%"
    return query.filter(
        db.or_(*[col.ilike(pattern, escape=LIKE_ESCAPE) for col in spec.search_columns])
    )


def apply_sort(query, spec: ListSpec, params: ListParams):
    column = spec.sort_columns[params.sort]
    ordered = column.asc() if params.order == "asc" else column.desc()
    if spec.tiebreaker is None:
        return query.order_by(ordered)
    tie = spec.tiebreaker.asc() if params.order == "asc" else spec.tiebreaker.desc()
    return query.order_by(ordered, tie)


def build_list_queries(query, spec: ListSpec, params: ListParams):
    """
    Returns (page_query, count_query) for a filtered base query.

    The count query is built before ORDER BY / LIMIT are applied.
    """
    filtered = apply_search(query, spec, params)
    count_query = filtered.order_by(None)
    page_query = apply_sort(filtered, spec, params).offset(params.offset).limit(params.limit)
    return page_query, count_query


def paginate(query, spec: ListSpec, params: ListParams) -> tuple[list, int]:
    page_query, count_query = build_list_queries(query, spec, params)
    total = count_query.count()
    return page_query.all(), total


def build_pagination(
    base_path: str,
    page: int,
    limit: int,
    total: int,
    query_args: Mapping | None = None,
) -> tuple[dict, dict]:
    """
    Pagination metadata plus next/back links.

    Links keep every incoming query argument and only rewrite page/limit.
    next is None on the last page, back is None on the first.
    """
    total_pages = ceil(total / limit) if total else 0
    pagination = {
        "page": page,
        "limit": limit,
        "totalItems": total,
        "totalPages": total_pages,
    }

    def _link(target: int) -> str:
        args = MultiDict(query_args or {})
        args.setlist("page", [str(target)])
        args.setlist("limit", [str(limit)])
        return f"{base_path}?{urlencode(list(args.items(multi=True)))}"

    links = {
        "next": _link(page + 1) if page < total_pages else None,
        "back": _link(page - 1) if page > 1 else None,
    }
    return pagination, links
