from __future__ import annotations

import copy
import math
import re
from typing import Any, Mapping

from pymongo import ASCENDING, DESCENDING

from mongo_paginate.errors import InvalidOption

# limit value meaning "return every matching document"
NO_LIMIT = -1

DEFAULT_OPTIONS: dict[str, Any] = {
    "page": 1,
    "limit": 12,
    "sort": None,
    "projection": None,
    "labels": {
        "total_docs": "totalDocs",
        "limit": "limit",
        "page": "page",
        "total_pages": "totalPages",
        "docs": "docs",
        "next_page": "nextPage",
        "prev_page": "prevPage",
        "has_prev_page": "hasPrevPage",
        "has_next_page": "hasNextPage",
        "meta": "paginator",
    },
    "error_messages": {
        "page": {"min": "Page number cannot be less than 1"},
        "limit": {"min": "Page limit cannot be less than 1"},
    },
}

LABEL_ALIASES = {
    "totalDocs": "total_docs",
    "totalPages": "total_pages",
    "nextPage": "next_page",
    "prevPage": "prev_page",
    "hasPrevPage": "has_prev_page",
    "hasNextPage": "has_next_page",
}

SORT_SHAPE_MESSAGE = "sort must be a mapping, a \"field,-field\" string or a list of [field, direction] pairs"
PROJECTION_SHAPE_MESSAGE = "projection must be a mapping, a \"field,field\" string or a list of field names"

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def merge_options(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge option layers left to right into a new dict.

    Nested mappings are merged key by key, anything else replaces the
    previous value. ``None`` means "not supplied" and never overrides.
    """
    out: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        _merge_into(out, layer)
    return out


def _merge_into(target: dict, layer: Mapping) -> None:
    for key, value in layer.items():
        if value is None:
            target.setdefault(key, None)
            continue
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _merge_into(current, value)
        elif isinstance(value, Mapping):
            nested: dict[str, Any] = {}
            _merge_into(nested, value)
            target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _parse_int(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    m = _INT_PREFIX.match(str(value))
    if not m:
        return None
    return int(m.group(1))


def coerce_page(value) -> int:
    page = _parse_int(value)
    if page is None:
        return 1
    return page


def coerce_limit(value) -> int:
    # no fallback here: garbage becomes 0 and fails validation
    limit = _parse_int(value)
    if limit is None:
        return 0
    return limit


def normalize_sort(sort) -> dict | None:
    if not sort:
        return None
    if isinstance(sort, Mapping):
        return dict(sort)
    if isinstance(sort, str):
        return dict(parse_sort_arg(sort)) or None
    if not isinstance(sort, (list, tuple)):
        raise InvalidOption(SORT_SHAPE_MESSAGE)

    out = {}
    for pair in sort:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2 or not isinstance(pair[0], str):
            raise InvalidOption(SORT_SHAPE_MESSAGE)
        field, direction = pair
        out[field] = direction
    return out


def normalize_projection(projection) -> dict | None:
    if not projection:
        return None
    if isinstance(projection, Mapping):
        return dict(projection)
    if isinstance(projection, str):
        projection = [f.strip() for f in projection.split(",") if f.strip()]
        return {field: 1 for field in projection} or None
    if not isinstance(projection, (list, tuple)) or not all(isinstance(f, str) for f in projection):
        raise InvalidOption(PROJECTION_SHAPE_MESSAGE)
    return {field: 1 for field in projection}


def resolve_labels(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Label table for the output, built over the defaults.

    Keys may use either the snake_case names or the camelCase output names
    (``totalDocs``). ``None`` keeps the previous label, except for ``meta``
    where it means "no wrapper key" like any other falsy value.
    """
    labels = dict(DEFAULT_OPTIONS["labels"])
    for layer in layers:
        if not layer:
            continue
        if not isinstance(layer, Mapping):
            raise InvalidOption("labels must be a mapping")
        for key, value in layer.items():
            name = LABEL_ALIASES.get(key, key)
            if name not in labels:
                raise InvalidOption(f"Unknown label {key!r}")
            if value is None and name != "meta":
                continue
            labels[name] = value
    return labels


def parse_sort_arg(raw: str | None) -> list[tuple[str, int]]:
    """``"name,-created_at"`` -> ``[("name", 1), ("created_at", -1)]``"""
    out: list[tuple[str, int]] = []
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("-"):
            field, direction = part[1:].strip(), DESCENDING
        else:
            field, direction = part.lstrip("+").strip(), ASCENDING
        if field:
            out.append((field, direction))
    return out


def pagination_options_from_args(
    args,
    page_key: str = "page",
    limit_key: str = "limit",
    sort_key: str = "sort",
) -> dict[str, Any]:
    """Pick pagination options out of a query-string style mapping.

    Only keys present in ``args`` end up in the result, so defaults still
    apply for everything the request left out.
    """
    options: dict[str, Any] = {}

    page = args.get(page_key)
    if page not in (None, ""):
        options["page"] = page

    limit = args.get(limit_key)
    if limit not in (None, ""):
        options["limit"] = limit

    sort = parse_sort_arg(args.get(sort_key))
    if sort:
        options["sort"] = sort

    return options
