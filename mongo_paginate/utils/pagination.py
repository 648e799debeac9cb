from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from mongo_paginate.errors import InvalidLimit, InvalidPage, PaginationError
from mongo_paginate.utils.executor import AggregationExecutor, AsyncAggregationExecutor
from mongo_paginate.utils.options import (
    DEFAULT_OPTIONS,
    NO_LIMIT,
    coerce_limit,
    coerce_page,
    merge_options,
    normalize_projection,
    normalize_sort,
    resolve_labels,
)

logger = logging.getLogger(__name__)


@dataclass
class PageResult:
    total_docs: int
    limit: int
    page: int
    total_pages: int
    next_page: int | None
    prev_page: int | None
    has_next_page: bool
    has_prev_page: bool
    docs: list[dict] = field(default_factory=list)

    def meta(self, labels: Mapping[str, Any]) -> dict[str, Any]:
        return {
            labels["total_docs"]: self.total_docs,
            labels["limit"]: self.limit,
            labels["page"]: self.page,
            labels["total_pages"]: self.total_pages,
            labels["next_page"]: self.next_page,
            labels["prev_page"]: self.prev_page,
            labels["has_prev_page"]: self.has_prev_page,
            labels["has_next_page"]: self.has_next_page,
        }

    def to_dict(self, labels: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Render under the caller's labels.

        A truthy ``meta`` label nests the metadata under that key; a falsy one
        flattens it next to the docs.
        """
        labels = resolve_labels(labels)
        meta = self.meta(labels)
        if labels.get("meta"):
            return {labels["meta"]: meta, labels["docs"]: self.docs}
        return {**meta, labels["docs"]: self.docs}


def check_paginator(page: int, limit: int, error_messages: Mapping[str, Any]) -> None:
    if page <= 0:
        raise InvalidPage(error_messages["page"]["min"])
    if limit <= 0 and limit != NO_LIMIT:
        raise InvalidLimit(error_messages["limit"]["min"])


def build_pagination_stages(page: int, limit: int, sort=None, projection=None) -> list[dict]:
    """Stages appended after the caller's pipeline: $sort, $skip, $limit, $project."""
    stages: list[dict] = []

    sort = normalize_sort(sort)
    if sort:
        stages.append({"$sort": sort})

    if limit != NO_LIMIT:
        stages.append({"$skip": (page - 1) * limit})
        stages.append({"$limit": limit})

    projection = normalize_projection(projection)
    if projection:
        stages.append({"$project": projection})

    return stages


def get_total_pages(total_docs: int, limit: int) -> int:
    if limit == NO_LIMIT:
        return 1
    return math.ceil(total_docs / limit)


def get_next_page(docs_length: int, page: int, limit: int) -> int | None:
    # a full page is taken as a sign that another one follows
    if docs_length == limit:
        return page + 1
    return None


def get_prev_page(page: int) -> int | None:
    prev_page = page - 1
    if prev_page > 0:
        return prev_page
    return None


def build_page_result(total_docs: int, docs: list[dict], page: int, limit: int) -> PageResult:
    next_page = get_next_page(len(docs), page, limit)
    prev_page = get_prev_page(page)
    return PageResult(
        total_docs=total_docs,
        limit=limit,
        page=page,
        total_pages=get_total_pages(total_docs, limit),
        next_page=next_page,
        prev_page=prev_page,
        has_next_page=next_page is not None,
        has_prev_page=prev_page is not None,
        docs=docs,
    )


@dataclass
class _PreparedCall:
    page: int
    limit: int
    base: list[dict]
    augmented: list[dict]
    labels: dict[str, Any]


class Paginator:
    """Paginates aggregation pipelines through an executor.

    ``defaults`` is the process-level override layer: it sits between the
    built-in defaults and whatever a single call passes in.
    """

    def __init__(self, executor, defaults: Mapping[str, Any] | None = None):
        self.executor = executor
        self.defaults = merge_options(defaults)

    def resolve_options(self, options: Mapping[str, Any] | None = None, **overrides: Any) -> dict[str, Any]:
        return merge_options(DEFAULT_OPTIONS, self.defaults, options, overrides)

    def _prepare(self, pipeline, options, overrides) -> _PreparedCall:
        opts = self.resolve_options(options, **overrides)

        page = coerce_page(opts.get("page"))
        limit = coerce_limit(opts.get("limit"))

        try:
            check_paginator(page, limit, opts["error_messages"])
            labels = resolve_labels(
                self.defaults.get("labels"), (options or {}).get("labels"), overrides.get("labels")
            )
            stages = build_pagination_stages(page, limit, opts.get("sort"), opts.get("projection"))
        except PaginationError as e:
            logger.info("Rejected pagination request page=%r limit=%r: %s", opts.get("page"), opts.get("limit"), e)
            raise

        base = list(pipeline or [])
        logger.debug("Paginating page=%s limit=%s appended=%s", page, limit, stages)

        return _PreparedCall(page=page, limit=limit, base=base, augmented=[*base, *stages], labels=labels)

    def _finish(self, call: _PreparedCall, total_docs: int, docs: list[dict]) -> PageResult:
        result = build_page_result(total_docs, docs, call.page, call.limit)
        logger.debug(
            "Page %s/%s: %s of %s docs", result.page, result.total_pages, len(docs), total_docs
        )
        return result

    def get_page(self, pipeline, options: Mapping[str, Any] | None = None, **overrides: Any) -> PageResult:
        call = self._prepare(pipeline, options, overrides)
        total_docs, docs = self.executor.count_and_fetch(call.base, call.augmented)
        return self._finish(call, total_docs, docs)

    def paginate(self, pipeline, options: Mapping[str, Any] | None = None, **overrides: Any) -> dict[str, Any]:
        call = self._prepare(pipeline, options, overrides)
        total_docs, docs = self.executor.count_and_fetch(call.base, call.augmented)
        return self._finish(call, total_docs, docs).to_dict(call.labels)

    async def get_page_async(self, pipeline, options: Mapping[str, Any] | None = None, **overrides: Any) -> PageResult:
        call = self._prepare(pipeline, options, overrides)
        total_docs, docs = await self.executor.count_and_fetch(call.base, call.augmented)
        return self._finish(call, total_docs, docs)

    async def paginate_async(self, pipeline, options: Mapping[str, Any] | None = None, **overrides: Any) -> dict[str, Any]:
        call = self._prepare(pipeline, options, overrides)
        total_docs, docs = await self.executor.count_and_fetch(call.base, call.augmented)
        return self._finish(call, total_docs, docs).to_dict(call.labels)


def paginate(collection, pipeline, options: Mapping[str, Any] | None = None, defaults=None, **overrides: Any):
    return Paginator(AggregationExecutor(collection), defaults).paginate(pipeline, options, **overrides)


async def paginate_async(collection, pipeline, options: Mapping[str, Any] | None = None, defaults=None, **overrides: Any):
    paginator = Paginator(AsyncAggregationExecutor(collection), defaults)
    return await paginator.paginate_async(pipeline, options, **overrides)
