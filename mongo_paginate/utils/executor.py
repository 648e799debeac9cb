from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any

COUNT_FIELD = "totalDocs"


def _count_stage() -> dict:
    return {"$count": COUNT_FIELD}


def _count_from(records: list[dict]) -> int:
    # $count emits nothing at all for an empty result set
    if not records:
        return 0
    return int(records[0].get(COUNT_FIELD, 0))


class AggregationExecutor:
    """Runs pipelines against a synchronous pymongo collection.

    Extra keyword arguments (``maxTimeMS``, ``allowDiskUse``, ``collation``...)
    are passed to every ``aggregate`` call.
    """

    def __init__(self, collection, **aggregate_options: Any):
        self.collection = collection
        self.aggregate_options = aggregate_options

    def count(self, pipeline: list[dict]) -> int:
        cursor = self.collection.aggregate([*pipeline, _count_stage()], **self.aggregate_options)
        return _count_from(list(cursor))

    def fetch(self, pipeline: list[dict]) -> list[dict]:
        cursor = self.collection.aggregate(list(pipeline), **self.aggregate_options)
        return list(cursor)

    def count_and_fetch(self, base: list[dict], augmented: list[dict]) -> tuple[int, list[dict]]:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="paginate") as pool:
            total_future = pool.submit(self.count, base)
            docs_future = pool.submit(self.fetch, augmented)
            return total_future.result(), docs_future.result()


class AsyncAggregationExecutor:
    """Same contract as AggregationExecutor for a pymongo ``AsyncCollection``."""

    def __init__(self, collection, **aggregate_options: Any):
        self.collection = collection
        self.aggregate_options = aggregate_options

    async def count(self, pipeline: list[dict]) -> int:
        cursor = await self.collection.aggregate([*pipeline, _count_stage()], **self.aggregate_options)
        return _count_from(await cursor.to_list(length=1))

    async def fetch(self, pipeline: list[dict]) -> list[dict]:
        cursor = await self.collection.aggregate(list(pipeline), **self.aggregate_options)
        return await cursor.to_list(length=None)

    async def count_and_fetch(self, base: list[dict], augmented: list[dict]) -> tuple[int, list[dict]]:
        tasks = [
            asyncio.ensure_future(self.count(base)),
            asyncio.ensure_future(self.fetch(augmented)),
        ]
        try:
            total, docs = await asyncio.gather(*tasks)
        except BaseException:
            # gather leaves the surviving side running; stop it
            for task in tasks:
                task.cancel()
            raise
        return total, docs
