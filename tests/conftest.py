import mongomock
import pytest

from mongo_paginate import create_app
from mongo_paginate.config import Config


def _run_pipeline(docs, pipeline):
    """Just enough of $skip/$limit/$count to stand in for the server."""
    out = list(docs)
    for stage in pipeline:
        if "$skip" in stage:
            out = out[stage["$skip"]:]
        elif "$limit" in stage:
            out = out[:stage["$limit"]]
        elif "$count" in stage:
            out = [{stage["$count"]: len(out)}] if out else []
    return out


class FakeCollection:
    def __init__(self, docs=(), error=None):
        self.docs = list(docs)
        self.error = error
        self.calls = []

    def aggregate(self, pipeline, **kwargs):
        self.calls.append((list(pipeline), kwargs))
        if self.error is not None:
            raise self.error
        return iter(_run_pipeline(self.docs, pipeline))


class FakeAsyncCursor:
    def __init__(self, docs):
        self.docs = docs
        self.to_list_lengths = []

    async def to_list(self, length=None):
        self.to_list_lengths.append(length)
        return self.docs if length is None else self.docs[:length]


class FakeAsyncCollection(FakeCollection):
    async def aggregate(self, pipeline, **kwargs):
        self.calls.append((list(pipeline), kwargs))
        if self.error is not None:
            raise self.error
        return FakeAsyncCursor(_run_pipeline(self.docs, pipeline))


def make_docs(n):
    return [{"_id": i, "name": f"item-{i:02d}", "rank": n - i} for i in range(n)]


@pytest.fixture
def docs25():
    return make_docs(25)


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def items(mongo_client):
    coll = mongo_client["paginate_test"]["items"]
    coll.insert_many(make_docs(25))
    return coll


class PaginateTestConfig(Config):
    TESTING = True
    MONGO_DB_NAME = "paginate_test"
    PAGINATE_DEFAULT_LIMIT = 10
    PAGINATE_META_LABEL = "paginator"
    PAGINATE_MAX_TIME_MS = None
    PAGINATE_ALLOWED_COLLECTIONS = ["items"]


@pytest.fixture
def app(mongo_client, items):
    return create_app(PaginateTestConfig, mongo_client=mongo_client)


@pytest.fixture
def client(app):
    return app.test_client()
