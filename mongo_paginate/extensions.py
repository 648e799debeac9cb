from __future__ import annotations

from pymongo import MongoClient
from flask import current_app

from mongo_paginate.config import aggregate_options_from_config, paginate_defaults_from_config
from mongo_paginate.utils.executor import AggregationExecutor
from mongo_paginate.utils.pagination import Paginator


def get_mongo_client() -> MongoClient:
    client = current_app.extensions.get("mongo_client")
    if client is None:
        raise RuntimeError("Mongo client is not initialized. Call init_mongo(app) inside create_app().")
    return client


def get_db():
    client = get_mongo_client()
    return client[current_app.config["MONGO_DB_NAME"]]


def get_paginator(collection) -> Paginator:
    """Paginator bound to ``collection`` with the app-wide defaults applied."""
    executor = AggregationExecutor(collection, **aggregate_options_from_config(current_app.config))
    return Paginator(executor, current_app.extensions["paginate_defaults"])


def init_mongo(app, client=None):
    if client is None:
        client = MongoClient(app.config["MONGO_URI"], serverSelectionTimeoutMS=5000)
        # fail fast if mongo not reachable
        client.admin.command("ping")

    app.extensions["mongo_client"] = client
    app.extensions["paginate_defaults"] = paginate_defaults_from_config(app.config)
