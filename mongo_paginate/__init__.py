import logging

from flask import Flask

from mongo_paginate.config import Config
from mongo_paginate.errors import InvalidLimit, InvalidPage, PaginationError
from mongo_paginate.extensions import init_mongo
from mongo_paginate.utils.executor import AggregationExecutor, AsyncAggregationExecutor
from mongo_paginate.utils.options import NO_LIMIT
from mongo_paginate.utils.pagination import PageResult, Paginator, paginate, paginate_async


def create_app(config_object=None, mongo_client=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    logging.getLogger(__name__).setLevel(app.config.get("LOG_LEVEL", "INFO"))

    init_mongo(app, mongo_client)

    # Import blueprints inside the factory to avoid circular imports
    from mongo_paginate.blueprints.documents import documents_bp

    app.register_blueprint(documents_bp)

    return app


__all__ = [
    "AggregationExecutor",
    "AsyncAggregationExecutor",
    "InvalidLimit",
    "InvalidPage",
    "NO_LIMIT",
    "PageResult",
    "PaginationError",
    "Paginator",
    "create_app",
    "paginate",
    "paginate_async",
]
