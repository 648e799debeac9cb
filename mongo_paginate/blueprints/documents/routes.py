from __future__ import annotations

from bson import json_util
from bson.errors import BSONError
from flask import abort, current_app, jsonify, request

from mongo_paginate.blueprints.documents import documents_bp
from mongo_paginate.errors import PaginationError
from mongo_paginate.extensions import get_db, get_paginator
from mongo_paginate.utils.options import pagination_options_from_args

BODY_OPTION_KEYS = ("page", "limit", "sort", "projection", "labels")


def _collection_or_404(name: str):
    allowed = current_app.config.get("PAGINATE_ALLOWED_COLLECTIONS") or []
    if allowed and name not in allowed:
        abort(404)
    return get_db()[name]


def _ejson_response(payload, status: int = 200):
    return current_app.response_class(
        json_util.dumps(payload),
        status=status,
        mimetype="application/json",
    )


def _read_body() -> dict:
    raw = request.get_data(as_text=True)
    if not raw.strip():
        return {}
    try:
        body = json_util.loads(raw)
    except (ValueError, BSONError):
        abort(400, description="Request body is not valid Extended JSON.")
    if not isinstance(body, dict):
        abort(400, description="Request body must be a JSON object.")
    return body


@documents_bp.errorhandler(PaginationError)
def pagination_error(e: PaginationError):
    return jsonify({"error": e.message}), 400


@documents_bp.get("/<name>/documents")
def list_documents(name: str):
    coll = _collection_or_404(name)
    options = pagination_options_from_args(request.args)
    return _ejson_response(get_paginator(coll).paginate([], options))


@documents_bp.post("/<name>/aggregate")
def aggregate_documents(name: str):
    coll = _collection_or_404(name)
    body = _read_body()

    pipeline = body.get("pipeline") or []
    if not isinstance(pipeline, list):
        abort(400, description="pipeline must be a list of stages.")

    options = {key: body[key] for key in BODY_OPTION_KEYS if key in body}
    return _ejson_response(get_paginator(coll).paginate(pipeline, options))
