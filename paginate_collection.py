import argparse
import logging
import os
from typing import Any, Dict, List, Optional

from bson import json_util
from pymongo import MongoClient

from mongo_paginate.config import (
    Config,
    aggregate_options_from_config,
    config_from_object,
    paginate_defaults_from_config,
)
from mongo_paginate.errors import PaginationError
from mongo_paginate.utils.executor import AggregationExecutor
from mongo_paginate.utils.options import NO_LIMIT, parse_sort_arg
from mongo_paginate.utils.pagination import Paginator


def get_db(uri: str, db_name: str) -> Any:
    client = MongoClient(uri)
    return client[db_name]


def load_pipeline(path: Optional[str]) -> List[Dict[str, Any]]:
    if not path:
        return []
    with open(path, "r", encoding="utf-8") as fh:
        pipeline = json_util.loads(fh.read())
    if not isinstance(pipeline, list):
        raise SystemExit("❌ pipeline file must contain a JSON array of stages.")
    return pipeline


def build_options(args: argparse.Namespace) -> Dict[str, Any]:
    options: Dict[str, Any] = {"page": args.page, "limit": NO_LIMIT if args.all else args.limit}
    if args.sort:
        options["sort"] = parse_sort_arg(args.sort)
    if args.fields:
        options["projection"] = [f.strip() for f in args.fields.split(",") if f.strip()]
    if args.flat:
        options["labels"] = {"meta": ""}
    return options


def main(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Print one page of an aggregation pipeline")
    p.add_argument("--uri", default=os.getenv("MONGO_URI", Config.MONGO_URI))
    p.add_argument("--db", default=Config.MONGO_DB_NAME)
    p.add_argument("--collection", required=True)
    p.add_argument("--pipeline", help="JSON file with the base pipeline (Extended JSON allowed)")
    p.add_argument("--page", default=1)
    p.add_argument("--limit", default=Config.PAGINATE_DEFAULT_LIMIT)
    p.add_argument("--all", action="store_true", help="Return every matching document")
    p.add_argument("--sort", help='e.g. "name,-created_at"')
    p.add_argument("--fields", help='comma separated projection, e.g. "name,email"')
    p.add_argument("--flat", action="store_true", help="Put metadata next to docs instead of nesting it")
    p.add_argument("--log-level", default=Config.LOG_LEVEL)
    args = p.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db = get_db(args.uri, args.db)
    config = config_from_object(Config)
    executor = AggregationExecutor(db[args.collection], **aggregate_options_from_config(config))
    paginator = Paginator(executor, paginate_defaults_from_config(config))

    try:
        result = paginator.paginate(load_pipeline(args.pipeline), build_options(args))
    except PaginationError as e:
        raise SystemExit(f"❌ {e.message}")

    print(json_util.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
