import argparse
import json

import pytest
from bson import json_util

import paginate_collection
from mongo_paginate import NO_LIMIT


def _args(**kwargs):
    defaults = {"page": 1, "limit": 12, "all": False, "sort": None, "fields": None, "flat": False}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def test_build_options_defaults():
    assert paginate_collection.build_options(_args()) == {"page": 1, "limit": 12}


def test_build_options_everything():
    options = paginate_collection.build_options(
        _args(page="3", all=True, sort="name,-rank", fields="name, rank", flat=True)
    )
    assert options == {
        "page": "3",
        "limit": NO_LIMIT,
        "sort": [("name", 1), ("rank", -1)],
        "projection": ["name", "rank"],
        "labels": {"meta": ""},
    }


def test_load_pipeline(tmp_path):
    path = tmp_path / "pipeline.json"
    path.write_text(json.dumps([{"$match": {"_id": {"$oid": "64b7f0c2a1b2c3d4e5f60718"}}}]))

    pipeline = paginate_collection.load_pipeline(str(path))
    assert str(pipeline[0]["$match"]["_id"]) == "64b7f0c2a1b2c3d4e5f60718"
    assert paginate_collection.load_pipeline(None) == []


def test_load_pipeline_requires_list(tmp_path):
    path = tmp_path / "pipeline.json"
    path.write_text(json.dumps({"$match": {}}))
    with pytest.raises(SystemExit):
        paginate_collection.load_pipeline(str(path))


def test_main_prints_page_with_config_defaults(monkeypatch, capsys, mongo_client, items):
    monkeypatch.setattr(paginate_collection, "MongoClient", lambda uri: mongo_client)
    monkeypatch.setattr(paginate_collection.Config, "PAGINATE_META_LABEL", "page_info")

    paginate_collection.main(
        ["--db", "paginate_test", "--collection", "items", "--page", "2", "--limit", "10", "--sort=-rank"]
    )
    result = json_util.loads(capsys.readouterr().out)

    assert set(result) == {"page_info", "docs"}
    assert result["page_info"]["totalDocs"] == 25
    assert result["page_info"]["nextPage"] == 3
    assert [d["rank"] for d in result["docs"]] == list(range(15, 5, -1))


def test_main_flat_flag(monkeypatch, capsys, mongo_client, items):
    monkeypatch.setattr(paginate_collection, "MongoClient", lambda uri: mongo_client)

    paginate_collection.main(["--db", "paginate_test", "--collection", "items", "--all", "--flat"])
    result = json_util.loads(capsys.readouterr().out)

    assert result["totalPages"] == 1
    assert len(result["docs"]) == 25


def test_main_rejects_bad_page(monkeypatch, mongo_client, items):
    monkeypatch.setattr(paginate_collection, "MongoClient", lambda uri: mongo_client)

    with pytest.raises(SystemExit) as exc:
        paginate_collection.main(["--db", "paginate_test", "--collection", "items", "--page=-2"])
    assert "Page number cannot be less than 1" in str(exc.value)
