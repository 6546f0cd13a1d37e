# tests/test_sheetdb_store.py
from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from sitedash.errors import FormatError, StoreUnreachableError, TransportError
from sitedash.repositories.sheetdb_store import SheetDBStore

BASE = "https://sheetdb.example/api/v1/abc123"


def _store(handler) -> SheetDBStore:
    return SheetDBStore(BASE + "/", client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_requires_base_url():
    with pytest.raises(ValueError):
        SheetDBStore("")


def test_list_busts_cache_and_names_sheet():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"ProjectID": "HT-01"}, "junk", {"ProjectID": "HT-02"}])

    rows = _store(handler).list("Projects")
    assert rows == [{"ProjectID": "HT-01"}, {"ProjectID": "HT-02"}]
    req = seen[0]
    assert req.method == "GET"
    assert str(req.url).startswith(BASE + "?")
    assert req.url.params["sheet"] == "Projects"
    assert req.url.params["cache"].isdigit()


def test_query_uses_search_and_keeps_exact_matches():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/search")
        assert request.url.params["ProjectID"] == "HT-01"
        return httpx.Response(200, json=[{"ProjectID": "HT-01"}, {"ProjectID": "ht-01"}, {"ProjectID": "HT-010"}])

    assert _store(handler).query("Tasks", "ProjectID", "HT-01") == [{"ProjectID": "HT-01"}]


def test_insert_posts_data_envelope():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.params["sheet"] == "Tasks"
        body = json.loads(request.content)
        return httpx.Response(201, json={"created": len(body["data"]) - 1})

    assert _store(handler).insert("Tasks", [{"a": 1}, {"a": 2}, {"a": 3}]) == 2


def test_update_patches_column_value_path():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        assert request.url.raw_path.split(b"?")[0].endswith(b"/ProjectID/HT-01/TaskName/1.%20Understanding%20the%20System")
        assert json.loads(request.content) == {"data": {"Status": "Completed"}}
        return httpx.Response(200, json={"updated": 1})

    n = _store(handler).update(
        "Tasks", "ProjectID", "HT-01", {"Status": "Completed"},
        extra_match={"TaskName": "1. Understanding the System"},
    )
    assert n == 1


def test_delete_returns_deleted_count():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        assert request.url.path.endswith("/ProjectID/HT-01")
        return httpx.Response(200, json={"deleted": 23})

    assert _store(handler).delete("Tasks", "ProjectID", "HT-01") == 23


def test_timeout_is_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(StoreUnreachableError) as ei:
        _store(handler).list("Projects")
    assert ei.value.collection == "Projects"


def test_connect_error_is_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(StoreUnreachableError):
        _store(handler).list("Projects")


def test_http_error_carries_status_and_detail():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "Rate limit exceeded"})

    with pytest.raises(TransportError) as ei:
        _store(handler).list("Projects")
    assert not isinstance(ei.value, StoreUnreachableError)
    assert ei.value.status_code == 429
    assert "Rate limit exceeded" in str(ei.value)


def test_non_json_body_is_format_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(FormatError):
        _store(handler).list("Projects")


def test_object_instead_of_rows_is_format_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"rows": []})

    with pytest.raises(FormatError):
        _store(handler).list("Projects")


def test_missing_count_is_format_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True})

    with pytest.raises(FormatError):
        _store(handler).insert("Tasks", [{"a": 1}])
