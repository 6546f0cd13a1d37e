# Rev 0.1.0
# src/sitedash/repositories/proxy_store.py
"""
Record store behind a same-origin HTTP proxy that exposes each sheet as a
REST collection:

  GET    {base}/{sheet}[?Field=value]       -> [...] or {"data": [...]}
  POST   {base}/{sheet}   {"data": [...]}   -> {"created": n}
  PATCH  {base}/{sheet}?Field=value {"data": {...}} -> {"updated": n}
  DELETE {base}/{sheet}?Field=value         -> {"deleted": n}
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional
from urllib.parse import quote

from sitedash.repositories.http_store import HttpRecordStore, as_params
from sitedash.repositories.record_store import Record, build_match, matches

logger = logging.getLogger("sitedash.repositories.proxy")


class ProxyStore(HttpRecordStore):
    name = "sheet proxy"

    def _url(self, collection: str) -> str:
        return f"{self.base_url}/{quote(collection, safe='')}"

    def _unwrap_rows(self, payload: Any, *, collection: str, url: str) -> List[Record]:
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        return self._rows(payload, collection=collection, url=url)

    def list(self, collection: str) -> List[Record]:
        url = self._url(collection)
        payload = self._request("GET", url, collection=collection)
        return self._unwrap_rows(payload, collection=collection, url=url)

    def query(self, collection: str, field: str, value: Any) -> List[Record]:
        url = self._url(collection)
        payload = self._request("GET", url, collection=collection, params=as_params({field: value}))
        rows = self._unwrap_rows(payload, collection=collection, url=url)
        # an older proxy ignores unknown params and returns everything
        return [r for r in rows if matches(r, {field: value})]

    def insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        rows = [dict(r) for r in records]
        if not rows:
            return 0
        url = self._url(collection)
        payload = self._request("POST", url, collection=collection, json={"data": rows})
        created = self._count(payload, "created", collection=collection, url=url)
        logger.info("Proxy inserted %s/%s row(s) into %s", created, len(rows), collection)
        return created

    def update(
        self,
        collection: str,
        match_field: str,
        match_value: Any,
        patch: Mapping[str, Any],
        *,
        extra_match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        url = self._url(collection)
        payload = self._request(
            "PATCH", url, collection=collection,
            params=as_params(build_match(match_field, match_value, extra_match)),
            json={"data": dict(patch)},
        )
        return self._count(payload, "updated", collection=collection, url=url)

    def delete(self, collection: str, match_field: str, match_value: Any) -> int:
        url = self._url(collection)
        payload = self._request(
            "DELETE", url, collection=collection, params=as_params({match_field: match_value}),
        )
        return self._count(payload, "deleted", collection=collection, url=url)
