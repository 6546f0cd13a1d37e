# Rev 0.1.0
# src/sitedash/repositories/sheetdb_store.py
"""
Record store backed by a SheetDB-style spreadsheet-as-a-database proxy.

  GET    {base}?sheet=Tasks&cache=<ms>            all rows
  GET    {base}/search?sheet=Tasks&ProjectID=X    filtered rows
  POST   {base}?sheet=Tasks     {"data": [...]}   -> {"created": n}
  PATCH  {base}/{col}/{val}?sheet=Tasks {"data": {...}} -> {"updated": n}
  DELETE {base}/{col}/{val}?sheet=Tasks           -> {"deleted": n}
"""
from __future__ import annotations

import logging
import time
from typing import Any, Iterable, List, Mapping, Optional
from urllib.parse import quote

from sitedash.repositories.http_store import HttpRecordStore, as_params
from sitedash.repositories.record_store import Record, build_match, cell_text, matches

logger = logging.getLogger("sitedash.repositories.sheetdb")


class SheetDBStore(HttpRecordStore):
    name = "SheetDB"

    def _path_for(self, criteria: Mapping[str, Any]) -> str:
        segments = []
        for col, val in criteria.items():
            segments.append(quote(str(col), safe=""))
            segments.append(quote(cell_text(val), safe=""))
        return f"{self.base_url}/" + "/".join(segments)

    def list(self, collection: str) -> List[Record]:
        # The proxy caches GETs; the timestamp forces a fresh read.
        params = {"sheet": collection, "cache": str(time.time_ns() // 1_000_000)}
        payload = self._request("GET", self.base_url, collection=collection, params=params)
        return self._rows(payload, collection=collection, url=self.base_url)

    def query(self, collection: str, field: str, value: Any) -> List[Record]:
        url = f"{self.base_url}/search"
        params = {"sheet": collection, **as_params({field: value})}
        payload = self._request("GET", url, collection=collection, params=params)
        # search is case-insensitive and wildcard-aware; keep only exact matches
        return [r for r in self._rows(payload, collection=collection, url=url) if matches(r, {field: value})]

    def insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        rows = [dict(r) for r in records]
        if not rows:
            return 0
        payload = self._request(
            "POST", self.base_url, collection=collection,
            params={"sheet": collection}, json={"data": rows},
        )
        created = self._count(payload, "created", collection=collection, url=self.base_url)
        logger.info("SheetDB inserted %s/%s row(s) into %s", created, len(rows), collection)
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
        url = self._path_for(build_match(match_field, match_value, extra_match))
        payload = self._request(
            "PATCH", url, collection=collection,
            params={"sheet": collection}, json={"data": dict(patch)},
        )
        return self._count(payload, "updated", collection=collection, url=url)

    def delete(self, collection: str, match_field: str, match_value: Any) -> int:
        url = self._path_for({match_field: match_value})
        payload = self._request("DELETE", url, collection=collection, params={"sheet": collection})
        return self._count(payload, "deleted", collection=collection, url=url)
