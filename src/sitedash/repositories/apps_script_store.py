# Rev 0.1.0
# src/sitedash/repositories/apps_script_store.py
"""
Record store talking straight to a spreadsheet macro web app (the /exec URL
of a deployed Apps Script).

Reads:  GET  {exec}?action=read&sheet=Tasks
Writes: POST {exec} with an action envelope:
          {"action": "insert", "sheet": ..., "records": [...]}
          {"action": "update", "sheet": ..., "match": {...}, "patch": {...}}
          {"action": "delete", "sheet": ..., "match": {...}}
Every answer is {"status": "success", "data"|"count": ...}
             or {"status": "error", "message": "..."}.
The endpoint answers through a redirect, which the client follows.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sitedash.errors import FormatError, StoreRejectedError
from sitedash.repositories.http_store import HttpRecordStore
from sitedash.repositories.record_store import Record, build_match

logger = logging.getLogger("sitedash.repositories.apps_script")


class AppsScriptStore(HttpRecordStore):
    name = "Apps Script"

    def _unwrap(self, payload: Any, *, collection: str) -> Dict[str, Any]:
        if not isinstance(payload, dict) or "status" not in payload:
            raise FormatError(
                f"Unexpected {self.name} payload: {payload!r}", collection=collection, url=self.base_url,
            )
        if str(payload["status"]).lower() != "success":
            message = payload.get("message") or "Unknown error"
            logger.error("%s rejected request on %s: %s", self.name, collection, message)
            raise StoreRejectedError(str(message), collection=collection, url=self.base_url)
        return payload

    def _post(self, envelope: Dict[str, Any], *, collection: str) -> int:
        payload = self._request("POST", self.base_url, collection=collection, json=envelope)
        body = self._unwrap(payload, collection=collection)
        return self._count(body, "count", collection=collection, url=self.base_url)

    def list(self, collection: str) -> List[Record]:
        payload = self._request(
            "GET", self.base_url, collection=collection,
            params={"action": "read", "sheet": collection},
        )
        body = self._unwrap(payload, collection=collection)
        return self._rows(body.get("data"), collection=collection, url=self.base_url)

    def insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        rows = [dict(r) for r in records]
        if not rows:
            return 0
        count = self._post({"action": "insert", "sheet": collection, "records": rows}, collection=collection)
        logger.info("%s inserted %s/%s row(s) into %s", self.name, count, len(rows), collection)
        return count

    def update(
        self,
        collection: str,
        match_field: str,
        match_value: Any,
        patch: Mapping[str, Any],
        *,
        extra_match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        envelope = {
            "action": "update",
            "sheet": collection,
            "match": build_match(match_field, match_value, extra_match),
            "patch": dict(patch),
        }
        return self._post(envelope, collection=collection)

    def delete(self, collection: str, match_field: str, match_value: Any) -> int:
        envelope = {"action": "delete", "sheet": collection, "match": {match_field: match_value}}
        return self._post(envelope, collection=collection)
