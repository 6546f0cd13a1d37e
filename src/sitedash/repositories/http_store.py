# Rev 0.1.0
# src/sitedash/repositories/http_store.py
"""Shared httpx plumbing for the HTTP-backed record stores."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from sitedash.errors import FormatError, StoreUnreachableError, TransportError
from sitedash.repositories.record_store import Record, RecordStore

logger = logging.getLogger("sitedash.repositories.http")

DEFAULT_TIMEOUT_SECONDS = 15.0


class HttpRecordStore(RecordStore):
    """
    Base for stores reached over HTTP.
    Subclasses build URLs and payloads; this class owns the client, the
    timeout, and the mapping of httpx failures onto sitedash.errors.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        if not base_url:
            raise ValueError(f"{type(self).__name__} requires a base URL")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers=dict(headers or {}),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # --- transport ------------------------------------------------------------

    def _request(self, method: str, url: str, *, collection: str, **kwargs: Any) -> Any:
        """Issue one request and return the decoded JSON body (None when empty)."""
        logger.debug("%s %s %s (sheet=%s)", self.name, method, url, collection)
        try:
            resp = self._client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            logger.exception("%s timed out calling %s", self.name, url)
            raise StoreUnreachableError(
                f"{self.name} did not answer within {self.timeout:g}s",
                collection=collection, url=url,
            ) from e
        except httpx.ConnectError as e:
            logger.exception("%s unreachable at %s", self.name, url)
            raise StoreUnreachableError(
                f"Cannot reach {self.name}: {e}", collection=collection, url=url,
            ) from e
        except httpx.RequestError as e:
            logger.exception("Network error calling %s", url)
            raise TransportError(
                f"Network error talking to {self.name}: {e}", collection=collection, url=url,
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = _error_detail(e.response)
            logger.error("%s returned HTTP %s for %s: %s", self.name, status, url, detail)
            raise TransportError(
                f"{self.name} request failed (HTTP {status}): {detail}",
                status_code=status, collection=collection, url=url,
            ) from e

        if not resp.content.strip():
            return None
        try:
            return resp.json()
        except ValueError as e:
            logger.exception("Failed to decode %s JSON from %s", self.name, url)
            raise FormatError(
                f"{self.name} sent a response that is not JSON", collection=collection, url=url,
            ) from e

    # --- payload shape checks -------------------------------------------------

    def _rows(self, payload: Any, *, collection: str, url: str = "") -> List[Record]:
        if not isinstance(payload, list):
            raise FormatError(
                f"Expected a list of rows from {self.name}, got {type(payload).__name__}",
                collection=collection, url=url,
            )
        rows: List[Record] = []
        for i, item in enumerate(payload):
            if not isinstance(item, dict):
                logger.warning("Skipping non-row item at index %s in %s payload: %r", i, collection, type(item))
                continue
            rows.append(item)
        return rows

    def _count(self, payload: Any, key: str, *, collection: str, url: str = "") -> int:
        value = payload.get(key) if isinstance(payload, dict) else None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise FormatError(
                f"{self.name} response has no usable '{key}' count: {payload!r}",
                collection=collection, url=url,
            ) from None


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase or "Unknown error"
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return resp.reason_phrase or "Unknown error"


def as_params(criteria: Mapping[str, Any]) -> Dict[str, str]:
    return {k: "" if v is None else str(v).strip() for k, v in criteria.items()}
