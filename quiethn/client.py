from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from quiethn.errors import DecodeError, TransportError
from quiethn.models import RawItem

log = logging.getLogger(__name__)

API_BASE = "https://hacker-news.firebaseio.com/v0"

HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "User-Agent": "quiethn/0.1 (+https://news.ycombinator.com/)",
}


class HnClient:
    """
    Thin wrapper around the Hacker News Firebase API.

    Both fetch methods are blocking and keep no state between calls, so a
    single instance can be shared by every worker thread of the resolver.
    httpx.Client pools connections and is safe to use from many threads.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        api_base: str = API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers=HEADERS,
        )

    def fetch_top_ids(self) -> list[int]:
        """
        Return the ids of the current front page, best ranked first.

        GET /v0/topstories.json
        """
        url = f"{self.api_base}/topstories.json"
        log.info("Loading top stories ids from %s", url)
        data = self._get_json(url)
        if not isinstance(data, list):
            raise DecodeError(f"Unexpected response for topstories: {data!r:.200}")

        try:
            return [int(raw) for raw in data]
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Non integer id in topstories: {exc}") from exc

    def fetch_item(self, item_id: int) -> RawItem:
        """
        Load one item (story, comment, job, ...) by id.

        GET /v0/item/<id>.json

        The API answers `null` for ids that do not exist, which is reported
        as a DecodeError like any other unusable payload.
        """
        url = f"{self.api_base}/item/{item_id}.json"
        log.debug("Loading item %s from %s", item_id, url)
        data = self._get_json(url)
        if not isinstance(data, dict):
            raise DecodeError(f"Item {item_id} has no usable payload: {data!r:.200}")

        try:
            return RawItem.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"Malformed item {item_id}: {exc}") from exc

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HnClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get_json(self, url: str) -> Any:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"GET {url} returned invalid JSON: {exc}") from exc
