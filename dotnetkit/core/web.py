"""
Cached web fetches for dotnetkit.

Install scripts and release metadata change rarely but are requested on
every acquisition. WebRequestWorker keeps the last payload of each URL on
disk together with its fetch time and serves it without a request while it
is younger than the TTL.

Cache layout:
    <cache_dir>/<sha256 of url>.json : {"url": ..., "fetched_at": ..., "data": ...}
"""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from dotnetkit.core.events import EventStream, WebRequestCacheHit, WebRequestSent
from dotnetkit.core.exceptions import WebRequestError
from dotnetkit.core.filesystem import atomic_write
from dotnetkit.core.locking import LockManager

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class WebRequestWorker:
    """
    GETs text payloads through requests with a TTL disk cache.

    Attributes:
        cache_dir: Directory holding cached payloads
        lock_manager: Provides the per-entry cache lock
        timeout: Request timeout in seconds
        ttl: Seconds a cached payload stays fresh
    """

    def __init__(
        self,
        cache_dir: Path,
        lock_manager: LockManager,
        timeout: float = 30,
        ttl: float = DEFAULT_TTL_SECONDS,
        event_stream: Optional[EventStream] = None,
    ):
        self.cache_dir = Path(cache_dir)
        self.lock_manager = lock_manager
        self.timeout = timeout
        self.ttl = ttl
        self.event_stream = event_stream or EventStream()

    @staticmethod
    def cache_key(url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def _cache_file(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def _read_cache(self, cache_file: Path) -> Optional[dict]:
        if not cache_file.exists():
            return None
        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache entry {cache_file}: {e}")
            return None
        if not isinstance(entry, dict) or "data" not in entry:
            return None
        return entry

    def get_cached_data(self, url: str) -> str:
        """
        Return the payload at url, from cache when fresh.

        Args:
            url: Address to fetch

        Returns:
            Response body as text

        Raises:
            WebRequestError: If the request fails or returns an error status
        """
        key = self.cache_key(url)
        cache_file = self._cache_file(key)

        with self.lock_manager.cache_lock(key):
            entry = self._read_cache(cache_file)
            if entry is not None:
                age = time.time() - float(entry.get("fetched_at", 0))
                if 0 <= age < self.ttl:
                    self.event_stream.post(WebRequestCacheHit(url=url))
                    return entry["data"]

            self.event_stream.post(WebRequestSent(url=url))
            try:
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()
            except RequestException as e:
                logger.error(f"Request to {url} failed: {e}")
                raise WebRequestError(url, str(e)) from e

            data = response.text
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            atomic_write(
                cache_file,
                json.dumps({"url": url, "fetched_at": time.time(), "data": data}),
            )
            return data

    def get_cached_json(self, url: str) -> Any:
        """
        Return the payload at url parsed as JSON.

        Raises:
            WebRequestError: If the request fails or the body is not JSON
        """
        data = self.get_cached_data(url)
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise WebRequestError(url, f"invalid JSON: {e}") from e


__all__ = ["WebRequestWorker", "DEFAULT_TTL_SECONDS"]
