"""
Unit tests for the cached web request worker.
"""

import json
import time

import pytest
import responses

from dotnetkit.core.events import EventStream, WebRequestCacheHit, WebRequestSent
from dotnetkit.core.exceptions import WebRequestError
from dotnetkit.core.locking import LockManager
from dotnetkit.core.web import WebRequestWorker

SCRIPT_URL = "https://dot.net/v1/dotnet-install.sh"


@pytest.fixture
def web_worker(tmp_path):
    stream = EventStream()
    stream.seen = []
    stream.subscribe(stream.seen.append)
    return WebRequestWorker(
        tmp_path / "cache", LockManager(tmp_path / "lock"), ttl=60, event_stream=stream
    )


class TestWebRequestWorker:
    """Tests for WebRequestWorker."""

    @responses.activate
    def test_fetches_and_caches(self, web_worker):
        """The first call hits the network and the second is served from cache."""
        responses.add(responses.GET, SCRIPT_URL, body="#!/bin/bash\necho hi\n")

        first = web_worker.get_cached_data(SCRIPT_URL)
        second = web_worker.get_cached_data(SCRIPT_URL)

        assert first == second == "#!/bin/bash\necho hi\n"
        assert len(responses.calls) == 1
        names = [e.event_name for e in web_worker.event_stream.seen]
        assert names == ["WebRequestSent", "WebRequestCacheHit"]

    @responses.activate
    def test_cache_entry_format(self, web_worker):
        """Cache entries record the url, fetch time and payload."""
        responses.add(responses.GET, SCRIPT_URL, body="payload")

        web_worker.get_cached_data(SCRIPT_URL)

        cache_file = web_worker.cache_dir / f"{WebRequestWorker.cache_key(SCRIPT_URL)}.json"
        entry = json.loads(cache_file.read_text())
        assert entry["url"] == SCRIPT_URL
        assert entry["data"] == "payload"
        assert entry["fetched_at"] <= time.time()

    @responses.activate
    def test_expired_entry_refetched(self, web_worker):
        """Entries older than the TTL are refreshed."""
        responses.add(responses.GET, SCRIPT_URL, body="new")
        cache_file = web_worker.cache_dir / f"{WebRequestWorker.cache_key(SCRIPT_URL)}.json"
        cache_file.parent.mkdir(parents=True)
        cache_file.write_text(
            json.dumps({"url": SCRIPT_URL, "fetched_at": time.time() - 120, "data": "old"})
        )

        assert web_worker.get_cached_data(SCRIPT_URL) == "new"
        assert len(responses.calls) == 1

    @responses.activate
    def test_corrupt_entry_refetched(self, web_worker):
        """Unreadable cache entries are ignored."""
        responses.add(responses.GET, SCRIPT_URL, body="fresh")
        cache_file = web_worker.cache_dir / f"{WebRequestWorker.cache_key(SCRIPT_URL)}.json"
        cache_file.parent.mkdir(parents=True)
        cache_file.write_text("{broken")

        assert web_worker.get_cached_data(SCRIPT_URL) == "fresh"

    @responses.activate
    def test_http_error_raises(self, web_worker):
        """Error statuses raise WebRequestError and are not cached."""
        responses.add(responses.GET, SCRIPT_URL, status=500)

        with pytest.raises(WebRequestError, match="Request to https://dot.net"):
            web_worker.get_cached_data(SCRIPT_URL)

        assert not any(web_worker.cache_dir.glob("*.json"))

    @responses.activate
    def test_get_cached_json(self, web_worker):
        url = "https://example.test/releases-index.json"
        responses.add(responses.GET, url, json={"releases-index": []})

        assert web_worker.get_cached_json(url) == {"releases-index": []}

    @responses.activate
    def test_get_cached_json_invalid(self, web_worker):
        url = "https://example.test/releases-index.json"
        responses.add(responses.GET, url, body="<html>")

        with pytest.raises(WebRequestError, match="invalid JSON"):
            web_worker.get_cached_json(url)

    def test_cache_hit_event_types(self, web_worker):
        """Cache hits are a kind of request event."""
        assert issubclass(WebRequestCacheHit, WebRequestSent)
