from __future__ import annotations

import httpx
import pytest

from vuln_ingest.core.domain.errors import RetryExhaustedError, UpstreamStatusError
from vuln_ingest.core.domain.models import FileLocator
from vuln_ingest.core.retry import RetryPolicy, linear_backoff
from vuln_ingest.infra.github_fetcher import GitHubFileFetcher

LOCATOR = FileLocator("a.json", "scans/a.json", "https://api.github.com/repos/o/r/contents/scans/a.json")


def _fetcher(http, clock) -> GitHubFileFetcher:
    return GitHubFileFetcher(http, token="ghp_test", retry_policy=RetryPolicy(max_retries=2, backoff=linear_backoff(1.0), clock=clock))


def test_fetch_requests_raw_content(mock_http, clock):
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["url"] = str(req.url)
        seen["accept"] = req.headers["Accept"]
        seen["auth"] = req.headers["Authorization"]
        return httpx.Response(200, content=b"[]")

    assert _fetcher(mock_http(handler), clock).fetch(LOCATOR) == b"[]"
    assert seen == {
        "url": LOCATOR.url,
        "accept": "application/vnd.github.v3.raw",
        "auth": "Bearer ghp_test",
    }


def test_fetch_retries_transient_failures(mock_http, clock):
    attempts = []

    def handler(req: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ReadTimeout("slow", request=req)
        if len(attempts) == 2:
            return httpx.Response(500, text="oops")
        return httpx.Response(200, content=b"[]")

    assert _fetcher(mock_http(handler), clock).fetch(LOCATOR) == b"[]"
    assert len(attempts) == 3
    assert clock.sleeps == [1.0, 2.0]


def test_fetch_reports_final_status_failure(mock_http, clock):
    calls = []

    def handler(req: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404, text="Not Found")

    with pytest.raises(RetryExhaustedError) as ei:
        _fetcher(mock_http(handler), clock).fetch(LOCATOR)

    assert len(calls) == 3
    assert ei.value.kind == "status"
    assert isinstance(ei.value.last_error, UpstreamStatusError)
    assert "download scans/a.json" in str(ei.value)


def test_fetch_reports_final_transport_failure(mock_http, clock):
    def handler(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=req)

    with pytest.raises(RetryExhaustedError) as ei:
        _fetcher(mock_http(handler), clock).fetch(LOCATOR)
    assert ei.value.kind == "transport"
