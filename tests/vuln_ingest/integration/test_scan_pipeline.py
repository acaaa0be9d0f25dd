from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from dependency_injector import providers

from vuln_ingest.app.container import Container
from vuln_ingest.config.settings import AppConfig
from vuln_ingest.core.domain.errors import ScanFailedError

SEARCH_URL = "https://api.github.test/search/code"
CONTENTS = "https://api.github.test/repos/o/r/contents"


@pytest.fixture
def env(mock_http, clock):
    """Container wired end to end with the memory store and a mocked GitHub."""
    files: dict[str, tuple[int, bytes]] = {}
    search_items: list[dict] = []
    requests: list[httpx.Request] = []

    def handler(req: httpx.Request) -> httpx.Response:
        requests.append(req)
        url = str(req.url)
        if url.startswith(SEARCH_URL):
            return httpx.Response(200, json={"total_count": len(search_items), "items": search_items})
        status, body = files.get(url, (404, b"Not Found"))
        return httpx.Response(status, content=body)

    def add_file(path: str, body: bytes, status: int = 200) -> None:
        url = f"{CONTENTS}/{path}"
        search_items.append({"name": path.rsplit("/", 1)[-1], "path": path, "url": url})
        files[url] = (status, body)

    def downloads_of(path: str) -> int:
        return sum(1 for r in requests if str(r.url) == f"{CONTENTS}/{path}")

    c = Container()
    c.config.from_pydantic(AppConfig(
        github_token="ghp_test", search_url=SEARCH_URL, storage_backend="memory", concurrency=2
    ))
    c.http_client.override(providers.Object(mock_http(handler)))
    c.clock.override(providers.Object(clock))
    yield SimpleNamespace(container=c, add_file=add_file, downloads_of=downloads_of)
    c.shutdown_resources()


def test_scan_then_query(env, make_scan_file, make_vuln):
    env.add_file("scans/a.json", make_scan_file([make_vuln("CVE-1", "HIGH")]))
    env.add_file("scans/b.json", make_scan_file([make_vuln("CVE-1", "HIGH"), make_vuln("CVE-2", "LOW")]))
    env.add_file("scans/c.json", b"garbage")

    summary = env.container.scan_uc().execute("o/r")

    assert summary.processed_files == 2
    assert sorted(summary.source_files) == ["scans/a.json", "scans/b.json"]
    assert [f.path for f in summary.failed_files] == ["scans/c.json"]

    high = env.container.query_uc().execute("HIGH")
    assert sorted(r.source_file for r in high) == ["scans/a.json", "scans/b.json"]
    assert {r.scan_time for r in high} == {summary.scan_time}
    assert list(env.container.query_uc().execute("MEDIUM")) == []
    # Malformed content is not downloaded again
    assert env.downloads_of("scans/c.json") == 1


def test_missing_file_is_retried_then_fails_scan(env, clock):
    env.add_file("scans/gone.json", b"Not Found", status=404)

    with pytest.raises(ScanFailedError) as ei:
        env.container.scan_uc().execute("o/r")

    assert ei.value.failures[0].kind == "status"
    assert env.downloads_of("scans/gone.json") == 3
    assert clock.sleeps == [1.0, 2.0]


def test_rescan_is_idempotent(env, make_scan_file, make_vuln):
    env.add_file("scans/a.json", make_scan_file([make_vuln("CVE-1", "HIGH")]))

    env.container.scan_uc().execute("o/r")
    env.container.scan_uc().execute("o/r")

    assert len(env.container.query_uc().execute("HIGH")) == 1
