"""tests/vuln_ingest/conftest.py

Common fixtures for the entire test suite.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable

import httpx
import pytest

from vuln_ingest.infra.http_client import HttpClient


class RecordingClock:
    """ClockPort that never blocks: records requested sleeps and advances a fake time."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.sleeps: list[float] = []
        self._lock = Lock()

    def now(self) -> datetime:
        return self._now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self._now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> RecordingClock:
    return RecordingClock()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep developer environment variables and .env files out of the tests."""
    for name in (
        "GITHUB_API", "GITHUB_API_TOKEN", "MAX_RETRIES", "CONCURRENCY",
        "DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME",
        "VULN_INGEST_GITHUB_TOKEN", "VULN_INGEST_STORAGE_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def scan_file(*blocks: list[dict]) -> bytes:
    """Serialize blocks of vulnerability dicts into the scan result file format."""
    return json.dumps([{"scanResults": {"vulnerabilities": list(b)}} for b in blocks]).encode("utf-8")


def vuln(id: str = "CVE-2024-0001", severity: str = "HIGH", **fields) -> dict:
    data = {
        "id": id,
        "severity": severity,
        "cvss": 8.5,
        "status": "fixed",
        "package_name": "openssl",
        "current_version": "1.1.1t-r0",
        "fixed_version": "1.1.1u-r0",
        "description": "Buffer overflow",
        "published_date": "2024-01-15T00:00:00Z",
        "link": "https://nvd.nist.gov/vuln/detail/CVE-2024-0001",
        "risk_factors": ["Remote execution", "High severity"],
    }
    data.update(fields)
    return data


@pytest.fixture
def make_vuln():
    return vuln


@pytest.fixture
def make_scan_file():
    return scan_file


@pytest.fixture
def mock_http():
    """Factory building an HttpClient whose requests are answered by handler."""
    clients: list[HttpClient] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClient:
        hc = HttpClient(timeout_seconds=1.0)
        hc._client.close()
        hc._client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)
        clients.append(hc)
        return hc

    yield _make
    for hc in clients:
        hc.close()
