from __future__ import annotations

from datetime import datetime, timezone

import pytest

from vuln_ingest.core.domain.errors import ConfigurationError
from vuln_ingest.core.domain.models import VulnerabilityRecord
from vuln_ingest.core.usecases.query_vulnerabilities import QueryVulnerabilitiesUseCase
from vuln_ingest.infra.memory_store import InMemoryVulnerabilityStore


@pytest.fixture
def store():
    s = InMemoryVulnerabilityStore()
    t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    s.upsert([
        VulnerabilityRecord(id="CVE-2024-1234", severity="HIGH", source_file="a.json", scan_time=t),
        VulnerabilityRecord(id="CVE-2024-5678", severity="MEDIUM", source_file="a.json", scan_time=t),
        VulnerabilityRecord(id="CVE-2024-9012", severity="HIGH", source_file="b.json", scan_time=t),
    ])
    return s


def test_filter_by_severity(store):
    uc = QueryVulnerabilitiesUseCase(store)
    result = uc.execute("HIGH")
    assert len(result) == 2
    assert all(r.severity == "HIGH" for r in result)
    assert len(uc.execute("MEDIUM")) == 1


def test_unused_severity_returns_empty(store):
    assert list(QueryVulnerabilitiesUseCase(store).execute("LOW")) == []


def test_severity_is_case_sensitive(store):
    assert list(QueryVulnerabilitiesUseCase(store).execute("high")) == []


def test_empty_severity_rejected(store):
    with pytest.raises(ConfigurationError):
        QueryVulnerabilitiesUseCase(store).execute("")
