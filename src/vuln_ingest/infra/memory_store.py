from __future__ import annotations

from threading import Lock
from typing import Sequence

from ..core.domain.models import VulnerabilityRecord
from ..core.ports.storage_port import VulnerabilityStorePort


class InMemoryVulnerabilityStore(VulnerabilityStorePort):
    """Process-local store with the same keying and ordering rules as the SQL store."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], VulnerabilityRecord] = {}
        self._lock = Lock()

    def upsert(self, records: Sequence[VulnerabilityRecord]) -> None:
        with self._lock:
            for r in records:
                self._rows[r.key] = r

    def query_by_severity(self, severity: str) -> Sequence[VulnerabilityRecord]:
        with self._lock:
            matches = [r for r in self._rows.values() if r.severity == severity]
        return sorted(matches, key=lambda r: (r.scan_time is not None, r.scan_time), reverse=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def close(self) -> None:
        pass
