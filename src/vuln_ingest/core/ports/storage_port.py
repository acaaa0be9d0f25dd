from __future__ import annotations

from typing import Protocol, Sequence

from ..domain.models import VulnerabilityRecord


class VulnerabilityStorePort(Protocol):
    def upsert(self, records: Sequence[VulnerabilityRecord]) -> None:
        """Write records atomically, keyed by (id, source_file).

        Re-applying the same batch leaves storage unchanged; on key conflict every
        non-key field takes the incoming value. Raises StorageError on failure.
        """

    def query_by_severity(self, severity: str) -> Sequence[VulnerabilityRecord]:
        """Return records whose severity equals severity exactly, newest scan_time first."""
        ...

    def close(self) -> None:
        """Release connections held by the store."""
