from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class FileLocator:
    """One remote file returned by the code search: name, repository path, fetch URL."""

    name: str
    path: str
    url: str


@dataclass(frozen=True)
class VulnerabilityRecord:
    id: str
    severity: str
    cvss: float = 0.0
    status: str = ""
    package_name: str = ""
    current_version: str = ""
    fixed_version: Optional[str] = None
    description: str = ""
    published_date: Optional[datetime] = None
    link: Optional[str] = None
    risk_factors: tuple[str, ...] = field(default_factory=tuple)

    # Assigned by the pipeline, not read from the payload
    source_file: str = ""
    scan_time: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str]:
        return self.id, self.source_file

    def with_updates(self, **kwargs) -> "VulnerabilityRecord":
        return replace(self, **kwargs)


@dataclass(frozen=True)
class FileFailure:
    path: str
    kind: str  # transport | status | decode | storage | cancelled | unknown
    message: str


@dataclass(frozen=True)
class ScanSummary:
    processed_files: int
    scan_time: datetime
    source_repo: str
    source_files: tuple[str, ...] = field(default_factory=tuple)
    failed_files: tuple[FileFailure, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "processed_files": self.processed_files,
            "scan_time": self.scan_time.isoformat(),
            "source_repo": self.source_repo,
            "source_files": list(self.source_files),
            "failed_files": [
                {"path": f.path, "kind": f.kind, "message": f.message} for f in self.failed_files
            ],
        }
