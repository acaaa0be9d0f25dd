from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from ..domain.models import VulnerabilityRecord


class RecordParserPort(Protocol):
    def parse(self, raw: bytes, *, source_file: str, scan_time: datetime) -> Sequence[VulnerabilityRecord]:
        """Decode raw file content into records stamped with source_file and scan_time.

        Raises DecodeError when the content cannot be decoded.
        """
        ...
