from __future__ import annotations

import json
import logging
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from ..core.domain.errors import DecodeError
from ..core.domain.models import VulnerabilityRecord
from ..core.ports.parser_port import RecordParserPort
from .schemas import RawScanBlock, RawVulnerability

logger = logging.getLogger(__name__)

_BLOCKS = TypeAdapter(list[RawScanBlock])


def _to_domain(raw: RawVulnerability, source_file: str, scan_time: datetime) -> VulnerabilityRecord:
    return VulnerabilityRecord(
        id=raw.id,
        severity=raw.severity,
        cvss=raw.cvss,
        status=raw.status,
        package_name=raw.package_name,
        current_version=raw.current_version,
        fixed_version=raw.fixed_version,
        description=raw.description,
        published_date=raw.published_date,
        link=raw.link,
        risk_factors=tuple(raw.risk_factors),
        source_file=source_file,
        scan_time=scan_time,
    )


class RecordParser(RecordParserPort):
    """Decode a scan result file into records stamped with their source file and scan time.

    The payload is a JSON array of ``{"scanResults": {"vulnerabilities": [...]}}``
    blocks. Blocks without vulnerabilities are skipped. Any decode or shape error
    raises DecodeError carrying the file path and a truncated copy of the payload.
    """

    def parse(self, raw: bytes, *, source_file: str, scan_time: datetime) -> list[VulnerabilityRecord]:
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"invalid JSON: {e}", path=source_file, payload=raw) from e
        try:
            blocks = _BLOCKS.validate_python(data)
        except ValidationError as e:
            raise DecodeError(
                f"unexpected scan file shape ({e.error_count()} validation errors)",
                path=source_file,
                payload=raw,
            ) from e

        records: list[VulnerabilityRecord] = []
        for block in blocks:
            vulns = block.scan_results.vulnerabilities
            if not vulns:
                continue
            records.extend(_to_domain(v, source_file, scan_time) for v in vulns)
        logger.debug("Parsed %d records from %d blocks in %s", len(records), len(blocks), source_file)
        return records
