from __future__ import annotations

import logging
from typing import Sequence

from ..domain.errors import ConfigurationError
from ..domain.models import VulnerabilityRecord
from ..ports.storage_port import VulnerabilityStorePort

logger = logging.getLogger(__name__)


class QueryVulnerabilitiesUseCase:
    def __init__(self, store: VulnerabilityStorePort) -> None:
        self._store = store

    def execute(self, severity: str) -> Sequence[VulnerabilityRecord]:
        if not severity or not severity.strip():
            raise ConfigurationError("severity must be a non-empty string")
        records = self._store.query_by_severity(severity)
        logger.info(f"Found {len(records)} vulnerabilities with severity={severity}")
        return records
