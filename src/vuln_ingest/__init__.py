"""vuln_ingest package: app/core/infra/config.

Expose library-friendly API client at the package level.
"""

from .app.api import AppConfig, VulnIngestClient

import logging

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = [
    "VulnIngestClient",
    "AppConfig",
]
