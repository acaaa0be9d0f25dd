from __future__ import annotations

import threading
from typing import Sequence

from .container import Container
from ..config.settings import AppConfig
from ..core.domain.models import ScanSummary, VulnerabilityRecord


class VulnIngestClient:
    """Library entry point for scanning repositories and querying stored findings.

    Resources (HTTP client, database pool) are created on first use and released
    by ``close()``.

    Example:
        # Using default configuration (from environment variables / .env)
        with VulnIngestClient() as client:
            summary = client.scan("owner/repo", files=["scan-2024-01"])
            critical = client.query("CRITICAL")

        # Customize settings
        with VulnIngestClient(github_token="ghp_xxx", concurrency=5, storage_backend="memory") as client:
            client.scan("owner/repo")
    """

    def __init__(self, *, config: AppConfig | None = None, **overrides) -> None:
        """Initialize the client.

        Args:
            config: Complete AppConfig to use instead of the environment.
            **overrides: Individual AppConfig fields (e.g. github_token, concurrency,
                db_host) applied on top of ``config`` or the environment.
        """
        self._container = Container()
        if config is not None or overrides:
            base = config if config is not None else AppConfig()
            merged = AppConfig(**{**base.model_dump(), **overrides}) if overrides else base
            self._container.config.from_pydantic(merged)

    @property
    def container(self) -> Container:
        return self._container

    def scan(
        self,
        repo: str,
        files: Sequence[str] | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ScanSummary:
        """Find scan result files in ``repo`` and store their vulnerabilities.

        Args:
            repo: Repository in ``owner/name`` form.
            files: Optional file name hints without the ``.json`` suffix. When omitted
                every JSON file of the repository is a candidate.
            cancel_event: Optional event; once set, files not yet dispatched are skipped.

        Returns:
            ScanSummary with the processed file paths (and failures, if some files failed).

        Raises:
            ConfigurationError: empty repository or missing token.
            RetryExhaustedError: the code search failed on every attempt.
            ScanFailedError: every candidate file failed.
        """
        uc = self._container.scan_uc()
        return uc.execute(repo, files, cancel_event=cancel_event)

    def query(self, severity: str) -> Sequence[VulnerabilityRecord]:
        """Return stored vulnerabilities with exactly this severity, newest scan first."""
        uc = self._container.query_uc()
        return uc.execute(severity)

    def init_db(self) -> None:
        """Open the configured store, creating the schema when the backend needs one."""
        self._container.store()

    def close(self) -> None:
        self._container.shutdown_resources()

    def __enter__(self) -> VulnIngestClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "VulnIngestClient",
    "AppConfig",
]
