from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..domain.errors import ConfigurationError, IngestError, ScanFailedError
from ..domain.models import FileFailure, FileLocator, ScanSummary
from ..ports.clock_port import ClockPort, SystemClock
from ..ports.fetch_port import FileFetchPort
from ..ports.parser_port import RecordParserPort
from ..ports.search_port import CodeSearchPort
from ..ports.storage_port import VulnerabilityStorePort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Outcome:
    path: str
    failure: Optional[FileFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ScanRepositoryUseCase:
    """Search a repository for scan result files and ingest each one.

    Every candidate file is handled by one unit (fetch, parse, store) running on a
    worker thread. At most ``concurrency`` units are in flight; dispatching blocks
    while the gate is full. Units report to a queue drained by the calling thread,
    which is the only place outcomes are aggregated.

    The scan fails only when every unit failed. Otherwise the summary lists the
    paths that succeeded and, separately, the failures.
    """

    def __init__(
        self,
        search: CodeSearchPort,
        fetcher: FileFetchPort,
        parser: RecordParserPort,
        store: VulnerabilityStorePort,
        *,
        github_token: str | None,
        concurrency: int = 3,
        clock: ClockPort | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._search = search
        self._fetcher = fetcher
        self._parser = parser
        self._store = store
        self._token = github_token
        self._concurrency = concurrency
        self._clock = clock or SystemClock()

    def execute(
        self,
        repo: str,
        filenames: Sequence[str] | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ScanSummary:
        if not repo or not repo.strip():
            raise ConfigurationError("repository name is required")
        if not self._token:
            raise ConfigurationError("GitHub token not found; set VULN_INGEST_GITHUB_TOKEN or GITHUB_API_TOKEN")

        scan_time = self._clock.now()
        logger.info(f"Starting scan: repo={repo}, files={list(filenames or [])}, concurrency={self._concurrency}")

        locators = self._search.search(repo, filenames)
        if not locators:
            logger.info(f"No candidate files found in {repo}")
            return ScanSummary(processed_files=0, scan_time=scan_time, source_repo=repo)

        outcomes = self._dispatch(locators, scan_time, cancel_event)
        succeeded = [o.path for o in outcomes if o.ok]
        failures = [o.failure for o in outcomes if o.failure is not None]

        if not succeeded:
            logger.error(f"All {len(failures)} files of {repo} failed")
            raise ScanFailedError(repo, failures)

        logger.info(f"Scan of {repo} done: processed {len(succeeded)} of {len(locators)} files")
        return ScanSummary(
            processed_files=len(succeeded),
            scan_time=scan_time,
            source_repo=repo,
            source_files=tuple(succeeded),
            failed_files=tuple(failures),
        )

    def _dispatch(
        self,
        locators: Sequence[FileLocator],
        scan_time: datetime,
        cancel_event: threading.Event | None,
    ) -> list[_Outcome]:
        results: queue.SimpleQueue[_Outcome] = queue.SimpleQueue()
        gate = threading.BoundedSemaphore(self._concurrency)

        def _cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        with ThreadPoolExecutor(max_workers=self._concurrency, thread_name_prefix="scan-unit") as pool:
            for locator in locators:
                if _cancelled():
                    results.put(_Outcome(locator.path, FileFailure(locator.path, "cancelled", "scan cancelled before dispatch")))
                    continue
                gate.acquire()  # blocks while `concurrency` units are in flight
                if _cancelled():
                    gate.release()
                    results.put(_Outcome(locator.path, FileFailure(locator.path, "cancelled", "scan cancelled before dispatch")))
                    continue
                pool.submit(self._run_unit, locator, scan_time, gate, results)

            collected = [results.get() for _ in locators]
        return collected

    def _run_unit(
        self,
        locator: FileLocator,
        scan_time: datetime,
        gate: threading.BoundedSemaphore,
        results: "queue.SimpleQueue[_Outcome]",
    ) -> None:
        try:
            outcome = self._process(locator, scan_time)
        finally:
            gate.release()
        results.put(outcome)

    def _process(self, locator: FileLocator, scan_time: datetime) -> _Outcome:
        try:
            raw = self._fetcher.fetch(locator)
            records = self._parser.parse(raw, source_file=locator.path, scan_time=scan_time)
            if records:
                self._store.upsert(records)
        except IngestError as e:
            logger.warning(f"Failed to process {locator.path}: {e}")
            return _Outcome(locator.path, FileFailure(locator.path, e.kind, str(e)))
        except Exception as e:
            logger.exception(f"Unexpected error while processing {locator.path}")
            return _Outcome(locator.path, FileFailure(locator.path, "unknown", f"{type(e).__name__}: {e}"))
        logger.info(f"Processed {locator.path}: {len(records)} records")
        return _Outcome(locator.path)
