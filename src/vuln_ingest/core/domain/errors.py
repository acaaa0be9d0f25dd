from __future__ import annotations

from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import FileFailure


SNIPPET_LIMIT = 200


def truncate(text: str, limit: int = SNIPPET_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class IngestError(Exception):
    """Base class for every error raised by the ingestion pipeline."""

    kind = "unknown"


class ConfigurationError(IngestError):
    kind = "configuration"


class TransportError(IngestError):
    kind = "transport"


class UpstreamStatusError(IngestError):
    kind = "status"

    def __init__(self, status_code: int, body: str = "", url: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        where = f" from {url}" if url else ""
        super().__init__(f"upstream returned status {status_code}{where}: {truncate(body)}")


class DecodeError(IngestError):
    kind = "decode"

    def __init__(self, message: str, *, path: str | None = None, payload: str | bytes | None = None) -> None:
        self.path = path
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        self.snippet = truncate(payload) if payload is not None else None
        text = message
        if path:
            text = f"{path}: {text}"
        if self.snippet is not None:
            text = f"{text} (payload: {self.snippet!r})"
        super().__init__(text)


class StorageError(IngestError):
    kind = "storage"


class RetryExhaustedError(IngestError):
    """Every attempt allowed by a RetryPolicy failed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")

    @property
    def kind(self) -> str:  # type: ignore[override]
        return getattr(self.last_error, "kind", "unknown")


class ScanFailedError(IngestError):
    """Every dispatched file of a scan failed."""

    def __init__(self, repo: str, failures: Sequence["FileFailure"]) -> None:
        self.repo = repo
        self.failures = tuple(failures)
        first = self.failures[0] if self.failures else None
        cause = f"{first.path}: {first.message}" if first else "no cause recorded"
        super().__init__(f"all {len(self.failures)} files of {repo} failed to process: {cause}")
