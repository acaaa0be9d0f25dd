from __future__ import annotations

import logging

from ..config.urls import RAW_CONTENT_MEDIA_TYPE
from ..core.domain.models import FileLocator
from ..core.ports.fetch_port import FileFetchPort
from ..core.retry import RetryPolicy
from .http_client import HttpClient

logger = logging.getLogger(__name__)


class GitHubFileFetcher(FileFetchPort):
    def __init__(self, http_client: HttpClient, token: str, retry_policy: RetryPolicy) -> None:
        self._http = http_client
        self._token = token
        self._retry = retry_policy

    def fetch(self, locator: FileLocator) -> bytes:
        # Ask for the raw file instead of the base64 JSON envelope
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": RAW_CONTENT_MEDIA_TYPE,
        }
        content = self._retry.call(
            lambda: self._http.get_bytes(locator.url, headers=headers),
            operation=f"download {locator.path}",
        )
        logger.debug("Downloaded %s (%d bytes)", locator.path, len(content))
        return content
