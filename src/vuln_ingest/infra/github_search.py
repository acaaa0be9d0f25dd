from __future__ import annotations

import logging
from typing import Sequence

from pydantic import ValidationError

from ..config.urls import DEFAULT_CODE_SEARCH_URL, build_code_search_query
from ..core.domain.errors import ConfigurationError, DecodeError, TransportError, UpstreamStatusError
from ..core.domain.models import FileLocator
from ..core.ports.search_port import CodeSearchPort
from ..core.retry import RetryPolicy, retry_on
from .http_client import HttpClient
from .schemas import SearchResponse

logger = logging.getLogger(__name__)


class GitHubCodeSearch(CodeSearchPort):
    def __init__(
        self,
        http_client: HttpClient,
        token: str,
        retry_policy: RetryPolicy,
        search_url: str = DEFAULT_CODE_SEARCH_URL,
    ) -> None:
        self._http = http_client
        self._token = token
        # A garbled search body is worth another try, unlike a garbled scan file
        self._retry = retry_policy.with_predicate(retry_on(TransportError, UpstreamStatusError, DecodeError))
        self._search_url = search_url

    def search(self, repo: str, filenames: Sequence[str] | None = None) -> Sequence[FileLocator]:
        if not repo or not repo.strip():
            raise ConfigurationError("repository name is required")
        query = build_code_search_query(repo, filenames)
        logger.info("Searching %s with q=%r", self._search_url, query)

        def _attempt() -> SearchResponse:
            data = self._http.get_json(
                self._search_url,
                params={"q": query},
                headers={"Authorization": f"Bearer {self._token}"},
            )
            try:
                return SearchResponse.model_validate(data)
            except ValidationError as e:
                raise DecodeError(f"unexpected search response shape: {e.error_count()} errors", payload=str(data)) from e

        response = self._retry.call(_attempt, operation=f"code search for {repo}")
        # total_count may exceed the page; only the returned items are surfaced
        locators = [FileLocator(name=item.name, path=item.path, url=item.url) for item in response.items]
        logger.info("Code search for %s returned %d of %d reported matches", repo, len(locators), response.total_count)
        return locators
