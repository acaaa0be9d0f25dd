from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from ..core.domain.errors import DecodeError, TransportError, UpstreamStatusError


class HttpClient:
    """Thin httpx wrapper performing exactly one request per call.

    Failures are translated into the pipeline taxonomy so retry policies can
    tell them apart. Any httpx request error (including redirect loops) becomes
    TransportError, except a body that cannot be content-decoded, which becomes
    DecodeError like malformed JSON does. Non-2xx responses become UpstreamStatusError.
    """

    def __init__(
        self,
        base_headers: Optional[Mapping[str, str]] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = httpx.Client(
            timeout=timeout_seconds,
            headers=dict(base_headers or {}),
            follow_redirects=True,
            max_redirects=10
        )

    def _get(self, url: str, params: Optional[Mapping[str, str]], headers: Optional[Mapping[str, str]]) -> httpx.Response:
        # The body is read inside get(), so content-encoding failures surface here
        try:
            resp = self._client.get(url, params=params, headers=headers)
        except httpx.DecodingError as e:
            raise DecodeError(f"undecodable body from {url}: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"GET {url} failed: {type(e).__name__}: {e}") from e
        if not resp.is_success:
            raise UpstreamStatusError(resp.status_code, resp.text, url=url)
        return resp

    def get_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> dict[str, Any]:
        resp = self._get(url, params, headers)
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"invalid JSON from {url}: {e}", payload=resp.text) from e
        if not isinstance(data, dict):
            raise DecodeError(f"expected JSON object from {url}", payload=resp.text)
        return data

    def get_bytes(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> bytes:
        resp = self._get(url, None, headers)
        return resp.content

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
