"""HTTP client used by rules for every outbound request."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

import aiohttp

from .config import LintConfig
from .exceptions import FetchError
from .gate import NETWORK_GATE, NetworkGate
from .url import fetch_to_curl

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class HttpResponse:
    """A fully-read response; header names are lower-cased."""

    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    @property
    def content_type(self) -> str:
        """Media type without parameters, lower-cased."""

        return self.header("content-type").split(";")[0].strip().lower()

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        return json.loads(self.text())


class HttpClient(Protocol):
    """Protocol implemented by the live client and the fixture replay client."""

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        max_bytes: Optional[int] = None,
    ) -> HttpResponse:
        """Perform one request and return the (possibly truncated) response."""


def merge_headers(*sources: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge header mappings left to right with lower-cased names."""

    merged: Dict[str, str] = {}
    for source in sources:
        for name, value in (source or {}).items():
            merged[name.lower()] = value
    return merged


def collect_headers(raw: Any) -> Dict[str, str]:
    """Flatten a multi-valued header mapping, joining repeats with ``", "``."""

    headers: Dict[str, List[str]] = {}
    for name, value in raw.items():
        headers.setdefault(name.lower(), []).append(value)
    return {name: ", ".join(values) for name, values in headers.items()}


class AiohttpClient:
    """Live ``HttpClient`` backed by one ``aiohttp.ClientSession``.

    Every request holds a permit from the network gate for its whole
    duration, body read included.
    """

    def __init__(self, config: Optional[LintConfig] = None, gate: NetworkGate = NETWORK_GATE) -> None:
        self._config = config or LintConfig()
        self._gate = gate
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AiohttpClient":
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout, auto_decompress=True)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        max_bytes: Optional[int] = None,
    ) -> HttpResponse:
        request_headers = merge_headers(headers)
        curl = fetch_to_curl(url, request_headers, method)
        session = self._ensure_session()
        logger.debug("%s %s [debug: %s]", method, url, curl)
        async with self._gate.permit():
            try:
                async with session.request(method, url, headers=request_headers, allow_redirects=True) as response:
                    body = await self._read_body(response, max_bytes)
                    return HttpResponse(
                        url=str(response.url),
                        status=response.status,
                        headers=collect_headers(response.headers),
                        body=body,
                    )
            except asyncio.TimeoutError as exc:
                raise FetchError(
                    f"timed out after {self._config.request_timeout}s fetching [{url}]",
                    url=url,
                    curl=curl,
                ) from exc
            except (aiohttp.ClientError, ValueError) as exc:
                raise FetchError(f"couldn't fetch [{url}]: {exc}", url=url, curl=curl) from exc

    async def _read_body(self, response: aiohttp.ClientResponse, max_bytes: Optional[int]) -> bytes:
        if max_bytes is None:
            return await response.read()
        chunks: List[bytes] = []
        size = 0
        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
            chunks.append(chunk)
            size += len(chunk)
            if size >= max_bytes:
                break
        return b"".join(chunks)[:max_bytes]
