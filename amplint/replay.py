"""Record/replay HTTP fixtures so rules can be exercised without the network.

A ``FixtureClient`` is handed to the code under test explicitly (usually as
``Context.http``). Nothing global is patched, so fixture operations can run
side by side.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from .exceptions import FixtureMissError
from .http import AiohttpClient, HttpClient, HttpResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SETTLE_DELAY = 2.0

# Request headers that change what a server returns for the same URL.
MATCH_HEADERS = ("accept", "amp-cache-transform", "amp-same-origin", "origin")

HeaderKey = Tuple[Tuple[str, str], ...]


def match_headers(headers: Optional[Mapping[str, str]]) -> HeaderKey:
    """The subset of ``headers`` a recorded response is keyed on."""

    lowered = {str(name).lower(): str(value) for name, value in (headers or {}).items()}
    return tuple((name, lowered[name]) for name in MATCH_HEADERS if name in lowered)


@dataclass(frozen=True)
class Interaction:
    method: str
    url: str
    response: HttpResponse
    headers: HeaderKey = ()

    @property
    def key(self) -> Tuple[str, str, HeaderKey]:
        return (self.method.upper(), self.url, self.headers)

    def to_dict(self) -> Dict[str, Any]:
        request: Dict[str, Any] = {"method": self.method.upper(), "url": self.url}
        if self.headers:
            request["headers"] = dict(self.headers)
        response: Dict[str, Any] = {
            "url": self.response.url,
            "status": self.response.status,
            "headers": dict(self.response.headers),
        }
        try:
            response["body"] = self.response.body.decode("utf-8")
        except UnicodeDecodeError:
            response["body_base64"] = base64.b64encode(self.response.body).decode("ascii")
        return {"request": request, "response": response}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Interaction":
        request = data["request"]
        response = data["response"]
        if "body_base64" in response:
            body = base64.b64decode(response["body_base64"])
        else:
            body = str(response.get("body", "")).encode("utf-8")
        return cls(
            method=str(request.get("method", "GET")).upper(),
            url=request["url"],
            response=HttpResponse(
                url=response.get("url", request["url"]),
                status=int(response.get("status", 200)),
                headers={str(k).lower(): str(v) for k, v in (response.get("headers") or {}).items()},
                body=body,
            ),
            headers=match_headers(request.get("headers")),
        )


class FixtureClient:
    """``HttpClient`` that replays recorded interactions, or records live ones.

    In replay mode a request is matched on method, URL and the negotiation
    headers in ``MATCH_HEADERS``. An interaction recorded without headers
    matches any request for its method and URL that has no exact match.
    Repeated requests get the recorded responses in order; once those run
    out the last one is served again. An unrecorded request raises
    ``FixtureMissError`` rather than reaching the network.

    In record mode interactions are kept in the order the requests were
    made, not the order the responses arrived.
    """

    def __init__(self, interactions: Iterable[Interaction] = (), live: Optional[HttpClient] = None) -> None:
        self._live = live
        self._responses: Dict[Tuple[str, str, HeaderKey], List[HttpResponse]] = {}
        self._served: Dict[Tuple[str, str, HeaderKey], int] = {}
        self._log: List[Optional[Interaction]] = []
        for interaction in interactions:
            self._responses.setdefault(interaction.key, []).append(interaction.response)
            self._log.append(interaction)

    @property
    def recording(self) -> bool:
        return self._live is not None

    @property
    def interactions(self) -> List[Interaction]:
        """Completed interactions; requests still in flight or that failed are left out."""

        return [interaction for interaction in self._log if interaction is not None]

    @classmethod
    def load(cls, path: Path) -> "FixtureClient":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(Interaction.from_dict(item) for item in data.get("interactions", []))

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"interactions": [interaction.to_dict() for interaction in self.interactions]}
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        max_bytes: Optional[int] = None,
    ) -> HttpResponse:
        method = method.upper()
        if self._live is None:
            return self._replay(method, url, match_headers(headers), max_bytes)
        slot = len(self._log)
        self._log.append(None)
        response = await self._live.fetch(url, method=method, headers=headers, max_bytes=max_bytes)
        self._log[slot] = Interaction(method=method, url=url, response=response, headers=match_headers(headers))
        return response

    def _replay(self, method: str, url: str, headers: HeaderKey, max_bytes: Optional[int]) -> HttpResponse:
        key = (method, url, headers)
        if key not in self._responses:
            key = (method, url, ())
        responses = self._responses.get(key)
        if not responses:
            raise FixtureMissError(f"no recorded response for {method} [{url}]", url=url)
        index = self._served.get(key, 0)
        self._served[key] = index + 1
        response = responses[min(index, len(responses) - 1)]
        if max_bytes is not None and len(response.body) > max_bytes:
            response = HttpResponse(url=response.url, status=response.status, headers=response.headers, body=response.body[:max_bytes])
        return response


async def with_fixture(
    name: str,
    fn: Callable[[FixtureClient], Awaitable[T]],
    *,
    fixture_dir: Path,
    live_client: Optional[HttpClient] = None,
    settle_delay: float = DEFAULT_SETTLE_DELAY,
) -> T:
    """Run ``fn`` against the fixture ``name``, replaying it if it exists and recording it otherwise.

    When recording, the fixture is written only after ``settle_delay`` seconds
    so that requests abandoned by ``fn`` can finish first. Errors raised while
    recording propagate and leave no fixture behind.
    """

    path = Path(fixture_dir) / f"{name}.json"
    if path.exists():
        logger.info("replaying HTTP requests from fixture [%s]", path)
        return await fn(FixtureClient.load(path))

    logger.info("recording HTTP requests to fixture [%s] ...", path)
    async with AsyncExitStack() as stack:
        if live_client is None:
            live_client = await stack.enter_async_context(AiohttpClient())
        client = FixtureClient(live=live_client)
        result = await fn(client)
        await asyncio.sleep(settle_delay)
    client.save(path)
    logger.info("... created fixture [%s]", path)
    return result
