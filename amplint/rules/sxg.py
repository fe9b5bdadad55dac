"""Signed exchange (SXG) serving checks."""

from __future__ import annotations

from typing import List

from amplint.exceptions import FetchError
from amplint.result import Result, fail, pass_
from amplint.url import fetch_to_curl, source_origin

from . import Context

SXG_ACCEPT = "application/signed-exchange;v=b3"
SXG_CONTENT_TYPE = "application/signed-exchange"
AMP_CACHE_TRANSFORM = 'google;v="1"'
AMPPKG_VALIDITY_PATH = "/amppkg/validity"


def _sxg_headers(context: Context) -> dict:
    return context.request_headers(accept=SXG_ACCEPT, amp_cache_transform=AMP_CACHE_TRANSFORM)


class SxgVaryOnAcceptAct:
    """SXG responses must vary on both ``accept`` and ``amp-cache-transform``."""

    name = "SxgVaryOnAcceptAct"

    async def run(self, context: Context) -> List[Result]:
        headers = _sxg_headers(context)
        try:
            response = await context.http.fetch(context.url, headers=headers)
        except FetchError as exc:
            return [fail(f"couldn't fetch [{context.url}]: {exc} [debug: {fetch_to_curl(context.url, headers)}]")]
        vary = response.header("vary")
        if not vary:
            return [fail("[vary] header is missing")]
        tokens = {token.strip().lower() for token in vary.split(",")}
        for required in ("amp-cache-transform", "accept"):
            if required not in tokens:
                return [fail(f"[vary] header is missing value [{required}]")]
        return [pass_()]


class SxgContentNegotiationIsOk:
    """Only requests that ask for a signed exchange should receive one."""

    name = "SxgContentNegotiationIsOk"

    async def run(self, context: Context) -> List[Result]:
        sxg_headers = _sxg_headers(context)
        html_headers = context.request_headers(accept="text/html")
        try:
            sxg = await context.http.fetch(context.url, headers=sxg_headers)
            html = await context.http.fetch(context.url, headers=html_headers)
        except FetchError as exc:
            return [fail(f"couldn't fetch [{context.url}]: {exc}")]
        if sxg.content_type != SXG_CONTENT_TYPE:
            return [
                fail(
                    f"{SXG_CONTENT_TYPE} not returned for [accept: {SXG_ACCEPT}] "
                    f"(content-type [{sxg.content_type}]) [debug: {fetch_to_curl(context.url, sxg_headers)}]"
                )
            ]
        if html.content_type == SXG_CONTENT_TYPE:
            return [
                fail(
                    f"{SXG_CONTENT_TYPE} incorrectly returned for [accept: text/html] "
                    f"[debug: {fetch_to_curl(context.url, html_headers)}]"
                )
            ]
        return [pass_()]


class SxgAmppkgIsForwarded:
    """Requests for ``/amppkg/`` must reach the packager."""

    name = "SxgAmppkgIsForwarded"

    async def run(self, context: Context) -> List[Result]:
        url = source_origin(context.url) + AMPPKG_VALIDITY_PATH
        headers = _sxg_headers(context)
        curl = fetch_to_curl(url, headers)
        try:
            response = await context.http.fetch(url, headers=headers)
        except FetchError as exc:
            return [fail(f"couldn't fetch [{url}]: {exc} [debug: {curl}]")]
        if not response.ok:
            return [fail(f"/amppkg/ not forwarded to packager: [{url}] returned status {response.status} [debug: {curl}]")]
        if response.content_type != "application/cbor":
            return [
                fail(
                    f"/amppkg/ not forwarded to packager: [{url}] content-type is "
                    f"[{response.content_type}], expected [application/cbor] [debug: {curl}]"
                )
            ]
        return [pass_()]
