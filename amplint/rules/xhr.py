"""CORS request checks shared by the endpoint and bookend rules."""

from __future__ import annotations

import json

from amplint.context import Context
from amplint.exceptions import FetchError
from amplint.http import HttpResponse
from amplint.result import Result, fail, pass_
from amplint.url import absolute_url, add_source_origin, cache_origin, fetch_to_curl, source_origin


class XhrError(Exception):
    """A CORS response did not meet the AMP runtime's expectations."""


def expect_status_ok(response: HttpResponse) -> HttpResponse:
    if not response.ok:
        raise XhrError(f"expected status code: [2xx], actual [{response.status}]")
    return response


def expect_json(response: HttpResponse) -> HttpResponse:
    if response.content_type != "application/json":
        raise XhrError(f"expected content-type: [application/json]; actual: [{response.content_type}]")
    try:
        json.loads(response.text())
    except ValueError:
        raise XhrError(f"couldn't parse body as JSON: {response.text()[:100]}") from None
    return response


def expect_access_control_headers(response: HttpResponse, origin: str) -> HttpResponse:
    allowed = response.header("access-control-allow-origin")
    if allowed != origin and allowed != "*":
        raise XhrError(f"access-control-allow-origin header is [{allowed}], expected [{origin}]")
    return response


async def can_xhr_same_origin(context: Context, xhr_url: str) -> Result:
    xhr_url = absolute_url(xhr_url, context.url) or xhr_url
    target = add_source_origin(xhr_url, source_origin(context.url))
    headers = context.request_headers(amp_same_origin="true")
    curl = fetch_to_curl(target, headers)
    try:
        response = await context.http.fetch(target, headers=headers)
        expect_json(expect_status_ok(response))
    except (FetchError, XhrError) as exc:
        return fail(f"can't XHR [{xhr_url}]: {exc} [debug: {curl}]")
    return pass_()


async def can_xhr_cache(context: Context, xhr_url: str, cache_domain: str) -> Result:
    xhr_url = absolute_url(xhr_url, context.url) or xhr_url
    target = add_source_origin(xhr_url, source_origin(context.url))
    origin = cache_origin(cache_domain, context.url)
    headers = context.request_headers(origin=origin)
    curl = fetch_to_curl(target, headers)
    try:
        response = await context.http.fetch(target, headers=headers)
        expect_json(expect_access_control_headers(expect_status_ok(response), origin))
    except (FetchError, XhrError) as exc:
        return fail(f"can't XHR [{xhr_url}]: {exc} [debug: {curl}]")
    return pass_()
