"""CORS reachability of JSON endpoints and the story bookend."""

from __future__ import annotations

import asyncio
from typing import List

from amplint.document import bookend_src, cors_endpoints
from amplint.result import Result, not_pass, pass_, warn

from . import Context
from .xhr import can_xhr_cache, can_xhr_same_origin

BOOKEND_CACHE_DOMAIN = "cdn.ampproject.org"


class EndpointsAreAccessibleFromOrigin:
    name = "EndpointsAreAccessibleFromOrigin"

    async def run(self, context: Context) -> List[Result]:
        endpoints = cors_endpoints(context.document)
        return not_pass(await asyncio.gather(*(can_xhr_same_origin(context, url) for url in endpoints)))


class EndpointsAreAccessibleFromCache:
    """Every endpoint must answer CORS requests from every AMP cache."""

    name = "EndpointsAreAccessibleFromCache"

    async def run(self, context: Context) -> List[Result]:
        endpoints = cors_endpoints(context.document)
        checks = [
            can_xhr_cache(context, url, cache_domain)
            for url in endpoints
            for cache_domain in context.config.cache_domains
        ]
        return not_pass(await asyncio.gather(*checks))


class BookendExists:
    name = "BookendExists"

    async def run(self, context: Context) -> List[Result]:
        if bookend_src(context.document):
            return [pass_()]
        return [warn("no bookend found")]


class BookendAppearsOnOrigin:
    name = "BookendAppearsOnOrigin"

    async def run(self, context: Context) -> List[Result]:
        src = bookend_src(context.document)
        if not src:
            return [warn("no bookend specified")]
        return [await can_xhr_same_origin(context, src)]


class BookendAppearsOnCache:
    name = "BookendAppearsOnCache"

    async def run(self, context: Context) -> List[Result]:
        src = bookend_src(context.document)
        if not src:
            return [warn("<amp-story-bookend> not found")]
        return [await can_xhr_cache(context, src, BOOKEND_CACHE_DOMAIN)]
