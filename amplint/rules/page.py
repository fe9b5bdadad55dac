"""Page-level checks: validity, canonical link and head ordering."""

from __future__ import annotations

from typing import List

from amplint.document import attr
from amplint.exceptions import FetchError, ValidatorUnavailable
from amplint.result import Result, fail, pass_, warn
from amplint.url import absolute_url
from amplint.validator import validate_html

from . import Context

RUNTIME_URL = "https://cdn.ampproject.org/v0.js"


class IsValid:
    """Run the AMP validator over the fetched markup."""

    name = "IsValid"

    async def run(self, context: Context) -> List[Result]:
        try:
            outcome = await validate_html(context.raw.body, context.config.validator_command)
        except ValidatorUnavailable as exc:
            return [warn(f"AMP validator unavailable: {exc}")]
        if outcome.passed:
            return [pass_()]
        errors = [str(error) for error in outcome.errors if error.severity == "ERROR"]
        return [fail("\n".join(errors) or f"validator status [{outcome.status}]")]


class LinkRelCanonicalIsOk:
    """The canonical link must point at the page itself, without redirects."""

    name = "LinkRelCanonicalIsOk"

    async def run(self, context: Context) -> List[Result]:
        canonical = attr(context.document.select_one('link[rel="canonical"]'), "href")
        if not canonical:
            return [fail("<link rel=canonical> not specified")]
        resolved = absolute_url(canonical, context.url)
        if resolved != context.url:
            return [fail(f"actual [{resolved}], expected [{context.url}]")]
        try:
            response = await context.http.fetch(context.url, headers=context.headers)
        except FetchError:
            return [fail(f"couldn't retrieve canonical [{context.url}]")]
        if response.url != context.url:
            return [fail(f"actual [{response.url}], expected [{context.url}]")]
        return [pass_()]


class MetaCharsetIsFirst:
    name = "MetaCharsetIsFirst"

    async def run(self, context: Context) -> List[Result]:
        head = context.document.head
        first = head.find(True, recursive=False) if head is not None else None
        if attr(first, "charset") is None:
            return [fail("<meta charset> not the first <meta> tag")]
        return [pass_()]


class RuntimeIsPreloaded:
    name = "RuntimeIsPreloaded"

    async def run(self, context: Context) -> List[Result]:
        selector = f'link[rel="preload"][as="script"][href="{RUNTIME_URL}"]'
        if context.document.select_one(selector) is not None:
            return [pass_()]
        return [warn(f"<link href={RUNTIME_URL} rel=preload> is missing")]
