"""AMP story checks: runtime version, metadata and poster images."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from dateutil import parser as dateparser

from amplint.document import inline_metadata, schema_metadata
from amplint.exceptions import ProbeError
from amplint.probe import UNRECOGNIZED_FORMAT, ImageSize, image_size
from amplint.result import Result, fail, not_pass, pass_, warn
from amplint.url import absolute_url

from . import Context

STORY_RUNTIME_V1 = "https://cdn.ampproject.org/v0/amp-story-1.0.js"
NEWS_TYPES = ("Article", "NewsArticle", "ReportageNewsArticle")
RECENT_WINDOW = timedelta(days=30)
MIN_STORY_TEXT = 100
V1_REQUIRED_ATTRIBUTES = ("title", "publisher", "publisher-logo-src", "poster-portrait-src")
RASTER_MIMES = ("image/jpeg", "image/gif", "image/png")


def _is_story_v1(context: Context) -> bool:
    return context.document.select_one(f'script[src="{STORY_RUNTIME_V1}"]') is not None


def _parse_date(value: object) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = dateparser.isoparse(value)
    except (ValueError, OverflowError):
        try:
            parsed = dateparser.parse(value)
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SchemaMetadataIsNews:
    name = "SchemaMetadataIsNews"

    async def run(self, context: Context) -> List[Result]:
        if schema_metadata(context.document).get("@type") not in NEWS_TYPES:
            return [warn("@type is not 'Article' or 'NewsArticle' or 'ReportageNewsArticle'")]
        return [pass_()]


class SchemaMetadataIsRecent:
    """``datePublished``/``dateModified`` should be consistent and from the last month."""

    name = "SchemaMetadataIsRecent"

    def __init__(self, now: Optional[Callable[[], datetime]] = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def run(self, context: Context) -> List[Result]:
        metadata = schema_metadata(context.document)
        published = metadata.get("datePublished")
        modified = metadata.get("dateModified")
        if not published or not modified:
            return [fail("datePublished or dateModified not found")]
        time_published = _parse_date(published)
        time_modified = _parse_date(modified)
        if time_published is None or time_modified is None:
            return [fail(f"couldn't parse datePublished [{published}] or dateModified [{modified}]")]
        if time_modified < time_published:
            return [fail(f"dateModified [{modified}] is earlier than datePublished [{published}]")]
        now = self._now()
        if all(now - RECENT_WINDOW < moment < now for moment in (time_published, time_modified)):
            return [pass_()]
        return [warn(f"datePublished [{published}] or dateModified [{modified}] is old or in the future")]


class StoryRuntimeIsV1:
    name = "StoryRuntimeIsV1"

    async def run(self, context: Context) -> List[Result]:
        if _is_story_v1(context):
            return [pass_()]
        return [warn("amp-story-1.0.js not used (probably 0.1?)")]


class StoryMetadataIsV1:
    name = "StoryMetadataIsV1"

    async def run(self, context: Context) -> List[Result]:
        if not _is_story_v1(context):
            return [pass_()]
        missing = [name for name in V1_REQUIRED_ATTRIBUTES if context.document.select_one(f"amp-story[{name}]") is None]
        if missing:
            return [warn(f"<amp-story> is missing attribute(s) that will soon be mandatory: [{', '.join(missing)}]")]
        return [pass_()]


class StoryIsMostlyText:
    name = "StoryIsMostlyText"

    async def run(self, context: Context) -> List[Result]:
        story = context.document.select_one("amp-story")
        text = story.get_text() if story is not None else ""
        if len(text) > MIN_STORY_TEXT:
            return [pass_()]
        return [warn(f"minimal text in the story [{text}]")]


# ----------------------------------------------------------------------
# Poster and logo requirements
# ----------------------------------------------------------------------
ImageCheck = Callable[[ImageSize], bool]


def is_raster(info: ImageSize) -> bool:
    return info.mime in RASTER_MIMES


def is_square(info: ImageSize) -> bool:
    return info.width == info.height


def is_portrait(info: ImageSize) -> bool:
    return 0.74 * info.height < info.width < 0.76 * info.height


def is_landscape(info: ImageSize) -> bool:
    return 0.74 * info.width < info.height < 0.76 * info.width


def is_at_least(width: int, height: int) -> ImageCheck:
    def check(info: ImageSize) -> bool:
        return info.width >= width and info.height >= height

    check.__name__ = f"is_at_least_{width}x{height}"
    return check


class StoryMetadataThumbnailsAreOk:
    """Logo and poster images must meet the story metadata requirements."""

    name = "StoryMetadataThumbnailsAreOk"

    REQUIREMENTS = (
        ("publisher-logo-src", True, (is_raster, is_square, is_at_least(96, 96))),
        ("poster-portrait-src", True, (is_raster, is_portrait, is_at_least(696, 928))),
        ("poster-square-src", False, (is_raster, is_square, is_at_least(928, 928))),
        ("poster-landscape-src", False, (is_raster, is_landscape, is_at_least(928, 696))),
    )

    async def run(self, context: Context) -> List[Result]:
        metadata = inline_metadata(context.document)
        checks = [
            self._assert(context, key, metadata.get(key), mandatory, expected)
            for key, mandatory, expected in self.REQUIREMENTS
        ]
        return not_pass(await asyncio.gather(*checks))

    async def _assert(
        self,
        context: Context,
        key: str,
        url: Optional[str],
        mandatory: bool,
        expected: Sequence[ImageCheck],
    ) -> Result:
        if not url:
            return fail(f"[{key}] is missing") if mandatory else pass_()
        try:
            info = await image_size(context, url)
        except ProbeError as exc:
            resolved = absolute_url(url, context.url)
            if exc.message == UNRECOGNIZED_FORMAT:
                return fail(f"[{key}] ({resolved}) unrecognized file format")
            if exc.message == "bad status code: 404":
                return fail(f"[{key}] ({resolved}) 404 file not found")
            return fail(f"[{key}] ({resolved}) error: {exc.message}")
        failed = [check.__name__ for check in expected if not check(info)]
        if not failed:
            return pass_()
        detail = json.dumps({"url": url, **info.to_dict()})
        return fail(f"[{key} = {detail}] failed [{', '.join(failed)}]")
