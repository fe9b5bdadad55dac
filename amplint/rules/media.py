"""Media checks: video weight and declared image dimensions."""

from __future__ import annotations

import asyncio
import math
from typing import Dict, List, Optional, Tuple

from amplint.document import attr
from amplint.exceptions import FetchError, ProbeError
from amplint.probe import ImageSize, content_length, image_size
from amplint.result import Result, fail, not_pass, pass_, warn
from amplint.url import absolute_url

from . import Context

RATIO_TOLERANCE = 0.015
# Layouts where width/height do not describe the rendered image.
UNSIZED_LAYOUTS = {"fill", "fixed-height", "flex-item", "container", "nodisplay"}
RATIO_ONLY_LAYOUTS = {"responsive"}


def _parse_dimension(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value.strip().removesuffix("px"))
    except ValueError:
        return None
    return number if number > 0 else None


def _ratio(width: int, height: int) -> float:
    return math.floor(width * 100 / height) / 100


class AmpVideoIsSmall:
    """Videos served to the story player should stay under the size limit."""

    name = "AmpVideoIsSmall"

    async def run(self, context: Context) -> List[Result]:
        elements = context.document.select('amp-video source[type="video/mp4"][src], amp-video[src]')
        urls = []
        for element in elements:
            url = absolute_url(attr(element, "src"), context.url)
            if url and url not in urls:
                urls.append(url)
        lengths = await asyncio.gather(*(self._length(context, url) for url in urls))
        sizes: Dict[str, Optional[int]] = dict(zip(urls, lengths))

        unreachable = [url for url, size in sizes.items() if size is None]
        if unreachable:
            return [fail(f"couldn't retrieve video(s): [{','.join(unreachable)}]")]
        limit = context.config.video_size_limit
        large = [url for url, size in sizes.items() if size is not None and size > limit]
        if large:
            return [fail(f"videos over {limit // 1_000_000}MB: [{','.join(large)}]")]
        return [pass_()]

    async def _length(self, context: Context, url: str) -> Optional[int]:
        try:
            return await content_length(context, url)
        except FetchError:
            return None


class AmpVideoIsSpecifiedByAttribute:
    name = "AmpVideoIsSpecifiedByAttribute"

    async def run(self, context: Context) -> List[Result]:
        if context.document.select_one("amp-video[src]") is not None:
            return [warn("<amp-video src> used instead of <amp-video><source/></amp-video>")]
        return [pass_()]


class AmpImgHeightWidthIsOk:
    """Compare each ``amp-img``'s declared size with the real image."""

    name = "AmpImgHeightWidthIsOk"

    async def run(self, context: Context) -> List[Result]:
        checks = []
        for element in context.document.select("amp-img"):
            layout = (attr(element, "layout") or "").lower()
            if layout in UNSIZED_LAYOUTS:
                continue
            src = attr(element, "src")
            width = _parse_dimension(attr(element, "width"))
            height = _parse_dimension(attr(element, "height"))
            if not src or width is None or height is None:
                continue
            checks.append(self._check(context, src, (width, height), ratio_only=layout in RATIO_ONLY_LAYOUTS))
        return not_pass(await asyncio.gather(*checks))

    async def _check(self, context: Context, src: str, expected: Tuple[int, int], ratio_only: bool) -> Result:
        try:
            actual = await image_size(context, src)
        except ProbeError as exc:
            return fail(f"[{src}] {exc}")
        return compare_dimensions(src, actual, expected, ratio_only=ratio_only)


def compare_dimensions(src: str, actual: ImageSize, expected: Tuple[int, int], ratio_only: bool = False) -> Result:
    expected_width, expected_height = expected
    if actual.width <= 0 or actual.height <= 0:
        return fail(f"[{src}] has no intrinsic dimensions")
    actual_ratio = _ratio(actual.width, actual.height)
    expected_ratio = _ratio(expected_width, expected_height)
    if abs(actual_ratio - expected_ratio) > RATIO_TOLERANCE:
        return fail(
            f"[{src}]: actual ratio [{actual.width}/{actual.height} = {actual_ratio}] "
            f"does not match specified [{expected_width}/{expected_height} = {expected_ratio}]"
        )
    if ratio_only:
        return pass_()
    actual_area = actual.width * actual.height
    expected_area = expected_width * expected_height
    if expected_area < 0.25 * actual_area:
        return warn(
            f"[{src}]: actual dimensions [{actual.width}x{actual.height}] "
            f"are much larger than specified [{expected_width}x{expected_height}]"
        )
    if expected_area > 1.5 * actual_area:
        return warn(
            f"[{src}]: actual dimensions [{actual.width}x{actual.height}] "
            f"are much smaller than specified [{expected_width}x{expected_height}]"
        )
    return pass_()


class AmpImgAmpPixelPreferred:
    name = "AmpImgAmpPixelPreferred"

    async def run(self, context: Context) -> List[Result]:
        results = []
        for element in context.document.select('amp-img[width="1"][height="1"]'):
            if (attr(element, "layout") or "").lower() == "responsive":
                continue
            results.append(warn(f"[{element}] has width=1, height=1; <amp-pixel> may be a better choice"))
        return results
