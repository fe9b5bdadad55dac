"""Image dimension and content-length probes."""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from .context import Context
from .exceptions import FetchError, ProbeError
from .url import absolute_url

UNRECOGNIZED_FORMAT = "unrecognized file format"


@dataclass(frozen=True)
class ImageSize:
    width: int
    height: int
    mime: str

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height, "mime": self.mime}


def image_size_from_bytes(data: bytes) -> ImageSize:
    """Read the dimensions from the first bytes of an image."""

    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            mime = Image.MIME.get(image.format or "", "")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ProbeError(UNRECOGNIZED_FORMAT) from exc
    return ImageSize(width=width, height=height, mime=mime)


async def image_size(context: Context, url: str) -> ImageSize:
    target = absolute_url(url, context.url) or url
    try:
        response = await context.http.fetch(
            target,
            headers=context.headers,
            max_bytes=context.config.probe_bytes,
        )
    except FetchError as exc:
        raise ProbeError(exc.message, context={"url": target}) from exc
    if not response.ok:
        raise ProbeError(f"bad status code: {response.status}", context={"url": target, "status": response.status})
    return image_size_from_bytes(response.body)


async def content_length(context: Context, url: str) -> int:
    """Return the advertised size of ``url`` from a HEAD request (0 if unknown)."""

    response = await context.http.fetch(url, method="HEAD", headers=context.headers)
    if not response.ok:
        raise FetchError(f"[{url}] returned status {response.status}", url=url, status=response.status)
    try:
        return int(response.header("content-length", "0") or 0)
    except ValueError:
        return 0
