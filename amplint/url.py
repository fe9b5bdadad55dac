"""URL helpers: resolution, CORS source origins, curl reproduction and AMP cache URLs."""

from __future__ import annotations

import base64
import hashlib
import shlex
from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

SOURCE_ORIGIN_PARAM = "__amp_source_origin"
MAX_DOMAIN_LABEL_LENGTH = 63


def absolute_url(src: Optional[str], base: Optional[str]) -> Optional[str]:
    """Resolve ``src`` against ``base``; ``None`` if either is missing."""

    if not isinstance(src, str) or not isinstance(base, str):
        return None
    return urljoin(base, src.strip())


def source_origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def add_source_origin(url: str, origin: str) -> str:
    """Add the ``__amp_source_origin`` query parameter the AMP runtime sends with CORS requests."""

    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != SOURCE_ORIGIN_PARAM]
    query.append((SOURCE_ORIGIN_PARAM, origin))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def fetch_to_curl(url: str, headers: Optional[Mapping[str, str]] = None, method: str = "GET") -> str:
    """Render a curl command line that reproduces a request, for debug messages."""

    args = ["curl", "-i"]
    if method.upper() == "HEAD":
        args.append("-I")
    elif method.upper() != "GET":
        args.extend(["-X", method.upper()])
    for name, value in (headers or {}).items():
        args.extend(["-H", f"{name}: {value}"])
    args.append(url)
    return " ".join(shlex.quote(arg) for arg in args)


# ----------------------------------------------------------------------
# AMP cache URLs
# ----------------------------------------------------------------------
def _human_readable_subdomain(domain: str) -> Optional[str]:
    try:
        unicode_domain = domain.encode("ascii").decode("idna") if "xn--" in domain else domain
    except UnicodeError:
        return None
    curls = unicode_domain.replace("-", "--").replace(".", "-")
    if curls[2:4] == "--":
        curls = f"0-{curls}-0"
    try:
        encoded = curls.encode("idna").decode("ascii")
    except UnicodeError:
        return None
    if len(encoded) > MAX_DOMAIN_LABEL_LENGTH:
        return None
    return encoded


def _hashed_subdomain(domain: str) -> str:
    digest = hashlib.sha256(domain.encode("utf-8")).digest()
    return base64.b32encode(digest).decode("ascii").lower().rstrip("=")[:52]


def cache_subdomain(domain: str) -> str:
    """Return the label the AMP cache uses to serve content from ``domain``."""

    domain = domain.lower().rstrip(".")
    return _human_readable_subdomain(domain) or _hashed_subdomain(domain)


def create_cache_url(cache_domain: str, url: str) -> str:
    """Build the AMP cache URL for a document served from ``url``."""

    parts = urlsplit(url)
    host = parts.hostname or ""
    secure = "s/" if parts.scheme == "https" else ""
    path = parts.path or "/"
    cached = f"https://{cache_subdomain(host)}.{cache_domain}/c/{secure}{parts.netloc}{path}"
    if parts.query:
        cached = f"{cached}?{parts.query}"
    return cached


def cache_origin(cache_domain: str, url: str) -> str:
    return source_origin(create_cache_url(cache_domain, url))
