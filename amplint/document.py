"""DOM helpers and the document classifier."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

STORY_ATTRIBUTES = (
    "title",
    "publisher",
    "publisher-logo-src",
    "poster-portrait-src",
    "poster-square-src",
    "poster-landscape-src",
)


class DocumentType(str, Enum):
    """Which rule set applies to a document."""

    AMP = "amp"
    AMPSTORY = "ampstory"
    SXG = "sxg"


def parse_document(body: str) -> BeautifulSoup:
    return BeautifulSoup(body, "html.parser", multi_valued_attributes=None)


def attr(element: Optional[Tag], name: str) -> Optional[str]:
    """Return an attribute value as a string, or ``None``."""

    if element is None:
        return None
    value = element.get(name)
    if value is None:
        return None
    return value if isinstance(value, str) else " ".join(value)


def classify(document: Any) -> DocumentType:
    """Pick the document type from markup alone.

    Signed exchanges cannot be recognised from the DOM; they are only
    selected by an explicit override.
    """

    if not isinstance(document, BeautifulSoup):
        return DocumentType.AMP
    if len(document.select("body amp-story[standalone]")) == 1:
        return DocumentType.AMPSTORY
    return DocumentType.AMP


def schema_metadata(document: BeautifulSoup) -> Dict[str, Any]:
    """Return the first JSON-LD object, or ``{}`` when absent or malformed."""

    script = document.select_one('script[type="application/ld+json"]')
    if script is None:
        return {}
    try:
        metadata = json.loads(script.get_text())
    except ValueError:
        return {}
    if isinstance(metadata, list):
        metadata = next((item for item in metadata if isinstance(item, dict)), {})
    return metadata if isinstance(metadata, dict) else {}


def inline_metadata(document: BeautifulSoup) -> Dict[str, Optional[str]]:
    story = document.select_one("amp-story")
    return {name: attr(story, name) for name in STORY_ATTRIBUTES}


def bookend_src(document: BeautifulSoup) -> Optional[str]:
    bookend = attr(document.select_one("amp-story amp-story-bookend"), "src")
    return bookend or attr(document.select_one("amp-story"), "bookend-config-src")


def cors_endpoints(document: BeautifulSoup) -> List[str]:
    """URLs the AMP runtime will fetch with CORS: ``amp-list`` sources and the story bookend."""

    endpoints = [attr(element, "src") for element in document.select("amp-list[src]")]
    endpoints.append(attr(document.select_one("amp-story amp-story-bookend"), "src"))
    endpoints.append(attr(document.select_one("amp-story"), "bookend-config-src"))
    return [endpoint for endpoint in endpoints if endpoint]
