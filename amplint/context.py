"""Immutable per-pass input shared by all rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from bs4 import BeautifulSoup

from .config import LintConfig
from .document import parse_document
from .http import HttpClient, merge_headers


def _frozen(mapping: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(merge_headers(mapping))


@dataclass(frozen=True)
class RawDocument:
    """The bytes and headers as originally fetched."""

    body: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _frozen(self.headers))


@dataclass(frozen=True)
class Context:
    """Bundle the inputs shared across rules for one lint pass."""

    url: str
    document: BeautifulSoup
    headers: Mapping[str, str]
    raw: RawDocument
    http: HttpClient
    config: LintConfig = field(default_factory=LintConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _frozen(self.headers))

    @classmethod
    def from_body(
        cls,
        url: str,
        body: str,
        *,
        http: HttpClient,
        headers: Optional[Mapping[str, str]] = None,
        raw_headers: Optional[Mapping[str, str]] = None,
        config: Optional[LintConfig] = None,
    ) -> "Context":
        return cls(
            url=url,
            document=parse_document(body),
            headers=headers or {},
            raw=RawDocument(body=body, headers=raw_headers or {}),
            http=http,
            config=config or LintConfig(),
        )

    def request_headers(self, **extra: Any) -> dict:
        """Context headers overlaid with ``extra`` (underscores become dashes)."""

        overrides = {name.replace("_", "-"): str(value) for name, value in extra.items()}
        return merge_headers(self.headers, overrides)
