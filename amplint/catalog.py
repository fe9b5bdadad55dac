"""Rule registry: which rules run for which document type."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Sequence, Tuple

from .document import DocumentType, classify
from .exceptions import CatalogError
from .rules import Rule
from .rules.cors import (
    BookendAppearsOnCache,
    BookendAppearsOnOrigin,
    BookendExists,
    EndpointsAreAccessibleFromCache,
    EndpointsAreAccessibleFromOrigin,
)
from .rules.media import (
    AmpImgAmpPixelPreferred,
    AmpImgHeightWidthIsOk,
    AmpVideoIsSmall,
    AmpVideoIsSpecifiedByAttribute,
)
from .rules.page import IsValid, LinkRelCanonicalIsOk, MetaCharsetIsFirst, RuntimeIsPreloaded
from .rules.story import (
    SchemaMetadataIsNews,
    SchemaMetadataIsRecent,
    StoryIsMostlyText,
    StoryMetadataIsV1,
    StoryMetadataThumbnailsAreOk,
    StoryRuntimeIsV1,
)
from .rules.sxg import SxgAmppkgIsForwarded, SxgContentNegotiationIsOk, SxgVaryOnAcceptAct

logger = logging.getLogger(__name__)

RuleSet = Tuple[Rule, ...]

AUTO_MODE = "auto"


def ensure_unique(rules: Iterable[Rule]) -> None:
    """Raise ``CatalogError`` if two rules share a case-normalized name."""

    seen: Dict[str, str] = {}
    for rule in rules:
        key = rule.name.lower()
        if key in seen:
            raise CatalogError(
                f"duplicate rule name [{rule.name}] (already registered as [{seen[key]}])",
                context={"rule": rule.name},
            )
        seen[key] = rule.name


def extend(base: Sequence[Rule], extra: Sequence[Rule]) -> RuleSet:
    """Build a specialized rule set: all of ``base`` in order, then ``extra``."""

    rules = tuple(base) + tuple(extra)
    ensure_unique(rules)
    return rules


AMP_RULES: RuleSet = extend(
    (),
    (
        IsValid(),
        LinkRelCanonicalIsOk(),
        AmpVideoIsSmall(),
        AmpVideoIsSpecifiedByAttribute(),
        MetaCharsetIsFirst(),
        RuntimeIsPreloaded(),
        AmpImgHeightWidthIsOk(),
        AmpImgAmpPixelPreferred(),
        EndpointsAreAccessibleFromOrigin(),
        EndpointsAreAccessibleFromCache(),
    ),
)

AMPSTORY_RULES: RuleSet = extend(
    AMP_RULES,
    (
        BookendAppearsOnCache(),
        BookendAppearsOnOrigin(),
        BookendExists(),
        SchemaMetadataIsNews(),
        SchemaMetadataIsRecent(),
        StoryRuntimeIsV1(),
        StoryMetadataIsV1(),
        StoryIsMostlyText(),
        StoryMetadataThumbnailsAreOk(),
    ),
)

SXG_RULES: RuleSet = extend(
    AMP_RULES,
    (
        SxgVaryOnAcceptAct(),
        SxgContentNegotiationIsOk(),
        SxgAmppkgIsForwarded(),
    ),
)

CATALOG: Dict[DocumentType, RuleSet] = {
    DocumentType.AMP: AMP_RULES,
    DocumentType.AMPSTORY: AMPSTORY_RULES,
    DocumentType.SXG: SXG_RULES,
}


def rules_for(document_type: Any) -> RuleSet:
    """Look up the rule set for a document type; unknown types get no rules."""

    try:
        return CATALOG[DocumentType(document_type)]
    except (KeyError, ValueError):
        logger.warning("no rule set for document type [%s]", document_type)
        return ()


def rules_for_mode(mode: str, document: Any) -> RuleSet:
    """Resolve a ``--force`` value (``auto``, ``amp``, ``ampstory``, ``sxg``) to a rule set."""

    mode = (mode or AUTO_MODE).lower()
    if mode == AUTO_MODE:
        document_type = classify(document)
        logger.info("classified document as [%s]", document_type.value)
        return rules_for(document_type)
    return rules_for(mode)
