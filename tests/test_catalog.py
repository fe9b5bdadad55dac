import logging

import pytest

from amplint.catalog import AMP_RULES, AMPSTORY_RULES, SXG_RULES, ensure_unique, extend, rules_for, rules_for_mode
from amplint.document import DocumentType, classify, parse_document
from amplint.exceptions import CatalogError


class NamedRule:
    def __init__(self, name):
        self.name = name

    async def run(self, context):
        return []


def names(rules):
    return [rule.name for rule in rules]


def test_story_and_sxg_sets_extend_amp_set_in_order():
    amp = names(AMP_RULES)

    assert names(AMPSTORY_RULES)[: len(amp)] == amp
    assert names(SXG_RULES)[: len(amp)] == amp
    assert len(AMPSTORY_RULES) > len(AMP_RULES)
    assert "SxgVaryOnAcceptAct" in names(SXG_RULES)
    assert "BookendExists" in names(AMPSTORY_RULES)
    assert "BookendExists" not in amp


def test_catalog_names_are_unique():
    for rules in (AMP_RULES, AMPSTORY_RULES, SXG_RULES):
        ensure_unique(rules)


def test_extend_rejects_case_insensitive_duplicates():
    with pytest.raises(CatalogError) as excinfo:
        extend([NamedRule("IsValid")], [NamedRule("isvalid")])

    assert "duplicate rule name" in str(excinfo.value)


def test_rules_for_known_and_unknown_types(caplog):
    assert rules_for(DocumentType.AMP) is AMP_RULES
    assert rules_for("ampstory") is AMPSTORY_RULES

    with caplog.at_level(logging.WARNING, logger="amplint"):
        assert rules_for("amp4email") == ()
    assert "amp4email" in caplog.text


def test_classify_recognises_standalone_story():
    story = parse_document("<html><body><amp-story standalone></amp-story></body></html>")
    not_standalone = parse_document("<html><body><amp-story></amp-story></body></html>")
    two_stories = parse_document(
        "<html><body><amp-story standalone></amp-story><amp-story standalone></amp-story></body></html>"
    )

    assert classify(story) is DocumentType.AMPSTORY
    assert classify(not_standalone) is DocumentType.AMP
    assert classify(two_stories) is DocumentType.AMP
    assert classify(None) is DocumentType.AMP


def test_rules_for_mode_auto_and_forced():
    story = parse_document("<html><body><amp-story standalone></amp-story></body></html>")
    page = parse_document("<html><body><p>hi</p></body></html>")

    assert rules_for_mode("auto", story) is AMPSTORY_RULES
    assert rules_for_mode("auto", page) is AMP_RULES
    assert rules_for_mode("SXG", page) is SXG_RULES
