"""Tests for block extraction and restoration."""

import logging
import re

import pytest

from html_compressor.errors import RestorationError
from html_compressor.preservation import (
    PRE_RE,
    SCRIPT_RE,
    SKIP_RE,
    BlockStore,
    PreservationRule,
    build_rules,
    classify_script,
    extract,
    preserve_blocks,
    restoration_order,
    restore,
    return_blocks,
    script_type,
)
from html_compressor.tokens import TokenScheme

PHP = re.compile(r"<\?php.*?\?>", re.DOTALL)


def _script_match(html: str) -> re.Match:
    match = SCRIPT_RE.search(html)
    assert match is not None
    return match


class TestExtract:
    def test_pre_body_is_tokenized(self):
        store = BlockStore()
        rule = PreservationRule("PRE", PRE_RE, group=2, keep_tags=True)
        html = extract("<pre>  a  </pre>", rule, store, TokenScheme())
        assert html == "<pre>%%%~COMPRESS~PRE~0~%%%</pre>"
        assert store.get("PRE") == ["  a  "]

    def test_blank_body_is_left_alone(self):
        store = BlockStore()
        rule = PreservationRule("PRE", PRE_RE, group=2, keep_tags=True)
        assert extract("<pre>   </pre>", rule, store, TokenScheme()) == "<pre>   </pre>"
        assert len(store) == 0

    def test_skip_markers_are_replaced_entirely(self):
        store = BlockStore()
        rule = PreservationRule("SKIP", SKIP_RE, group=1)
        html = extract("x<!-- {{{ --> keep  me <!-- }}} -->y", rule, store, TokenScheme())
        assert html == "x%%%~COMPRESS~SKIP~0~%%%y"
        assert store.get("SKIP") == [" keep  me "]

    def test_ordinals_follow_document_order(self):
        store = BlockStore()
        rule = PreservationRule("PRE", PRE_RE, group=2, keep_tags=True)
        html = extract("<pre>a</pre><pre> </pre><pre>b</pre>", rule, store, TokenScheme())
        assert TokenScheme().find(html, "PRE") == [0, 1]
        assert store.get("PRE") == ["a", "b"]


class TestScriptClassification:
    @pytest.mark.parametrize("open_tag", [
        "<script>",
        '<script type="text/javascript">',
        "<script type='application/javascript'>",
        '<script data-type="foo">',
    ])
    def test_javascript(self, open_tag: str):
        assert classify_script(_script_match(open_tag + "x</script>")) == "SCRIPT"

    @pytest.mark.parametrize("open_tag", [
        '<script type="text/template">',
        "<script type=module>",
        '<script type="application/ld+json">',
    ])
    def test_other_types_are_skipped(self, open_tag: str):
        assert classify_script(_script_match(open_tag + "x</script>")) == "SKIP"

    def test_jquery_template_is_not_preserved(self):
        match = _script_match('<script type="text/x-jquery-tmpl">x</script>')
        assert classify_script(match) is None

    def test_script_type_is_normalized(self):
        assert script_type('<script TYPE = "Text/JavaScript">') == "text/javascript"
        assert script_type("<script>") == ""


class TestRules:
    def test_extraction_order(self):
        tags = [rule.tag for rule in build_rules([PHP])]
        assert tags == [
            "USER0", "SKIP", "COND", "EVENT", "EVENT", "PRE", "SCRIPT", "STYLE", "TEXTAREA",
        ]

    def test_line_break_rule_is_last(self):
        rules = build_rules(preserve_line_breaks=True)
        assert rules[-1].tag == "LT"

    def test_restoration_order_is_reversed(self):
        assert restoration_order(build_rules([PHP])) == [
            "TEXTAREA", "STYLE", "SCRIPT", "PRE", "EVENT", "COND", "SKIP", "USER0",
        ]

    def test_script_rule_brings_skip_store(self):
        rules = [PreservationRule("SCRIPT", SCRIPT_RE, group=2, keep_tags=True)]
        assert restoration_order(rules) == ["SCRIPT", "SKIP"]


class TestBlockStore:
    def test_add_returns_ordinal(self):
        store = BlockStore()
        assert store.add("PRE", "a") == 0
        assert store.add("PRE", "b") == 1
        assert store.add("STYLE", "c") == 0
        assert len(store) == 3
        assert store.tags() == ["PRE", "STYLE"]

    def test_replace_keeps_count(self):
        store = BlockStore()
        store.add("PRE", "a")
        with pytest.raises(ValueError):
            store.replace("PRE", ["a", "b"])

    def test_missing_tag_is_empty(self):
        assert BlockStore().get("PRE") == []


class TestPreserveBlocks:
    def test_skip_store_is_shared_with_scripts(self):
        store = BlockStore()
        html = '<!-- {{{ -->a<!-- }}} --><script type="text/template">b</script>'
        result = preserve_blocks(html, build_rules(), store, TokenScheme())
        assert store.get("SKIP") == ["a", "b"]
        assert result == (
            '%%%~COMPRESS~SKIP~0~%%%<script type="text/template">%%%~COMPRESS~SKIP~1~%%%</script>'
        )

    def test_user_patterns_win(self):
        store = BlockStore()
        html = "<pre><?php echo 1; ?></pre>"
        rules = build_rules([PHP])
        result = preserve_blocks(html, rules, store, TokenScheme())
        assert store.get("USER0") == ["<?php echo 1; ?>"]
        assert result == "<pre>%%%~COMPRESS~PRE~0~%%%</pre>"
        assert restore(result, restoration_order(rules), store, TokenScheme()) == html

    def test_event_inside_skipped_script_is_restored(self):
        store = BlockStore()
        html = '<script type="text/template"><div onclick="go()"></div></script>'
        rules = build_rules()
        result = preserve_blocks(html, rules, store, TokenScheme())
        assert "EVENT" in store.get("SKIP")[0]
        assert restore(result, restoration_order(rules), store, TokenScheme()) == html

    def test_block_holding_its_own_token_stops(self):
        store = BlockStore()
        store.add("PRE", "x%%%~COMPRESS~PRE~0~%%%")
        html = "<pre>%%%~COMPRESS~PRE~0~%%%</pre>"
        result = restore(html, ["PRE"], store, TokenScheme())
        assert result == "<pre>xx%%%~COMPRESS~PRE~0~%%%</pre>"


class TestReturnBlocks:
    def test_out_of_range_token_is_left_in_place(self, caplog):
        text = "x %%%~COMPRESS~PRE~5~%%%"
        with caplog.at_level(logging.WARNING):
            assert return_blocks(text, "PRE", ["a"], TokenScheme()) == text
        assert "unresolved token" in caplog.text

    def test_out_of_range_token_raises_when_strict(self):
        with pytest.raises(RestorationError) as exc_info:
            return_blocks("%%%~COMPRESS~PRE~5~%%%", "PRE", ["a"], TokenScheme(), strict=True)
        assert exc_info.value.ordinal == 5
        assert exc_info.value.available == 1

    def test_lookup_by_ordinal(self):
        text = "%%%~COMPRESS~PRE~1~%%%|%%%~COMPRESS~PRE~0~%%%"
        assert return_blocks(text, "PRE", ["a", "b"], TokenScheme()) == "b|a"
