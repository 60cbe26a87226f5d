"""Tests for the token module."""

from html_compressor.tokens import Category, TokenScheme, contains_sentinel, user_tag


class TestTokenScheme:
    def test_top_level_token(self):
        assert TokenScheme().token("PRE", 0) == "%%%~COMPRESS~PRE~0~%%%"

    def test_nested_token_has_own_namespace(self):
        assert TokenScheme(2).token("PRE", 3) == "%%%~COMPRESS2~PRE~3~%%%"

    def test_nested_increments_depth(self):
        assert TokenScheme().nested().depth == 1
        assert TokenScheme(4).nested().namespace == "COMPRESS5"

    def test_find_returns_ordinals_in_order(self):
        text = "a %%%~COMPRESS~PRE~0~%%% b %%%~COMPRESS~PRE~12~%%%"
        assert TokenScheme().find(text, "PRE") == [0, 12]

    def test_find_ignores_other_tags(self):
        text = "%%%~COMPRESS~SCRIPT~0~%%%"
        assert TokenScheme().find(text, "PRE") == []

    def test_find_ignores_other_namespaces(self):
        text = "%%%~COMPRESS1~PRE~0~%%%"
        assert TokenScheme().find(text, "PRE") == []
        assert TokenScheme(1).find(text, "PRE") == [0]

    def test_user_tags_do_not_overlap(self):
        # USER1 must not pick up USER10 tokens
        text = "%%%~COMPRESS~USER10~0~%%%"
        assert TokenScheme().find(text, user_tag(1)) == []
        assert TokenScheme().find(text, user_tag(10)) == [0]

    def test_pattern_group_is_ordinal(self):
        match = TokenScheme().pattern("STYLE").search("x%%%~COMPRESS~STYLE~7~%%%y")
        assert match is not None
        assert match.group(1) == "7"


class TestHelpers:
    def test_user_tag(self):
        assert user_tag(0) == "USER0"
        assert user_tag(3) == "USER3"

    def test_line_break_tag(self):
        assert Category.LINE_BREAK.value == "LT"

    def test_contains_sentinel(self):
        assert contains_sentinel("<p>%%%~COMPRESS~PRE~0~%%%</p>")
        assert not contains_sentinel("<p>100%% sure</p>")
