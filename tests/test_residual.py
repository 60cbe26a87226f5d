"""Tests for the residual markup rules."""

import pytest

from html_compressor import residual
from html_compressor.settings import BLOCK_TAGS_MIN, CompressorSettings


class TestComments:
    def test_removes_comment(self):
        assert residual.remove_comments("a<!-- x -->b") == "ab"

    def test_removes_empty_comment(self):
        assert residual.remove_comments("a<!---->b") == "ab"

    def test_keeps_conditional_comment(self):
        html = "<!--[if IE]>x<![endif]-->"
        assert residual.remove_comments(html) == html

    def test_multiline_comment(self):
        assert residual.remove_comments("a<!--\n x \n-->b") == "ab"


class TestDoctype:
    def test_simple_doctype(self):
        html = '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN">'
        assert residual.simple_doctype(html) == "<!DOCTYPE html>"


class TestAttributes:
    def test_script_type(self):
        html = '<script type="text/javascript" src="a.js">'
        assert residual.remove_script_attributes(html) == '<script  src="a.js">'

    def test_script_language(self):
        assert residual.remove_script_attributes('<script language="javascript">') == "<script >"

    def test_style_type(self):
        assert residual.remove_style_attributes('<style type="text/style">') == "<style >"

    def test_link_type_on_stylesheet(self):
        html = '<link rel="stylesheet" type="text/css" href="a.css">'
        assert residual.remove_link_attributes(html) == '<link rel="stylesheet"  href="a.css">'

    def test_link_type_kept_for_other_rels(self):
        html = '<link rel="icon" type="text/plain" href="x">'
        assert residual.remove_link_attributes(html) == html

    def test_form_method(self):
        html = '<form method="get" action="/s">'
        assert residual.remove_form_attributes(html) == '<form  action="/s">'

    def test_input_type_text(self):
        html = '<input type="text" name="q">'
        assert residual.remove_input_attributes(html) == '<input  name="q">'

    def test_input_other_type_kept(self):
        html = '<input type="checkbox">'
        assert residual.remove_input_attributes(html) == html

    @pytest.mark.parametrize("attr", ["checked", "selected", "disabled", "readonly"])
    def test_boolean_attributes(self, attr: str):
        html = f'<input {attr}="{attr}">'
        assert residual.simple_boolean_attributes(html) == f"<input {attr}>"


class TestProtocols:
    def test_http(self):
        html = '<a href="http://example.com/">x</a>'
        assert residual.remove_http_protocol(html) == '<a href="//example.com/">x</a>'

    def test_http_leaves_https(self):
        html = '<a href="https://example.com/">x</a>'
        assert residual.remove_http_protocol(html) == html

    def test_https(self):
        html = '<img src="https://example.com/a.png">'
        assert residual.remove_https_protocol(html) == '<img src="//example.com/a.png">'

    def test_rel_external_keeps_protocol(self):
        html = '<a rel="external" href="http://example.com/">x</a>'
        assert residual.remove_http_protocol(html) == html

    def test_javascript_protocol(self):
        assert residual.remove_javascript_protocol("javascript: alert(1)") == "alert(1)"
        assert residual.remove_javascript_protocol("alert(1)") == "alert(1)"


class TestWhitespace:
    def test_intertag_spaces(self):
        assert residual.remove_intertag_spaces("<p>a</p>  \n <p>b</p>") == "<p>a</p><p>b</p>"

    def test_intertag_spaces_around_tokens(self):
        html = "<p> %%%~COMPRESS~PRE~0~%%% </p>"
        assert residual.remove_intertag_spaces(html) == "<p>%%%~COMPRESS~PRE~0~%%%</p>"

    def test_intertag_spaces_between_tokens(self):
        html = "%%%~COMPRESS~PRE~0~%%% \n %%%~COMPRESS~PRE~1~%%%"
        assert residual.remove_intertag_spaces(html) == "%%%~COMPRESS~PRE~0~%%%%%%~COMPRESS~PRE~1~%%%"

    def test_intertag_keeps_text_spaces(self):
        assert residual.remove_intertag_spaces("a  b") == "a  b"

    def test_multi_spaces(self):
        assert residual.remove_multi_spaces("a \n\t b") == "a b"

    def test_spaces_inside_tags(self):
        assert residual.remove_spaces_inside_tags('<div class = "x" >') == '<div class="x">'

    def test_self_closing_after_unquoted_value(self):
        assert residual.remove_spaces_inside_tags("<br class=a />") == "<br class=a />"

    def test_self_closing_after_quoted_value(self):
        assert residual.remove_spaces_inside_tags('<br class="a" />') == '<br class="a"/>'


class TestQuotes:
    def test_simple_values_are_unquoted(self):
        html = '<div class="main" id="x-1">'
        assert residual.remove_quotes(html) == "<div class=main id=x-1>"

    def test_values_with_spaces_keep_quotes(self):
        html = '<div class="a b">'
        assert residual.remove_quotes(html) == html

    def test_self_closing_gets_space(self):
        assert residual.remove_quotes('<br class="a"/>') == "<br class=a />"


class TestSurroundingSpaces:
    def test_named_tags(self):
        html = "<p> a </p> <br> b"
        assert residual.remove_surrounding_spaces(html, "br") == "<p> a </p><br>b"

    def test_all_tags(self):
        assert residual.remove_surrounding_spaces(" <p> a </p> ", "all") == "<p>a</p>"

    def test_tag_names_match_exactly(self):
        html = " <pre> x"
        assert residual.remove_surrounding_spaces(html, BLOCK_TAGS_MIN) == html

    def test_pattern_is_cached(self):
        assert residual.surrounding_spaces_pattern("p,br") is residual.surrounding_spaces_pattern("p,br")


class TestMinifyResidual:
    def test_defaults(self):
        assert residual.minify_residual(" <p>  a  </p> ", CompressorSettings()) == "<p> a </p>"

    def test_nothing_enabled_still_trims(self):
        settings = CompressorSettings(remove_comments=False, remove_multi_spaces=False)
        assert residual.minify_residual("  <p><!-- c --></p>  ", settings) == "<p><!-- c --></p>"
