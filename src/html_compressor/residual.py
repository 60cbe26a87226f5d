"""Rewrite rules for the markup left over after blocks have been preserved.

Every rule is a plain ``str -> str`` function. Preserved content is invisible
here: it has been replaced with tokens, which the inter-tag rules treat like
tags.
"""

from __future__ import annotations

import functools
import re

from html_compressor.settings import ALL_TAGS, CompressorSettings
from html_compressor.tokens import TOKEN_PREFIX, TOKEN_SUFFIX

_FLAGS = re.DOTALL | re.IGNORECASE

_PREFIX = re.escape(TOKEN_PREFIX)
_SUFFIX = re.escape(TOKEN_SUFFIX)

# --- Comments & doctype ---
COMMENT_RE = re.compile(r"<!---->|<!--[^\[].*?-->", _FLAGS)
DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", _FLAGS)

# --- Whitespace ---
INTERTAG_TAG_TAG_RE = re.compile(r">\s+<", _FLAGS)
INTERTAG_TAG_TOKEN_RE = re.compile(r">\s+" + _PREFIX, _FLAGS)
INTERTAG_TOKEN_TAG_RE = re.compile(_SUFFIX + r"\s+<", _FLAGS)
INTERTAG_TOKEN_TOKEN_RE = re.compile(_SUFFIX + r"\s+" + _PREFIX, _FLAGS)
MULTISPACE_RE = re.compile(r"\s+", _FLAGS)
TAG_PROPERTY_RE = re.compile(r"(\s\w+)\s*=\s*(?=[^<]*?>)", re.IGNORECASE)
TAG_END_SPACE_RE = re.compile(r"(<(?:[^>]+?))(?:\s+?)(/?>)", _FLAGS)
TAG_LAST_UNQUOTED_VALUE_RE = re.compile(r"=\s*[a-z0-9\-_]+$", re.IGNORECASE)
TAG_QUOTE_RE = re.compile(r"""\s*=\s*(["'])([a-z0-9\-_]+?)\1(/?)(?=[^<]*?>)""", re.IGNORECASE)
SURROUNDING_SPACES_ALL_RE = re.compile(r"\s*(<[^>]+>)\s*", _FLAGS)

# --- Redundant attributes ---
JS_TYPE_ATTR_RE = re.compile(
    r"""(<script[^>]*)type\s*=\s*(["']*)(?:text|application)/javascript\2([^>]*>)""", _FLAGS
)
JS_LANG_ATTR_RE = re.compile(r"""(<script[^>]*)language\s*=\s*(["']*)javascript\2([^>]*>)""", _FLAGS)
STYLE_TYPE_ATTR_RE = re.compile(r"""(<style[^>]*)type\s*=\s*(["']*)text/style\2([^>]*>)""", _FLAGS)
LINK_TYPE_ATTR_RE = re.compile(
    r"""(<link[^>]*)type\s*=\s*(["']*)text/(?:css|plain)\2([^>]*>)""", _FLAGS
)
LINK_REL_ATTR_RE = re.compile(
    r"""<link(?:[^>]*)rel\s*=\s*(["']*)(?:alternate\s+)?stylesheet\1(?:[^>]*)>""", _FLAGS
)
FORM_METHOD_ATTR_RE = re.compile(r"""(<form[^>]*)method\s*=\s*(["']*)get\2([^>]*>)""", _FLAGS)
INPUT_TYPE_ATTR_RE = re.compile(r"""(<input[^>]*)type\s*=\s*(["']*)text\2([^>]*>)""", _FLAGS)
BOOLEAN_ATTR_RE = re.compile(
    r"""(<\w+[^>]*)(checked|selected|disabled|readonly)\s*=\s*(["']*)\w*\3([^>]*>)""", _FLAGS
)

# --- Protocols ---
HTTP_PROTOCOL_RE = re.compile(
    r"""(<[^>]+?(?:href|src|cite|action)\s*=\s*['"])http:(//[^>]+?>)""", _FLAGS
)
HTTPS_PROTOCOL_RE = re.compile(
    r"""(<[^>]+?(?:href|src|cite|action)\s*=\s*['"])https:(//[^>]+?>)""", _FLAGS
)
REL_EXTERNAL_RE = re.compile(
    r"""<(?:[^>]*)rel\s*=\s*(["']*)(?:alternate\s+)?external\1(?:[^>]*)>""", _FLAGS
)
EVENT_JS_PROTOCOL_RE = re.compile(r"^javascript:\s*(.+)", _FLAGS)


def remove_comments(html: str) -> str:
    """Drop ``<!-- -->`` comments; conditional comments (``<!--[``) survive."""
    return COMMENT_RE.sub("", html)


def simple_doctype(html: str) -> str:
    return DOCTYPE_RE.sub("<!DOCTYPE html>", html)


def remove_script_attributes(html: str) -> str:
    html = JS_TYPE_ATTR_RE.sub(r"\1\3", html)
    return JS_LANG_ATTR_RE.sub(r"\1\3", html)


def remove_style_attributes(html: str) -> str:
    return STYLE_TYPE_ATTR_RE.sub(r"\1\3", html)


def remove_link_attributes(html: str) -> str:
    """Drop ``type`` from ``<link>`` tags, but only for stylesheets."""

    def _replace(match: re.Match[str]) -> str:
        if LINK_REL_ATTR_RE.fullmatch(match.group(0)):
            return match.group(1) + match.group(3)
        return match.group(0)

    return LINK_TYPE_ATTR_RE.sub(_replace, html)


def remove_form_attributes(html: str) -> str:
    return FORM_METHOD_ATTR_RE.sub(r"\1\3", html)


def remove_input_attributes(html: str) -> str:
    return INPUT_TYPE_ATTR_RE.sub(r"\1\3", html)


def simple_boolean_attributes(html: str) -> str:
    """``checked="checked"`` -> ``checked``."""
    return BOOLEAN_ATTR_RE.sub(r"\1\2\4", html)


def _strip_protocol(pattern: re.Pattern[str], html: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        # rel="external" links keep their scheme
        if REL_EXTERNAL_RE.fullmatch(match.group(0)):
            return match.group(0)
        return match.group(1) + match.group(2)

    return pattern.sub(_replace, html)


def remove_http_protocol(html: str) -> str:
    return _strip_protocol(HTTP_PROTOCOL_RE, html)


def remove_https_protocol(html: str) -> str:
    return _strip_protocol(HTTPS_PROTOCOL_RE, html)


def remove_javascript_protocol(source: str) -> str:
    """Drop a leading ``javascript:`` from an inline event handler."""
    return EVENT_JS_PROTOCOL_RE.sub(r"\1", source, count=1)


def remove_intertag_spaces(html: str) -> str:
    """Remove whitespace between two tags, where a token counts as a tag."""
    html = INTERTAG_TAG_TAG_RE.sub("><", html)
    html = INTERTAG_TAG_TOKEN_RE.sub(">" + TOKEN_PREFIX, html)
    html = INTERTAG_TOKEN_TAG_RE.sub(TOKEN_SUFFIX + "<", html)
    return INTERTAG_TOKEN_TOKEN_RE.sub(TOKEN_SUFFIX + TOKEN_PREFIX, html)


def remove_multi_spaces(html: str) -> str:
    return MULTISPACE_RE.sub(" ", html)


def remove_spaces_inside_tags(html: str) -> str:
    """Tighten ``attr = value`` and drop whitespace before ``>`` or ``/>``.

    One space is kept before ``/>`` when the last attribute value is unquoted,
    otherwise the slash would become part of the value.
    """
    html = TAG_PROPERTY_RE.sub(r"\1=", html)

    def _replace(match: re.Match[str]) -> str:
        if match.group(2).startswith("/") and TAG_LAST_UNQUOTED_VALUE_RE.search(match.group(1)):
            return match.group(1) + " " + match.group(2)
        return match.group(1) + match.group(2)

    return TAG_END_SPACE_RE.sub(_replace, html)


def remove_quotes(html: str) -> str:
    """Unquote attribute values made only of letters, digits, ``-`` and ``_``."""

    def _replace(match: re.Match[str]) -> str:
        if match.group(3).strip():
            return "=" + match.group(2) + " " + match.group(3)
        return "=" + match.group(2)

    return TAG_QUOTE_RE.sub(_replace, html)


@functools.lru_cache(maxsize=32)
def surrounding_spaces_pattern(tags: str) -> re.Pattern[str]:
    """Regex for whitespace around the comma-separated *tags*, or around any tag for ``all``."""
    if tags.strip().lower() == ALL_TAGS:
        return SURROUNDING_SPACES_ALL_RE
    names = "|".join(re.escape(name.strip()) for name in tags.split(",") if name.strip())
    return re.compile(r"\s*(</?(?:" + names + r")(?:>|[\s/][^>]*>))\s*", _FLAGS)


def remove_surrounding_spaces(html: str, tags: str) -> str:
    return surrounding_spaces_pattern(tags).sub(r"\1", html)


def minify_residual(html: str, settings: CompressorSettings) -> str:
    """Apply the enabled rules in their fixed order and trim the result."""
    if settings.remove_comments:
        html = remove_comments(html)
    if settings.simple_doctype:
        html = simple_doctype(html)
    if settings.remove_script_attributes:
        html = remove_script_attributes(html)
    if settings.remove_style_attributes:
        html = remove_style_attributes(html)
    if settings.remove_link_attributes:
        html = remove_link_attributes(html)
    if settings.remove_form_attributes:
        html = remove_form_attributes(html)
    if settings.remove_input_attributes:
        html = remove_input_attributes(html)
    if settings.simple_boolean_attributes:
        html = simple_boolean_attributes(html)
    if settings.remove_http_protocol:
        html = remove_http_protocol(html)
    if settings.remove_https_protocol:
        html = remove_https_protocol(html)
    if settings.remove_intertag_spaces:
        html = remove_intertag_spaces(html)
    if settings.remove_multi_spaces:
        html = remove_multi_spaces(html)

    html = remove_spaces_inside_tags(html)

    if settings.remove_quotes:
        html = remove_quotes(html)
    if settings.remove_surrounding_spaces:
        html = remove_surrounding_spaces(html, settings.remove_surrounding_spaces)

    return html.strip()
