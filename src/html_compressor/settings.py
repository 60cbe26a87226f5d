"""Compressor configuration."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from html_compressor.errors import InvalidPatternError

# --- Predefined preserve patterns ---
PHP_TAG_PATTERN = re.compile(r"<\?php.*?\?>", re.DOTALL | re.IGNORECASE)
SERVER_SCRIPT_TAG_PATTERN = re.compile(r"<%.*?%>", re.DOTALL)
SERVER_SIDE_INCLUDE_PATTERN = re.compile(r"<!--\s*#.*?-->", re.DOTALL)

# --- Tag lists for remove_surrounding_spaces ---
BLOCK_TAGS_MIN = "html,head,body,br,p"
BLOCK_TAGS_MAX = (
    BLOCK_TAGS_MIN
    + ",h1,h2,h3,h4,h5,h6,blockquote,center,dl,fieldset,form,frame,frameset,"
    "hr,noframes,ol,table,tbody,tr,td,th,tfoot,thead,ul"
)
ALL_TAGS = "all"


@runtime_checkable
class Minifier(Protocol):
    """Anything that can compress a script or style body."""

    def compress(self, source: str) -> str: ...


# camelCase configuration keys -> attribute names
_MAPPING_KEYS = {
    "enabled": "enabled",
    "removeComments": "remove_comments",
    "removeMultiSpaces": "remove_multi_spaces",
    "removeIntertagSpaces": "remove_intertag_spaces",
    "removeQuotes": "remove_quotes",
    "simpleDoctype": "simple_doctype",
    "removeScriptAttributes": "remove_script_attributes",
    "removeStyleAttributes": "remove_style_attributes",
    "removeLinkAttributes": "remove_link_attributes",
    "removeFormAttributes": "remove_form_attributes",
    "removeInputAttributes": "remove_input_attributes",
    "simpleBooleanAttributes": "simple_boolean_attributes",
    "removeJavaScriptProtocol": "remove_javascript_protocol",
    "removeHttpProtocol": "remove_http_protocol",
    "removeHttpsProtocol": "remove_https_protocol",
    "preserveLineBreaks": "preserve_line_breaks",
    "removeSurroundingSpaces": "remove_surrounding_spaces",
    "preservePatterns": "preserve_patterns",
    "generateStatistics": "generate_statistics",
    "compressJavaScript": "compress_javascript",
    "compressCss": "compress_css",
    "jsCompressor": "javascript_compressor",
    "cssCompressor": "css_compressor",
    "maxDepth": "max_depth",
    "strictRestoration": "strict_restoration",
}


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a user preserve pattern.

    Raises:
        InvalidPatternError: If *pattern* is not a valid regex.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e


@dataclasses.dataclass(slots=True)
class CompressorSettings:
    """Switches controlling which rules the compressor applies.

    Preserve patterns may be given as strings; they are compiled on
    construction so that a bad pattern fails here rather than mid-compression.
    """

    enabled: bool = True
    remove_comments: bool = True
    remove_multi_spaces: bool = True
    remove_intertag_spaces: bool = False
    remove_quotes: bool = False
    simple_doctype: bool = False
    remove_script_attributes: bool = False
    remove_style_attributes: bool = False
    remove_link_attributes: bool = False
    remove_form_attributes: bool = False
    remove_input_attributes: bool = False
    simple_boolean_attributes: bool = False
    remove_javascript_protocol: bool = False
    remove_http_protocol: bool = False
    remove_https_protocol: bool = False
    preserve_line_breaks: bool = False
    remove_surrounding_spaces: str | None = None
    preserve_patterns: list[re.Pattern[str]] = dataclasses.field(default_factory=list)
    generate_statistics: bool = False
    compress_javascript: bool = False
    compress_css: bool = False
    javascript_compressor: Minifier | None = None
    css_compressor: Minifier | None = None
    max_depth: int = 16
    strict_restoration: bool = False

    def __post_init__(self) -> None:
        self.preserve_patterns = [compile_pattern(p) for p in _as_iterable(self.preserve_patterns)]
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    def add_preserve_patterns(self, *patterns: str | re.Pattern[str]) -> None:
        """Append patterns; they rank after the ones already declared."""
        compiled = [compile_pattern(p) for p in patterns]
        self.preserve_patterns.extend(compiled)

    def replace(self, **changes: Any) -> CompressorSettings:
        """Copy with *changes* applied; the pattern list is not shared."""
        changes = _normalize_keys(changes)
        changes.setdefault("preserve_patterns", list(self.preserve_patterns))
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> CompressorSettings:
        """Build settings from camelCase (``removeComments``) or snake_case keys.

        Raises:
            ValueError: On unknown keys or invalid patterns.
        """
        return cls(**_normalize_keys(mapping))


def _as_iterable(value: Any) -> Iterable[Any]:
    if value is None:
        return ()
    if isinstance(value, (str, re.Pattern)):
        return (value,)
    return value


def _normalize_keys(mapping: Mapping[str, Any]) -> dict[str, Any]:
    field_names = {f.name for f in dataclasses.fields(CompressorSettings)}
    kwargs: dict[str, Any] = {}
    for key, value in mapping.items():
        name = _MAPPING_KEYS.get(key, key)
        if name not in field_names:
            raise ValueError(f"Unknown compressor setting '{key}'")
        kwargs[name] = value
    return kwargs
