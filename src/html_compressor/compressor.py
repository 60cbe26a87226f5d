"""Core compression logic."""

from __future__ import annotations

import dataclasses
import logging
import re
import time
from typing import Any

from html_compressor.errors import NestingDepthError
from html_compressor.preservation import (
    BlockStore,
    build_rules,
    preserve_blocks,
    restoration_order,
    restore,
)
from html_compressor.residual import minify_residual, remove_javascript_protocol
from html_compressor.settings import CompressorSettings, Minifier
from html_compressor.statistics import CompressionStatistics, HtmlMetrics, count_empty_chars
from html_compressor.tokens import Category, TokenScheme, contains_sentinel

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class CompressionResult:
    """Compressed document plus size figures."""

    text: str                                      # the compressed document
    original_length: int                           # len(original input)
    compressed_length: int                         # len(text)
    ratio: float                                   # compressed_length / original_length (0.0-1.0)
    savings_pct: float                             # (1 - ratio) * 100
    statistics: CompressionStatistics | None = None  # only with generate_statistics

    def __str__(self) -> str:
        return self.text


# --- CDATA wrappers around script/style bodies ---
_CDATA_RE = re.compile(r"\s*<!\[CDATA\[(.*?)\]\]>\s*", re.DOTALL | re.IGNORECASE)
_SCRIPT_CDATA_RE = re.compile(r"\s*/\*\s*<!\[CDATA\[\*/(.*?)/\*\]\]>\s*\*/\s*", re.DOTALL | re.IGNORECASE)


def _unwrap_cdata(source: str, script: bool) -> tuple[str, tuple[str, str]]:
    """Split a body wrapped entirely in CDATA into (inner, (prefix, suffix))."""
    if script:
        match = _SCRIPT_CDATA_RE.fullmatch(source)
        if match:
            return match.group(1), ("/*<![CDATA[*/", "/*]]>*/")
    match = _CDATA_RE.fullmatch(source)
    if match:
        return match.group(1), ("<![CDATA[", "]]>")
    return source, ("", "")


def _minify_block(source: str, minifier: Minifier, script: bool) -> str:
    body, (prefix, suffix) = _unwrap_cdata(source, script)
    return prefix + minifier.compress(body) + suffix


class HtmlCompressor:
    """Compresses HTML while keeping ``<pre>``, ``<textarea>``, ``<script>``,
    ``<style>``, inline event handlers, conditional comments, skip blocks and
    user patterns intact.

    Blocks that must be kept verbatim can be marked with::

        <!-- {{{ -->
            ...
        <!-- }}} -->

    A compressor holds only its settings, so one instance can serve several
    threads at once.

    Example:
        >>> HtmlCompressor(remove_intertag_spaces=True).compress("<p> a </p>  <p>b</p>")
        '<p> a </p><p>b</p>'
    """

    def __init__(self, settings: CompressorSettings | None = None, **overrides: Any) -> None:
        if settings is None:
            settings = CompressorSettings.from_mapping(overrides)
        elif overrides:
            settings = settings.replace(**overrides)
        self.settings = settings

    def clone(self) -> HtmlCompressor:
        """A compressor sharing this one's settings."""
        return HtmlCompressor(self.settings)

    def add_preserve_patterns(self, *patterns: str | re.Pattern[str]) -> None:
        """Declare further patterns to keep verbatim.

        Raises:
            InvalidPatternError: If a string pattern is not a valid regex.
        """
        self.settings.add_preserve_patterns(*patterns)

    def compress(self, html: str) -> str:
        """Compress *html* and return the result.

        Empty input, or a compressor with ``enabled=False``, comes back as is.

        Raises:
            NestingDepthError: If conditional comments nest deeper than
                ``settings.max_depth``.
            RestorationError: On an unresolvable token with
                ``settings.strict_restoration``.
        """
        return self._compress(html, 0, None)

    def compress_with_stats(self, html: str) -> CompressionResult:
        """Compress *html* and report how much was saved.

        ``statistics`` is filled in only when ``settings.generate_statistics``
        is on.
        """
        statistics = CompressionStatistics() if self.settings.generate_statistics else None
        start = time.perf_counter()
        text = self._compress(html, 0, statistics)
        if statistics is not None:
            statistics.elapsed_ms = (time.perf_counter() - start) * 1000

        original_length = len(html) if html else 0
        compressed_length = len(text) if text else 0
        ratio = compressed_length / original_length if original_length > 0 else 1.0
        return CompressionResult(
            text=text,
            original_length=original_length,
            compressed_length=compressed_length,
            ratio=ratio,
            savings_pct=(1 - ratio) * 100,
            statistics=statistics,
        )

    def _compress(self, html: str, depth: int, statistics: CompressionStatistics | None) -> str:
        settings = self.settings
        if not settings.enabled or not html:
            return html
        if depth > settings.max_depth:
            raise NestingDepthError(settings.max_depth)

        scheme = TokenScheme(depth)
        if depth == 0 and contains_sentinel(html):
            logger.warning("Input already contains placeholder-like text; output may be garbled")

        if statistics is not None:
            statistics.original = HtmlMetrics.of(html)

        nested = self.clone()
        rules = build_rules(
            settings.preserve_patterns,
            compress_conditional=lambda body: nested._compress(body, depth + 1, None),
            preserve_line_breaks=settings.preserve_line_breaks,
        )
        store = BlockStore()

        html = preserve_blocks(html, rules, store, scheme)
        self._process_blocks(store, statistics)
        html = minify_residual(html, settings)
        html = restore(html, restoration_order(rules), store, scheme, settings.strict_restoration)

        if statistics is not None:
            statistics.compressed.filesize = len(html)
            statistics.compressed.empty_chars = count_empty_chars(html)
        return html

    def _process_blocks(self, store: BlockStore, statistics: CompressionStatistics | None) -> None:
        """Run the script/style minifiers and event rewrites over the stored blocks."""
        settings = self.settings

        for tag in store.tags():
            blocks = store.get(tag)
            processed = blocks

            if tag == Category.SCRIPT.value:
                if settings.compress_javascript and settings.javascript_compressor is not None:
                    processed = [
                        _minify_block(b, settings.javascript_compressor, script=True) for b in blocks
                    ]
            elif tag == Category.STYLE.value:
                if settings.compress_css and settings.css_compressor is not None:
                    processed = [_minify_block(b, settings.css_compressor, script=False) for b in blocks]
            elif tag == Category.EVENT.value:
                if settings.remove_javascript_protocol:
                    processed = [remove_javascript_protocol(b) for b in blocks]

            if processed is not blocks:
                store.replace(tag, processed)
            if statistics is not None:
                _record_blocks(statistics, tag, blocks, processed)


def _record_blocks(
    statistics: CompressionStatistics, tag: str, original: list[str], processed: list[str]
) -> None:
    statistics.record_blocks(tag, original, processed)

    original_size = sum(len(b) for b in original)
    processed_size = sum(len(b) for b in processed)
    if tag == Category.SCRIPT.value:
        statistics.original.inline_script_size += original_size
        statistics.compressed.inline_script_size += processed_size
    elif tag == Category.STYLE.value:
        statistics.original.inline_style_size += original_size
        statistics.compressed.inline_style_size += processed_size
    elif tag == Category.EVENT.value:
        statistics.original.inline_event_size += original_size
        statistics.compressed.inline_event_size += processed_size

    # Minified scripts and styles no longer count as preserved
    if tag in (Category.SCRIPT.value, Category.STYLE.value) and processed is not original:
        return
    statistics.preserved_size += processed_size


def compress(html: str, settings: CompressorSettings | None = None, **options: Any) -> str:
    """Compress *html* with a one-off :class:`HtmlCompressor`.

    Args:
        html: Markup to compress.
        settings: Optional settings object.
        **options: Individual settings, e.g. ``remove_intertag_spaces=True``;
            they override *settings*.

    Returns:
        Compressed markup.

    Raises:
        ValueError: If a preserve pattern is not a valid regex or an option is
            unknown.
    """
    return HtmlCompressor(settings, **options).compress(html)


def compress_with_stats(
    html: str, settings: CompressorSettings | None = None, **options: Any
) -> CompressionResult:
    """Like :func:`compress`, but returns a :class:`CompressionResult`.

    Statistics are generated unless ``generate_statistics=False`` is passed
    or *settings* turns them off.
    """
    if settings is None:
        options.setdefault("generate_statistics", True)
    return HtmlCompressor(settings, **options).compress_with_stats(html)
