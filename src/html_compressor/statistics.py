"""Compression statistics.

A fresh :class:`CompressionStatistics` is built for every call and handed back
inside the :class:`~html_compressor.compressor.CompressionResult`; nothing is
kept on the compressor itself.
"""

from __future__ import annotations

import dataclasses
import re

_EMPTY_CHAR_RE = re.compile(r"\s")


def count_empty_chars(text: str) -> int:
    return len(_EMPTY_CHAR_RE.findall(text))


@dataclasses.dataclass(slots=True)
class HtmlMetrics:
    """Size metrics of one version (original or compressed) of a document."""

    filesize: int = 0
    empty_chars: int = 0
    inline_script_size: int = 0
    inline_style_size: int = 0
    inline_event_size: int = 0

    @classmethod
    def of(cls, html: str) -> HtmlMetrics:
        return cls(filesize=len(html), empty_chars=count_empty_chars(html))


@dataclasses.dataclass(slots=True)
class BlockStats:
    """Blocks preserved for one category."""

    count: int = 0
    original_size: int = 0
    compressed_size: int = 0


@dataclasses.dataclass(slots=True)
class CompressionStatistics:
    original: HtmlMetrics = dataclasses.field(default_factory=HtmlMetrics)
    compressed: HtmlMetrics = dataclasses.field(default_factory=HtmlMetrics)
    preserved_size: int = 0        # bytes kept verbatim
    elapsed_ms: float = 0.0
    blocks: dict[str, BlockStats] = dataclasses.field(default_factory=dict)

    def record_blocks(self, tag: str, original: list[str], compressed: list[str]) -> None:
        """Accumulate sizes of the blocks stored under *tag*."""
        stats = self.blocks.setdefault(tag, BlockStats())
        stats.count += len(original)
        stats.original_size += sum(len(b) for b in original)
        stats.compressed_size += sum(len(b) for b in compressed)

    @property
    def savings(self) -> int:
        return self.original.filesize - self.compressed.filesize

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)
