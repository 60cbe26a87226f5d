"""HTML Compressor - Minify HTML while keeping scripts, styles and verbatim blocks intact."""

from html_compressor.compressor import (
    CompressionResult,
    HtmlCompressor,
    compress,
    compress_with_stats,
)
from html_compressor.errors import (
    CompressorError,
    InvalidPatternError,
    NestingDepthError,
    RestorationError,
)
from html_compressor.files import compress_directory, compress_file
from html_compressor.settings import (
    ALL_TAGS,
    BLOCK_TAGS_MAX,
    BLOCK_TAGS_MIN,
    PHP_TAG_PATTERN,
    SERVER_SCRIPT_TAG_PATTERN,
    SERVER_SIDE_INCLUDE_PATTERN,
    CompressorSettings,
    Minifier,
)
from html_compressor.statistics import BlockStats, CompressionStatistics, HtmlMetrics

__version__ = "0.1.0"

__all__ = [
    "compress",
    "compress_with_stats",
    "compress_file",
    "compress_directory",
    "HtmlCompressor",
    "CompressorSettings",
    "CompressionResult",
    "CompressionStatistics",
    "HtmlMetrics",
    "BlockStats",
    "Minifier",
    "CompressorError",
    "InvalidPatternError",
    "NestingDepthError",
    "RestorationError",
    "PHP_TAG_PATTERN",
    "SERVER_SCRIPT_TAG_PATTERN",
    "SERVER_SIDE_INCLUDE_PATTERN",
    "BLOCK_TAGS_MIN",
    "BLOCK_TAGS_MAX",
    "ALL_TAGS",
]
