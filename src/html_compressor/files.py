"""Compressing HTML files on disk."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from html_compressor.compressor import CompressionResult, HtmlCompressor

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ("*.html", "*.htm")


def compress_file(
    file_path: str | Path,
    compressor: HtmlCompressor | None = None,
    output_path: str | Path | None = None,
    encoding: str = "utf-8",
) -> CompressionResult:
    """Compress one file, overwriting it unless *output_path* is given.

    Line endings are read and written untouched so that preserved blocks keep
    their exact bytes.

    Args:
        file_path: File to compress.
        compressor: Compressor to use; a default one when omitted.
        output_path: Where to write the result (default: *file_path*).
        encoding: Text encoding of the file.

    Returns:
        The CompressionResult for the file's content.

    Raises:
        FileNotFoundError: If *file_path* does not exist.
    """
    compressor = compressor or HtmlCompressor()
    source = Path(file_path)
    target = Path(output_path) if output_path is not None else source

    with open(source, encoding=encoding, newline="") as f:
        html = f.read()

    result = compressor.compress_with_stats(html)

    with open(target, "w", encoding=encoding, newline="") as f:
        f.write(result.text)

    logger.info(
        "Compressed %s: %d -> %d chars (%.1f%% saved)",
        source, result.original_length, result.compressed_length, result.savings_pct,
    )
    return result


def find_html_files(
    folder: str | Path, patterns: Iterable[str] = DEFAULT_PATTERNS, recursive: bool = False
) -> list[Path]:
    """Files in *folder* matching any of *patterns*, sorted, without duplicates."""
    root = Path(folder)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    found: set[Path] = set()
    for pattern in patterns:
        matches = root.rglob(pattern) if recursive else root.glob(pattern)
        found.update(p for p in matches if p.is_file())
    return sorted(found)


def compress_directory(
    folder: str | Path,
    compressor: HtmlCompressor | None = None,
    patterns: Iterable[str] = DEFAULT_PATTERNS,
    recursive: bool = False,
    encoding: str = "utf-8",
) -> dict[Path, CompressionResult]:
    """Compress every HTML file in *folder* in place.

    Args:
        folder: Directory to scan.
        compressor: Compressor shared by all files.
        patterns: Glob patterns selecting the files.
        recursive: Whether to descend into subdirectories.
        encoding: Text encoding of the files.

    Returns:
        Mapping of each processed path to its CompressionResult.
    """
    compressor = compressor or HtmlCompressor()
    results: dict[Path, CompressionResult] = {}

    for path in find_html_files(folder, patterns, recursive):
        results[path] = compress_file(path, compressor, encoding=encoding)

    logger.info("Compressed %d files in %s", len(results), folder)
    return results
