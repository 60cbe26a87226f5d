"""Command line interface.

Usage:
    html-compressor page.html                     # compress in place
    html-compressor public/ --recursive           # every *.html / *.htm below public/
    html-compressor page.html -o page.min.html    # write elsewhere
    cat page.html | html-compressor --remove-intertag-spaces > page.min.html
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from html_compressor.compressor import CompressionResult, HtmlCompressor
from html_compressor.errors import CompressorError
from html_compressor.files import compress_directory, compress_file
from html_compressor.settings import (
    ALL_TAGS,
    BLOCK_TAGS_MAX,
    BLOCK_TAGS_MIN,
    PHP_TAG_PATTERN,
    SERVER_SCRIPT_TAG_PATTERN,
    SERVER_SIDE_INCLUDE_PATTERN,
    CompressorSettings,
)

logger = logging.getLogger(__name__)

# (flag, setting, help) for switches that are off by default
_ENABLE_FLAGS = [
    ("--remove-intertag-spaces", "remove_intertag_spaces", "Remove whitespace between tags"),
    ("--remove-quotes", "remove_quotes", "Remove quotes around simple attribute values"),
    ("--simple-doctype", "simple_doctype", "Replace the DOCTYPE with <!DOCTYPE html>"),
    ("--remove-script-attributes", "remove_script_attributes", "Remove default type/language from <script>"),
    ("--remove-style-attributes", "remove_style_attributes", "Remove default type from <style>"),
    ("--remove-link-attributes", "remove_link_attributes", "Remove default type from stylesheet <link>"),
    ("--remove-form-attributes", "remove_form_attributes", 'Remove method="get" from <form>'),
    ("--remove-input-attributes", "remove_input_attributes", 'Remove type="text" from <input>'),
    ("--simple-boolean-attributes", "simple_boolean_attributes", 'checked="checked" -> checked'),
    ("--remove-js-protocol", "remove_javascript_protocol", "Remove javascript: from inline event handlers"),
    ("--remove-http-protocol", "remove_http_protocol", "Remove http: from URL attributes"),
    ("--remove-https-protocol", "remove_https_protocol", "Remove https: from URL attributes"),
    ("--preserve-line-breaks", "preserve_line_breaks", "Keep line breaks"),
    ("--strict", "strict_restoration", "Fail on unresolvable placeholder tokens"),
]

_SURROUNDING_PRESETS = {"min": BLOCK_TAGS_MIN, "max": BLOCK_TAGS_MAX, "all": ALL_TAGS}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="html-compressor",
        description="Compress HTML by removing comments, extra spaces and redundant attributes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Files or directories to compress in place (default: stdin to stdout)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write the result here instead (single input only)",
    )
    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Descend into subdirectories",
    )
    parser.add_argument(
        "--encoding",
        default="utf-8",
        help="Text encoding of the files (default: utf-8)",
    )
    parser.add_argument(
        "--keep-comments",
        action="store_true",
        help="Do not remove HTML comments",
    )
    parser.add_argument(
        "--keep-multi-spaces",
        action="store_true",
        help="Do not collapse runs of whitespace",
    )
    for flag, dest, help_text in _ENABLE_FLAGS:
        parser.add_argument(flag, dest=dest, action="store_true", help=help_text)
    parser.add_argument(
        "--surrounding-spaces",
        metavar="TAGS",
        default=None,
        help="Remove spaces around these comma-separated tags, or min, max, all",
    )
    parser.add_argument(
        "--preserve",
        "-p",
        metavar="REGEX",
        action="append",
        default=[],
        help="Keep text matching REGEX verbatim (repeatable)",
    )
    parser.add_argument("--preserve-php", action="store_true", help="Keep <?php ... ?> blocks")
    parser.add_argument("--preserve-server-script", action="store_true", help="Keep <% ... %> blocks")
    parser.add_argument("--preserve-ssi", action="store_true", help="Keep <!--# ... --> includes")
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print compression statistics to stderr",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Log every file")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only log errors")
    return parser


def settings_from_args(args: argparse.Namespace) -> CompressorSettings:
    """Translate parsed arguments into compressor settings."""
    patterns: list = []
    if args.preserve_php:
        patterns.append(PHP_TAG_PATTERN)
    if args.preserve_server_script:
        patterns.append(SERVER_SCRIPT_TAG_PATTERN)
    if args.preserve_ssi:
        patterns.append(SERVER_SIDE_INCLUDE_PATTERN)
    patterns.extend(args.preserve)

    surrounding = args.surrounding_spaces
    if surrounding is not None:
        surrounding = _SURROUNDING_PRESETS.get(surrounding.lower(), surrounding)

    return CompressorSettings(
        remove_comments=not args.keep_comments,
        remove_multi_spaces=not args.keep_multi_spaces,
        remove_surrounding_spaces=surrounding,
        preserve_patterns=patterns,
        generate_statistics=args.stats,
        **{dest: getattr(args, dest) for _, dest, _ in _ENABLE_FLAGS},
    )


def _print_stats(label: str, result: CompressionResult) -> None:
    line = (
        f"{label}: {result.original_length} -> {result.compressed_length} chars "
        f"({result.savings_pct:.1f}% saved)"
    )
    print(line, file=sys.stderr)
    if result.statistics is not None:
        print(json.dumps(result.statistics.to_dict(), indent=2), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO if args.verbose else logging.ERROR if args.quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.output is not None and (len(args.paths) > 1 or any(p.is_dir() for p in args.paths)):
        parser.error("--output needs a single input file")

    try:
        compressor = HtmlCompressor(settings_from_args(args))

        if not args.paths:
            result = compressor.compress_with_stats(sys.stdin.read())
            if args.output is not None:
                args.output.write_text(result.text, encoding=args.encoding)
            else:
                sys.stdout.write(result.text)
            if args.stats:
                _print_stats("<stdin>", result)
            return 0

        for path in args.paths:
            if path.is_dir():
                results = compress_directory(
                    path, compressor, recursive=args.recursive, encoding=args.encoding
                )
            else:
                results = {
                    path: compress_file(path, compressor, args.output, encoding=args.encoding)
                }
            if args.stats:
                for file_path, result in results.items():
                    _print_stats(str(file_path), result)
    except (CompressorError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
