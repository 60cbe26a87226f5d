"""Exceptions raised by the compressor."""

from __future__ import annotations


class CompressorError(Exception):
    """Base class for all compressor errors."""


class InvalidPatternError(CompressorError, ValueError):
    """A preserve pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid regex pattern '{pattern}': {reason}")
        self.pattern = pattern


class NestingDepthError(CompressorError):
    """Conditional comments are nested deeper than the configured ceiling."""

    def __init__(self, max_depth: int) -> None:
        super().__init__(f"Conditional comments nested deeper than {max_depth} levels")
        self.max_depth = max_depth


class RestorationError(CompressorError):
    """A placeholder token refers to a block that was never stored."""

    def __init__(self, token: str, ordinal: int, available: int) -> None:
        super().__init__(
            f"Token {token!r} refers to block {ordinal} but only {available} were preserved"
        )
        self.token = token
        self.ordinal = ordinal
        self.available = available
