"""Placeholder tokens that stand in for preserved blocks."""

from __future__ import annotations

import dataclasses
import enum
import functools
import re

# Every token starts with TOKEN_PREFIX and ends with TOKEN_SUFFIX; the
# inter-tag whitespace rules rely on both.
TOKEN_PREFIX = "%%%~"
TOKEN_SUFFIX = "~%%%"
SENTINEL = TOKEN_PREFIX + "COMPRESS"


class Category(enum.Enum):
    """Kinds of preserved blocks, in extraction order.

    The value is the tag literal embedded in the token. User patterns get one
    tag per pattern, see :func:`user_tag`.
    """

    USER = "USER"
    SKIP = "SKIP"
    COND = "COND"
    EVENT = "EVENT"
    PRE = "PRE"
    SCRIPT = "SCRIPT"
    STYLE = "STYLE"
    TEXTAREA = "TEXTAREA"
    LINE_BREAK = "LT"


def user_tag(index: int) -> str:
    """Tag for the user pattern declared at *index*: ``USER0``, ``USER1``..."""
    return f"{Category.USER.value}{index}"


def contains_sentinel(text: str) -> bool:
    """Whether *text* contains anything that looks like one of our tokens."""
    return SENTINEL in text


@functools.lru_cache(maxsize=256)
def _compile_token_pattern(namespace: str, tag: str) -> re.Pattern[str]:
    return re.compile(
        re.escape(f"{TOKEN_PREFIX}{namespace}~{tag}~") + r"(\d+?)" + re.escape(TOKEN_SUFFIX)
    )


@dataclasses.dataclass(frozen=True, slots=True)
class TokenScheme:
    """Token syntax for one compression call.

    Nested sub-compressions (conditional comment bodies) use their own
    namespace so that tokens minted by an outer call, which may sit inside
    the nested body, are never resolved against the inner call's blocks.

        depth 0:  %%%~COMPRESS~PRE~0~%%%
        depth 2:  %%%~COMPRESS2~PRE~0~%%%
    """

    depth: int = 0

    @property
    def namespace(self) -> str:
        return "COMPRESS" if self.depth == 0 else f"COMPRESS{self.depth}"

    def token(self, tag: str, ordinal: int) -> str:
        return f"{TOKEN_PREFIX}{self.namespace}~{tag}~{ordinal}{TOKEN_SUFFIX}"

    def pattern(self, tag: str) -> re.Pattern[str]:
        """Regex matching this scheme's tokens for *tag*; group 1 is the ordinal."""
        return _compile_token_pattern(self.namespace, tag)

    def find(self, text: str, tag: str) -> list[int]:
        """Ordinals of all *tag* tokens in *text*, left to right."""
        return [int(m.group(1)) for m in self.pattern(tag).finditer(text)]

    def nested(self) -> TokenScheme:
        return TokenScheme(self.depth + 1)
