"""Pulling protected blocks out of a document and putting them back.

Extraction runs a fixed sequence of :class:`PreservationRule` records over the
document. Each accepted match is swapped for a placeholder token and its
content appended to the block store under the rule's tag. Restoration walks
the same sequence backwards and swaps every token for its stored block.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Callable, Iterable, Sequence

from html_compressor.errors import RestorationError
from html_compressor.tokens import TOKEN_PREFIX, Category, TokenScheme, user_tag

logger = logging.getLogger(__name__)

_FLAGS = re.DOTALL | re.IGNORECASE

# --- Built-in block patterns ---
SKIP_RE = re.compile(r"<!--\s*\{\{\{\s*-->(.*?)<!--\s*\}\}\}\s*-->", _FLAGS)
COND_COMMENT_RE = re.compile(r"(<!(?:--)?\[[^\]]+?]>)(.*?)(<!\[[^\]]+]-->)", _FLAGS)
EVENT_DOUBLE_QUOTE_RE = re.compile(
    r'(\son[a-z]+\s*=\s*")([^"\\\r\n]*(?:\\.[^"\\\r\n]*)*)(")', re.IGNORECASE
)
EVENT_SINGLE_QUOTE_RE = re.compile(
    r"(\son[a-z]+\s*=\s*')([^'\\\r\n]*(?:\\.[^'\\\r\n]*)*)(')", re.IGNORECASE
)
PRE_RE = re.compile(r"(<pre[^>]*?>)(.*?)(</pre>)", _FLAGS)
SCRIPT_RE = re.compile(r"(<script[^>]*?>)(.*?)(</script>)", _FLAGS)
STYLE_RE = re.compile(r"(<style[^>]*?>)(.*?)(</style>)", _FLAGS)
TEXTAREA_RE = re.compile(r"(<textarea[^>]*?>)(.*?)(</textarea>)", _FLAGS)
# A run of line breaks and the spaces/tabs around them; group 1 is the first break.
LINE_BREAK_RE = re.compile(r"[ \t]*(\r?\n)(?:[ \t]*\r?\n)*[ \t]*")

_TYPE_ATTR_RE = re.compile(
    r"""(?<![\w-])type\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", _FLAGS
)

# Ordered restoration passes; the second one catches tokens nested in skipped scripts.
RESTORE_PASSES = 2

JAVASCRIPT_TYPES = frozenset({"", "text/javascript", "application/javascript"})
# Templates are markup, they get minified with the rest of the document.
TEMPLATE_TYPES = frozenset({"text/x-jquery-tmpl"})


def is_not_blank(content: str) -> bool:
    return bool(content.strip())


def accept_all(content: str) -> bool:
    return True


def script_type(open_tag: str) -> str:
    """Lower-cased value of the ``type`` attribute of *open_tag*, or ``""``."""
    match = _TYPE_ATTR_RE.search(open_tag)
    if not match:
        return ""
    value = next(g for g in match.groups() if g is not None)
    return value.strip().lower()


def classify_script(match: re.Match[str]) -> str | None:
    """Store tag for a ``<script>`` match, or None to leave it in the markup."""
    kind = script_type(match.group(1))
    if kind in JAVASCRIPT_TYPES:
        return Category.SCRIPT.value
    if kind in TEMPLATE_TYPES:
        return None
    # Unknown script types are kept verbatim and never reach the JS minifier.
    return Category.SKIP.value


@dataclasses.dataclass(frozen=True, slots=True)
class PreservationRule:
    """How one category of blocks is found, stored and replaced.

    Attributes:
        tag: Store tag (and token tag) for accepted matches.
        pattern: Regex scanned over the whole document.
        group: Match group that is tested by ``accept`` and stored.
        keep_tags: Keep groups 1 and 3 (the surrounding open/close tags) in
            the residual text and tokenize only group 2.
        accept: Predicate on the captured text; rejected matches stay in place
            and do not use up an ordinal.
        classify: Optional override of ``tag`` per match; returning None
            rejects the match.
        transform: Optional function producing the stored content.
    """

    tag: str
    pattern: re.Pattern[str]
    group: int = 0
    keep_tags: bool = False
    accept: Callable[[str], bool] = is_not_blank
    classify: Callable[[re.Match[str]], str | None] | None = None
    transform: Callable[[re.Match[str]], str] | None = None


class BlockStore:
    """Ordered blocks per tag for a single compression call."""

    def __init__(self) -> None:
        self._blocks: dict[str, list[str]] = {}

    def add(self, tag: str, content: str) -> int:
        """Append *content* under *tag* and return its ordinal."""
        blocks = self._blocks.setdefault(tag, [])
        blocks.append(content)
        return len(blocks) - 1

    def get(self, tag: str) -> list[str]:
        return self._blocks.get(tag, [])

    def replace(self, tag: str, blocks: list[str]) -> None:
        if len(blocks) != len(self.get(tag)):
            raise ValueError(f"Block count for {tag} changed from {len(self.get(tag))} to {len(blocks)}")
        self._blocks[tag] = blocks

    def tags(self) -> list[str]:
        return list(self._blocks)

    def __len__(self) -> int:
        return sum(len(b) for b in self._blocks.values())


def user_pattern_rules(patterns: Sequence[re.Pattern[str]]) -> list[PreservationRule]:
    """One rule per user pattern, in declaration order; whole matches are kept."""
    return [
        PreservationRule(tag=user_tag(index), pattern=pattern)
        for index, pattern in enumerate(patterns)
    ]


def build_rules(
    preserve_patterns: Sequence[re.Pattern[str]] = (),
    compress_conditional: Callable[[str], str] | None = None,
    preserve_line_breaks: bool = False,
) -> list[PreservationRule]:
    """Assemble the extraction sequence.

    Args:
        preserve_patterns: User patterns, extracted before any built-in block.
        compress_conditional: Compresses the body of a conditional comment.
            When None the body is stored unchanged.
        preserve_line_breaks: Whether to add the trailing line-break rule.

    Returns:
        Rules in extraction order.
    """

    def _conditional_block(match: re.Match[str]) -> str:
        body = match.group(2)
        if compress_conditional is not None:
            body = compress_conditional(body)
        return match.group(1) + body + match.group(3)

    rules = user_pattern_rules(preserve_patterns)
    rules += [
        PreservationRule(Category.SKIP.value, SKIP_RE, group=1),
        PreservationRule(Category.COND.value, COND_COMMENT_RE, group=2, transform=_conditional_block),
        PreservationRule(Category.EVENT.value, EVENT_DOUBLE_QUOTE_RE, group=2, keep_tags=True),
        PreservationRule(Category.EVENT.value, EVENT_SINGLE_QUOTE_RE, group=2, keep_tags=True),
        PreservationRule(Category.PRE.value, PRE_RE, group=2, keep_tags=True),
        PreservationRule(
            Category.SCRIPT.value, SCRIPT_RE, group=2, keep_tags=True, classify=classify_script
        ),
        PreservationRule(Category.STYLE.value, STYLE_RE, group=2, keep_tags=True),
        PreservationRule(Category.TEXTAREA.value, TEXTAREA_RE, group=2, keep_tags=True),
    ]
    if preserve_line_breaks:
        rules.append(
            PreservationRule(Category.LINE_BREAK.value, LINE_BREAK_RE, group=1, accept=accept_all)
        )
    return rules


def extract(html: str, rule: PreservationRule, store: BlockStore, scheme: TokenScheme) -> str:
    """Replace every accepted match of *rule* in *html* with a token."""
    parts: list[str] = []
    prev_end = 0

    for match in rule.pattern.finditer(html):
        captured = match.group(rule.group)
        if not rule.accept(captured):
            continue
        tag = rule.classify(match) if rule.classify is not None else rule.tag
        if tag is None:
            continue

        content = rule.transform(match) if rule.transform is not None else captured
        token = scheme.token(tag, store.add(tag, content))

        parts.append(html[prev_end:match.start()])
        if rule.keep_tags:
            parts.append(match.group(1) + token + match.group(3))
        else:
            parts.append(token)
        prev_end = match.end()

    if not parts:
        return html
    parts.append(html[prev_end:])
    return "".join(parts)


def preserve_blocks(
    html: str, rules: Iterable[PreservationRule], store: BlockStore, scheme: TokenScheme
) -> str:
    """Run every rule in order; each one sees the tokens left by the previous ones."""
    for rule in rules:
        html = extract(html, rule, store, scheme)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Preserved %d blocks at depth %d: %s",
            len(store),
            scheme.depth,
            {tag: len(store.get(tag)) for tag in store.tags()},
        )
    return html


def restoration_order(rules: Iterable[PreservationRule]) -> list[str]:
    """Tags in reverse extraction order, each listed once."""
    order: list[str] = []
    for rule in reversed(list(rules)):
        if rule.tag not in order:
            order.append(rule.tag)
    # Scripts of unknown type land in the skip store even though the
    # skip rule itself may not be part of *rules*.
    if Category.SCRIPT.value in order and Category.SKIP.value not in order:
        order.append(Category.SKIP.value)
    return order


def return_blocks(
    html: str,
    tag: str,
    blocks: Sequence[str],
    scheme: TokenScheme,
    strict: bool = False,
) -> str:
    """Swap every *tag* token for the block its ordinal points at.

    A token whose ordinal is out of range is left as it is (and logged), or
    raises :class:`RestorationError` when *strict* is set.
    """

    def _replace(match: re.Match[str]) -> str:
        ordinal = int(match.group(1))
        if ordinal < len(blocks):
            return blocks[ordinal]
        if strict:
            raise RestorationError(match.group(0), ordinal, len(blocks))
        logger.warning(
            "Leaving unresolved token %s: only %d %s blocks preserved",
            match.group(0), len(blocks), tag,
        )
        return match.group(0)

    return scheme.pattern(tag).sub(_replace, html)


def restore(
    html: str,
    order: Sequence[str],
    store: BlockStore,
    scheme: TokenScheme,
    strict: bool = False,
) -> str:
    """Put all preserved blocks back, following *order*.

    A block can hold tokens of categories extracted before it; the reverse
    order resolves those on the way. The one exception is the skip store,
    which also receives scripts extracted after the event and conditional
    comment passes. Tokens left inside such a script surface only once the
    skip blocks are back, and a second ordered pass resolves them. Blocks
    restored by that pass can only hold tokens that come later in *order*.

    Input that already carries token text may still leave tokens behind;
    there are never more than two passes.
    """
    marker = f"{TOKEN_PREFIX}{scheme.namespace}~"
    for _ in range(RESTORE_PASSES):
        for tag in order:
            html = return_blocks(html, tag, store.get(tag), scheme, strict)
        if marker not in html:
            break
    return html
