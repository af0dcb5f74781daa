"""Inline Markdown parser.

Turns one span of text into a list of inline tokens (emphasis, strong,
strikethrough, code spans, links, images, plain text) using the combinators
from :mod:`md2office.combinators`.  Parsing is total: anything that does not
form a complete construct degrades to literal text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, Union

from md2office.combinators import (
    MAX_REPEAT,
    Parser,
    Result,
    alt,
    any_char,
    between,
    fmap,
    lazy,
    literal,
    many,
    regex,
    seq,
    take_while,
)

logger = logging.getLogger(__name__)

#: Emphasis nested deeper than this is left as literal text.
MAX_NESTING = 32

#: Budget of interior scan steps per parse.  Once spent, delimiters no
#: longer open and the rest of the span reads as plain text.
MAX_STEPS = 50_000


# ---------------------------------------------------------------------------
# Token definitions
# ---------------------------------------------------------------------------

class InlineType(Enum):
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    STRIKE = "strike"
    CODE = "code"
    LINK = "link"
    IMAGE = "image"


@dataclass
class Text:
    content: str
    type: ClassVar[InlineType] = InlineType.TEXT


@dataclass
class Bold:
    children: list[InlineToken] = field(default_factory=list)
    type: ClassVar[InlineType] = InlineType.BOLD


@dataclass
class Italic:
    children: list[InlineToken] = field(default_factory=list)
    type: ClassVar[InlineType] = InlineType.ITALIC


@dataclass
class Strike:
    children: list[InlineToken] = field(default_factory=list)
    type: ClassVar[InlineType] = InlineType.STRIKE


@dataclass
class Code:
    content: str
    type: ClassVar[InlineType] = InlineType.CODE


@dataclass
class Link:
    children: list[InlineToken]
    href: str
    type: ClassVar[InlineType] = InlineType.LINK


@dataclass
class Image:
    alt: str
    src: str
    type: ClassVar[InlineType] = InlineType.IMAGE


InlineToken = Union[Text, Bold, Italic, Strike, Code, Link, Image]


def merge_text(tokens: list[InlineToken]) -> list[InlineToken]:
    """Collapse runs of adjacent :class:`Text` tokens into one."""
    merged: list[InlineToken] = []
    for tok in tokens:
        if isinstance(tok, Text) and merged and isinstance(merged[-1], Text):
            merged[-1] = Text(merged[-1].content + tok.content)
        else:
            merged.append(tok)
    return merged


def plain_text(tokens: list[InlineToken]) -> str:
    """Flatten *tokens* to their visible text, dropping all formatting.

    Images contribute their alt text.
    """
    parts: list[str] = []
    for tok in tokens:
        if isinstance(tok, (Text, Code)):
            parts.append(tok.content)
        elif isinstance(tok, Image):
            parts.append(tok.alt)
        else:
            parts.append(plain_text(tok.children))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

_PLAIN_RE = re.compile(r"[^\\`*_~!\[]+")
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_CODE_RE = re.compile(r"(`+)(.+?)(?<!`)\1(?!`)", re.DOTALL)

# (open, close) delimiter patterns.  Openers may not be followed by
# whitespace and closers may not follow it; underscores never open or close
# inside a word.
_STRONG_STAR = (r"\*\*(?!\s)", r"(?<!\s)\*\*")
_STRONG_UNDER = (r"(?<!\w)__(?!\s)", r"(?<!\s)__(?!\w)")
_STRIKE = (r"~~(?!\s)", r"(?<!\s)~~")
_EM_STAR = (r"\*(?![\s*])", r"(?<!\s)\*")
_EM_UNDER = (r"(?<!\w)_(?![\s_])", r"(?<!\s)_(?!\w)")


class InlineGrammar:
    """The inline grammar, built fresh for each parse.

    Holding the nesting depth and step budget on an instance keeps :func:`parse_inline`
    re-entrant and thread-safe.
    """

    def __init__(self) -> None:
        self.depth = 0
        self.steps = 0
        element = lazy(lambda: self.element)

        self.escape = fmap(regex(_ESCAPE_RE, group=1), Text)
        self.code = fmap(regex(_CODE_RE, group=2), Code)
        self.strong = alt(
            self._delimited(*_STRONG_STAR, Bold, element),
            self._delimited(*_STRONG_UNDER, Bold, element),
        )
        self.strike = self._delimited(*_STRIKE, Strike, element)
        self.emphasis = alt(
            self._delimited(*_EM_STAR, Italic, element, prefer=self.strong),
            self._delimited(*_EM_UNDER, Italic, element, prefer=self.strong),
        )
        label = between(literal("["), take_while(lambda c: c != "]", 0), literal("]"))
        target = between(literal("("), take_while(lambda c: c != ")", 0), literal(")"))
        self.image = fmap(
            seq(literal("!"), label, target),
            lambda parts: Image(alt=parts[1], src=parts[2].strip()),
        )
        self.link = fmap(seq(label, target), self._make_link)
        self.plain = fmap(regex(_PLAIN_RE), Text)
        self.fallback = fmap(any_char, Text)

        # Order matters: the first alternative that succeeds wins.
        self.element: Parser = alt(
            self.escape,
            self.code,
            self.strong,
            self.strike,
            self.emphasis,
            self.image,
            self.link,
            self.plain,
            self.fallback,
        )

    def parse(self, text: str) -> list[InlineToken]:
        tokens, pos = many(self.element)(text, 0)
        if pos < len(text):
            logger.debug(
                "inline: repetition cap of %d reached at offset %d; "
                "keeping the remaining %d characters as text",
                MAX_REPEAT, pos, len(text) - pos,
            )
            tokens.append(Text(text[pos:]))
        return merge_text(tokens)

    def _make_link(self, parts: tuple[str, str]) -> Link:
        label, href = parts
        return Link(children=self.parse(label), href=href.strip())

    def _delimited(
        self,
        open_pattern: str,
        close_pattern: str,
        make: Callable[[list[InlineToken]], InlineToken],
        element: Parser,
        prefer: Parser | None = None,
    ) -> Parser:
        """Parse ``open interior close`` with a recursively parsed interior.

        The interior must hold at least one token.  *prefer* is tried before
        the closing delimiter, so ``*a **b** c*`` reads the inner ``**`` as
        strong rather than as the end of the emphasis.
        """
        open_ = regex(open_pattern)
        close = regex(close_pattern)
        # Outcome per (text, pos); each opener is scanned at most once.
        memo: dict[tuple[str, int], Result] = {}

        def parse(text: str, pos: int) -> Result:
            if self.depth >= MAX_NESTING or self.steps >= MAX_STEPS:
                return None
            if open_(text, pos) is None:
                return None
            key = (text, pos)
            if key not in memo:
                memo[key] = scan(text, open_(text, pos)[1])
            return memo[key]

        def scan(text: str, cur: int) -> Result:
            children: list[InlineToken] = []
            self.depth += 1
            try:
                for _ in range(MAX_REPEAT):
                    if self.steps >= MAX_STEPS:
                        return None
                    self.steps += 1
                    if children:
                        nested = prefer(text, cur) if prefer else None
                        if nested is not None:
                            token, cur = nested
                            children.append(token)
                            continue
                        closed = close(text, cur)
                        if closed is not None:
                            return make(merge_text(children)), closed[1]
                    res = element(text, cur)
                    if res is None:
                        return None
                    token, cur = res
                    children.append(token)
                return None
            finally:
                self.depth -= 1

        return parse


def parse_inline(text: str) -> list[InlineToken]:
    """Parse *text* into a list of inline tokens.  Never raises."""
    if not text:
        return []
    return InlineGrammar().parse(text)
