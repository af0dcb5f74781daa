"""Line-oriented Markdown block parser.

Splits a document into block tokens (headings, paragraphs, fenced code,
block quotes, rules, lists, pipe tables) and hands every span of inline
text to :func:`md2office.inline.parse_inline`.

The parser is total: every line ends up in some block, with a plain
paragraph as the last resort.  It does not reflow paragraphs; each
non-blank plain line becomes its own paragraph.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Union

from md2office.inline import InlineToken, parse_inline

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Block token definitions
# ---------------------------------------------------------------------------

class BlockType(Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_FENCE = "code_fence"
    BLOCK_QUOTE = "block_quote"
    HORIZONTAL_RULE = "horizontal_rule"
    UNORDERED_LIST = "unordered_list"
    ORDERED_LIST = "ordered_list"
    TABLE = "table"


@dataclass
class Heading:
    level: int
    children: list[InlineToken] = field(default_factory=list)
    type: ClassVar[BlockType] = BlockType.HEADING


@dataclass
class Paragraph:
    children: list[InlineToken] = field(default_factory=list)
    type: ClassVar[BlockType] = BlockType.PARAGRAPH


@dataclass
class CodeFence:
    code: str
    language: Optional[str] = None
    type: ClassVar[BlockType] = BlockType.CODE_FENCE


@dataclass
class BlockQuote:
    children: list[Block] = field(default_factory=list)
    type: ClassVar[BlockType] = BlockType.BLOCK_QUOTE


@dataclass
class HorizontalRule:
    type: ClassVar[BlockType] = BlockType.HORIZONTAL_RULE


@dataclass
class ListItem:
    """One list entry; owns its nested sub-list, if any."""

    children: list[InlineToken] = field(default_factory=list)
    sublist: Optional[ListBlock] = None


@dataclass
class UnorderedList:
    items: list[ListItem] = field(default_factory=list)
    type: ClassVar[BlockType] = BlockType.UNORDERED_LIST

    @property
    def ordered(self) -> bool:
        return False


@dataclass
class OrderedList:
    items: list[ListItem] = field(default_factory=list)
    type: ClassVar[BlockType] = BlockType.ORDERED_LIST

    @property
    def ordered(self) -> bool:
        return True


@dataclass
class Table:
    header: list[list[InlineToken]] = field(default_factory=list)
    rows: list[list[list[InlineToken]]] = field(default_factory=list)
    type: ClassVar[BlockType] = BlockType.TABLE


ListBlock = Union[UnorderedList, OrderedList]
Block = Union[
    Heading, Paragraph, CodeFence, BlockQuote, HorizontalRule,
    UnorderedList, OrderedList, Table,
]


# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(r"^\s{0,3}(`{3,})\s*([^`\s]*)[^`]*$")
_HEADING_RE = re.compile(r"^\s{0,3}(#+) (.*)$")
_HEADING_CLOSE_RE = re.compile(r"\s+#+\s*$")
_RULE_RE = re.compile(r"^\s{0,3}(-{3,}|\*{3,}|_{3,})\s*$")
_QUOTE_RE = re.compile(r"^\s{0,3}>")
_TABLE_ROW_RE = re.compile(r"^\s*\|")
_TABLE_SEP_RE = re.compile(r"^\s*\|[-:| ]+\|\s*$")
_LIST_RE = re.compile(r"^(\s*)([-*]|\d+\.)\s+(.*)$")

MAX_HEADING_LEVEL = 6


def _indent(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip(" "))


def _is_blank(line: str) -> bool:
    return not line.strip()


def _split_cells(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|"):
        row = row[:-1]
    return [cell.strip() for cell in row.split("|")]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MarkdownParser:
    """Parse Markdown text into a list of block tokens.

    Usage::

        blocks = MarkdownParser().parse("# Title\\n\\nBody **bold**.")
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._pos = 0

    # -- public API ---------------------------------------------------------

    def parse(self, markdown_text: str) -> list[Block]:
        """Return the block tokens for *markdown_text*."""
        text = markdown_text.replace("\r\n", "\n").replace("\r", "\n")
        return self._parse_lines(text.split("\n"))

    # -- dispatch -----------------------------------------------------------

    def _parse_lines(self, lines: list[str]) -> list[Block]:
        saved = self._lines, self._pos
        self._lines, self._pos = lines, 0
        try:
            blocks: list[Block] = []
            while self._pos < len(self._lines):
                block = self._parse_block(self._lines[self._pos])
                if block is not None:
                    blocks.append(block)
            return blocks
        finally:
            self._lines, self._pos = saved

    def _parse_block(self, line: str) -> Optional[Block]:
        if _is_blank(line):
            self._pos += 1
            return None
        if _FENCE_RE.match(line):
            return self._parse_fence()
        if _HEADING_RE.match(line):
            return self._parse_heading()
        if _RULE_RE.match(line):
            self._pos += 1
            return HorizontalRule()
        if _QUOTE_RE.match(line):
            return self._parse_quote()
        if _TABLE_ROW_RE.match(line):
            return self._parse_table()
        if _LIST_RE.match(line):
            return self._parse_list()
        self._pos += 1
        return Paragraph(children=parse_inline(line.strip()))

    # -- block handlers -----------------------------------------------------

    def _parse_fence(self) -> CodeFence:
        m = _FENCE_RE.match(self._lines[self._pos])
        fence, language = m.group(1), m.group(2) or None
        close_re = re.compile(r"^\s{0,3}`{%d,}\s*$" % len(fence))
        self._pos += 1
        body: list[str] = []
        while self._pos < len(self._lines):
            line = self._lines[self._pos]
            self._pos += 1
            if close_re.match(line):
                break
            body.append(line)
        return CodeFence(code="\n".join(body), language=language)

    def _parse_heading(self) -> Heading:
        m = _HEADING_RE.match(self._lines[self._pos])
        self._pos += 1
        level = min(len(m.group(1)), MAX_HEADING_LEVEL)
        text = _HEADING_CLOSE_RE.sub("", m.group(2)).strip()
        return Heading(level=level, children=parse_inline(text))

    def _parse_quote(self) -> BlockQuote:
        inner: list[str] = []
        while self._pos < len(self._lines):
            line = self._lines[self._pos]
            m = _QUOTE_RE.match(line)
            if m is None:
                break
            rest = line[m.end():]
            inner.append(rest[1:] if rest.startswith(" ") else rest)
            self._pos += 1
        return BlockQuote(children=self._parse_lines(inner))

    def _parse_table(self) -> Table:
        header = [parse_inline(cell) for cell in _split_cells(self._lines[self._pos])]
        self._pos += 1
        if self._pos < len(self._lines) and _TABLE_SEP_RE.match(self._lines[self._pos]):
            self._pos += 1
        rows: list[list[list[InlineToken]]] = []
        while self._pos < len(self._lines) and _TABLE_ROW_RE.match(self._lines[self._pos]):
            rows.append([parse_inline(cell) for cell in _split_cells(self._lines[self._pos])])
            self._pos += 1
        return Table(header=header, rows=rows)

    # -- lists --------------------------------------------------------------

    def _parse_list(self) -> ListBlock:
        """Parse one list level starting at the current line.

        Siblings share the first line's indentation and marker kind.  A more
        indented marker line becomes the previous item's sub-list; a more
        indented plain line is lazy continuation and is skipped.
        """
        first = _LIST_RE.match(self._lines[self._pos])
        indent = _indent(first.group(1))
        ordered = first.group(2)[0].isdigit()
        items: list[ListItem] = []

        while self._pos < len(self._lines):
            line = self._lines[self._pos]
            if _is_blank(line):
                if not self._list_continues(indent, ordered):
                    break
                self._pos += 1
                continue

            m = _LIST_RE.match(line)
            line_indent = _indent(line)
            if m is None:
                if line_indent > indent and items:
                    self._pos += 1
                    continue
                break
            if line_indent < indent:
                break
            if line_indent > indent:
                if not items:
                    break
                previous = items[-1].sublist
                if previous is not None and m.group(2)[0].isdigit() != previous.ordered:
                    # A second nested run of the other kind ends this list.
                    break
                self._attach_sublist(items[-1], self._parse_list())
                continue
            if m.group(2)[0].isdigit() != ordered:
                break
            items.append(ListItem(children=parse_inline(m.group(3).strip())))
            self._pos += 1

        return OrderedList(items=items) if ordered else UnorderedList(items=items)

    def _list_continues(self, indent: int, ordered: bool) -> bool:
        """Whether the next non-blank line carries on the current list."""
        pos = self._pos
        while pos < len(self._lines) and _is_blank(self._lines[pos]):
            pos += 1
        if pos >= len(self._lines):
            return False
        m = _LIST_RE.match(self._lines[pos])
        if m is None:
            return False
        line_indent = _indent(self._lines[pos])
        if line_indent > indent:
            return True
        return line_indent == indent and m.group(2)[0].isdigit() == ordered

    @staticmethod
    def _attach_sublist(item: ListItem, sublist: ListBlock) -> None:
        if item.sublist is None:
            item.sublist = sublist
        else:
            # A second nested run of the same kind joins the first one.
            item.sublist.items.extend(sublist.items)
        logger.debug("parser: nested %d item(s) under list item", len(sublist.items))


def parse_blocks(markdown_text: str) -> list[Block]:
    """Shortcut for ``MarkdownParser().parse(markdown_text)``."""
    return MarkdownParser().parse(markdown_text)
