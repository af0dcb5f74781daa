"""Translate Markdown block tokens into document elements.

The mapping is purely structural.  Inline token trees are flattened into
:class:`~md2office.elements.Run` lists, with style attributes accumulating
along each branch of the tree.
"""

from __future__ import annotations

from typing import Optional

from md2office.elements import (
    BlockQuoteElement,
    CodeBlockElement,
    Element,
    HeadingElement,
    HorizontalRuleElement,
    RichListElement,
    RichListItem,
    RichParagraphElement,
    RichTableElement,
    Run,
    TextStyle,
)
from md2office.inline import InlineToken, plain_text
from md2office.parser import Block, BlockType, ListBlock

#: Default look of hyperlinks when the surrounding text sets no colour.
LINK_COLOR = "0563C1"


# ---------------------------------------------------------------------------
# Inline tokens -> runs
# ---------------------------------------------------------------------------

def flatten_runs(
    tokens: list[InlineToken],
    style: Optional[TextStyle] = None,
    href: Optional[str] = None,
) -> list[Run]:
    """Flatten an inline token tree into styled runs.

    Adjacent runs with identical style and link target are merged, so
    ``**a**b`` yields exactly two runs.
    """
    runs = _collect_runs(tokens, style or TextStyle(), href)
    return merge_runs(runs)


def merge_runs(runs: list[Run]) -> list[Run]:
    merged: list[Run] = []
    for run in runs:
        if not run.text:
            continue
        prev = merged[-1] if merged else None
        if prev is not None and prev.style == run.style and prev.href == run.href:
            merged[-1] = Run(prev.text + run.text, prev.style, prev.href)
        else:
            merged.append(run)
    return merged


def _collect_runs(
    tokens: list[InlineToken], style: TextStyle, href: Optional[str]
) -> list[Run]:
    runs: list[Run] = []
    for tok in tokens:
        handler = _INLINE_HANDLERS.get(tok.type.value)
        if handler is None:
            raise TypeError(f"Unhandled inline token {type(tok).__name__}")
        runs.extend(handler(tok, style, href))
    return runs


def _text_runs(tok, style, href):
    return [Run(tok.content, style, href)]


def _bold_runs(tok, style, href):
    return _collect_runs(tok.children, style.derive(bold=True), href)


def _italic_runs(tok, style, href):
    return _collect_runs(tok.children, style.derive(italic=True), href)


def _strike_runs(tok, style, href):
    return _collect_runs(tok.children, style.derive(strikethrough=True), href)


def _code_runs(tok, style, href):
    return [Run(tok.content, style.derive(code=True), href)]


def _link_runs(tok, style, href):
    link_style = style.derive(color=style.color or LINK_COLOR, underline=True)
    return _collect_runs(tok.children, link_style, tok.href)


def _image_runs(tok, style, href):
    # Images have no place in the run model.
    return []


_INLINE_HANDLERS = {
    "text": _text_runs,
    "bold": _bold_runs,
    "italic": _italic_runs,
    "strike": _strike_runs,
    "code": _code_runs,
    "link": _link_runs,
    "image": _image_runs,
}


# ---------------------------------------------------------------------------
# Blocks -> elements
# ---------------------------------------------------------------------------

def ast_to_elements(blocks: list[Block]) -> list[Element]:
    """Map block tokens onto document elements, one element per block."""
    return [_translate(block) for block in blocks]


def _translate(block: Block) -> Element:
    handler = _BLOCK_HANDLERS.get(block.type)
    if handler is None:
        raise TypeError(f"Unhandled block token {type(block).__name__}")
    return handler(block)


def _translate_heading(block) -> Element:
    return HeadingElement(text=plain_text(block.children), level=block.level)


def _translate_paragraph(block) -> Element:
    return RichParagraphElement(runs=flatten_runs(block.children))


def _translate_code_fence(block) -> Element:
    return CodeBlockElement(code=block.code, language=block.language)


def _translate_horizontal_rule(_block) -> Element:
    return HorizontalRuleElement()


def _translate_block_quote(block) -> Element:
    return BlockQuoteElement(children=ast_to_elements(block.children))


def _translate_list(block: ListBlock) -> RichListElement:
    items = [
        RichListItem(
            runs=flatten_runs(item.children),
            sublist=_translate_list(item.sublist) if item.sublist else None,
        )
        for item in block.items
    ]
    return RichListElement(items=items, ordered=block.ordered)


def _translate_table(block) -> Element:
    rows = [[flatten_runs(cell) for cell in block.header]]
    rows.extend([flatten_runs(cell) for cell in row] for row in block.rows)
    return RichTableElement(rows=rows, header=True)


_BLOCK_HANDLERS = {
    BlockType.HEADING: _translate_heading,
    BlockType.PARAGRAPH: _translate_paragraph,
    BlockType.CODE_FENCE: _translate_code_fence,
    BlockType.HORIZONTAL_RULE: _translate_horizontal_rule,
    BlockType.BLOCK_QUOTE: _translate_block_quote,
    BlockType.UNORDERED_LIST: _translate_list,
    BlockType.ORDERED_LIST: _translate_list,
    BlockType.TABLE: _translate_table,
}
