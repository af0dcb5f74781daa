"""Format-neutral document element model and the per-part build context.

Both the Markdown pipeline and the fluent builder API produce the elements
defined here; the DOCX and ODT renderers consume them.  A
:class:`DocContext` accumulates the elements of one document part (body,
header or footer) together with the hyperlink and image relationships that
part needs.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, ClassVar, Iterable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

ALIGNMENTS = ("left", "center", "right", "justify")
HEADING_LEVELS = range(1, 7)

#: Heading point sizes shared by both renderers (DOCX doubles them).
HEADING_SIZES_PT = {1: 24, 2: 18, 3: 14, 4: 12, 5: 10, 6: 9}


def _check_align(align: Optional[str]) -> None:
    if align is not None and align not in ALIGNMENTS:
        raise ValueError(
            f"Unknown alignment {align!r}. Choose from: {', '.join(ALIGNMENTS)}"
        )


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextStyle:
    """Style attributes of a run of text.

    ``None``/``False`` means "not set", so the renderer emits no markup for
    the attribute and the surrounding paragraph style applies.
    """

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    color: Optional[str] = None
    font: Optional[str] = None
    size: Optional[float] = None
    align: Optional[str] = None

    def __post_init__(self) -> None:
        _check_align(self.align)

    def derive(self, **overrides) -> TextStyle:
        """Return a copy with selected fields overridden."""
        return replace(self, **overrides)

    @property
    def is_plain(self) -> bool:
        return self == _PLAIN

    @property
    def run_key(self) -> tuple:
        """Character-level attributes only (alignment is paragraph-level)."""
        return (
            self.bold, self.italic, self.underline, self.strikethrough,
            self.code, self.color, self.font, self.size,
        )


_PLAIN = TextStyle()


@dataclass(frozen=True)
class Run:
    """A span of text sharing one style, optionally inside a hyperlink."""

    text: str
    style: TextStyle = _PLAIN
    href: Optional[str] = None
    rel_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------

class ElementType(Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    RICH_PARAGRAPH = "rich_paragraph"
    SIZED_TEXT = "sized_text"
    LINE_BREAK = "line_break"
    HORIZONTAL_RULE = "horizontal_rule"
    LIST = "list"
    RICH_LIST = "rich_list"
    TABLE = "table"
    RICH_TABLE = "rich_table"
    HYPERLINK = "hyperlink"
    IMAGE = "image"
    BLOCK_QUOTE = "block_quote"
    CODE_BLOCK = "code_block"
    PAGE_NUMBER = "page_number"


@dataclass
class HeadingElement:
    text: str
    level: int
    type: ClassVar[ElementType] = ElementType.HEADING


@dataclass
class ParagraphElement:
    text: str
    style: TextStyle = _PLAIN
    type: ClassVar[ElementType] = ElementType.PARAGRAPH


@dataclass
class RichParagraphElement:
    runs: list[Run]
    align: Optional[str] = None
    type: ClassVar[ElementType] = ElementType.RICH_PARAGRAPH


@dataclass
class SizedTextElement:
    text: str
    size: float
    style: TextStyle = _PLAIN
    type: ClassVar[ElementType] = ElementType.SIZED_TEXT


@dataclass
class LineBreakElement:
    type: ClassVar[ElementType] = ElementType.LINE_BREAK


@dataclass
class HorizontalRuleElement:
    type: ClassVar[ElementType] = ElementType.HORIZONTAL_RULE


@dataclass
class ListElement:
    items: list[str]
    ordered: bool = False
    type: ClassVar[ElementType] = ElementType.LIST


@dataclass
class RichListItem:
    runs: list[Run]
    sublist: Optional[RichListElement] = None


@dataclass
class RichListElement:
    items: list[RichListItem]
    ordered: bool = False
    type: ClassVar[ElementType] = ElementType.RICH_LIST


@dataclass
class TableElement:
    rows: list[list[str]]
    col_widths: Optional[list[int]] = None
    type: ClassVar[ElementType] = ElementType.TABLE


@dataclass
class RichTableElement:
    rows: list[list[list[Run]]]
    col_widths: Optional[list[int]] = None
    header: bool = False
    type: ClassVar[ElementType] = ElementType.RICH_TABLE


@dataclass
class HyperlinkElement:
    text: str
    url: str
    style: TextStyle = _PLAIN
    rel_id: Optional[str] = None
    type: ClassVar[ElementType] = ElementType.HYPERLINK


@dataclass
class ImageElement:
    data: bytes
    width: float
    height: float
    image_type: ImageType
    rel_id: str
    draw_id: int
    media_name: str
    align: Optional[str] = None
    type: ClassVar[ElementType] = ElementType.IMAGE


@dataclass
class BlockQuoteElement:
    children: list[Element] = field(default_factory=list)
    type: ClassVar[ElementType] = ElementType.BLOCK_QUOTE


@dataclass
class CodeBlockElement:
    code: str
    language: Optional[str] = None
    type: ClassVar[ElementType] = ElementType.CODE_BLOCK


@dataclass
class PageNumberElement:
    style: TextStyle = _PLAIN
    type: ClassVar[ElementType] = ElementType.PAGE_NUMBER


Element = Union[
    HeadingElement, ParagraphElement, RichParagraphElement, SizedTextElement,
    LineBreakElement, HorizontalRuleElement, ListElement, RichListElement,
    TableElement, RichTableElement, HyperlinkElement, ImageElement,
    BlockQuoteElement, CodeBlockElement, PageNumberElement,
]


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageType:
    extension: str
    mime_type: str


PNG = ImageType("png", "image/png")
JPEG = ImageType("jpeg", "image/jpeg")
GIF = ImageType("gif", "image/gif")
WEBP = ImageType("webp", "image/webp")


def sniff_image_type(data: bytes) -> ImageType:
    """Identify an image from its magic bytes.

    Unrecognised (including too-short) data is assumed to be PNG.
    """
    if data[:4] == b"\x89PNG":
        return PNG
    if data[:2] == b"\xff\xd8":
        return JPEG
    if data[:3] == b"GIF":
        return GIF
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP
    logger.debug("image: unrecognised signature %r, assuming PNG", bytes(data[:12]))
    return PNG


# ---------------------------------------------------------------------------
# Build context
# ---------------------------------------------------------------------------

@dataclass
class IdCounters:
    """Ids that must be unique across every part of one document."""

    draw_id: int = 0
    media_index: int = 0

    def next_draw_id(self) -> int:
        self.draw_id += 1
        return self.draw_id

    def next_media_index(self) -> int:
        self.media_index += 1
        return self.media_index


@dataclass(frozen=True)
class LinkRel:
    rel_id: str
    url: str


@dataclass(frozen=True)
class ImageRel:
    rel_id: str
    index: int
    media_name: str
    image_type: ImageType
    data: bytes


class DocContext:
    """Accumulates the elements of one document part.

    Relationship ids (``rId<n>``) are scoped to the part and start at
    *first_rel_id*; draw ids and media file numbers come from *counters*,
    which every part of the same document shares.

    Usage::

        ctx = DocContext()
        ctx.heading("Title", 1)
        ctx.paragraph("Hello", bold=True, align="center")
    """

    def __init__(
        self,
        counters: Optional[IdCounters] = None,
        first_rel_id: int = 1,
    ) -> None:
        self.counters = counters or IdCounters()
        self.elements: list[Element] = []
        self.links: list[LinkRel] = []
        self.images: list[ImageRel] = []
        self._next_rel = first_rel_id

    # -- id allocation ------------------------------------------------------

    def _allocate_rel_id(self) -> str:
        rel_id = f"rId{self._next_rel}"
        self._next_rel += 1
        return rel_id

    def _register_link(self, url: str) -> str:
        rel_id = self._allocate_rel_id()
        self.links.append(LinkRel(rel_id, url))
        return rel_id

    def _link_runs(self, runs: Iterable[Run]) -> list[Run]:
        """Give linked runs relationship ids.

        Consecutive runs pointing at the same target share one id, so they
        render as a single hyperlink.
        """
        out: list[Run] = []
        for run in runs:
            if run.href is None:
                out.append(run)
                continue
            prev = out[-1] if out else None
            if prev is not None and prev.href == run.href and prev.rel_id:
                out.append(replace(run, rel_id=prev.rel_id))
            else:
                out.append(replace(run, rel_id=self._register_link(run.href)))
        return out

    # -- element operations -------------------------------------------------

    def heading(self, text: str, level: int = 1) -> None:
        if level not in HEADING_LEVELS:
            raise ValueError(f"Heading level must be 1-6, got {level!r}")
        self.elements.append(HeadingElement(text=text, level=level))

    def paragraph(self, text: str, **style) -> None:
        self.elements.append(ParagraphElement(text=text, style=TextStyle(**style)))

    def text(self, text: str, size: float, **style) -> None:
        self.elements.append(
            SizedTextElement(text=text, size=size, style=TextStyle(**style))
        )

    def line_break(self) -> None:
        self.elements.append(LineBreakElement())

    def horizontal_rule(self) -> None:
        self.elements.append(HorizontalRuleElement())

    def list(self, items: Sequence[str], ordered: bool = False) -> None:
        self.elements.append(ListElement(items=list(items), ordered=ordered))

    def table(
        self,
        rows: Sequence[Sequence[str]],
        col_widths: Optional[Sequence[int]] = None,
    ) -> None:
        self.elements.append(TableElement(
            rows=[list(r) for r in rows],
            col_widths=list(col_widths) if col_widths is not None else None,
        ))

    def link(self, text: str, url: str, **style) -> None:
        self.elements.append(HyperlinkElement(
            text=text,
            url=url,
            style=TextStyle(**style),
            rel_id=self._register_link(url),
        ))

    def image(
        self,
        data: bytes,
        width: float,
        height: float,
        align: Optional[str] = None,
    ) -> None:
        """Embed *data* at *width* x *height* inches."""
        if not data:
            raise ValueError("Image data is empty")
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        _check_align(align)
        image_type = sniff_image_type(data)
        index = self.counters.next_media_index()
        media_name = f"image{index}.{image_type.extension}"
        rel_id = self._allocate_rel_id()
        self.images.append(ImageRel(rel_id, index, media_name, image_type, bytes(data)))
        self.elements.append(ImageElement(
            data=bytes(data),
            width=width,
            height=height,
            image_type=image_type,
            rel_id=rel_id,
            draw_id=self.counters.next_draw_id(),
            media_name=media_name,
            align=align,
        ))

    def page_number(self, **style) -> None:
        self.elements.append(PageNumberElement(style=TextStyle(**style)))

    def rich_paragraph(self, runs: Sequence[Run], align: Optional[str] = None) -> None:
        _check_align(align)
        self.elements.append(
            RichParagraphElement(runs=self._link_runs(runs), align=align)
        )

    def rich_list(self, items: Sequence[RichListItem], ordered: bool = False) -> None:
        self.elements.append(self._linked_list(RichListElement(list(items), ordered)))

    def rich_table(
        self,
        rows: Sequence[Sequence[Sequence[Run]]],
        col_widths: Optional[Sequence[int]] = None,
        header: bool = False,
    ) -> None:
        self.elements.append(RichTableElement(
            rows=[[self._link_runs(cell) for cell in row] for row in rows],
            col_widths=list(col_widths) if col_widths is not None else None,
            header=header,
        ))

    def block_quote(self, fn: Callable[[DocContext], None]) -> None:
        """Collect whatever *fn* adds into a block quote."""
        outer = self.elements
        self.elements = []
        try:
            fn(self)
            children = self.elements
        finally:
            self.elements = outer
        self.elements.append(BlockQuoteElement(children=children))

    def code_block(self, code: str, language: Optional[str] = None) -> None:
        self.elements.append(CodeBlockElement(code=code, language=language))

    def markdown(self, text: str) -> None:
        """Parse *text* as Markdown and add the resulting elements."""
        from md2office.parser import parse_blocks
        from md2office.translator import ast_to_elements

        self.extend(ast_to_elements(parse_blocks(text)))

    # -- generic addition ---------------------------------------------------

    def extend(self, elements: Iterable[Element]) -> None:
        for element in elements:
            self.add(element)

    def add(self, element: Element) -> None:
        """Add a ready-made element, assigning any ids it needs."""
        handler = getattr(self, f"_add_{element.type.value}", None)
        if handler is None:
            raise TypeError(f"Unsupported element {type(element).__name__}")
        handler(element)

    def _add_heading(self, el: HeadingElement) -> None:
        self.heading(el.text, el.level)

    def _add_paragraph(self, el: ParagraphElement) -> None:
        self.elements.append(deepcopy(el))

    def _add_rich_paragraph(self, el: RichParagraphElement) -> None:
        self.rich_paragraph(el.runs, el.align)

    def _add_sized_text(self, el: SizedTextElement) -> None:
        self.elements.append(deepcopy(el))

    def _add_line_break(self, _el: LineBreakElement) -> None:
        self.line_break()

    def _add_horizontal_rule(self, _el: HorizontalRuleElement) -> None:
        self.horizontal_rule()

    def _add_list(self, el: ListElement) -> None:
        self.list(el.items, el.ordered)

    def _add_rich_list(self, el: RichListElement) -> None:
        self.elements.append(self._linked_list(el))

    def _add_table(self, el: TableElement) -> None:
        self.table(el.rows, el.col_widths)

    def _add_rich_table(self, el: RichTableElement) -> None:
        self.rich_table(el.rows, el.col_widths, el.header)

    def _add_hyperlink(self, el: HyperlinkElement) -> None:
        self.elements.append(replace(el, rel_id=self._register_link(el.url)))

    def _add_image(self, el: ImageElement) -> None:
        self.image(el.data, el.width, el.height, el.align)

    def _add_block_quote(self, el: BlockQuoteElement) -> None:
        self.block_quote(lambda ctx: ctx.extend(el.children))

    def _add_code_block(self, el: CodeBlockElement) -> None:
        self.code_block(el.code, el.language)

    def _add_page_number(self, el: PageNumberElement) -> None:
        self.elements.append(deepcopy(el))

    def _linked_list(self, el: RichListElement) -> RichListElement:
        items = [
            RichListItem(
                runs=self._link_runs(item.runs),
                sublist=self._linked_list(item.sublist) if item.sublist else None,
            )
            for item in el.items
        ]
        return RichListElement(items=items, ordered=el.ordered)
