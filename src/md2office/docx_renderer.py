"""DOCX renderer - converts document elements to WordprocessingML parts.

The renderer turns the elements accumulated in a
:class:`~md2office.elements.DocContext` (plus optional header and footer
contexts) into the XML parts of an Office Open XML package.  XML is built
as strings; :func:`md2office.zipwriter.build_zip` packages the result.

Relationship ids in ``word/_rels/document.xml.rels`` are fixed for the
package-level parts (``rId1`` styles, ``rId2`` numbering, ``rId3`` header,
``rId4`` footer); the body context therefore allocates its hyperlink and
image ids from ``rId5`` upwards.
"""

from __future__ import annotations

import logging
from typing import Optional

from md2office.elements import (
    HEADING_SIZES_PT,
    DocContext,
    Element,
    ElementType,
    ImageRel,
    Run,
    TextStyle,
)
from md2office.style_manager import FontSpec, StyleManager
from md2office.zipwriter import build_zip

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# OOXML constants
# ---------------------------------------------------------------------------

#: First relationship id available to the body's links and images.
BODY_FIRST_REL_ID = 5

_STYLES_REL_ID = "rId1"
_NUMBERING_REL_ID = "rId2"
_HEADER_REL_ID = "rId3"
_FOOTER_REL_ID = "rId4"

_BULLET_NUM_ID = 1
_DECIMAL_NUM_ID = 2
# Ordered lists get their own numbering instances from here upwards.
_FIRST_RESTART_NUM_ID = 3
_MAX_LIST_LEVEL = 8

_ALIGN_MAP = {
    "left": "left",
    "center": "center",
    "right": "right",
    "justify": "both",
}

# US Letter in twips (1/1440 inch)
_PAGE_WIDTH = 12240
_PAGE_HEIGHT = 15840
_MARGIN = 1440
_TEXT_WIDTH = _PAGE_WIDTH - 2 * _MARGIN

_EMU_PER_INCH = 914400

_NS_W = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
_NS_R = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_NS_WP = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"
_NS_A = "http://schemas.openxmlformats.org/drawingml/2006/main"
_NS_PIC = "http://schemas.openxmlformats.org/drawingml/2006/picture"

_PART_NS_DECL = (
    f' xmlns:w="{_NS_W}"'
    f' xmlns:r="{_NS_R}"'
    f' xmlns:wp="{_NS_WP}"'
    f' xmlns:a="{_NS_A}"'
    f' xmlns:pic="{_NS_PIC}"'
)

_REL_BASE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_REL_STYLES = f"{_REL_BASE}/styles"
_REL_NUMBERING = f"{_REL_BASE}/numbering"
_REL_HEADER = f"{_REL_BASE}/header"
_REL_FOOTER = f"{_REL_BASE}/footer"
_REL_HYPERLINK = f"{_REL_BASE}/hyperlink"
_REL_IMAGE = f"{_REL_BASE}/image"
_REL_OFFICE_DOCUMENT = f"{_REL_BASE}/officeDocument"

_CT_BASE = "application/vnd.openxmlformats-officedocument.wordprocessingml"

_XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'

_BULLET_CHARS = ("•", "◦", "▪")
_DECIMAL_FORMATS = ("decimal", "lowerLetter", "lowerRoman")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _xml_escape(s: str) -> str:
    """Escape XML special characters for string-built XML."""
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _color_to_hex(color: Optional[str]) -> str:
    """Normalise a colour to Word's bare ``RRGGBB`` form."""
    if not color:
        return "auto"
    return color.lstrip("#").upper()


def _rel_number(rel_id: str) -> int:
    return int(rel_id[3:])


def _contains_list(elements: list[Element]) -> bool:
    for el in elements:
        if el.type in (ElementType.LIST, ElementType.RICH_LIST):
            return True
        if el.type == ElementType.BLOCK_QUOTE and _contains_list(el.children):
            return True
    return False


# ---------------------------------------------------------------------------
# DocxRenderer
# ---------------------------------------------------------------------------

class DocxRenderer:
    """Render document contexts to the parts of a DOCX package.

    Usage::

        parts = DocxRenderer(StyleManager("business")).render(body, header=hdr)
        data = build_zip(parts)
    """

    def __init__(self, style_manager: Optional[StyleManager] = None) -> None:
        self.style: StyleManager = style_manager or StyleManager()
        self._quote_depth = 0
        self._restarts: list[tuple[int, int]] = []

    # ======================================================================
    # Public API
    # ======================================================================

    def render(
        self,
        body: DocContext,
        header: Optional[DocContext] = None,
        footer: Optional[DocContext] = None,
    ) -> dict[str, bytes]:
        """Return the package parts, in archive order, keyed by part name."""
        for rel in body.links + body.images:
            if _rel_number(rel.rel_id) < BODY_FIRST_REL_ID:
                raise ValueError(
                    f"Body relationship {rel.rel_id} collides with a reserved id; "
                    f"the body context must start at rId{BODY_FIRST_REL_ID}"
                )
        self._quote_depth = 0
        self._restarts = []

        has_list = _contains_list(body.elements)
        images = list(body.images)
        for ctx in (header, footer):
            if ctx is not None:
                images.extend(ctx.images)
        images.sort(key=lambda rel: rel.index)

        parts: dict[str, str | bytes] = {}
        parts["[Content_Types].xml"] = self._build_content_types(
            images, has_list, header is not None, footer is not None,
        )
        parts["_rels/.rels"] = self._build_package_rels()
        parts["word/document.xml"] = self._build_document_xml(
            body, header is not None, footer is not None,
        )
        # numbering.xml lists the instances allocated by all three parts.
        header_xml = (
            self._build_header_footer_xml("hdr", header) if header is not None else None
        )
        footer_xml = (
            self._build_header_footer_xml("ftr", footer) if footer is not None else None
        )
        parts["word/styles.xml"] = self._build_styles_xml()
        if has_list:
            parts["word/numbering.xml"] = self._build_numbering_xml()
        if header is not None:
            parts["word/header1.xml"] = header_xml
            if header.links or header.images:
                parts["word/_rels/header1.xml.rels"] = self._build_part_rels(header)
        if footer is not None:
            parts["word/footer1.xml"] = footer_xml
            if footer.links or footer.images:
                parts["word/_rels/footer1.xml.rels"] = self._build_part_rels(footer)
        parts["word/_rels/document.xml.rels"] = self._build_document_rels(
            body, has_list, header is not None, footer is not None,
        )
        for rel in images:
            parts[f"word/media/{rel.media_name}"] = rel.data

        logger.debug(
            "docx: rendered %d body element(s) into %d part(s)",
            len(body.elements), len(parts),
        )
        return {
            name: data.encode("utf-8") if isinstance(data, str) else data
            for name, data in parts.items()
        }

    def render_bytes(
        self,
        body: DocContext,
        header: Optional[DocContext] = None,
        footer: Optional[DocContext] = None,
    ) -> bytes:
        """Render and package into a complete ``.docx`` archive."""
        return build_zip(self.render(body, header, footer))

    # ======================================================================
    # Element dispatch
    # ======================================================================

    def _render_elements(self, elements: list[Element]) -> str:
        return "".join(self._render_element(el) for el in elements)

    def _render_element(self, el: Element) -> str:
        handler = getattr(self, f"_render_{el.type.value}", None)
        if handler is None:
            raise TypeError(f"Cannot render element {type(el).__name__} as DOCX")
        return handler(el)

    # ======================================================================
    # Per-ElementType renderers
    # ======================================================================

    def _render_heading(self, el) -> str:
        size = HEADING_SIZES_PT[el.level] * 2
        return (
            f'<w:p>{self._ppr(style_id=f"Heading{el.level}")}'
            f'<w:r><w:rPr><w:b/><w:sz w:val="{size}"/><w:szCs w:val="{size}"/></w:rPr>'
            f'{self._text(el.text)}</w:r></w:p>'
        )

    def _render_paragraph(self, el) -> str:
        return (
            f'<w:p>{self._ppr(align=el.style.align)}'
            f'{self._run(el.text, el.style)}</w:p>'
        )

    def _render_rich_paragraph(self, el) -> str:
        return f'<w:p>{self._ppr(align=el.align)}{self._runs(el.runs)}</w:p>'

    def _render_sized_text(self, el) -> str:
        style = el.style.derive(size=el.size)
        return f'<w:p>{self._ppr(align=style.align)}{self._run(el.text, style)}</w:p>'

    def _render_line_break(self, _el) -> str:
        return '<w:p><w:r><w:br/></w:r></w:p>'

    def _render_horizontal_rule(self, _el) -> str:
        border = (
            '<w:pBdr><w:bottom w:val="single" w:sz="6" w:space="1"'
            ' w:color="auto"/></w:pBdr>'
        )
        return f'<w:p>{self._ppr(border=border)}</w:p>'

    def _render_list(self, el) -> str:
        num_id = self._num_id(el.ordered, 0)
        return "".join(
            self._list_paragraph(self._run(item, TextStyle()), num_id, 0)
            for item in el.items
        )

    def _render_rich_list(self, el, level: int = 0) -> str:
        num_id = self._num_id(el.ordered, level)
        L = []  # noqa: E741
        a = L.append
        for item in el.items:
            a(self._list_paragraph(self._runs(item.runs), num_id, level))
            if item.sublist is not None:
                a(self._render_rich_list(item.sublist, level + 1))
        return "".join(L)

    def _render_table(self, el) -> str:
        rows = [[[Run(text)] if text else [] for text in row] for row in el.rows]
        return self._table(rows, el.col_widths, header=False)

    def _render_rich_table(self, el) -> str:
        return self._table(el.rows, el.col_widths, header=el.header)

    def _render_hyperlink(self, el) -> str:
        style = el.style.derive(
            underline=True,
            color=el.style.color or self.style.get_link_color(),
        )
        run = self._run(el.text, style, rstyle="Hyperlink")
        if el.rel_id is not None:
            run = f'<w:hyperlink r:id="{el.rel_id}" w:history="1">{run}</w:hyperlink>'
        return f'<w:p>{self._ppr(align=el.style.align)}{run}</w:p>'

    def _render_image(self, el) -> str:
        cx = int(round(el.width * _EMU_PER_INCH))
        cy = int(round(el.height * _EMU_PER_INCH))
        name = f"Picture {el.draw_id}"
        drawing = (
            '<w:drawing>'
            '<wp:inline distT="0" distB="0" distL="0" distR="0">'
            f'<wp:extent cx="{cx}" cy="{cy}"/>'
            '<wp:effectExtent l="0" t="0" r="0" b="0"/>'
            f'<wp:docPr id="{el.draw_id}" name="{name}"/>'
            '<wp:cNvGraphicFramePr>'
            '<a:graphicFrameLocks noChangeAspect="1"/>'
            '</wp:cNvGraphicFramePr>'
            f'<a:graphic><a:graphicData uri="{_NS_PIC}">'
            '<pic:pic>'
            '<pic:nvPicPr>'
            f'<pic:cNvPr id="{el.draw_id}" name="{_xml_escape(el.media_name)}"/>'
            '<pic:cNvPicPr/>'
            '</pic:nvPicPr>'
            '<pic:blipFill>'
            f'<a:blip r:embed="{el.rel_id}"/>'
            '<a:stretch><a:fillRect/></a:stretch>'
            '</pic:blipFill>'
            '<pic:spPr>'
            f'<a:xfrm><a:off x="0" y="0"/><a:ext cx="{cx}" cy="{cy}"/></a:xfrm>'
            '<a:prstGeom prst="rect"><a:avLst/></a:prstGeom>'
            '</pic:spPr>'
            '</pic:pic>'
            '</a:graphicData></a:graphic>'
            '</wp:inline>'
            '</w:drawing>'
        )
        return f'<w:p>{self._ppr(align=el.align)}<w:r>{drawing}</w:r></w:p>'

    def _render_block_quote(self, el) -> str:
        self._quote_depth += 1
        try:
            return self._render_elements(el.children)
        finally:
            self._quote_depth -= 1

    def _render_code_block(self, el) -> str:
        run = self._run(el.code, TextStyle()) if el.code else ""
        return f'<w:p>{self._ppr(style_id="Code")}{run}</w:p>'

    def _render_page_number(self, el) -> str:
        rpr = self._rpr(el.style)
        return (
            f'<w:p>{self._ppr(align=el.style.align)}'
            f'<w:r>{rpr}<w:fldChar w:fldCharType="begin"/></w:r>'
            f'<w:r>{rpr}<w:instrText xml:space="preserve"> PAGE </w:instrText></w:r>'
            f'<w:r>{rpr}<w:fldChar w:fldCharType="separate"/></w:r>'
            f'<w:r>{rpr}<w:t>1</w:t></w:r>'
            f'<w:r>{rpr}<w:fldChar w:fldCharType="end"/></w:r>'
            '</w:p>'
        )

    # ======================================================================
    # Paragraph and run helpers
    # ======================================================================

    def _ppr(
        self,
        *,
        style_id: Optional[str] = None,
        num_pr: str = "",
        border: str = "",
        align: Optional[str] = None,
    ) -> str:
        """Build ``w:pPr``; children follow the schema's sequence order."""
        if style_id is None and self._quote_depth:
            style_id = "Quote"
        inner = []
        if style_id:
            inner.append(f'<w:pStyle w:val="{style_id}"/>')
        if num_pr:
            inner.append(num_pr)
        if border:
            inner.append(border)
        if self._quote_depth:
            indent = self.style.get_style("blockquote").para.left_indent_twips
            inner.append(f'<w:ind w:left="{indent * self._quote_depth}"/>')
        if align:
            inner.append(f'<w:jc w:val="{_ALIGN_MAP[align]}"/>')
        if not inner:
            return ""
        return f'<w:pPr>{"".join(inner)}</w:pPr>'

    def _num_id(self, ordered: bool, level: int) -> int:
        """Numbering instance for one list.

        Bullets share instance 1.  Each ordered list gets a fresh instance
        whose counter at *level* restarts at 1, so separate lists never
        continue each other's numbering.
        """
        if not ordered:
            return _BULLET_NUM_ID
        num_id = _FIRST_RESTART_NUM_ID + len(self._restarts)
        self._restarts.append((num_id, min(level, _MAX_LIST_LEVEL)))
        return num_id

    def _list_paragraph(self, runs: str, num_id: int, level: int) -> str:
        num_pr = (
            f'<w:numPr><w:ilvl w:val="{min(level, _MAX_LIST_LEVEL)}"/>'
            f'<w:numId w:val="{num_id}"/></w:numPr>'
        )
        return f'<w:p>{self._ppr(style_id="ListParagraph", num_pr=num_pr)}{runs}</w:p>'

    def _runs(self, runs: list[Run]) -> str:
        """Render runs, wrapping consecutive runs of one link in a hyperlink."""
        L = []  # noqa: E741
        a = L.append
        i = 0
        while i < len(runs):
            run = runs[i]
            if run.rel_id is None:
                a(self._run(run.text, run.style))
                i += 1
                continue
            a(f'<w:hyperlink r:id="{run.rel_id}" w:history="1">')
            while i < len(runs) and runs[i].rel_id == run.rel_id:
                a(self._run(runs[i].text, runs[i].style, rstyle="Hyperlink"))
                i += 1
            a('</w:hyperlink>')
        return "".join(L)

    def _run(self, text: str, style: TextStyle, rstyle: Optional[str] = None) -> str:
        return f'<w:r>{self._rpr(style, rstyle)}{self._text(text)}</w:r>'

    def _rpr(self, style: TextStyle, rstyle: Optional[str] = None) -> str:
        """Build ``w:rPr`` for *style*; empty when nothing is set."""
        inner = []
        if rstyle:
            inner.append(f'<w:rStyle w:val="{rstyle}"/>')
        code_font = self.style.get_inline_code_font() if style.code else None
        family = style.font or (code_font.family if code_font else None)
        if family:
            f = _xml_escape(family)
            inner.append(
                f'<w:rFonts w:ascii="{f}" w:hAnsi="{f}" w:eastAsia="{f}" w:cs="{f}"/>'
            )
        if style.bold:
            inner.append('<w:b/>')
        if style.italic:
            inner.append('<w:i/>')
        if style.strikethrough:
            inner.append('<w:strike/>')
        if style.color:
            inner.append(f'<w:color w:val="{_color_to_hex(style.color)}"/>')
        if style.size:
            half = int(round(style.size * 2))
            inner.append(f'<w:sz w:val="{half}"/><w:szCs w:val="{half}"/>')
        if style.underline:
            inner.append('<w:u w:val="single"/>')
        if code_font is not None and code_font.background:
            inner.append(
                '<w:shd w:val="clear" w:color="auto"'
                f' w:fill="{_color_to_hex(code_font.background)}"/>'
            )
        if not inner:
            return ""
        return f'<w:rPr>{"".join(inner)}</w:rPr>'

    @staticmethod
    def _text(text: str) -> str:
        """Text content of a run; newlines become ``w:br`` and tabs ``w:tab``."""
        L = []  # noqa: E741
        for i, line in enumerate(text.split("\n")):
            if i:
                L.append('<w:br/>')
            for j, chunk in enumerate(line.split("\t")):
                if j:
                    L.append('<w:tab/>')
                if chunk:
                    L.append(f'<w:t xml:space="preserve">{_xml_escape(chunk)}</w:t>')
        return "".join(L)

    # ======================================================================
    # Tables
    # ======================================================================

    def _table(
        self,
        rows: list[list[list[Run]]],
        col_widths: Optional[list[int]],
        *,
        header: bool,
    ) -> str:
        if not rows:
            return ""
        n_cols = max(len(row) for row in rows)
        if n_cols == 0:
            return ""
        default_width = _TEXT_WIDTH // n_cols
        widths = list(col_widths or [])[:n_cols]
        widths.extend([default_width] * (n_cols - len(widths)))
        header_style = self.style.get_style("table_header").font

        L = []  # noqa: E741
        a = L.append
        a('<w:tbl><w:tblPr><w:tblStyle w:val="TableGrid"/>')
        a('<w:tblW w:w="0" w:type="auto"/>')
        a('<w:tblBorders>')
        for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
            a(f'<w:{side} w:val="single" w:sz="4" w:space="0" w:color="auto"/>')
        a('</w:tblBorders>')
        a('<w:tblLook w:val="04A0" w:firstRow="1" w:lastRow="0"'
          ' w:firstColumn="1" w:lastColumn="0" w:noHBand="0" w:noVBand="1"/>')
        a('</w:tblPr><w:tblGrid>')
        for w in widths:
            a(f'<w:gridCol w:w="{w}"/>')
        a('</w:tblGrid>')

        for r, row in enumerate(rows):
            is_header = header and r == 0
            a('<w:tr>')
            if is_header:
                a('<w:trPr><w:tblHeader/></w:trPr>')
            cells = list(row) + [[]] * (n_cols - len(row))
            for c, runs in enumerate(cells):
                a(f'<w:tc><w:tcPr><w:tcW w:w="{widths[c]}" w:type="dxa"/>')
                if is_header and header_style.background:
                    a('<w:shd w:val="clear" w:color="auto"'
                      f' w:fill="{_color_to_hex(header_style.background)}"/>')
                a('</w:tcPr>')
                if is_header:
                    runs = [
                        Run(run.text, run.style.derive(bold=True), run.href, run.rel_id)
                        for run in runs
                    ]
                a(f'<w:p>{self._runs(runs)}</w:p>' if runs else '<w:p/>')
                a('</w:tc>')
            a('</w:tr>')
        a('</w:tbl>')
        return "".join(L)

    # ======================================================================
    # Package parts
    # ======================================================================

    def _build_content_types(
        self,
        images: list[ImageRel],
        has_list: bool,
        has_header: bool,
        has_footer: bool,
    ) -> str:
        L = []  # noqa: E741
        a = L.append
        a(_XML_DECL)
        a('<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">')
        a('<Default Extension="rels"'
          ' ContentType="application/vnd.openxmlformats-package.relationships+xml"/>')
        a('<Default Extension="xml" ContentType="application/xml"/>')
        seen: set[str] = set()
        for rel in images:
            ext = rel.image_type.extension
            if ext not in seen:
                seen.add(ext)
                a(f'<Default Extension="{ext}" ContentType="{rel.image_type.mime_type}"/>')
        a('<Override PartName="/word/document.xml"'
          f' ContentType="{_CT_BASE}.document.main+xml"/>')
        a('<Override PartName="/word/styles.xml"'
          f' ContentType="{_CT_BASE}.styles+xml"/>')
        if has_list:
            a('<Override PartName="/word/numbering.xml"'
              f' ContentType="{_CT_BASE}.numbering+xml"/>')
        if has_header:
            a('<Override PartName="/word/header1.xml"'
              f' ContentType="{_CT_BASE}.header+xml"/>')
        if has_footer:
            a('<Override PartName="/word/footer1.xml"'
              f' ContentType="{_CT_BASE}.footer+xml"/>')
        a('</Types>')
        return "".join(L)

    def _build_package_rels(self) -> str:
        return (
            f'{_XML_DECL}'
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            f'<Relationship Id="rId1" Type="{_REL_OFFICE_DOCUMENT}" Target="word/document.xml"/>'
            '</Relationships>'
        )

    def _build_document_rels(
        self,
        body: DocContext,
        has_list: bool,
        has_header: bool,
        has_footer: bool,
    ) -> str:
        L = []  # noqa: E741
        a = L.append
        a(_XML_DECL)
        a('<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">')
        a(f'<Relationship Id="{_STYLES_REL_ID}" Type="{_REL_STYLES}" Target="styles.xml"/>')
        if has_list:
            a(f'<Relationship Id="{_NUMBERING_REL_ID}" Type="{_REL_NUMBERING}"'
              ' Target="numbering.xml"/>')
        if has_header:
            a(f'<Relationship Id="{_HEADER_REL_ID}" Type="{_REL_HEADER}"'
              ' Target="header1.xml"/>')
        if has_footer:
            a(f'<Relationship Id="{_FOOTER_REL_ID}" Type="{_REL_FOOTER}"'
              ' Target="footer1.xml"/>')
        a(self._context_rels(body))
        a('</Relationships>')
        return "".join(L)

    def _build_part_rels(self, ctx: DocContext) -> str:
        return (
            f'{_XML_DECL}'
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            f'{self._context_rels(ctx)}'
            '</Relationships>'
        )

    @staticmethod
    def _context_rels(ctx: DocContext) -> str:
        """Hyperlink and image relationships of *ctx*, in id order."""
        entries = []
        for link in ctx.links:
            entries.append((
                _rel_number(link.rel_id),
                f'<Relationship Id="{link.rel_id}" Type="{_REL_HYPERLINK}"'
                f' Target="{_xml_escape(link.url)}" TargetMode="External"/>',
            ))
        for img in ctx.images:
            entries.append((
                _rel_number(img.rel_id),
                f'<Relationship Id="{img.rel_id}" Type="{_REL_IMAGE}"'
                f' Target="media/{img.media_name}"/>',
            ))
        entries.sort(key=lambda e: e[0])
        return "".join(xml for _, xml in entries)

    def _build_document_xml(
        self, body: DocContext, has_header: bool, has_footer: bool
    ) -> str:
        L = []  # noqa: E741
        a = L.append
        a(_XML_DECL)
        a(f'<w:document{_PART_NS_DECL}><w:body>')
        a(self._render_elements(body.elements))
        a('<w:sectPr>')
        if has_header:
            a(f'<w:headerReference w:type="default" r:id="{_HEADER_REL_ID}"/>')
        if has_footer:
            a(f'<w:footerReference w:type="default" r:id="{_FOOTER_REL_ID}"/>')
        a(f'<w:pgSz w:w="{_PAGE_WIDTH}" w:h="{_PAGE_HEIGHT}"/>')
        a(f'<w:pgMar w:top="{_MARGIN}" w:right="{_MARGIN}" w:bottom="{_MARGIN}"'
          f' w:left="{_MARGIN}" w:header="720" w:footer="720" w:gutter="0"/>')
        a('</w:sectPr></w:body></w:document>')
        return "".join(L)

    def _build_header_footer_xml(self, tag: str, ctx: DocContext) -> str:
        content = self._render_elements(ctx.elements) or '<w:p/>'
        return f'{_XML_DECL}<w:{tag}{_PART_NS_DECL}>{content}</w:{tag}>'

    # -- styles.xml --------------------------------------------------------

    @staticmethod
    def _font_rpr(font: FontSpec, *, size: bool = True) -> str:
        f = _xml_escape(font.family)
        parts = [f'<w:rFonts w:ascii="{f}" w:hAnsi="{f}" w:eastAsia="{f}" w:cs="{f}"/>']
        if font.bold:
            parts.append('<w:b/>')
        if font.italic:
            parts.append('<w:i/>')
        if font.color:
            parts.append(f'<w:color w:val="{_color_to_hex(font.color)}"/>')
        if size:
            parts.append(
                f'<w:sz w:val="{font.size_half_points}"/>'
                f'<w:szCs w:val="{font.size_half_points}"/>'
            )
        return "".join(parts)

    def _build_styles_xml(self) -> str:
        """Build ``word/styles.xml`` from the active style preset."""
        body = self.style.get_style("body")
        heading = self.style.get_style("heading")
        code = self.style.get_style("code_block")
        quote = self.style.get_style("blockquote")

        L = []  # noqa: E741
        a = L.append
        a(_XML_DECL)
        a(f'<w:styles xmlns:w="{_NS_W}">')

        a('<w:docDefaults><w:rPrDefault><w:rPr>')
        a(self._font_rpr(body.font))
        a('<w:lang w:val="en-US"/>')
        a('</w:rPr></w:rPrDefault><w:pPrDefault><w:pPr>')
        a(f'<w:spacing w:before="{body.para.space_before_twips}"'
          f' w:after="{body.para.space_after_twips}"'
          f' w:line="{body.para.line_twips}" w:lineRule="auto"/>')
        a('</w:pPr></w:pPrDefault></w:docDefaults>')

        a('<w:style w:type="paragraph" w:default="1" w:styleId="Normal">'
          '<w:name w:val="Normal"/><w:qFormat/></w:style>')

        for level, size_pt in HEADING_SIZES_PT.items():
            half = size_pt * 2
            font = heading.font.derive(size_pt=size_pt)
            a(f'<w:style w:type="paragraph" w:styleId="Heading{level}">')
            a(f'<w:name w:val="Heading {level}"/>')
            a('<w:basedOn w:val="Normal"/><w:next w:val="Normal"/><w:qFormat/>')
            a('<w:pPr><w:keepNext/>'
              f'<w:spacing w:before="{heading.para.space_before_twips}"'
              f' w:after="{heading.para.space_after_twips}"/>'
              f'<w:outlineLvl w:val="{level - 1}"/></w:pPr>')
            a(f'<w:rPr>{self._font_rpr(font, size=False)}'
              f'<w:sz w:val="{half}"/><w:szCs w:val="{half}"/></w:rPr>')
            a('</w:style>')

        a('<w:style w:type="paragraph" w:styleId="ListParagraph">'
          '<w:name w:val="List Paragraph"/><w:basedOn w:val="Normal"/><w:qFormat/>'
          '<w:pPr><w:contextualSpacing/></w:pPr></w:style>')

        a('<w:style w:type="paragraph" w:styleId="Quote">'
          '<w:name w:val="Quote"/><w:basedOn w:val="Normal"/><w:next w:val="Normal"/>'
          '<w:qFormat/>'
          f'<w:pPr><w:ind w:left="{quote.para.left_indent_twips}"/></w:pPr>'
          f'<w:rPr>{self._font_rpr(quote.font, size=False)}</w:rPr></w:style>')

        a('<w:style w:type="paragraph" w:styleId="Code">'
          '<w:name w:val="Code"/><w:basedOn w:val="Normal"/><w:next w:val="Normal"/>'
          '<w:pPr>'
          f'<w:spacing w:before="{code.para.space_before_twips}"'
          f' w:after="{code.para.space_after_twips}" w:line="{code.para.line_twips}"'
          ' w:lineRule="auto"/>')
        if code.font.background:
            a('<w:shd w:val="clear" w:color="auto"'
              f' w:fill="{_color_to_hex(code.font.background)}"/>')
        a(f'</w:pPr><w:rPr>{self._font_rpr(code.font)}</w:rPr></w:style>')

        a('<w:style w:type="character" w:styleId="Hyperlink">'
          '<w:name w:val="Hyperlink"/><w:uiPriority w:val="99"/><w:unhideWhenUsed/>'
          f'<w:rPr><w:color w:val="{_color_to_hex(self.style.get_link_color())}"/>'
          '<w:u w:val="single"/></w:rPr></w:style>')

        a('<w:style w:type="table" w:styleId="TableGrid">'
          '<w:name w:val="Table Grid"/><w:basedOn w:val="TableNormal"/>'
          '<w:pPr><w:spacing w:after="0" w:line="240" w:lineRule="auto"/></w:pPr>'
          '<w:tblPr><w:tblBorders>')
        for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
            a(f'<w:{side} w:val="single" w:sz="4" w:space="0" w:color="auto"/>')
        a('</w:tblBorders></w:tblPr></w:style>')

        a('<w:style w:type="table" w:default="1" w:styleId="TableNormal">'
          '<w:name w:val="Normal Table"/><w:uiPriority w:val="99"/><w:semiHidden/>'
          '<w:tblPr><w:tblInd w:w="0" w:type="dxa"/>'
          '<w:tblCellMar><w:top w:w="0" w:type="dxa"/>'
          '<w:left w:w="108" w:type="dxa"/><w:bottom w:w="0" w:type="dxa"/>'
          '<w:right w:w="108" w:type="dxa"/></w:tblCellMar></w:tblPr></w:style>')

        a('</w:styles>')
        return "".join(L)

    # -- numbering.xml -----------------------------------------------------

    def _build_numbering_xml(self) -> str:
        """Bullet (``numId`` 1) and decimal (``numId`` 2 upwards) list definitions."""
        L = []  # noqa: E741
        a = L.append
        a(_XML_DECL)
        a(f'<w:numbering xmlns:w="{_NS_W}">')

        a('<w:abstractNum w:abstractNumId="0">'
          '<w:multiLevelType w:val="hybridMultilevel"/>')
        for lvl in range(_MAX_LIST_LEVEL + 1):
            char = _BULLET_CHARS[lvl % len(_BULLET_CHARS)]
            a(f'<w:lvl w:ilvl="{lvl}"><w:start w:val="1"/>'
              f'<w:numFmt w:val="bullet"/><w:lvlText w:val="{char}"/>'
              '<w:lvlJc w:val="left"/>'
              f'<w:pPr><w:ind w:left="{720 * (lvl + 1)}" w:hanging="360"/></w:pPr>'
              '</w:lvl>')
        a('</w:abstractNum>')

        a('<w:abstractNum w:abstractNumId="1">'
          '<w:multiLevelType w:val="hybridMultilevel"/>')
        for lvl in range(_MAX_LIST_LEVEL + 1):
            fmt = _DECIMAL_FORMATS[lvl % len(_DECIMAL_FORMATS)]
            a(f'<w:lvl w:ilvl="{lvl}"><w:start w:val="1"/>'
              f'<w:numFmt w:val="{fmt}"/><w:lvlText w:val="%{lvl + 1}."/>'
              '<w:lvlJc w:val="left"/>'
              f'<w:pPr><w:ind w:left="{720 * (lvl + 1)}" w:hanging="360"/></w:pPr>'
              '</w:lvl>')
        a('</w:abstractNum>')

        a(f'<w:num w:numId="{_BULLET_NUM_ID}"><w:abstractNumId w:val="0"/></w:num>')
        a(f'<w:num w:numId="{_DECIMAL_NUM_ID}"><w:abstractNumId w:val="1"/></w:num>')
        for num_id, level in self._restarts:
            a(f'<w:num w:numId="{num_id}"><w:abstractNumId w:val="1"/>'
              f'<w:lvlOverride w:ilvl="{level}"><w:startOverride w:val="1"/>'
              '</w:lvlOverride></w:num>')
        a('</w:numbering>')
        return "".join(L)
