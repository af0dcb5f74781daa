"""ODT renderer - converts document elements to OpenDocument Text parts.

Headings, quotes, code blocks and list styles are static styles written to
``styles.xml``.  Every other formatting need becomes an automatic style in
``content.xml``: paragraph styles ``P1, P2, ...`` and text styles
``T1, T2, ...``, one per distinct property combination.

Images and page-number fields have no ODT rendering and produce no output.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from md2office.elements import (
    HEADING_SIZES_PT,
    Element,
    Run,
    TextStyle,
)
from md2office.style_manager import FontSpec, StyleManager
from md2office.zipwriter import build_zip

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ODF constants
# ---------------------------------------------------------------------------

ODT_MIMETYPE = "application/vnd.oasis.opendocument.text"

_TEXT_WIDTH_TWIPS = 9360
_TWIPS_PER_INCH = 1440
_RULE_TEXT = "─" * 40
_LIST_LEVELS = 10
_BULLET_CHARS = ("•", "◦", "▪")

_NS_DECL = (
    ' xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0"'
    ' xmlns:style="urn:oasis:names:tc:opendocument:xmlns:style:1.0"'
    ' xmlns:text="urn:oasis:names:tc:opendocument:xmlns:text:1.0"'
    ' xmlns:table="urn:oasis:names:tc:opendocument:xmlns:table:1.0"'
    ' xmlns:fo="urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0"'
    ' xmlns:xlink="http://www.w3.org/1999/xlink"'
    ' xmlns:svg="urn:oasis:names:tc:opendocument:xmlns:svg-compatible:1.0"'
)

_XML_DECL = '<?xml version="1.0" encoding="UTF-8"?>'

_MANIFEST = (
    f'{_XML_DECL}'
    '<manifest:manifest'
    ' xmlns:manifest="urn:oasis:names:tc:opendocument:xmlns:manifest:1.0"'
    ' manifest:version="1.2">'
    f'<manifest:file-entry manifest:full-path="/" manifest:version="1.2"'
    f' manifest:media-type="{ODT_MIMETYPE}"/>'
    '<manifest:file-entry manifest:full-path="content.xml" manifest:media-type="text/xml"/>'
    '<manifest:file-entry manifest:full-path="styles.xml" manifest:media-type="text/xml"/>'
    '</manifest:manifest>'
)

_SPACES_RE = re.compile(r" {2,}|^ ")


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


def _color_to_hex(color: str) -> str:
    """Ensure colour is in ``#RRGGBB`` form."""
    return color if color.startswith("#") else f"#{color}"


def _preserve_spaces(line: str) -> str:
    """Escape *line*, encoding leading and repeated spaces as ``text:s``."""

    def repl(m: re.Match) -> str:
        n = len(m.group(0))
        if m.start() == 0:
            return f'<text:s text:c="{n}"/>'
        return f' <text:s text:c="{n - 1}"/>'

    return _SPACES_RE.sub(repl, _xml_escape(line))


def _pt(value: float) -> str:
    return f"{value:g}pt"


def _list_style(ordered: bool) -> str:
    return "Numbering" if ordered else "Bullets"


# ---------------------------------------------------------------------------
# Automatic style registry -- one style per unique property combination
# ---------------------------------------------------------------------------

class _AutoStyleRegistry:
    """Collect automatic styles and font faces while content renders."""

    def __init__(self) -> None:
        self._para_map: dict[tuple, str] = {}
        self._text_map: dict[tuple, str] = {}
        self._styles: list[str] = []
        self._fonts: list[str] = []
        self._table_count = 0
        self._cell_style: Optional[str] = None

    def register_font(self, name: str) -> None:
        if name not in self._fonts:
            self._fonts.append(name)

    def register_para(self, parent: str, para_props: str, text_props: str) -> str:
        key = (parent, para_props, text_props)
        if key in self._para_map:
            return self._para_map[key]
        name = f"P{len(self._para_map) + 1}"
        self._para_map[key] = name
        self._styles.append(
            f'<style:style style:name="{name}" style:family="paragraph"'
            f' style:parent-style-name="{parent}">{para_props}{text_props}</style:style>'
        )
        return name

    def register_text(self, text_props: str) -> str:
        if text_props in self._text_map:
            return self._text_map[text_props]
        name = f"T{len(self._text_map) + 1}"
        self._text_map[text_props] = name
        self._styles.append(
            f'<style:style style:name="{name}" style:family="text">{text_props}</style:style>'
        )
        return name

    def register_table(self, widths_in: list[float]) -> tuple[str, list[str]]:
        """Register a table and its column styles; return their names."""
        self._table_count += 1
        name = f"Table{self._table_count}"
        total = sum(w for w in widths_in if w > 0)
        self._styles.append(
            f'<style:style style:name="{name}" style:family="table">'
            f'<style:table-properties style:width="{total:.4f}in" table:align="left"/>'
            '</style:style>'
        )
        columns = []
        for i, width in enumerate(widths_in):
            col = f"{name}.C{i + 1}"
            columns.append(col)
            self._styles.append(
                f'<style:style style:name="{col}" style:family="table-column">'
                f'<style:table-column-properties style:column-width="{width:.4f}in"/>'
                '</style:style>'
            )
        return name, columns

    def cell_style(self) -> str:
        if self._cell_style is None:
            self._cell_style = "TableCell"
            self._styles.append(
                '<style:style style:name="TableCell" style:family="table-cell">'
                '<style:table-cell-properties fo:padding="0.04in"'
                ' fo:border="0.5pt solid #000000"/>'
                '</style:style>'
            )
        return self._cell_style

    @property
    def fonts(self) -> list[str]:
        return self._fonts

    @property
    def styles(self) -> list[str]:
        return self._styles


# ---------------------------------------------------------------------------
# OdtRenderer
# ---------------------------------------------------------------------------

class OdtRenderer:
    """Render document elements to the parts of an ODT package."""

    def __init__(self, style_manager: Optional[StyleManager] = None) -> None:
        self.style: StyleManager = style_manager or StyleManager()
        self._quote_depth = 0
        self._registry = _AutoStyleRegistry()

    # ======================================================================
    # Public API
    # ======================================================================

    def render(self, elements: list[Element]) -> dict[str, bytes]:
        """Return the package parts, ``mimetype`` first."""
        self._quote_depth = 0
        self._registry = _AutoStyleRegistry()

        body = self._render_elements(elements)
        parts = {
            "mimetype": ODT_MIMETYPE,
            "META-INF/manifest.xml": _MANIFEST,
            "content.xml": self._build_content_xml(body),
            "styles.xml": self._build_styles_xml(),
        }
        logger.debug(
            "odt: rendered %d element(s) with %d automatic style(s)",
            len(elements), len(self._registry.styles),
        )
        return {name: data.encode("utf-8") for name, data in parts.items()}

    def render_bytes(self, elements: list[Element]) -> bytes:
        """Render and package into a complete ``.odt`` archive."""
        return build_zip(self.render(elements))

    # ======================================================================
    # Element dispatch
    # ======================================================================

    def _render_elements(self, elements: list[Element]) -> str:
        return "".join(self._render_element(el) for el in elements)

    def _render_element(self, el: Element) -> str:
        handler = getattr(self, f"_render_{el.type.value}", None)
        if handler is None:
            raise TypeError(f"Cannot render element {type(el).__name__} as ODT")
        return handler(el)

    # ======================================================================
    # Per-ElementType renderers
    # ======================================================================

    def _render_heading(self, el) -> str:
        name = f"Heading{el.level}"
        if self._quote_depth:
            name = self._registry.register_para(name, self._quote_indent(), "")
        return (
            f'<text:h text:style-name="{name}"'
            f' text:outline-level="{el.level}">{_xml_escape(el.text)}</text:h>'
        )

    def _render_paragraph(self, el) -> str:
        name = self._para_style(el.style)
        return f'<text:p text:style-name="{name}">{_xml_escape(el.text)}</text:p>'

    def _render_rich_paragraph(self, el) -> str:
        name = self._para_style(TextStyle(align=el.align))
        return f'<text:p text:style-name="{name}">{self._runs(el.runs)}</text:p>'

    def _render_sized_text(self, el) -> str:
        name = self._para_style(el.style.derive(size=el.size))
        return f'<text:p text:style-name="{name}">{_xml_escape(el.text)}</text:p>'

    def _render_line_break(self, _el) -> str:
        return f'<text:p text:style-name="{self._para_style(TextStyle())}"/>'

    def _render_horizontal_rule(self, _el) -> str:
        name = self._para_style(TextStyle())
        return f'<text:p text:style-name="{name}">{_RULE_TEXT}</text:p>'

    def _render_list(self, el) -> str:
        item_style = self._para_style(TextStyle())
        L = []  # noqa: E741
        a = L.append
        a(f'<text:list text:style-name="{_list_style(el.ordered)}">')
        for item in el.items:
            a(f'<text:list-item><text:p text:style-name="{item_style}">'
              f'{_xml_escape(item)}</text:p></text:list-item>')
        a('</text:list>')
        return "".join(L)

    def _render_rich_list(self, el) -> str:
        # Nested levels carry their own list style.
        item_style = self._para_style(TextStyle())
        L = []  # noqa: E741
        a = L.append
        a(f'<text:list text:style-name="{_list_style(el.ordered)}">')
        for item in el.items:
            a('<text:list-item>')
            a(f'<text:p text:style-name="{item_style}">{self._runs(item.runs)}</text:p>')
            if item.sublist is not None:
                a(self._render_rich_list(item.sublist))
            a('</text:list-item>')
        a('</text:list>')
        return "".join(L)

    def _render_table(self, el) -> str:
        rows = [[[Run(text)] if text else [] for text in row] for row in el.rows]
        return self._table(rows, el.col_widths, header=False)

    def _render_rich_table(self, el) -> str:
        return self._table(el.rows, el.col_widths, header=el.header)

    def _render_hyperlink(self, el) -> str:
        para = self._para_style(TextStyle(align=el.style.align))
        style = el.style.derive(
            underline=True,
            color=el.style.color or self.style.get_link_color(),
            align=None,
        )
        run = self._span(el.text, style)
        return (
            f'<text:p text:style-name="{para}">'
            f'<text:a xlink:type="simple" xlink:href="{_xml_escape(el.url)}">{run}</text:a>'
            '</text:p>'
        )

    def _render_image(self, el) -> str:
        logger.debug("odt: skipping image %s", el.media_name)
        return ""

    def _render_page_number(self, _el) -> str:
        logger.debug("odt: skipping page number field")
        return ""

    def _render_block_quote(self, el) -> str:
        self._quote_depth += 1
        try:
            return self._render_elements(el.children)
        finally:
            self._quote_depth -= 1

    def _render_code_block(self, el) -> str:
        name = "Code"
        if self._quote_depth:
            name = self._registry.register_para("Code", self._quote_indent(), "")
        lines = [_preserve_spaces(line).replace("\t", "<text:tab/>")
                 for line in el.code.split("\n")]
        return f'<text:p text:style-name="{name}">{"<text:line-break/>".join(lines)}</text:p>'

    # ======================================================================
    # Paragraph and run helpers
    # ======================================================================

    def _quote_indent(self) -> str:
        if not self._quote_depth:
            return ""
        indent = self.style.get_style("blockquote").para.left_indent_pt * self._quote_depth
        return f'<style:paragraph-properties fo:margin-left="{_pt(indent)}"/>'

    def _para_style(self, style: TextStyle) -> str:
        """Paragraph style name for *style*, registering one when needed."""
        parent = "Quote" if self._quote_depth else "Standard"
        para_props = []
        if style.align:
            para_props.append(f'fo:text-align="{style.align}"')
        if self._quote_depth > 1:
            indent = self.style.get_style("blockquote").para.left_indent_pt * self._quote_depth
            para_props.append(f'fo:margin-left="{_pt(indent)}"')
        text_props = self._text_props(style)
        if not para_props and not text_props:
            return parent
        ppr = (
            f'<style:paragraph-properties {" ".join(para_props)}/>' if para_props else ""
        )
        return self._registry.register_para(parent, ppr, text_props)

    def _text_props(self, style: TextStyle) -> str:
        """``style:text-properties`` for *style*; empty when nothing is set."""
        attrs = []
        code_font: Optional[FontSpec] = (
            self.style.get_inline_code_font() if style.code else None
        )
        family = style.font or (code_font.family if code_font else None)
        if family:
            self._registry.register_font(family)
            attrs.append(f'style:font-name="{_xml_escape(family)}"')
        if style.size:
            attrs.append(f'fo:font-size="{_pt(style.size)}"')
        if style.bold:
            attrs.append('fo:font-weight="bold"')
        if style.italic:
            attrs.append('fo:font-style="italic"')
        if style.underline:
            attrs.append(
                'style:text-underline-style="solid"'
                ' style:text-underline-width="auto"'
                ' style:text-underline-color="font-color"'
            )
        if style.strikethrough:
            attrs.append('style:text-line-through-style="solid"')
        if style.color:
            attrs.append(f'fo:color="{_xml_escape(_color_to_hex(style.color))}"')
        if code_font is not None and code_font.background:
            attrs.append(f'fo:background-color="{_color_to_hex(code_font.background)}"')
        if not attrs:
            return ""
        return f'<style:text-properties {" ".join(attrs)}/>'

    def _span(self, text: str, style: TextStyle) -> str:
        props = self._text_props(style.derive(align=None))
        body = _xml_escape(text).replace("\n", "<text:line-break/>")
        if not props:
            return body
        name = self._registry.register_text(props)
        return f'<text:span text:style-name="{name}">{body}</text:span>'

    def _runs(self, runs: list[Run]) -> str:
        """Render runs, grouping consecutive runs of one link into ``text:a``."""
        L = []  # noqa: E741
        a = L.append
        i = 0
        while i < len(runs):
            run = runs[i]
            if run.href is None:
                a(self._span(run.text, run.style))
                i += 1
                continue
            a(f'<text:a xlink:type="simple" xlink:href="{_xml_escape(run.href)}">')
            while i < len(runs) and runs[i].href == run.href:
                a(self._span(runs[i].text, runs[i].style))
                i += 1
            a('</text:a>')
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
        widths = list(col_widths or [])[:n_cols]
        widths.extend([_TEXT_WIDTH_TWIPS // n_cols] * (n_cols - len(widths)))
        name, columns = self._registry.register_table(
            [w / _TWIPS_PER_INCH for w in widths]
        )
        cell_style = self._registry.cell_style()

        L = []  # noqa: E741
        a = L.append
        a(f'<table:table table:name="{name}" table:style-name="{name}">')
        for col in columns:
            a(f'<table:table-column table:style-name="{col}"/>')
        for r, row in enumerate(rows):
            is_header = header and r == 0
            if is_header:
                a('<table:table-header-rows>')
            a('<table:table-row>')
            cells = list(row) + [[]] * (n_cols - len(row))
            for runs in cells:
                if is_header:
                    runs = [
                        Run(run.text, run.style.derive(bold=True), run.href, run.rel_id)
                        for run in runs
                    ]
                a(f'<table:table-cell table:style-name="{cell_style}"'
                  ' office:value-type="string">')
                a(f'<text:p text:style-name="Standard">{self._runs(runs)}</text:p>')
                a('</table:table-cell>')
            a('</table:table-row>')
            if is_header:
                a('</table:table-header-rows>')
        a('</table:table>')
        return "".join(L)

    # ======================================================================
    # Package parts
    # ======================================================================

    @staticmethod
    def _font_face_decls(fonts: list[str]) -> str:
        if not fonts:
            return ""
        faces = "".join(
            f'<style:font-face style:name="{_xml_escape(f)}"'
            f' svg:font-family="&apos;{_xml_escape(f)}&apos;"/>'
            for f in fonts
        )
        return f'<office:font-face-decls>{faces}</office:font-face-decls>'

    def _build_content_xml(self, body: str) -> str:
        reg = self._registry
        auto = ""
        if reg.styles:
            auto = f'<office:automatic-styles>{"".join(reg.styles)}</office:automatic-styles>'
        return (
            f'{_XML_DECL}'
            f'<office:document-content{_NS_DECL} office:version="1.2">'
            f'{self._font_face_decls(reg.fonts)}'
            f'{auto}'
            f'<office:body><office:text>{body}</office:text></office:body>'
            '</office:document-content>'
        )

    def _build_styles_xml(self) -> str:
        """Build ``styles.xml`` from the active style preset."""
        body = self.style.get_style("body")
        heading = self.style.get_style("heading")
        code = self.style.get_style("code_block")
        quote = self.style.get_style("blockquote")
        fonts = []
        for family in (body.font.family, heading.font.family, code.font.family):
            if family not in fonts:
                fonts.append(family)

        L = []  # noqa: E741
        a = L.append
        a(_XML_DECL)
        a(f'<office:document-styles{_NS_DECL} office:version="1.2">')
        a(self._font_face_decls(fonts))
        a('<office:styles>')

        a('<style:default-style style:family="paragraph">'
          f'<style:paragraph-properties fo:margin-top="{_pt(body.para.space_before_pt)}"'
          f' fo:margin-bottom="{_pt(body.para.space_after_pt)}"'
          f' fo:line-height="{body.para.line_spacing_percent}%"/>'
          f'<style:text-properties style:font-name="{_xml_escape(body.font.family)}"'
          f' fo:font-size="{_pt(body.font.size_pt)}"/>'
          '</style:default-style>')
        a('<style:style style:name="Standard" style:family="paragraph"'
          ' style:class="text"/>')

        for level, size_pt in HEADING_SIZES_PT.items():
            color = (
                f' fo:color="{_color_to_hex(heading.font.color)}"'
                if heading.font.color else ""
            )
            a(f'<style:style style:name="Heading{level}" style:family="paragraph"'
              ' style:parent-style-name="Standard" style:next-style-name="Standard"'
              f' style:default-outline-level="{level}" style:class="text">'
              f'<style:paragraph-properties fo:margin-top="{_pt(heading.para.space_before_pt)}"'
              f' fo:margin-bottom="{_pt(heading.para.space_after_pt)}"'
              ' fo:keep-with-next="always"/>'
              f'<style:text-properties style:font-name="{_xml_escape(heading.font.family)}"'
              f' fo:font-size="{size_pt}pt" fo:font-weight="bold"{color}/>'
              '</style:style>')

        quote_color = (
            f' fo:color="{_color_to_hex(quote.font.color)}"' if quote.font.color else ""
        )
        a('<style:style style:name="Quote" style:family="paragraph"'
          ' style:parent-style-name="Standard" style:class="text">'
          f'<style:paragraph-properties fo:margin-left="{_pt(quote.para.left_indent_pt)}"/>'
          f'<style:text-properties fo:font-style="italic"{quote_color}/>'
          '</style:style>')

        background = (
            f' fo:background-color="{_color_to_hex(code.font.background)}"'
            if code.font.background else ""
        )
        a('<style:style style:name="Code" style:family="paragraph"'
          ' style:parent-style-name="Standard" style:class="html">'
          f'<style:paragraph-properties fo:margin-top="{_pt(code.para.space_before_pt)}"'
          f' fo:margin-bottom="{_pt(code.para.space_after_pt)}"{background}/>'
          f'<style:text-properties style:font-name="{_xml_escape(code.font.family)}"'
          f' fo:font-size="{_pt(code.font.size_pt)}"/>'
          '</style:style>')

        a('<text:list-style style:name="Bullets">')
        for lvl in range(1, _LIST_LEVELS + 1):
            char = _BULLET_CHARS[(lvl - 1) % len(_BULLET_CHARS)]
            a(f'<text:list-level-style-bullet text:level="{lvl}" text:bullet-char="{char}">'
              f'{self._list_level_properties(lvl)}'
              '</text:list-level-style-bullet>')
        a('</text:list-style>')

        a('<text:list-style style:name="Numbering">')
        for lvl in range(1, _LIST_LEVELS + 1):
            a(f'<text:list-level-style-number text:level="{lvl}"'
              ' style:num-suffix="." style:num-format="1">'
              f'{self._list_level_properties(lvl)}'
              '</text:list-level-style-number>')
        a('</text:list-style>')

        a('</office:styles></office:document-styles>')
        return "".join(L)

    @staticmethod
    def _list_level_properties(level: int) -> str:
        return (
            '<style:list-level-properties'
            ' text:list-level-position-and-space-mode="label-alignment">'
            '<style:list-level-label-alignment text:label-followed-by="listtab"'
            f' fo:text-indent="-0.25in" fo:margin-left="{0.5 * level:g}in"/>'
            '</style:list-level-properties>'
        )
