"""Tests for ODT rendering, inspected through the packaged archive."""

from __future__ import annotations

import io
import re
import zipfile
import xml.etree.ElementTree as ET

import pytest

from md2office import odt
from md2office.elements import HeadingElement, ParagraphElement, TextStyle
from md2office.odt_renderer import ODT_MIMETYPE, OdtRenderer

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def read_parts(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def content_xml(fn, preset: str = "default") -> str:
    return read_parts(odt(preset).content(fn).build())["content.xml"].decode("utf-8")


def styles_xml(preset: str = "default") -> str:
    return read_parts(odt(preset).content(lambda ctx: None).build())["styles.xml"].decode("utf-8")


class TestPackage:

    def test_zip_magic(self):
        data = odt().content(lambda ctx: None).build()
        assert data[:2] == b"PK"
        assert data.count(b"PK\x05\x06") == 1

    def test_part_order_and_mimetype(self):
        data = odt().content(lambda ctx: ctx.paragraph("Hello")).build()
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == [
                "mimetype", "META-INF/manifest.xml", "content.xml", "styles.xml",
            ]
            assert zf.read("mimetype").decode() == ODT_MIMETYPE
            assert zf.getinfo("mimetype").compress_type == zipfile.ZIP_STORED
        # The mimetype is readable at a fixed offset right after the first header
        assert data[38:38 + len(ODT_MIMETYPE)] == ODT_MIMETYPE.encode()

    def test_xml_parts_well_formed(self):
        def content(ctx):
            ctx.markdown(
                "# T\n\n**b** *i* `c` [l](https://l.test)\n\n- a\n  - b\n\n"
                "> q\n\n```\n  x\n```\n\n| h |\n|---|\n| v |"
            )
            ctx.paragraph("p", font="Arial", color="#123456", align="right")

        for name, body in read_parts(odt().content(content).build()).items():
            if name.endswith(".xml"):
                ET.fromstring(body)

    def test_empty_document(self):
        xml = content_xml(lambda ctx: None)
        assert "<office:text></office:text>" in xml
        assert "office:automatic-styles" not in xml

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            odt("fancy")


class TestStyles:

    @pytest.mark.parametrize("level, size", [(1, 24), (2, 18), (3, 14), (4, 12), (5, 10), (6, 9)])
    def test_heading_sizes(self, level, size):
        m = re.search(
            rf'<style:style style:name="Heading{level}".*?</style:style>', styles_xml(), re.S
        )
        assert m is not None
        assert f'fo:font-size="{size}pt"' in m.group(0)
        assert 'fo:font-weight="bold"' in m.group(0)

    def test_static_styles(self):
        xml = styles_xml()
        for name in ("Standard", "Quote", "Code", "Bullets", "Numbering"):
            assert f'style:name="{name}"' in xml

    def test_preset_fonts(self):
        xml = styles_xml("academic")
        assert 'style:font-name="Times New Roman"' in xml
        assert '<style:font-face style:name="Times New Roman"' in xml


class TestContent:

    @pytest.mark.parametrize("level", [1, 2, 3])
    def test_heading(self, level):
        xml = content_xml(lambda ctx: ctx.heading("Test Heading", level))
        assert f'<text:h text:style-name="Heading{level}" text:outline-level="{level}">' in xml
        assert "Test Heading" in xml

    def test_plain_paragraph_uses_standard(self):
        xml = content_xml(lambda ctx: ctx.paragraph("Plain"))
        assert '<text:p text:style-name="Standard">Plain</text:p>' in xml

    @pytest.mark.parametrize("style, expected", [
        ({"bold": True}, 'fo:font-weight="bold"'),
        ({"italic": True}, 'fo:font-style="italic"'),
        ({"underline": True}, 'style:text-underline-style="solid"'),
        ({"strikethrough": True}, 'style:text-line-through-style="solid"'),
        ({"color": "#ff0000"}, 'fo:color="#ff0000"'),
        ({"align": "center"}, 'fo:text-align="center"'),
        ({"font": "Arial"}, 'style:font-name="Arial"'),
    ])
    def test_paragraph_styles(self, style, expected):
        xml = content_xml(lambda ctx: ctx.paragraph("styled", **style))
        assert expected in xml
        assert '<text:p text:style-name="P1">styled</text:p>' in xml

    def test_font_face_declared(self):
        xml = content_xml(lambda ctx: ctx.paragraph("x", font="Arial"))
        assert '<style:font-face style:name="Arial"' in xml

    def test_sized_text(self):
        xml = content_xml(lambda ctx: ctx.text("Large text", 24))
        assert 'fo:font-size="24pt"' in xml
        assert "Large text" in xml

    def test_automatic_styles_deduplicated(self):
        def content(ctx):
            ctx.paragraph("Normal")
            ctx.paragraph("Bold", bold=True)
            ctx.paragraph("Also bold", bold=True)
            ctx.paragraph("Italic", italic=True)

        xml = content_xml(content)
        assert "<office:automatic-styles>" in xml
        assert xml.count('text:style-name="P1"') == 2
        assert 'text:style-name="P2"' in xml
        assert 'style:name="P3"' not in xml
        assert xml.index("office:automatic-styles") < xml.index("office:body")

    def test_text_spans(self):
        xml = content_xml(lambda ctx: ctx.markdown("a **b** *c* **d**"))
        assert '<text:span text:style-name="T1">b</text:span>' in xml
        assert '<text:span text:style-name="T2">c</text:span>' in xml
        assert '<text:span text:style-name="T1">d</text:span>' in xml

    def test_inline_code_span(self):
        xml = content_xml(lambda ctx: ctx.markdown("run `code`"))
        assert 'style:font-name="Courier New"' in xml
        assert 'fo:background-color="#F2F2F2"' in xml

    def test_escaping(self):
        xml = content_xml(lambda ctx: ctx.paragraph("Test <tag> & \"quotes\" 'apos'"))
        assert "&lt;tag&gt;" in xml
        assert "&amp;" in xml
        assert "&quot;" in xml
        assert "&apos;" in xml

    def test_line_break_and_rule(self):
        def content(ctx):
            ctx.line_break()
            ctx.horizontal_rule()

        xml = content_xml(content)
        assert '<text:p text:style-name="Standard"/>' in xml
        assert "─" * 40 in xml

    def test_images_and_page_numbers_render_nothing(self):
        def content(ctx):
            ctx.image(PNG_BYTES, 1, 1)
            ctx.page_number()

        xml = content_xml(content)
        assert "<office:text></office:text>" in xml

    def test_code_block(self):
        xml = content_xml(lambda ctx: ctx.code_block("def f():\n    return  1\n\tx"))
        assert '<text:p text:style-name="Code">' in xml
        assert 'def f():<text:line-break/><text:s text:c="4"/>return <text:s text:c="1"/>1' in xml
        assert "<text:tab/>x" in xml

    def test_block_quote(self):
        xml = content_xml(lambda ctx: ctx.markdown("> quoted"))
        assert '<text:p text:style-name="Quote">quoted</text:p>' in xml

    def test_heading_inside_quote_is_indented(self):
        xml = content_xml(lambda ctx: ctx.markdown("> # Quoted title"))
        assert '<text:h text:style-name="P1" text:outline-level="1">Quoted title</text:h>' in xml
        assert (
            '<style:style style:name="P1" style:family="paragraph"'
            ' style:parent-style-name="Heading1">'
            '<style:paragraph-properties fo:margin-left="36pt"/></style:style>'
        ) in xml

    def test_nested_quote_gets_indent(self):
        xml = content_xml(lambda ctx: ctx.markdown("> a\n> > b"))
        assert 'style:parent-style-name="Quote"' in xml
        assert 'fo:margin-left="72pt"' in xml


class TestListsTablesLinks:

    def test_bullet_list(self):
        xml = content_xml(lambda ctx: ctx.list(["Item 1", "Item 2"]))
        assert '<text:list text:style-name="Bullets">' in xml
        assert xml.count("<text:list-item>") == 2
        assert "Item 2" in xml

    def test_numbered_list(self):
        xml = content_xml(lambda ctx: ctx.list(["First", "Second"], ordered=True))
        assert '<text:list text:style-name="Numbering">' in xml

    def test_nested_list(self):
        xml = content_xml(lambda ctx: ctx.markdown("- A\n  - B\n- C"))
        assert xml.count("<text:list") - xml.count("<text:list-item") == 2
        assert xml.index('A</text:p><text:list text:style-name="Bullets">') < xml.index(">B</text:p>")

    def test_nested_list_keeps_its_kind(self):
        xml = content_xml(lambda ctx: ctx.markdown("- A\n  1. B\n  2. C\n- D"))
        assert xml.startswith('<text:list text:style-name="Bullets">', xml.index("<office:text>") + 13)
        assert 'A</text:p><text:list text:style-name="Numbering">' in xml
        assert "<text:list>" not in xml

    def test_bullets_nested_in_numbering(self):
        xml = content_xml(lambda ctx: ctx.markdown("1. A\n   - B"))
        assert xml.index('<text:list text:style-name="Numbering">') < xml.index(
            '<text:list text:style-name="Bullets">'
        )

    def test_list_inside_quote(self):
        xml = content_xml(lambda ctx: ctx.markdown("> - quoted item"))
        assert '<text:p text:style-name="Quote">quoted item</text:p>' in xml

    def test_table(self):
        xml = content_xml(lambda ctx: ctx.table([["A", "B"], ["C", "D"]]))
        assert xml.count("<table:table ") == 1
        assert xml.count("<table:table-row>") == 2
        assert xml.count("<table:table-cell ") == 4
        assert xml.count("<table:table-column ") == 2
        assert 'style:column-width="3.2500in"' in xml

    def test_table_column_widths(self):
        xml = content_xml(lambda ctx: ctx.table([["A", "B"]], col_widths=[1440, 2880]))
        assert 'style:column-width="1.0000in"' in xml
        assert 'style:column-width="2.0000in"' in xml

    def test_markdown_table_header_rows(self):
        xml = content_xml(lambda ctx: ctx.markdown("| H |\n|---|\n| v |"))
        assert "<table:table-header-rows>" in xml
        assert 'fo:font-weight="bold"' in xml

    def test_hyperlink(self):
        xml = content_xml(lambda ctx: ctx.link("Click here", "https://example.com"))
        assert '<text:a xlink:type="simple" xlink:href="https://example.com">' in xml
        assert "Click here" in xml
        assert 'fo:color="#0563C1"' in xml

    def test_markdown_link(self):
        xml = content_xml(lambda ctx: ctx.markdown("see [the **docs**](https://d.test)"))
        assert xml.count("<text:a ") == 1
        assert 'xlink:href="https://d.test"' in xml


class TestRendererDirect:

    def test_render_elements(self):
        parts = OdtRenderer().render([
            HeadingElement("H", 1),
            ParagraphElement("p", TextStyle(bold=True)),
        ])
        assert list(parts)[0] == "mimetype"
        assert b"Heading1" in parts["content.xml"]

    def test_renderer_resets_between_calls(self):
        renderer = OdtRenderer()
        renderer.render([ParagraphElement("a", TextStyle(bold=True))])
        parts = renderer.render([ParagraphElement("b", TextStyle(italic=True))])
        assert b'style:name="P1"' in parts["content.xml"]
        assert b'style:name="P2"' not in parts["content.xml"]
