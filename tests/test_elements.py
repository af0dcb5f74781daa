"""Tests for the element model and the per-part build context."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from md2office.elements import (
    GIF,
    JPEG,
    PNG,
    WEBP,
    BlockQuoteElement,
    DocContext,
    HeadingElement,
    HyperlinkElement,
    IdCounters,
    ImageElement,
    ParagraphElement,
    RichListElement,
    RichListItem,
    RichParagraphElement,
    Run,
    TextStyle,
    sniff_image_type,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16
GIF_BYTES = b"GIF89a" + b"\x00" * 16
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 8


class TestTextStyle:

    def test_defaults_are_plain(self):
        assert TextStyle().is_plain

    def test_invalid_alignment(self):
        with pytest.raises(ValueError):
            TextStyle(align="middle")

    def test_derive(self):
        style = TextStyle(bold=True).derive(italic=True)
        assert style.bold and style.italic

    def test_run_key_ignores_alignment(self):
        assert TextStyle(bold=True).run_key == TextStyle(bold=True, align="center").run_key


class TestSniffImageType:

    @pytest.mark.parametrize("data, expected", [
        (PNG_BYTES, PNG),
        (JPEG_BYTES, JPEG),
        (GIF_BYTES, GIF),
        (WEBP_BYTES, WEBP),
        (b"\x00\x01\x02\x03\x04\x05", PNG),
        (b"\x89", PNG),
        (b"RIFF\x00\x00\x00\x00WAVE", PNG),
    ])
    def test_sniff(self, data, expected):
        assert sniff_image_type(data) == expected


class TestDocContext:

    def test_heading(self):
        ctx = DocContext()
        ctx.heading("Title", 2)
        assert ctx.elements == [HeadingElement("Title", 2)]

    @pytest.mark.parametrize("level", [0, 7, -1])
    def test_heading_level_out_of_range(self, level):
        with pytest.raises(ValueError):
            DocContext().heading("x", level)

    def test_paragraph_style(self):
        ctx = DocContext()
        ctx.paragraph("Hi", bold=True, align="center")
        assert ctx.elements == [ParagraphElement("Hi", TextStyle(bold=True, align="center"))]

    def test_unknown_style_keyword(self):
        with pytest.raises(TypeError):
            DocContext().paragraph("x", blink=True)

    def test_bad_alignment(self):
        with pytest.raises(ValueError):
            DocContext().paragraph("x", align="middle")

    def test_link_allocates_relationship(self):
        ctx = DocContext(first_rel_id=5)
        ctx.link("a", "https://a.test")
        ctx.link("b", "https://b.test", bold=True)
        assert [link.rel_id for link in ctx.links] == ["rId5", "rId6"]
        assert isinstance(ctx.elements[1], HyperlinkElement)
        assert ctx.elements[1].rel_id == "rId6"
        assert ctx.elements[1].style.bold

    def test_rich_paragraph_shares_rel_for_adjacent_link_runs(self):
        ctx = DocContext()
        ctx.rich_paragraph([
            Run("a ", href="https://x.test"),
            Run("b", TextStyle(bold=True), href="https://x.test"),
            Run(" plain"),
            Run("c", href="https://x.test"),
        ])
        runs = ctx.elements[0].runs
        assert runs[0].rel_id == runs[1].rel_id == "rId1"
        assert runs[2].rel_id is None
        assert runs[3].rel_id == "rId2"
        assert len(ctx.links) == 2

    def test_rich_list_links_nested_items(self):
        ctx = DocContext()
        inner = RichListItem([Run("deep", href="https://d.test")])
        ctx.rich_list([RichListItem([Run("top")], sublist=None)])
        ctx.rich_list([RichListItem([Run("x")], RichListElement([inner]))])
        assert ctx.elements[1].items[0].sublist.items[0].runs[0].rel_id == "rId1"

    def test_rich_table_links(self):
        ctx = DocContext()
        ctx.rich_table([[[Run("l", href="https://t.test")], []]], header=True)
        assert ctx.elements[0].rows[0][0][0].rel_id == "rId1"
        assert ctx.elements[0].header

    def test_image(self):
        ctx = DocContext()
        ctx.image(PNG_BYTES, 2, 1.5)
        ctx.image(JPEG_BYTES, 1, 1, align="center")
        first, second = ctx.elements
        assert isinstance(first, ImageElement)
        assert (first.media_name, first.draw_id, first.rel_id) == ("image1.png", 1, "rId1")
        assert (second.media_name, second.draw_id, second.rel_id) == ("image2.jpeg", 2, "rId2")
        assert [img.index for img in ctx.images] == [1, 2]

    def test_image_counters_shared_between_parts(self):
        counters = IdCounters()
        body = DocContext(counters, first_rel_id=5)
        header = DocContext(counters)
        body.image(PNG_BYTES, 1, 1)
        header.image(GIF_BYTES, 1, 1)
        assert body.elements[0].draw_id == 1
        assert header.elements[0].draw_id == 2
        assert header.elements[0].media_name == "image2.gif"
        assert body.images[0].rel_id == "rId5"
        assert header.images[0].rel_id == "rId1"

    def test_image_requires_data(self):
        with pytest.raises(ValueError):
            DocContext().image(b"", 1, 1)

    @pytest.mark.parametrize("width, height", [(0, 1), (1, 0), (-1, 2)])
    def test_image_requires_positive_size(self, width, height):
        with pytest.raises(ValueError):
            DocContext().image(PNG_BYTES, width, height)

    def test_block_quote_collects_children(self):
        ctx = DocContext()
        ctx.paragraph("before")

        def quoted(inner: DocContext) -> None:
            inner.paragraph("one")
            inner.paragraph("two")

        ctx.block_quote(quoted)
        ctx.paragraph("after")
        assert len(ctx.elements) == 3
        quote = ctx.elements[1]
        assert isinstance(quote, BlockQuoteElement)
        assert [p.text for p in quote.children] == ["one", "two"]

    def test_markdown(self):
        ctx = DocContext()
        ctx.markdown("# T\n\n[link](https://m.test)")
        assert isinstance(ctx.elements[0], HeadingElement)
        para = ctx.elements[1]
        assert isinstance(para, RichParagraphElement)
        assert para.runs[0].rel_id == "rId1"
        assert ctx.links[0].url == "https://m.test"

    def test_add_reassigns_ids(self):
        src = DocContext()
        src.link("a", "https://a.test")
        src.image(PNG_BYTES, 1, 1)
        dest = DocContext(first_rel_id=10)
        dest.extend(src.elements)
        assert [link.rel_id for link in dest.links] == ["rId10"]
        assert dest.images[0].rel_id == "rId11"

    def test_add_unknown_element(self):
        bogus = SimpleNamespace(type=SimpleNamespace(value="bogus"))
        with pytest.raises(TypeError):
            DocContext().add(bogus)
