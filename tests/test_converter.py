"""Integration tests for the Converter orchestrator."""

from __future__ import annotations

import zipfile
import io
import pytest
from pathlib import Path

from md2office.converter import (
    FORMATS,
    Converter,
    check_format,
    markdown_to_docx,
    markdown_to_odt,
)
from md2office.odt_renderer import ODT_MIMETYPE
from md2office.style_manager import StyleManager

FIXTURE_DIR = Path(__file__).parent / "fixtures"
SAMPLE_MD = FIXTURE_DIR / "sample.md"


def read_part(data: bytes, name: str) -> str:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return zf.read(name).decode("utf-8")


class TestConverterInit:
    """Test Converter construction."""

    def test_default_preset(self):
        c = Converter()
        assert c.style_manager.preset == "default"
        assert c.style_preset == "default"

    def test_custom_preset(self):
        c = Converter(style_preset="academic")
        assert c.style_manager.preset == "academic"

    def test_invalid_preset_raises(self):
        with pytest.raises(ValueError):
            Converter(style_preset="nonexistent")

    def test_all_presets_valid(self):
        for preset in StyleManager.PRESETS:
            c = Converter(style_preset=preset)
            assert c.style_manager.preset == preset


class TestCheckFormat:

    @pytest.mark.parametrize("fmt, expected", [
        ("docx", "docx"), ("ODT", "odt"), (".docx", "docx"),
    ])
    def test_normalises(self, fmt, expected):
        assert check_format(fmt) == expected

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown format"):
            check_format("pdf")

    def test_formats(self):
        assert FORMATS == ("docx", "odt")


class TestConvertText:
    """Test convert_text produces valid packages."""

    def test_docx_by_default(self):
        data = Converter().convert_text("# Hello World")
        assert zipfile.is_zipfile(io.BytesIO(data))
        assert "Hello World" in read_part(data, "word/document.xml")

    def test_docx_required_parts(self):
        data = Converter().convert_text("# Test\n\nParagraph text.")
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = zf.namelist()
        for name in (
            "[Content_Types].xml", "_rels/.rels", "word/document.xml",
            "word/styles.xml", "word/_rels/document.xml.rels",
        ):
            assert name in names

    def test_odt(self):
        data = Converter().convert_text("# Hello", "odt")
        assert read_part(data, "mimetype") == ODT_MIMETYPE
        assert "Hello" in read_part(data, "content.xml")

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            Converter().convert_text("x", "rtf")

    def test_non_ascii_text_preserved(self):
        data = Converter().convert_text("# 한글 제목\n\nÜbersicht ✓")
        xml = read_part(data, "word/document.xml")
        assert "한글 제목" in xml
        assert "Übersicht ✓" in xml

    def test_empty_markdown(self):
        for fmt in FORMATS:
            data = Converter().convert_text("", fmt)
            assert zipfile.is_zipfile(io.BytesIO(data))

    def test_all_presets_produce_output(self):
        md = "# Title\n\nBody text."
        for preset in StyleManager.PRESETS:
            for fmt in FORMATS:
                data = Converter(style_preset=preset).convert_text(md, fmt)
                assert len(data) > 0, f"Preset {preset} produced empty {fmt}"

    def test_to_methods_match_convert_text(self):
        c = Converter()
        assert c.to_docx("# A") == c.convert_text("# A", "docx")
        assert c.to_odt("# A") == c.convert_text("# A", "odt")

    def test_module_shortcuts(self):
        assert markdown_to_docx("# A") == Converter().to_docx("# A")
        assert markdown_to_odt("# A") == Converter().to_odt("# A")


class TestConvertFile:
    """Test file-based conversion."""

    def test_convert_sample_fixture(self, tmp_path):
        out = tmp_path / "output.docx"
        Converter().convert_file(SAMPLE_MD, out)
        assert zipfile.is_zipfile(out)

    def test_format_from_suffix(self, tmp_path):
        out = tmp_path / "output.odt"
        Converter().convert_file(SAMPLE_MD, out)
        with zipfile.ZipFile(out) as zf:
            assert zf.read("mimetype").decode() == ODT_MIMETYPE

    def test_explicit_format_wins(self, tmp_path):
        out = tmp_path / "output.bin"
        Converter().convert_file(SAMPLE_MD, out, fmt="odt")
        with zipfile.ZipFile(out) as zf:
            assert "content.xml" in zf.namelist()

    def test_unknown_suffix_raises(self, tmp_path):
        with pytest.raises(ValueError):
            Converter().convert_file(SAMPLE_MD, tmp_path / "output.pdf")

    def test_output_directory_created(self, tmp_path):
        md_file = tmp_path / "input.md"
        md_file.write_text("# Test", encoding="utf-8")
        out = tmp_path / "subdir" / "nested" / "output.docx"
        Converter().convert_file(md_file, out)
        assert out.exists()

    def test_encoding_parameter(self, tmp_path):
        md_file = tmp_path / "input.md"
        md_file.write_bytes("# 한글 제목".encode("euc-kr"))
        out = tmp_path / "output.docx"
        Converter().convert_file(md_file, out, encoding="euc-kr")
        with zipfile.ZipFile(out) as zf:
            assert "한글 제목" in zf.read("word/document.xml").decode("utf-8")

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Converter().convert_file(tmp_path / "absent.md", tmp_path / "out.docx")


class TestFullMarkdownFeatures:
    """Test that Markdown features reach the document body."""

    @pytest.fixture
    def document(self):
        def convert(md: str) -> str:
            return read_part(Converter().convert_text(md), "word/document.xml")
        return convert

    def test_headings(self, document):
        md = "\n\n".join(f"{'#' * i} Heading {i}" for i in range(1, 7))
        xml = document(md)
        for i in range(1, 7):
            assert f'<w:pStyle w:val="Heading{i}"/>' in xml
            assert f"Heading {i}" in xml

    def test_bold_italic_strikethrough(self, document):
        xml = document("**bold** *italic* ~~strike~~")
        assert "<w:b/>" in xml
        assert "<w:i/>" in xml
        assert "<w:strike/>" in xml

    def test_code_block(self, document):
        xml = document("```python\nprint('hello')\n```")
        assert '<w:pStyle w:val="Code"/>' in xml
        assert "print(&apos;hello&apos;)" in xml

    def test_lists(self):
        data = Converter().convert_text("- item 1\n- item 2\n\n1. first\n2. second")
        assert "w:abstractNum" in read_part(data, "word/numbering.xml")

    def test_blockquote(self, document):
        xml = document("> This is a quote")
        assert '<w:pStyle w:val="Quote"/>' in xml
        assert "This is a quote" in xml

    def test_link(self):
        data = Converter().convert_text("[GitHub](https://github.com)")
        assert "GitHub" in read_part(data, "word/document.xml")
        assert 'Target="https://github.com"' in read_part(data, "word/_rels/document.xml.rels")

    def test_image_reference_is_dropped(self, document):
        xml = document("before ![alt text](https://example.com/img.png) after")
        assert "alt text" not in xml
        assert "before" in xml
        assert "<w:drawing>" not in xml

    def test_horizontal_rule(self, document):
        assert "<w:pBdr>" in document("Above\n\n---\n\nBelow")

    def test_table_with_alignment(self, document):
        xml = document("| Left | Center | Right |\n|:-----|:------:|------:|\n| a | b | c |")
        assert "<w:tbl>" in xml
        for word in ("Left", "Center", "Right"):
            assert word in xml
