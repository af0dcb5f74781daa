"""High-level Markdown-to-office conversion orchestrator.

Ties together the parser, translator, builders and style manager into a
single public API for converting Markdown text or files to DOCX or ODT.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from md2office.builder import docx, odt
from md2office.style_manager import StyleManager

logger = logging.getLogger(__name__)

#: Supported output formats, in the order they are offered to users.
FORMATS = ("docx", "odt")


def check_format(fmt: str) -> str:
    """Normalise *fmt* and reject anything but a supported format."""
    normalised = fmt.lower().lstrip(".")
    if normalised not in FORMATS:
        raise ValueError(f"Unknown format {fmt!r}. Choose from: {', '.join(FORMATS)}")
    return normalised


class Converter:
    """Convert Markdown content to DOCX or ODT.

    Usage::

        converter = Converter(style_preset="default")
        converter.convert_file("input.md", "output.odt")

        # or from string
        docx_bytes = converter.to_docx("# Hello")
    """

    STYLE_PRESETS = StyleManager.PRESETS
    FORMATS = FORMATS

    def __init__(self, style_preset: str = "default") -> None:
        self.style_manager = StyleManager(style_preset)
        self.style_preset = style_preset

    def to_docx(self, markdown_text: str) -> bytes:
        """Convert Markdown text to DOCX bytes."""
        return docx(self.style_preset).content(lambda ctx: ctx.markdown(markdown_text)).build()

    def to_odt(self, markdown_text: str) -> bytes:
        """Convert Markdown text to ODT bytes."""
        return odt(self.style_preset).content(lambda ctx: ctx.markdown(markdown_text)).build()

    def convert_text(self, markdown_text: str, fmt: str = "docx") -> bytes:
        """Convert Markdown text to the given output format.

        Args:
            markdown_text: Markdown source string.
            fmt: ``"docx"`` or ``"odt"``.

        Returns:
            The packaged document as bytes.
        """
        if check_format(fmt) == "odt":
            return self.to_odt(markdown_text)
        return self.to_docx(markdown_text)

    def convert_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        *,
        fmt: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> None:
        """Read a Markdown file and write the converted document.

        Args:
            input_path: Path to the input ``.md`` file.
            output_path: Path for the output document.
            fmt: Output format; inferred from the output suffix when omitted.
            encoding: Text encoding of the source file.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        fmt = check_format(fmt or output_path.suffix or "docx")

        md_text = input_path.read_text(encoding=encoding)
        data = self.convert_text(md_text, fmt)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
        logger.info("converted %s -> %s (%d bytes)", input_path, output_path, len(data))


def markdown_to_docx(markdown_text: str) -> bytes:
    """Convert Markdown to DOCX with the default preset."""
    return Converter().to_docx(markdown_text)


def markdown_to_odt(markdown_text: str) -> bytes:
    """Convert Markdown to ODT with the default preset."""
    return Converter().to_odt(markdown_text)
