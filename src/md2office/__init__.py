"""md2office - convert Markdown to DOCX and ODT documents."""

from md2office.builder import DocxBuilder, OdtBuilder, docx, odt
from md2office.converter import Converter, markdown_to_docx, markdown_to_odt
from md2office.elements import DocContext, RichListItem, Run, TextStyle
from md2office.zipwriter import ZipSizeError

__version__ = "0.1.0"

__all__ = [
    "Converter",
    "DocContext",
    "DocxBuilder",
    "OdtBuilder",
    "RichListItem",
    "Run",
    "TextStyle",
    "ZipSizeError",
    "docx",
    "markdown_to_docx",
    "markdown_to_odt",
    "odt",
    "__version__",
]
