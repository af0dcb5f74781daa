"""Fluent document builders.

Usage::

    from md2office import docx

    data = (
        docx("business")
        .header(lambda ctx: ctx.paragraph("Quarterly report", align="right"))
        .content(lambda ctx: ctx.markdown("# Results\\n\\nAll **green**."))
        .footer(lambda ctx: ctx.page_number(align="center"))
        .build()
    )
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from md2office.docx_renderer import BODY_FIRST_REL_ID, DocxRenderer
from md2office.elements import DocContext, IdCounters
from md2office.odt_renderer import OdtRenderer
from md2office.style_manager import StyleManager

logger = logging.getLogger(__name__)

ContentFn = Callable[[DocContext], None]


class DocxBuilder:
    """Collects body, header and footer content for one DOCX document."""

    def __init__(self, style_preset: str = "default") -> None:
        self._style_manager = StyleManager(style_preset)
        self._counters = IdCounters()
        self._body = DocContext(self._counters, first_rel_id=BODY_FIRST_REL_ID)
        self._header: Optional[DocContext] = None
        self._footer: Optional[DocContext] = None

    def content(self, fn: ContentFn) -> DocxBuilder:
        fn(self._body)
        return self

    def header(self, fn: ContentFn) -> DocxBuilder:
        if self._header is None:
            self._header = DocContext(self._counters)
        fn(self._header)
        return self

    def footer(self, fn: ContentFn) -> DocxBuilder:
        if self._footer is None:
            self._footer = DocContext(self._counters)
        fn(self._footer)
        return self

    def build(self) -> bytes:
        """Render and package the document as ``.docx`` bytes."""
        data = DocxRenderer(self._style_manager).render_bytes(
            self._body, self._header, self._footer
        )
        logger.debug("docx: built %d byte archive", len(data))
        return data


class OdtBuilder:
    """Collects body content for one ODT document."""

    def __init__(self, style_preset: str = "default") -> None:
        self._style_manager = StyleManager(style_preset)
        self._body = DocContext()

    def content(self, fn: ContentFn) -> OdtBuilder:
        fn(self._body)
        return self

    def build(self) -> bytes:
        """Render and package the document as ``.odt`` bytes."""
        data = OdtRenderer(self._style_manager).render_bytes(self._body.elements)
        logger.debug("odt: built %d byte archive", len(data))
        return data


def docx(style_preset: str = "default") -> DocxBuilder:
    """Start a new DOCX document."""
    return DocxBuilder(style_preset)


def odt(style_preset: str = "default") -> OdtBuilder:
    """Start a new ODT document."""
    return OdtBuilder(style_preset)
