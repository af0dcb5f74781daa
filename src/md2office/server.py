"""FastAPI web service for Markdown to DOCX/ODT conversion.

Endpoints::

    GET  /              Web UI (single-page HTML).
    POST /convert       Upload a .md file and receive a document back.
    POST /convert/text  Send raw Markdown text, receive document bytes.
    GET  /health        Health check.
    GET  /styles        List available style presets.
    GET  /formats       List available output formats.

Run::

    uvicorn md2office.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, Response

from md2office import __version__
from md2office.converter import FORMATS, Converter
from md2office.style_manager import StyleManager

logger = logging.getLogger(__name__)

app = FastAPI(
    title="md2office",
    description="Markdown to DOCX / ODT conversion service",
    version=__version__,
)

MEDIA_TYPES = {
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "odt": "application/vnd.oasis.opendocument.text",
}


def _content_disposition(filename: str) -> str:
    """Build Content-Disposition header, RFC 5987 for non-ASCII names."""
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded = quote(filename)
        return f"attachment; filename*=UTF-8''{encoded}"


_STATIC_DIR = Path(__file__).parent / "static"
try:
    _INDEX_HTML = (_STATIC_DIR / "index.html").read_text(encoding="utf-8")
except FileNotFoundError:
    _INDEX_HTML = "<html><body><h1>md2office</h1><p>Web UI not found.</p></body></html>"


def _convert(markdown_text: str, style: str, fmt: str) -> bytes:
    """Run a conversion, mapping bad options onto HTTP 400."""
    if fmt not in FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown format {fmt!r}. Choose from: {', '.join(FORMATS)}",
        )
    try:
        converter = Converter(style_preset=style)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return converter.convert_text(markdown_text, fmt)


def _document_response(data: bytes, filename: str, fmt: str) -> Response:
    return Response(
        content=data,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the web UI."""
    return HTMLResponse(content=_INDEX_HTML)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/styles")
async def list_styles() -> dict[str, list[str]]:
    """List available style presets."""
    return {"presets": StyleManager.PRESETS}


@app.get("/formats")
async def list_formats() -> dict[str, list[str]]:
    """List available output formats."""
    return {"formats": list(FORMATS)}


@app.post("/convert")
async def convert_file(
    file: UploadFile = File(...),
    style: str = Form("default"),
    format: str = Form("docx"),
    encoding: str = Form("utf-8"),
) -> Response:
    """Upload a Markdown file and receive a document back.

    - **file**: Markdown file (.md)
    - **style**: Style preset name (default, academic, business, minimal)
    - **format**: Output format (docx, odt)
    - **encoding**: Source file encoding
    """
    raw = await file.read()
    try:
        md_text = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise HTTPException(
            status_code=400, detail=f"Cannot decode upload as {encoding}: {exc}"
        ) from exc

    data = _convert(md_text, style, format)
    filename = (file.filename or "document.md").rsplit(".", 1)[0] + f".{format}"
    logger.info("converted upload %s (%d bytes)", filename, len(data))
    return _document_response(data, filename, format)


@app.post("/convert/text")
async def convert_text(
    markdown: str = Form(...),
    style: str = Form("default"),
    format: str = Form("docx"),
) -> Response:
    """Send raw Markdown text and receive document bytes.

    - **markdown**: Markdown source text
    - **style**: Style preset name
    - **format**: Output format (docx, odt)
    """
    data = _convert(markdown, style, format)
    return _document_response(data, f"document.{format}", format)
