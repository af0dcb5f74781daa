"""Command-line interface for md2office.

Usage::

    md2office input.md                     # writes input.docx
    md2office input.md -f odt              # writes input.odt
    md2office input.md -o output.odt       # format from the output suffix
    md2office input.md --style academic    # use academic preset
    md2office --list-styles                # list available presets
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from md2office import __version__
from md2office.converter import FORMATS, Converter
from md2office.style_manager import StyleManager

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md2office",
        description="Convert Markdown files to DOCX or ODT documents.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the Markdown file to convert.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file path. Defaults to <input>.docx (or .odt with -f odt).",
    )
    parser.add_argument(
        "-f", "--format",
        choices=FORMATS,
        help="Output format. Inferred from --output when omitted.",
    )
    parser.add_argument(
        "-s", "--style",
        default="default",
        choices=StyleManager.PRESETS,
        help="Style preset (default: %(default)s).",
    )
    parser.add_argument(
        "-e", "--encoding",
        default="utf-8",
        help="Input file encoding (default: %(default)s).",
    )
    parser.add_argument(
        "--list-styles",
        action="store_true",
        help="List available style presets and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print progress information and debug logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _resolve_output(input_path: Path, output: str | None, fmt: str | None) -> tuple[Path, str]:
    """Pick the output path and format from the command-line options."""
    if output:
        output_path = Path(output)
        suffix = output_path.suffix.lower().lstrip(".")
        return output_path, fmt or (suffix if suffix in FORMATS else "docx")
    fmt = fmt or "docx"
    return input_path.with_suffix(f".{fmt}"), fmt


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )

    if args.list_styles:
        print("Available style presets:")
        for preset in StyleManager.PRESETS:
            print(f"  - {preset}")
        return 0

    if not args.input:
        parser.error("the following argument is required: input")

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    output_path, fmt = _resolve_output(input_path, args.output, args.format)

    if args.verbose:
        print(f"Input:  {input_path}")
        print(f"Output: {output_path}")
        print(f"Format: {fmt}")
        print(f"Style:  {args.style}")

    try:
        converter = Converter(style_preset=args.style)
        converter.convert_file(input_path, output_path, fmt=fmt, encoding=args.encoding)
    except Exception as exc:
        logger.debug("conversion failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Done. {output_path.stat().st_size} bytes written.")
    else:
        print(f"Converted: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
