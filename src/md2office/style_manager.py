"""Document style presets.

A preset (default, academic, business, minimal) maps semantic style names
(body, heading, code_block, ...) to concrete font and paragraph
specifications.  Both renderers read them when writing their stylesheets.
Heading sizes are fixed per level and are not part of a preset.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class FontSpec:
    """Font settings for a class of text."""

    family: str = "Calibri"
    size_pt: float = 11.0
    bold: bool = False
    italic: bool = False
    color: str = ""
    background: str = ""

    # -- convenience helpers ------------------------------------------------

    def derive(self, **overrides) -> FontSpec:
        """Return a copy with selected fields overridden."""
        clone = deepcopy(self)
        for k, v in overrides.items():
            if hasattr(clone, k):
                setattr(clone, k, v)
        return clone

    @property
    def size_half_points(self) -> int:
        """Size in Word half-points (1pt = 2 units)."""
        return int(round(self.size_pt * 2))


@dataclass
class ParaSpec:
    """Paragraph layout settings."""

    left_indent_pt: float = 0.0
    line_spacing_percent: int = 100
    space_before_pt: float = 0.0
    space_after_pt: float = 8.0

    def derive(self, **overrides) -> ParaSpec:
        clone = deepcopy(self)
        for k, v in overrides.items():
            if hasattr(clone, k):
                setattr(clone, k, v)
        return clone

    @property
    def left_indent_twips(self) -> int:
        """Left indent in twips (1pt = 20 units)."""
        return int(self.left_indent_pt * 20)

    @property
    def space_before_twips(self) -> int:
        return int(self.space_before_pt * 20)

    @property
    def space_after_twips(self) -> int:
        return int(self.space_after_pt * 20)

    @property
    def line_twips(self) -> int:
        """Line spacing as Word's ``w:line`` value (240 = single)."""
        return int(self.line_spacing_percent * 240 / 100)


@dataclass
class StyleDef:
    """Complete style definition combining font and paragraph specs."""

    name: str
    font: FontSpec
    para: ParaSpec


# ---------------------------------------------------------------------------
# Preset definitions
# ---------------------------------------------------------------------------

def _build_styles(
    body_font: FontSpec,
    body_para: ParaSpec,
    *,
    heading_family: str,
    heading_color: str,
    code_family: str,
    code_background: str,
    quote_color: str,
    quote_indent_pt: float,
    header_background: str,
) -> dict[str, StyleDef]:
    styles: dict[str, StyleDef] = {}

    styles["body"] = StyleDef(name="body", font=body_font, para=body_para)

    styles["heading"] = StyleDef(
        name="heading",
        font=body_font.derive(family=heading_family, bold=True, color=heading_color),
        para=body_para.derive(space_before_pt=12.0, space_after_pt=6.0),
    )

    styles["code_block"] = StyleDef(
        name="code_block",
        font=FontSpec(
            family=code_family,
            size_pt=max(body_font.size_pt - 1.0, 8.0),
            background=code_background,
        ),
        para=ParaSpec(
            line_spacing_percent=100,
            space_before_pt=4.0,
            space_after_pt=4.0,
        ),
    )

    styles["inline_code"] = StyleDef(
        name="inline_code",
        font=FontSpec(family=code_family, size_pt=body_font.size_pt, background=code_background),
        para=body_para,  # inherits paragraph style from surrounding context
    )

    styles["blockquote"] = StyleDef(
        name="blockquote",
        font=body_font.derive(italic=True, color=quote_color),
        para=body_para.derive(left_indent_pt=quote_indent_pt),
    )

    styles["link"] = StyleDef(
        name="link",
        font=body_font.derive(color="0563C1"),
        para=body_para,
    )

    styles["table_header"] = StyleDef(
        name="table_header",
        font=body_font.derive(bold=True, background=header_background),
        para=body_para.derive(space_after_pt=0.0),
    )

    return styles


def _build_default_styles() -> dict[str, StyleDef]:
    """Build the **default** preset styles."""
    return _build_styles(
        FontSpec(family="Calibri", size_pt=11.0),
        ParaSpec(line_spacing_percent=108, space_after_pt=8.0),
        heading_family="Calibri",
        heading_color="",
        code_family="Courier New",
        code_background="F2F2F2",
        quote_color="595959",
        quote_indent_pt=36.0,
        header_background="",
    )


def _build_academic_styles() -> dict[str, StyleDef]:
    """Build the **academic** preset -- serif-focused, wider spacing."""
    return _build_styles(
        FontSpec(family="Times New Roman", size_pt=12.0),
        ParaSpec(line_spacing_percent=200, space_after_pt=0.0),
        heading_family="Times New Roman",
        heading_color="",
        code_family="Courier New",
        code_background="F5F5F5",
        quote_color="",
        quote_indent_pt=48.0,
        header_background="",
    )


def _build_business_styles() -> dict[str, StyleDef]:
    """Build the **business** preset -- sans-serif, compact."""
    return _build_styles(
        FontSpec(family="Arial", size_pt=10.0),
        ParaSpec(line_spacing_percent=115, space_after_pt=6.0),
        heading_family="Arial",
        heading_color="1F3864",
        code_family="Consolas",
        code_background="F2F2F2",
        quote_color="404040",
        quote_indent_pt=24.0,
        header_background="D9E2F3",
    )


def _build_minimal_styles() -> dict[str, StyleDef]:
    """Build the **minimal** preset -- clean, tight spacing."""
    return _build_styles(
        FontSpec(family="Helvetica", size_pt=10.0),
        ParaSpec(line_spacing_percent=100, space_after_pt=4.0),
        heading_family="Helvetica",
        heading_color="",
        code_family="Menlo",
        code_background="FAFAFA",
        quote_color="666666",
        quote_indent_pt=18.0,
        header_background="",
    )


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

_PRESET_BUILDERS = {
    "default": _build_default_styles,
    "academic": _build_academic_styles,
    "business": _build_business_styles,
    "minimal": _build_minimal_styles,
}


# ---------------------------------------------------------------------------
# StyleManager
# ---------------------------------------------------------------------------

class StyleManager:
    """Manages document style presets and provides style definitions.

    Usage::

        sm = StyleManager("academic")
        body_font = sm.get_body_font()
        quote = sm.get_style("blockquote")
    """

    PRESETS = list(_PRESET_BUILDERS.keys())

    def __init__(self, preset: str = "default") -> None:
        if preset not in _PRESET_BUILDERS:
            raise ValueError(
                f"Unknown preset {preset!r}. Choose from: {', '.join(_PRESET_BUILDERS)}"
            )
        self.preset = preset
        self._styles: dict[str, StyleDef] = _PRESET_BUILDERS[preset]()

    # -- public API ---------------------------------------------------------

    def get_style(self, name: str) -> StyleDef:
        """Get style by semantic name.

        Supported names: body, heading, code_block, inline_code,
        blockquote, link, table_header.

        Falls back to ``body`` for unknown names.
        """
        return self._styles.get(name, self._styles["body"])

    def get_body_font(self) -> FontSpec:
        return self.get_style("body").font

    def get_body_para(self) -> ParaSpec:
        return self.get_style("body").para

    def get_code_font(self) -> FontSpec:
        return self.get_style("code_block").font

    def get_inline_code_font(self) -> FontSpec:
        return self.get_style("inline_code").font

    def get_link_color(self) -> str:
        return self.get_style("link").font.color

    def list_style_names(self) -> list[str]:
        """Return all available style names in this preset."""
        return sorted(self._styles.keys())
