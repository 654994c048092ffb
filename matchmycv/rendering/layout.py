# matchmycv/rendering/layout.py
"""Format-neutral CV layout.

Structured CV content becomes an ordered list of blocks with estimated heights
on a known page geometry. The DOCX, HTML and PDF renderers all read the same
Layout, so every format shows the same text in the same order.
"""
from __future__ import annotations
import textwrap
from dataclasses import dataclass, field
from typing import Any, Optional

from ..schemas import ExportSettings
from ..services.cv_content import normalize_cv_content

POINTS_PER_INCH = 72.0

# width x height in points
PAPER_SIZES = {
    "a4": (8.27 * POINTS_PER_INCH, 11.69 * POINTS_PER_INCH),
    "letter": (8.5 * POINTS_PER_INCH, 11.0 * POINTS_PER_INCH),
    "legal": (8.5 * POINTS_PER_INCH, 14.0 * POINTS_PER_INCH),
}
MARGINS = {"narrow": 0.5 * POINTS_PER_INCH, "normal": 1.0 * POINTS_PER_INCH, "wide": 1.25 * POINTS_PER_INCH}

# settings name -> (DOCX font name, CSS font stack)
FONT_FAMILIES = {
    "times": ("Times New Roman", "'Times New Roman', Times, serif"),
    "arial": ("Arial", "Arial, Helvetica, sans-serif"),
    "helvetica": ("Helvetica", "Helvetica, Arial, sans-serif"),
    "calibri": ("Calibri", "Calibri, Arial, sans-serif"),
}

TEMPLATE_STYLES = {
    "standard": {"header_delta": 10, "section_delta": 2, "spacing": 1.0, "header_align": "center", "accent": None},
    "compact": {"header_delta": 6, "section_delta": 1, "spacing": 0.6, "header_align": "center", "accent": None},
    "modern": {"header_delta": 12, "section_delta": 2, "spacing": 1.1, "header_align": "left", "accent": "1F3A5F"},
}

# average glyph width as a fraction of the font size
AVG_CHAR_WIDTH = 0.5
BULLET_INDENT = 14.0


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float
    margin: float

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.height - 2 * self.margin

    @classmethod
    def from_settings(cls, settings: ExportSettings) -> "PageGeometry":
        width, height = PAPER_SIZES[settings.paper_size]
        return cls(width=width, height=height, margin=MARGINS[settings.margins])


@dataclass(frozen=True)
class Block:
    key: str
    kind: str  # header | contact | section_title | paragraph | entry_title | entry_meta | bullet
    text: str
    font_size: float
    height: float
    bold: bool = False
    italic: bool = False
    align: str = "left"
    space_before: float = 0.0
    space_after: float = 0.0
    indent: float = 0.0


@dataclass(frozen=True)
class Layout:
    geometry: PageGeometry
    blocks: tuple[Block, ...]
    settings: ExportSettings
    template: str = "standard"
    accent: Optional[str] = None

    @property
    def heights(self) -> list[float]:
        return [b.height for b in self.blocks]

    @property
    def font_name(self) -> str:
        return FONT_FAMILIES[self.settings.font_family][0]

    @property
    def css_font(self) -> str:
        return FONT_FAMILIES[self.settings.font_family][1]


def wrap_lines(text: str, width: float, font_size: float) -> list[str]:
    """Deterministic word wrap using an average glyph width."""
    chars = max(1, int(width / (font_size * AVG_CHAR_WIDTH)))
    lines: list[str] = []
    for para in (text or "").split("\n"):
        lines.extend(textwrap.wrap(para, width=chars, break_long_words=True) or [""])
    return lines


def block_height(text: str, font_size: float, line_spacing: float, width: float,
                 space_before: float = 0.0, space_after: float = 0.0) -> float:
    lines = len(wrap_lines(text, width, font_size))
    return lines * font_size * line_spacing + space_before + space_after


@dataclass
class _Builder:
    geometry: PageGeometry
    line_spacing: float
    blocks: list[Block] = field(default_factory=list)

    def add(self, key: str, kind: str, text: str, font_size: float, **kw: Any) -> None:
        indent = kw.get("indent", 0.0)
        measured = f"• {text}" if kind == "bullet" else text
        height = block_height(
            measured, font_size, self.line_spacing, self.geometry.content_width - indent,
            kw.get("space_before", 0.0), kw.get("space_after", 0.0),
        )
        self.blocks.append(Block(key=key, kind=kind, text=text, font_size=font_size, height=height, **kw))


def build_layout(content: Any, template: str = "standard", settings: ExportSettings | dict | None = None) -> Layout:
    if settings is None:
        settings = ExportSettings()
    elif isinstance(settings, dict):
        settings = ExportSettings.model_validate(settings)
    style = TEMPLATE_STYLES.get(template) or TEMPLATE_STYLES["standard"]
    cv = normalize_cv_content(content)
    geometry = PageGeometry.from_settings(settings)

    base = float(settings.font_size)
    gap = base * style["spacing"]
    b = _Builder(geometry, float(settings.line_spacing))
    head_align = style["header_align"]

    contact = cv["contact"]
    if contact["name"]:
        b.add("header", "header", contact["name"].upper(), base + style["header_delta"],
              bold=True, align=head_align, space_after=gap * 0.4)
    contact_bits = [contact[k] for k in ("email", "phone", "location", "linkedin", "website") if contact[k]]
    if contact_bits:
        b.add("contact", "contact", " | ".join(contact_bits), base - 1, align=head_align, space_after=gap)

    def section(name: str, title: str) -> None:
        b.add(f"{name}.title", "section_title", title, base + style["section_delta"],
              bold=True, space_before=gap * 0.6 if b.blocks else 0.0, space_after=gap * 0.4)

    if cv["summary"]:
        section("summary", "PROFESSIONAL SUMMARY")
        b.add("summary.body", "paragraph", cv["summary"], base, space_after=gap * 0.3)

    if cv["skills"]:
        section("skills", "CORE COMPETENCIES")
        b.add("skills.body", "paragraph", " • ".join(cv["skills"]), base, space_after=gap * 0.3)

    if cv["experience"]:
        section("experience", "PROFESSIONAL EXPERIENCE")
        for i, exp in enumerate(cv["experience"]):
            heading = " | ".join(p for p in (exp["title"], exp["company"]) if p)
            if heading:
                b.add(f"experience.{i}.heading", "entry_title", heading, base + 1,
                      bold=True, space_before=gap * 0.5 if i else 0.0)
            if exp["duration"]:
                b.add(f"experience.{i}.duration", "entry_meta", exp["duration"], base - 1,
                      italic=True, space_after=gap * 0.2)
            for j, bullet in enumerate(exp["bullets"]):
                b.add(f"experience.{i}.bullet.{j}", "bullet", bullet, base,
                      indent=BULLET_INDENT, space_after=gap * 0.15)

    if cv["education"]:
        section("education", "EDUCATION")
        for i, edu in enumerate(cv["education"]):
            if edu["degree"]:
                b.add(f"education.{i}.degree", "entry_title", edu["degree"], base,
                      bold=True, space_before=gap * 0.3 if i else 0.0)
            details = " | ".join(p for p in (edu["institution"], edu["year"]) if p)
            if details:
                b.add(f"education.{i}.details", "entry_meta", details, base - 1, space_after=gap * 0.2)

    return Layout(
        geometry=geometry,
        blocks=tuple(b.blocks),
        settings=settings,
        template=template if template in TEMPLATE_STYLES else "standard",
        accent=style["accent"],
    )
