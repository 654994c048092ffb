# matchmycv/rendering/docx_renderer.py
from __future__ import annotations
from io import BytesIO

import docx
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from .layout import Block, Layout

ALIGNMENT = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
}
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _bottom_rule(paragraph) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "6")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), "auto")
    borders.append(bottom)
    p_pr.append(borders)


def _add_block(d, layout: Layout, block: Block) -> None:
    p = d.add_paragraph()
    p.alignment = ALIGNMENT.get(block.align, WD_ALIGN_PARAGRAPH.LEFT)
    fmt = p.paragraph_format
    fmt.space_before = Pt(block.space_before)
    fmt.space_after = Pt(block.space_after)
    fmt.line_spacing = layout.settings.line_spacing
    if block.indent:
        fmt.left_indent = Pt(block.indent)
        fmt.first_line_indent = Pt(-block.indent * 0.6)
    if block.kind in ("header", "section_title", "entry_title"):
        fmt.keep_with_next = True

    text = f"• {block.text}" if block.kind == "bullet" else block.text
    run = p.add_run(text)
    run.bold = block.bold
    run.italic = block.italic
    run.font.size = Pt(block.font_size)
    run.font.name = layout.font_name
    if layout.accent and block.kind in ("header", "section_title"):
        run.font.color.rgb = RGBColor.from_string(layout.accent)

    if block.kind == "section_title":
        _bottom_rule(p)


def render_docx(layout: Layout) -> bytes:
    d = docx.Document()
    geo = layout.geometry
    section = d.sections[0]
    section.page_width = Pt(geo.width)
    section.page_height = Pt(geo.height)
    section.top_margin = section.bottom_margin = Pt(geo.margin)
    section.left_margin = section.right_margin = Pt(geo.margin)

    normal = d.styles["Normal"]
    normal.font.name = layout.font_name
    normal.font.size = Pt(layout.settings.font_size)

    for block in layout.blocks:
        _add_block(d, layout, block)

    buf = BytesIO()
    d.save(buf)
    return buf.getvalue()
