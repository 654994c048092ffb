# matchmycv/rendering/html_renderer.py
from __future__ import annotations
from flask import render_template

from .layout import Layout
from .pagination import Page, paginate_layout


def block_style(block, layout: Layout) -> str:
    rules = [
        f"font-size: {block.font_size:.1f}pt",
        f"line-height: {layout.settings.line_spacing}",
        f"margin: {block.space_before:.1f}pt 0 {block.space_after:.1f}pt {block.indent:.1f}pt",
        f"text-align: {block.align}",
    ]
    if block.bold:
        rules.append("font-weight: bold")
    if block.italic:
        rules.append("font-style: italic")
    if layout.accent and block.kind in ("header", "section_title"):
        rules.append(f"color: #{layout.accent}")
    return "; ".join(rules)


def render_html(layout: Layout, pages: list[Page] | None = None, for_pdf: bool = False) -> str:
    pages = pages if pages is not None else paginate_layout(layout)
    return render_template(
        "cv/paginated.html",
        layout=layout,
        geometry=layout.geometry,
        pages=pages,
        block_style=block_style,
        for_pdf=for_pdf,
    )
